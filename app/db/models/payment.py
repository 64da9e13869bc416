from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from app.core.utils import utcnow

class Payment(SQLModel, table=True):
    __tablename__ = "payments"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    appointment_id: UUID = Field(foreign_key="appointments.id", unique=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    doctor_id: UUID = Field(foreign_key="doctors.id", index=True)
    amount: float
    currency: str = Field(default="USD") # USD, CDF
    status: str = Field(default="pending", index=True) # pending, completed, failed, refunded
    payment_method: str # mobile_money, credit_card, bank_transfer, cash
    transaction_id: Optional[str] = Field(default=None, unique=True)
    payment_date: datetime = Field(default_factory=utcnow)
    refund_date: Optional[datetime] = None
    refund_reason: Optional[str] = None
    meta: Optional[dict] = Field(default=None, sa_column=Column(JSON))
