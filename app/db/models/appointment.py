from sqlmodel import SQLModel, Field
from typing import Optional
import datetime as dt
from datetime import datetime, time
from uuid import UUID, uuid4

from app.core.utils import utcnow

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    doctor_id: UUID = Field(foreign_key="doctors.id", index=True)
    patient_id: UUID = Field(foreign_key="patients.id", index=True)
    date: dt.date = Field(index=True)
    start_time: time
    end_time: time
    status: str = Field(default="pending", index=True) # pending, confirmed, cancelled, completed
    type: str = Field(default="consultation") # consultation, follow-up, emergency
    reason: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[UUID] = Field(default=None, foreign_key="users.id")
    cancellation_date: Optional[datetime] = None
    payment_status: str = Field(default="pending") # pending, paid, refunded
    payment_amount: Optional[float] = None
    payment_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)
