from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from typing import Optional, List
from datetime import datetime
from uuid import UUID, uuid4

from app.core.utils import utcnow

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", unique=True)
    specialization: str = Field(index=True)
    license_number: str = Field(unique=True)
    consultation_fee: float
    languages: List[str] = Field(default=[], sa_column=Column(JSON))
    city: Optional[str] = None
    is_verified: bool = Field(default=False)
    registration_status: str = Field(default="pending", index=True) # pending, approved, rejected
    approved_by: Optional[UUID] = Field(default=None, foreign_key="users.id")
    approval_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
