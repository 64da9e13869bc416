from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import date, datetime
from uuid import UUID, uuid4

from app.core.utils import utcnow

class Patient(SQLModel, table=True):
    __tablename__ = "patients"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", unique=True)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None # M, F, A
    address: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
