from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from app.core.utils import utcnow

class User(SQLModel, table=True):
    """Shared account record; role-specific data lives in `patients` / `doctors`."""
    __tablename__ = "users"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    role: str # patient, doctor, admin
    first_name: str
    last_name: str
    phone: str = Field(unique=True, index=True)
    email: Optional[str] = None
    phone_verified: bool = Field(default=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
