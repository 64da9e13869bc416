from sqlmodel import SQLModel, Field
from sqlalchemy import JSON, Column
from typing import Optional
from datetime import datetime
from uuid import UUID, uuid4

from app.core.utils import utcnow

class NotificationOutbox(SQLModel, table=True):
    """Notification written with the business change, delivered after commit."""
    __tablename__ = "notification_outbox"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    event_type: str = Field(index=True)
    recipient: dict = Field(default={}, sa_column=Column(JSON)) # phone, email
    payload: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    status: str = Field(default="pending", index=True) # pending, sent, failed
    attempts: int = Field(default=0)
    last_error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    sent_at: Optional[datetime] = None
