from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from app.schemas.schedule import HHMM

class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"

class PaymentState(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    REFUNDED = "refunded"

class AppointmentCreate(BaseModel):
    doctor_id: UUID
    date: date
    start_time: HHMM
    end_time: HHMM
    type: AppointmentType = AppointmentType.CONSULTATION
    reason: str = Field(min_length=1)
    notes: Optional[str] = None

class AppointmentCancel(BaseModel):
    reason: str = Field(min_length=1)

class AppointmentResponse(BaseModel):
    id: UUID
    doctor_id: UUID
    patient_id: UUID
    date: date
    start_time: HHMM
    end_time: HHMM
    status: AppointmentStatus
    type: AppointmentType
    reason: str
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancellation_date: Optional[datetime] = None
    payment_status: PaymentState
    payment_amount: Optional[float] = None
    created_at: datetime

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def format_time(cls, value):
        if isinstance(value, time):
            return value.strftime("%H:%M")
        return value

    class Config:
        from_attributes = True
