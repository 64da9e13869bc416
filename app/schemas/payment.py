from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from enum import Enum
from typing import Optional

class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"

class PaymentMethod(str, Enum):
    MOBILE_MONEY = "mobile_money"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"

class Currency(str, Enum):
    USD = "USD"
    CDF = "CDF"

class PaymentCreate(BaseModel):
    payment_method: PaymentMethod
    amount: Optional[float] = Field(default=None, ge=0)
    currency: Currency = Currency.USD

class PaymentRefund(BaseModel):
    reason: str = Field(min_length=1)

class PaymentResponse(BaseModel):
    id: UUID
    appointment_id: UUID
    amount: float
    currency: Currency
    status: PaymentStatus
    payment_method: PaymentMethod
    transaction_id: Optional[str] = None
    payment_date: datetime
    refund_date: Optional[datetime] = None
    refund_reason: Optional[str] = None

    class Config:
        from_attributes = True
