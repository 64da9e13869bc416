from pydantic import BaseModel, EmailStr, Field
from enum import Enum
from typing import Optional, List
from uuid import UUID

from app.schemas.auth import Phone

class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class DoctorCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Phone
    email: Optional[EmailStr] = None
    specialization: str
    license_number: str
    consultation_fee: float = Field(ge=0)
    languages: List[str] = []
    city: Optional[str] = None

class DoctorResponse(BaseModel):
    id: UUID
    user_id: UUID
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    specialization: str
    license_number: str
    consultation_fee: float
    languages: List[str] = []
    city: Optional[str] = None
    is_verified: bool
    registration_status: RegistrationStatus
    rejection_reason: Optional[str] = None

    @classmethod
    def from_models(cls, doctor, user) -> "DoctorResponse":
        return cls(
            id=doctor.id,
            user_id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            phone=user.phone,
            email=user.email,
            specialization=doctor.specialization,
            license_number=doctor.license_number,
            consultation_fee=doctor.consultation_fee,
            languages=doctor.languages or [],
            city=doctor.city,
            is_verified=doctor.is_verified,
            registration_status=doctor.registration_status,
            rejection_reason=doctor.rejection_reason,
        )

class DoctorReject(BaseModel):
    reason: str = Field(min_length=1)
