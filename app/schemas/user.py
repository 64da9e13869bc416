from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union
from uuid import UUID
from datetime import date, datetime

# Accounts share one base record; the role tag selects the profile payload.

class AccountBase(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    phone_verified: bool
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True

class PatientProfile(BaseModel):
    id: UUID
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True

class DoctorProfile(BaseModel):
    id: UUID
    specialization: str
    license_number: str
    consultation_fee: float
    languages: List[str] = []
    city: Optional[str] = None
    is_verified: bool
    registration_status: str

    class Config:
        from_attributes = True

class PatientAccount(AccountBase):
    role: Literal["patient"] = "patient"
    profile: Optional[PatientProfile] = None

class DoctorAccount(AccountBase):
    role: Literal["doctor"] = "doctor"
    profile: Optional[DoctorProfile] = None

class AdminAccount(AccountBase):
    role: Literal["admin"] = "admin"

Account = Annotated[
    Union[PatientAccount, DoctorAccount, AdminAccount],
    Field(discriminator="role"),
]

_ACCOUNT_TYPES = {
    "patient": PatientAccount,
    "doctor": DoctorAccount,
    "admin": AdminAccount,
}

def build_account(user, profile=None) -> Union[PatientAccount, DoctorAccount, AdminAccount]:
    account_cls = _ACCOUNT_TYPES[user.role]
    account = account_cls.model_validate(user)
    if profile is not None and hasattr(account, "profile"):
        profile_cls = PatientProfile if user.role == "patient" else DoctorProfile
        account.profile = profile_cls.model_validate(profile)
    return account
