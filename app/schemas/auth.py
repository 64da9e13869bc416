from pydantic import BaseModel, EmailStr, Field
from typing import Annotated, Literal, Optional
from datetime import date

from app.schemas.user import Account

Phone = Annotated[str, Field(pattern=r"^\+?[0-9]{8,15}$", examples=["+243812345678"])]

class PatientRegister(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: Phone
    email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["M", "F", "A"]] = None
    address: Optional[str] = None

class OTPRequest(BaseModel):
    phone: Phone

class OTPVerify(BaseModel):
    phone: Phone
    otp: str = Field(pattern=r"^[0-9]{6}$")

class LoginResponse(BaseModel):
    access_token: str
    token_type: str
    account: Account

class MessageResponse(BaseModel):
    message: str
