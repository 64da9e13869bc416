from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import date

class PatientUpdate(BaseModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Literal["M", "F", "A"]] = None
    address: Optional[str] = None
