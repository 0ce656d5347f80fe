# Path: otpgate/domain/authentication/models/otp.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from otpgate.shared.utilities.phone import validate_and_format_phone

Role = Literal["user", "admin"]


class PhoneRoleInput(BaseModel):
    phone: str = Field(..., min_length=6, max_length=20, description="Phone number, E.164 or national")
    role: Role = Field(..., description="Role the phone number authenticates as")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return validate_and_format_phone(v)


class CheckRoleInput(PhoneRoleInput):
    pass


class RequestOTPInput(PhoneRoleInput):
    role: Role = Field(default="user", description="Role requesting OTP")


class VerifyOTPInput(PhoneRoleInput):
    code: str = Field(..., pattern=r"^\d{4,10}$", description="Code received over SMS")
