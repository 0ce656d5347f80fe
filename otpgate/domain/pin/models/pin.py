# Path: otpgate/domain/pin/models/pin.py
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from otpgate.shared.config.settings import settings
from otpgate.shared.utilities.phone import validate_and_format_phone


class PinTarget(BaseModel):
    phone_number: str = Field(..., min_length=6, max_length=20)
    role: Literal["user", "admin"] = Field(default="user")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return validate_and_format_phone(v)


class CheckPinInput(PinTarget):
    pass


class PinInput(PinTarget):
    pin: str = Field(..., description="Numeric transaction PIN")

    @field_validator("pin")
    @classmethod
    def validate_pin(cls, v: str) -> str:
        if not v.isdigit() or not settings.PIN_MIN_LENGTH <= len(v) <= settings.PIN_MAX_LENGTH:
            raise ValueError(f"PIN must be {settings.PIN_MIN_LENGTH} to {settings.PIN_MAX_LENGTH} digits")
        return v


class SetPinInput(PinInput):
    pass


class VerifyPinInput(PinInput):
    pass
