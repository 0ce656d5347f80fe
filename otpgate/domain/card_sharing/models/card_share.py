# Path: otpgate/domain/card_sharing/models/card_share.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from otpgate.shared.utilities.phone import validate_and_format_phone


class ShareCardInput(BaseModel):
    card_id: str = Field(..., min_length=1, max_length=64)
    shared_with_user: str = Field(..., min_length=1, max_length=64)
    shared_by_admin: str = Field(..., min_length=1, max_length=64)
    phone_number: str = Field(..., min_length=6, max_length=20, description="Recipient phone number")

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("phone_number")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return validate_and_format_phone(v)


class VerifyCardShareInput(BaseModel):
    card_id: str = Field(..., min_length=1, max_length=64)
    shared_with_user: str = Field(..., min_length=1, max_length=64)
    otp: str = Field(..., pattern=r"^\d{6}$")

    model_config = ConfigDict(str_strip_whitespace=True)


class CardShare(BaseModel):
    """Public view of a `shared_cards` document; the OTP hash never leaves the service."""
    id: str
    card_id: str
    shared_with_user: str
    shared_by_admin: str
    phone_number: str
    is_verified: bool
    attempts: int = 0
    shared_at: datetime
    expires_at: datetime
    verified_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "CardShare":
        return cls(id=document["_id"], **{k: v for k, v in document.items() if k not in ("_id", "otp_hash")})
