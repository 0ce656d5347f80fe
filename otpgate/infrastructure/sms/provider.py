# Path: otpgate/infrastructure/sms/provider.py
from abc import ABC, abstractmethod
from typing import Optional

from pydantic import BaseModel


class VerificationResult(BaseModel):
    """Outcome of starting or checking a verification challenge."""
    sid: Optional[str] = None
    status: str
    # Challenge is unknown to the provider (never issued, expired or already consumed)
    expired: bool = False

    @property
    def approved(self) -> bool:
        return self.status == "approved"


class SmsProvider(ABC):
    """Capability seam for OTP verification and plain SMS delivery."""

    name: str = "sms"

    @abstractmethod
    async def start_verification(self, phone: str) -> VerificationResult:
        """Send a verification code to `phone` over SMS."""

    @abstractmethod
    async def check_verification(self, phone: str, code: str) -> VerificationResult:
        """Check `code` against the pending challenge for `phone`."""

    @abstractmethod
    async def send_message(self, to: str, body: str) -> str:
        """Send a plain SMS; returns the provider message id."""

    async def close(self) -> None:
        return None
