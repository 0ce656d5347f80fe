# Path: otpgate/infrastructure/sms/dev_provider.py
import hmac
from uuid import uuid4

from otpgate.infrastructure.sms.provider import SmsProvider, VerificationResult
from otpgate.shared.config.settings import settings
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.logging.service import LoggingService


class DevSmsProvider(SmsProvider):
    """Local development provider: logs instead of sending and accepts a fixed code."""

    name = "dev"

    def __init__(self, dev_code: str = None):
        if settings.ENVIRONMENT == "production":
            raise RuntimeError("DevSmsProvider cannot be used when ENVIRONMENT=production")
        self.dev_code = dev_code or settings.OTP_DEV_CODE
        self.logger = LoggingService(LogConfig())

    async def start_verification(self, phone: str) -> VerificationResult:
        sid = f"VE{uuid4().hex}"
        self.logger.info("Dev verification started", context={"phone": phone, "sid": sid})
        return VerificationResult(sid=sid, status="pending")

    async def check_verification(self, phone: str, code: str) -> VerificationResult:
        status = "approved" if hmac.compare_digest(code, self.dev_code) else "pending"
        return VerificationResult(sid=None, status=status)

    async def send_message(self, to: str, body: str) -> str:
        sid = f"SM{uuid4().hex}"
        self.logger.info("Dev SMS", context={"phone": to, "sid": sid, "length": len(body)})
        return sid
