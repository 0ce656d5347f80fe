# Path: otpgate/infrastructure/sms/twilio_provider.py
import asyncio

import aiohttp
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from twilio.base.exceptions import TwilioRestException
from twilio.http.async_http_client import AsyncTwilioHttpClient
from twilio.rest import Client

from otpgate.infrastructure.sms.provider import SmsProvider, VerificationResult
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.infrastructure.external import SmsServiceError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.utilities.constants import HttpStatus

logger = LoggingService(LogConfig())

TRANSIENT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)

transient_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, max=4),
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    reraise=True,
    after=lambda retry_state: logger.warning(
        f"Twilio call attempt {retry_state.attempt_number} failed",
        context={"error": str(retry_state.outcome.exception())},
    ),
)


class TwilioSmsProvider(SmsProvider):
    """Twilio Verify v2 for OTP challenges, Messages for plain SMS."""

    name = "twilio"

    def __init__(
            self,
            account_sid: str = None,
            auth_token: str = None,
            verify_service_sid: str = None,
            from_number: str = None,
            client: Client = None
    ):
        self.verify_service_sid = verify_service_sid or settings.TWILIO_VERIFY_SERVICE_SID
        self.from_number = from_number or settings.TWILIO_PHONE_NUMBER
        self._http_client = None
        if client is None:
            self._http_client = AsyncTwilioHttpClient()
            client = Client(
                account_sid or settings.TWILIO_ACCOUNT_SID,
                auth_token or settings.TWILIO_AUTH_TOKEN,
                http_client=self._http_client
            )
        self.client = client

    @property
    def _verify(self):
        return self.client.verify.v2.services(self.verify_service_sid)

    def _error(self, operation: str, error: Exception) -> SmsServiceError:
        details = {"operation": operation, "provider": self.name}
        if isinstance(error, TwilioRestException):
            details.update({"status": error.status, "code": error.code})
        logger.error("Twilio call failed", context={**details, "error": str(error)})
        return SmsServiceError(provider=self.name, message=get_message("sms.failed"), details=details)

    @transient_retry
    async def _create_verification(self, phone: str):
        return await self._verify.verifications.create_async(to=phone, channel="sms")

    @transient_retry
    async def _create_message(self, to: str, body: str):
        return await self.client.messages.create_async(to=to, from_=self.from_number, body=body)

    async def start_verification(self, phone: str) -> VerificationResult:
        try:
            verification = await self._create_verification(phone)
        except (TwilioRestException, *TRANSIENT_ERRORS) as e:
            raise self._error("start_verification", e)
        logger.info("Verification started", context={"phone": phone, "sid": verification.sid})
        return VerificationResult(sid=verification.sid, status=verification.status)

    async def check_verification(self, phone: str, code: str) -> VerificationResult:
        # Checks consume an attempt on Twilio's side, so they are never retried
        try:
            check = await self._verify.verification_checks.create_async(to=phone, code=code)
        except TwilioRestException as e:
            if e.status == HttpStatus.NOT_FOUND.value:
                logger.info("Verification not found or expired", context={"phone": phone})
                return VerificationResult(status="expired", expired=True)
            raise self._error("check_verification", e)
        except TRANSIENT_ERRORS as e:
            raise self._error("check_verification", e)
        return VerificationResult(sid=check.sid, status=check.status)

    async def send_message(self, to: str, body: str) -> str:
        try:
            message = await self._create_message(to, body)
        except (TwilioRestException, *TRANSIENT_ERRORS) as e:
            raise self._error("send_message", e)
        logger.info("SMS sent", context={"phone": to, "sid": message.sid})
        return message.sid

    async def close(self) -> None:
        if self._http_client is not None:
            await self._http_client.close()
