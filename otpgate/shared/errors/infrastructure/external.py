# Path: otpgate/shared/errors/infrastructure/external.py
from typing import Optional

from otpgate.shared.errors.base import BaseError
from otpgate.shared.utilities.constants import InfraErrorCode, HttpStatus
from otpgate.shared.utilities.helpers import generate_trace_id
from otpgate.shared.utilities.types import TraceId, ErrorDetails, LanguageCode


class SmsServiceError(BaseError):
    """Error when SMS service fails."""

    def __init__(
            self,
            provider: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=InfraErrorCode.SMS_SERVICE.value,
            message=message or f"SMS service {provider} failed.",
            status_code=HttpStatus.SERVICE_UNAVAILABLE.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"provider": provider},
            language=language
        )
