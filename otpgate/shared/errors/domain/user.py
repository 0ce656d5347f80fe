# Path: otpgate/shared/errors/domain/user.py
from typing import Optional

from otpgate.shared.errors.base import BaseError
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.helpers import generate_trace_id
from otpgate.shared.utilities.types import TraceId, ErrorDetails, LanguageCode


class UserNotFoundError(BaseError):
    """Error when no role-table row exists for a phone number."""

    def __init__(
            self,
            identifier: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=DomainErrorCode.USER_NOT_FOUND.value,
            message=message or "User not found.",
            status_code=HttpStatus.NOT_FOUND.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"identifier": identifier},
            language=language
        )


class PinNotSetError(BaseError):
    """Error when a transaction PIN has not been configured."""

    def __init__(
            self,
            identifier: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=DomainErrorCode.PIN_NOT_SET.value,
            message=message or "PIN not found.",
            status_code=HttpStatus.NOT_FOUND.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"identifier": identifier},
            language=language
        )
