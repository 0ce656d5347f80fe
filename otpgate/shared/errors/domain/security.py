# Path: otpgate/shared/errors/domain/security.py
from typing import Optional

from otpgate.shared.errors.base import BaseError
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.helpers import generate_trace_id
from otpgate.shared.utilities.types import TraceId, ErrorDetails, LanguageCode


class UnauthorizedAccessError(BaseError):
    """Error when access is unauthorized."""

    def __init__(
            self,
            resource: str,
            error_code: str = DomainErrorCode.UNAUTHORIZED_ACCESS.value,
            message: Optional[str] = None,
            status_code: int = HttpStatus.UNAUTHORIZED.value,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=error_code,
            message=message or f"Unauthorized access to {resource}.",
            status_code=status_code,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"resource": resource},
            language=language
        )


class NotPreApprovedError(BaseError):
    """Error when a phone number is missing from the role's allow-list."""

    def __init__(
            self,
            role: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=DomainErrorCode.NOT_PRE_APPROVED.value,
            message=message or f"{role.capitalize()} not pre-approved by Admin.",
            status_code=HttpStatus.FORBIDDEN.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"role": role},
            language=language
        )


class RateLimitExceededError(BaseError):
    """Error when rate limit is exceeded."""

    def __init__(
            self,
            endpoint: str,
            limit: int,
            error_code: str = DomainErrorCode.RATE_LIMIT_EXCEEDED.value,
            message: Optional[str] = None,
            retry_after: Optional[int] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        self.retry_after = retry_after
        base_details = {"endpoint": endpoint, "limit": limit}
        if retry_after is not None:
            base_details["retry_after"] = retry_after
        super().__init__(
            error_code=error_code,
            message=message or f"Rate limit exceeded for {endpoint}.",
            status_code=HttpStatus.TOO_MANY_REQUESTS.value,
            trace_id=trace_id or generate_trace_id(),
            details={**base_details, **(details or {})},
            language=language
        )


class InvalidTokenError(BaseError):
    """Error when token processing fails."""

    def __init__(
            self,
            error_code: str,
            message: str,
            status_code: int = HttpStatus.UNAUTHORIZED.value,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            trace_id=trace_id or generate_trace_id(),
            details=details or {},
            language=language
        )


class InvalidCredentialsError(BaseError):
    """Error when provided credentials (OTP, PIN) are invalid."""

    def __init__(
            self,
            error_code: str,
            message: str,
            status_code: int,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status_code,
            trace_id=trace_id or generate_trace_id(),
            details=details or {},
            language=language
        )
