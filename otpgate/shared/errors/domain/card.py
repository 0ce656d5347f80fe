# Path: otpgate/shared/errors/domain/card.py
from typing import Optional

from otpgate.shared.errors.base import BaseError
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.helpers import generate_trace_id
from otpgate.shared.utilities.types import TraceId, ErrorDetails, LanguageCode


class CardSharePendingError(BaseError):
    """Error when the card already has an unverified share for the recipient."""

    def __init__(
            self,
            card_id: str,
            shared_with_user: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=DomainErrorCode.CARD_SHARE_PENDING.value,
            message=message or "Card already shared and pending verification.",
            status_code=HttpStatus.CONFLICT.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"card_id": card_id, "shared_with_user": shared_with_user},
            language=language
        )


class CardShareNotFoundError(BaseError):
    """Error when there is no pending share to verify."""

    def __init__(
            self,
            card_id: str,
            shared_with_user: str,
            message: Optional[str] = None,
            trace_id: TraceId = None,
            details: ErrorDetails = None,
            language: LanguageCode = "en"
    ):
        super().__init__(
            error_code=DomainErrorCode.CARD_SHARE_NOT_FOUND.value,
            message=message or "No pending card share found.",
            status_code=HttpStatus.NOT_FOUND.value,
            trace_id=trace_id or generate_trace_id(),
            details=details or {"card_id": card_id, "shared_with_user": shared_with_user},
            language=language
        )
