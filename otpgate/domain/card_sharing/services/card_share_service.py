# Path: otpgate/domain/card_sharing/services/card_share_service.py
from datetime import timedelta

from pymongo.errors import DuplicateKeyError

from otpgate.domain.authentication.models.session import CurrentSession
from otpgate.domain.card_sharing.models.card_share import CardShare, ShareCardInput, VerifyCardShareInput
from otpgate.infrastructure.sms.provider import SmsProvider
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.card_share_repository import CardShareRepository
from otpgate.shared.base_service.base_service import BaseService
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.card import CardShareNotFoundError, CardSharePendingError
from otpgate.shared.errors.domain.security import InvalidCredentialsError, UnauthorizedAccessError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.text import generate_otp_code, hash_otp, otp_matches
from otpgate.shared.utilities.time import ensure_aware, utc_now
from otpgate.shared.utilities.types import LanguageCode


class CardShareService(BaseService):
    """Admin-initiated card shares confirmed by an OTP sent to the recipient."""

    def __init__(self, shares: CardShareRepository, sms_provider: SmsProvider, audit: AuditLogRepository):
        super().__init__()
        self.shares = shares
        self.sms_provider = sms_provider
        self.audit = audit

    @staticmethod
    def _is_expired(share: dict) -> bool:
        return ensure_aware(share["expires_at"]) <= utc_now()

    @staticmethod
    def _attempts_exhausted(language: LanguageCode) -> InvalidCredentialsError:
        return InvalidCredentialsError(
            error_code=DomainErrorCode.CARD_SHARE_RATE_LIMIT.value,
            message=get_message("card.share_blocked", language),
            status_code=HttpStatus.BAD_REQUEST.value,
            details={"remaining_attempts": 0},
            language=language
        )

    async def share_card(self, data: ShareCardInput, current: CurrentSession, language: LanguageCode = "en") -> dict:
        async def operation():
            if data.shared_by_admin != current.account_id:
                raise UnauthorizedAccessError(
                    resource="card_share",
                    error_code=DomainErrorCode.PERMISSION_DENIED.value,
                    message=get_message("card.share_forbidden", language),
                    status_code=HttpStatus.FORBIDDEN.value,
                    language=language
                )

            pending = await self.shares.find_pending(data.card_id, data.shared_with_user)
            if pending is not None:
                if not self._is_expired(pending):
                    raise CardSharePendingError(
                        card_id=data.card_id,
                        shared_with_user=data.shared_with_user,
                        message=get_message("card.share_pending", language),
                        language=language
                    )
                await self.shares.remove(pending["_id"])
                self.logger.info("Replaced expired card share", context={"share_id": pending["_id"]})

            otp = generate_otp_code()
            try:
                share = await self.shares.create_pending(
                    card_id=data.card_id,
                    shared_with_user=data.shared_with_user,
                    shared_by_admin=data.shared_by_admin,
                    phone_number=data.phone_number,
                    otp_hash=hash_otp(otp),
                    expires_at=utc_now() + timedelta(seconds=settings.SHARE_OTP_EXPIRY)
                )
            except DuplicateKeyError:
                raise CardSharePendingError(
                    card_id=data.card_id,
                    shared_with_user=data.shared_with_user,
                    message=get_message("card.share_pending", language),
                    language=language
                )

            try:
                await self.sms_provider.send_message(
                    data.phone_number,
                    get_message("card.share_message", language, {"otp": otp})
                )
            except Exception:
                await self.shares.remove(share["_id"])
                raise

            await self.audit.log("card_shared", {
                "share_id": share["_id"],
                "card_id": data.card_id,
                "shared_with_user": data.shared_with_user,
                "shared_by_admin": data.shared_by_admin
            })
            self.logger.info("Card shared", context={"share_id": share["_id"], "card_id": data.card_id})
            return CardShare.from_document(share).model_dump(mode="json")

        return await self.execute(operation, {"card_id": data.card_id, "action": "share_card"}, language)

    async def verify_share(
            self,
            data: VerifyCardShareInput,
            current: CurrentSession,
            language: LanguageCode = "en"
    ) -> dict:
        async def operation():
            share = await self.shares.find_pending(data.card_id, data.shared_with_user)
            if share is None:
                raise CardShareNotFoundError(
                    card_id=data.card_id,
                    shared_with_user=data.shared_with_user,
                    message=get_message("card.share_not_found", language),
                    language=language
                )

            if share["phone_number"] != current.phone:
                raise UnauthorizedAccessError(
                    resource="card_share",
                    error_code=DomainErrorCode.PERMISSION_DENIED.value,
                    message=get_message("auth.forbidden", language),
                    status_code=HttpStatus.FORBIDDEN.value,
                    language=language
                )

            if self._is_expired(share):
                raise InvalidCredentialsError(
                    error_code=DomainErrorCode.CARD_SHARE_EXPIRED.value,
                    message=get_message("card.share_expired", language),
                    status_code=HttpStatus.BAD_REQUEST.value,
                    language=language
                )

            reserved = await self.shares.reserve_attempt(share["_id"], settings.MAX_SHARE_OTP_ATTEMPTS)
            if reserved is None:
                raise self._attempts_exhausted(language)

            if not otp_matches(data.otp, share.get("otp_hash", "")):
                remaining = max(settings.MAX_SHARE_OTP_ATTEMPTS - reserved["attempts"], 0)
                if remaining == 0:
                    await self.shares.remove(share["_id"])
                    await self.audit.log("card_share_invalidated", {"share_id": share["_id"]})
                    raise self._attempts_exhausted(language)
                raise InvalidCredentialsError(
                    error_code=DomainErrorCode.CARD_SHARE_OTP_INVALID.value,
                    message=get_message("card.share_invalid", language, {"remaining_attempts": remaining}),
                    status_code=HttpStatus.BAD_REQUEST.value,
                    details={"remaining_attempts": remaining},
                    language=language
                )

            verified = await self.shares.mark_verified(share["_id"])
            if verified is None:
                raise CardShareNotFoundError(
                    card_id=data.card_id,
                    shared_with_user=data.shared_with_user,
                    message=get_message("card.share_not_found", language),
                    language=language
                )
            await self.audit.log("card_share_verified", {"share_id": share["_id"], "account_id": current.account_id})
            self.logger.info("Card share verified", context={"share_id": share["_id"]})
            return CardShare.from_document(verified).model_dump(mode="json")

        return await self.execute(operation, {"card_id": data.card_id, "action": "verify_card_share"}, language)
