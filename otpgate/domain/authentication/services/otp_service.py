# Path: otpgate/domain/authentication/services/otp_service.py
from otpgate.domain.authentication.models.otp import RequestOTPInput, VerifyOTPInput
from otpgate.domain.authentication.services.preapproval_service import PreApprovalService
from otpgate.domain.authentication.services.rate_limiter import (
    blocked_for,
    check_rate_limits,
    lock_out,
    otp_keys,
    reserve_attempt,
    store_rate_limit_keys,
)
from otpgate.domain.authentication.services.session_service import SessionService
from otpgate.infrastructure.sms.provider import SmsProvider
from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.infrastructure.storage.nosql.repositories.account_repository import AccountRepository
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.base_service.base_service import BaseService
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.base import BaseError
from otpgate.shared.errors.domain.security import InvalidCredentialsError, RateLimitExceededError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.types import LanguageCode


class OTPService(BaseService):
    """Phone OTP issuance and verification on top of the SMS provider's Verify API."""

    def __init__(
            self,
            cache: CacheRepository,
            sms_provider: SmsProvider,
            preapproval: PreApprovalService,
            accounts: AccountRepository,
            members: RoleMemberRepository,
            sessions: SessionService,
            audit: AuditLogRepository
    ):
        super().__init__()
        self.cache = cache
        self.sms_provider = sms_provider
        self.preapproval = preapproval
        self.accounts = accounts
        self.members = members
        self.sessions = sessions
        self.audit = audit

    async def _ensure_not_blocked(self, phone: str, role: str, language: LanguageCode) -> None:
        retry_after = await blocked_for(self.cache, otp_keys(role, phone)["block_key"])
        if retry_after:
            raise RateLimitExceededError(
                endpoint="otp",
                limit=0,
                error_code=DomainErrorCode.OTP_RATE_LIMIT.value,
                message=get_message("otp.blocked", language),
                retry_after=retry_after,
                language=language
            )

    async def send_otp(self, data: RequestOTPInput, client_ip: str = "unknown", language: LanguageCode = "en") -> dict:
        """Start a verification for (phone, role), at most one in flight per resend interval."""
        phone, role = data.phone, data.role
        keys = otp_keys(role, phone)

        async def operation():
            await self.preapproval.ensure_pre_approved(phone, role, language)
            await check_rate_limits(phone, role, self.cache, language)

            if not await self.cache.set_nx(keys["inflight_key"], settings.OTP_RESEND_INTERVAL, "1"):
                retry_after = max(await self.cache.ttl(keys["inflight_key"]), 1)
                raise RateLimitExceededError(
                    endpoint="send-otp",
                    limit=1,
                    error_code=DomainErrorCode.OTP_ALREADY_SENT.value,
                    message=get_message("otp.already_sent", language, {"retry_after": retry_after}),
                    retry_after=retry_after,
                    language=language
                )

            try:
                verification = await self.sms_provider.start_verification(phone)
            except Exception:
                await self.cache.delete(keys["inflight_key"])
                raise

            await store_rate_limit_keys(phone, role, self.cache)
            await self.audit.log("otp_sent", {"phone": phone, "role": role, "ip": client_ip})
            self.logger.info("OTP sent", context={"phone": phone, "role": role, "sid": verification.sid})
            return {
                "sid": verification.sid,
                "status": verification.status,
                "expires_in": settings.OTP_EXPIRY,
                "resend_after": settings.OTP_RESEND_INTERVAL,
            }

        return await self.execute(operation, {"phone": phone, "role": role, "action": "send_otp"}, language)

    @staticmethod
    def _attempts_exceeded(retry_after: int, language: LanguageCode) -> RateLimitExceededError:
        return RateLimitExceededError(
            endpoint="verify-otp",
            limit=settings.MAX_OTP_ATTEMPTS,
            error_code=DomainErrorCode.OTP_RATE_LIMIT.value,
            message=get_message("otp.attempts_exceeded", language),
            retry_after=retry_after,
            language=language
        )

    async def _register_failure(self, phone: str, role: str, attempts: int, language: LanguageCode) -> BaseError:
        keys = otp_keys(role, phone)
        await self.audit.log("otp_failed", {"phone": phone, "role": role, "attempts": attempts})
        if attempts == settings.MAX_OTP_ATTEMPTS:
            await lock_out(self.cache, keys["attempt_key"], keys["block_key"], settings.BLOCK_DURATION_OTP)
            await self.cache.delete(keys["inflight_key"])
            self.logger.warning("OTP verification blocked", context={"phone": phone, "role": role})
            return self._attempts_exceeded(settings.BLOCK_DURATION_OTP, language)
        remaining = settings.MAX_OTP_ATTEMPTS - attempts
        return InvalidCredentialsError(
            error_code=DomainErrorCode.OTP_INVALID.value,
            message=get_message("otp.invalid", language, {"remaining_attempts": remaining}),
            status_code=HttpStatus.BAD_REQUEST.value,
            details={"remaining_attempts": remaining},
            language=language
        )

    async def verify_otp(
            self,
            data: VerifyOTPInput,
            client_ip: str = "unknown",
            user_agent: str = "",
            language: LanguageCode = "en"
    ) -> dict:
        """Check the code, resolve-or-create the account and open a session."""
        phone, role = data.phone, data.role
        keys = otp_keys(role, phone)

        async def operation():
            await self.preapproval.ensure_pre_approved(phone, role, language)
            await self._ensure_not_blocked(phone, role, language)

            # Attempts are spent before the provider check
            attempts = await reserve_attempt(self.cache, keys["attempt_key"], settings.OTP_ATTEMPT_EXPIRY)
            if attempts > settings.MAX_OTP_ATTEMPTS:
                raise self._attempts_exceeded(
                    await blocked_for(self.cache, keys["block_key"]) or settings.BLOCK_DURATION_OTP,
                    language
                )

            result = await self.sms_provider.check_verification(phone, data.code)
            if result.expired:
                # A dead challenge resets the budget; the next code comes from a new send
                await self.cache.delete(keys["attempt_key"])
                raise InvalidCredentialsError(
                    error_code=DomainErrorCode.OTP_EXPIRED.value,
                    message=get_message("otp.expired", language),
                    status_code=HttpStatus.BAD_REQUEST.value,
                    language=language
                )
            if not result.approved:
                raise await self._register_failure(phone, role, attempts, language)

            await self.cache.delete(keys["attempt_key"], keys["inflight_key"])

            account, is_new = await self.accounts.resolve_or_create(phone, role)
            account_id = account["_id"]
            await self.members.link_account(role, phone, account_id)

            tokens = await self.sessions.create_session(
                account_id=account_id,
                role=role,
                phone=phone,
                client_ip=client_ip,
                user_agent=user_agent
            )
            await self.audit.log("otp_verified", {
                "phone": phone,
                "role": role,
                "account_id": account_id,
                "is_new_user": is_new,
                "ip": client_ip
            })
            self.logger.info("OTP verified", context={"account_id": account_id, "role": role, "is_new_user": is_new})
            return {
                "session": tokens.model_dump(),
                "user": {"id": account_id, "phone_number": phone, "role": role},
                "is_new_user": is_new,
            }

        return await self.execute(operation, {"phone": phone, "role": role, "action": "verify_otp"}, language)
