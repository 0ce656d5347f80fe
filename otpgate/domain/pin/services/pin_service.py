# Path: otpgate/domain/pin/services/pin_service.py
from starlette.concurrency import run_in_threadpool

from otpgate.domain.authentication.services.rate_limiter import blocked_for, lock_out, reserve_attempt
from otpgate.domain.pin.models.pin import CheckPinInput, SetPinInput, VerifyPinInput
from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository
from otpgate.shared.base_service.base_service import BaseService
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import InvalidCredentialsError, RateLimitExceededError
from otpgate.shared.errors.domain.user import PinNotSetError, UserNotFoundError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.password import hash_pin, verify_pin
from otpgate.shared.utilities.types import LanguageCode


def pin_keys(role: str, phone: str) -> dict:
    return {
        "attempt_key": f"pin-attempts:{role}:{phone}",
        "block_key": f"pin-blocked:{role}:{phone}",
    }


class PinService(BaseService):
    """Transaction PIN status, set and verify against the role tables."""

    def __init__(self, members: RoleMemberRepository, cache: CacheRepository, audit: AuditLogRepository):
        super().__init__()
        self.members = members
        self.cache = cache
        self.audit = audit

    async def check_pin(self, data: CheckPinInput, language: LanguageCode = "en") -> dict:
        async def operation():
            row = await self.members.find_by_phone(data.role, data.phone_number)
            if row is None:
                raise UserNotFoundError(
                    identifier=data.phone_number,
                    message=get_message("user.not_found", language),
                    language=language
                )
            return {"pin_set": bool(row.get("transaction_pin"))}

        return await self.execute(operation, {"role": data.role, "action": "check_pin"}, language)

    async def set_pin(self, data: SetPinInput, language: LanguageCode = "en") -> dict:
        async def operation():
            # bcrypt is CPU-bound
            pin_hash = await run_in_threadpool(hash_pin, data.pin)
            if not await self.members.set_pin(data.role, data.phone_number, pin_hash):
                raise UserNotFoundError(
                    identifier=data.phone_number,
                    message=get_message("user.not_found", language),
                    language=language
                )
            keys = pin_keys(data.role, data.phone_number)
            await self.cache.delete(keys["attempt_key"], keys["block_key"])
            await self.audit.log("pin_set", {"phone": data.phone_number, "role": data.role})
            self.logger.info("PIN set", context={"phone": data.phone_number, "role": data.role})
            return {"pin_set": True}

        return await self.execute(operation, {"role": data.role, "action": "set_pin"}, language)

    def _locked_out(self, retry_after: int, language: LanguageCode) -> RateLimitExceededError:
        return RateLimitExceededError(
            endpoint="verify-pin",
            limit=settings.MAX_PIN_ATTEMPTS,
            error_code=DomainErrorCode.PIN_RATE_LIMIT.value,
            message=get_message("pin.blocked", language),
            retry_after=retry_after,
            language=language
        )

    async def verify_pin(self, data: VerifyPinInput, language: LanguageCode = "en") -> dict:
        keys = pin_keys(data.role, data.phone_number)

        async def operation():
            retry_after = await blocked_for(self.cache, keys["block_key"])
            if retry_after:
                raise self._locked_out(retry_after, language)

            row = await self.members.find_by_phone(data.role, data.phone_number)
            stored_hash = row.get("transaction_pin") if row else None
            if not stored_hash:
                raise PinNotSetError(
                    identifier=data.phone_number,
                    message=get_message("pin.not_set", language),
                    language=language
                )

            # Attempts are spent before the compare
            attempts = await reserve_attempt(self.cache, keys["attempt_key"], settings.PIN_ATTEMPT_EXPIRY)
            if attempts > settings.MAX_PIN_ATTEMPTS:
                raise self._locked_out(
                    await blocked_for(self.cache, keys["block_key"]) or settings.BLOCK_DURATION_PIN,
                    language
                )

            if not await run_in_threadpool(verify_pin, data.pin, stored_hash):
                await self.audit.log("pin_failed", {"phone": data.phone_number, "role": data.role, "attempts": attempts})
                if attempts == settings.MAX_PIN_ATTEMPTS:
                    await lock_out(self.cache, keys["attempt_key"], keys["block_key"], settings.BLOCK_DURATION_PIN)
                    raise self._locked_out(settings.BLOCK_DURATION_PIN, language)
                remaining = settings.MAX_PIN_ATTEMPTS - attempts
                raise InvalidCredentialsError(
                    error_code=DomainErrorCode.PIN_INVALID.value,
                    message=get_message("pin.invalid", language, {"remaining_attempts": remaining}),
                    status_code=HttpStatus.UNAUTHORIZED.value,
                    details={"remaining_attempts": remaining},
                    language=language
                )

            await self.cache.delete(keys["attempt_key"])
            self.logger.info("PIN verified", context={"phone": data.phone_number, "role": data.role})
            return {"verified": True}

        return await self.execute(operation, {"role": data.role, "action": "verify_pin"}, language)
