# Path: otpgate/domain/authentication/services/rate_limiter.py
from typing import Optional

from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import RateLimitExceededError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.utilities.constants import DomainErrorCode
from otpgate.shared.utilities.types import LanguageCode


def otp_keys(role: str, phone: str) -> dict:
    """Redis keys tracking OTP issuance and verification for a (role, phone) pair."""
    return {
        "block_key": f"otp-blocked:{role}:{phone}",
        "inflight_key": f"otp-inflight:{role}:{phone}",
        "attempt_key": f"otp-attempts:{role}:{phone}",
    }


def rate_limit_tiers(role: str, phone: str) -> list:
    # (key, limit, window seconds, message key)
    # The in-flight slot already spaces sends OTP_RESEND_INTERVAL apart, so the minute
    # tier only bites when that interval is shorter than 60 / OTP_LIMIT_PER_MINUTE seconds
    return [
        (f"otp-limit:{role}:{phone}", settings.OTP_LIMIT_PER_MINUTE, 60, "otp.too_many.1min"),
        (f"otp-limit-10min:{role}:{phone}", settings.OTP_LIMIT_PER_10MIN, 600, "otp.too_many.10min"),
        (f"otp-limit-1h:{role}:{phone}", settings.OTP_LIMIT_PER_HOUR, 3600, "otp.too_many.blocked"),
    ]


async def blocked_for(repo: CacheRepository, block_key: str) -> Optional[int]:
    """Seconds left on a block, or None when not blocked."""
    if not await repo.get(block_key):
        return None
    ttl = await repo.ttl(block_key)
    return ttl if ttl and ttl > 0 else 1


async def check_rate_limits(phone: str, role: str, repo: CacheRepository, language: LanguageCode = "en") -> None:
    """Check rate limits for OTP requests based on phone and role."""
    block_key = otp_keys(role, phone)["block_key"]
    retry_after = await blocked_for(repo, block_key)
    if retry_after:
        raise RateLimitExceededError(
            endpoint="send-otp",
            limit=0,
            error_code=DomainErrorCode.OTP_RATE_LIMIT.value,
            message=get_message("otp.blocked", language),
            retry_after=retry_after,
            language=language
        )

    for key, limit, window, msg_key in rate_limit_tiers(role, phone):
        attempts = await repo.get(key)
        if attempts is not None and int(attempts) >= limit:
            # The hourly tier escalates to a block
            if window == 3600:
                await repo.setex(block_key, settings.BLOCK_DURATION, "1")
                retry_after = settings.BLOCK_DURATION
            else:
                retry_after = max(await repo.ttl(key), 1)
            raise RateLimitExceededError(
                endpoint="send-otp",
                limit=limit,
                error_code=DomainErrorCode.OTP_RATE_LIMIT.value,
                message=get_message(msg_key, language),
                retry_after=retry_after,
                language=language
            )


async def store_rate_limit_keys(phone: str, role: str, repo: CacheRepository) -> None:
    """Increment rate limiting keys; each window starts at its first request."""
    for key, _, window, _ in rate_limit_tiers(role, phone):
        current = await repo.incr(key)
        if current == 1:
            await repo.expire(key, window)


async def reserve_attempt(repo: CacheRepository, attempt_key: str, attempt_ttl: int) -> int:
    """Claim one attempt before a secret is compared and return the running count.

    Callers refuse to compare once the count passes their limit, so concurrent
    guesses can never check more than `limit` secrets in total.
    """
    attempts = await repo.incr(attempt_key)
    if attempts == 1:
        await repo.expire(attempt_key, attempt_ttl)
    return attempts


async def lock_out(repo: CacheRepository, attempt_key: str, block_key: str, block_ttl: int) -> None:
    """Block the key pair; the spent counter expires with the block."""
    await repo.setex(block_key, block_ttl, "1")
    await repo.expire(attempt_key, block_ttl)
