import asyncio

import pytest

from otpgate.domain.authentication.models.otp import RequestOTPInput, VerifyOTPInput
from otpgate.domain.authentication.services.otp_service import OTPService
from otpgate.domain.authentication.services.rate_limiter import otp_keys
from otpgate.infrastructure.sms.provider import VerificationResult
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.base import BaseError
from otpgate.shared.errors.domain.security import NotPreApprovedError, RateLimitExceededError
from otpgate.shared.errors.infrastructure.external import SmsServiceError
from otpgate.shared.security.token import decode_token

PHONE = "+919876543210"


@pytest.fixture
def otp_service(cache, sms_provider, preapproval, accounts, members, session_service, audit):
    return OTPService(
        cache=cache,
        sms_provider=sms_provider,
        preapproval=preapproval,
        accounts=accounts,
        members=members,
        sessions=session_service,
        audit=audit
    )


def keys(role="user"):
    return otp_keys(role, PHONE)


@pytest.mark.asyncio
async def test_send_otp_starts_verification(otp_service, cache, sms_provider, audit):
    result = await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    assert result == {
        "sid": "VE123",
        "status": "pending",
        "expires_in": settings.OTP_EXPIRY,
        "resend_after": settings.OTP_RESEND_INTERVAL,
    }
    sms_provider.start_verification.assert_awaited_once_with(PHONE)
    assert cache.ttls[keys()["inflight_key"]] == settings.OTP_RESEND_INTERVAL
    assert cache.store[f"otp-limit:user:{PHONE}"] == "1"
    audit.log.assert_awaited_once()


@pytest.mark.asyncio
async def test_send_otp_normalizes_national_number(otp_service, sms_provider):
    await otp_service.send_otp(RequestOTPInput(phone="09876543210"))

    sms_provider.start_verification.assert_awaited_once_with(PHONE)


@pytest.mark.asyncio
async def test_send_otp_refuses_while_in_flight(otp_service, sms_provider):
    await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    with pytest.raises(RateLimitExceededError) as exc:
        await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    assert exc.value.error_code == "OTP_ALREADY_SENT"
    assert exc.value.details["retry_after"] == settings.OTP_RESEND_INTERVAL
    assert sms_provider.start_verification.await_count == 1


@pytest.mark.asyncio
async def test_send_otp_refuses_unapproved_phone(otp_service, members, sms_provider, cache):
    members.exists.return_value = False

    with pytest.raises(NotPreApprovedError):
        await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    sms_provider.start_verification.assert_not_awaited()
    assert cache.store == {}


@pytest.mark.asyncio
async def test_send_otp_refuses_blocked_phone(otp_service, cache, sms_provider):
    await cache.setex(keys()["block_key"], 300, "1")

    with pytest.raises(RateLimitExceededError) as exc:
        await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    assert exc.value.details["retry_after"] == 300
    sms_provider.start_verification.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_otp_releases_slot_when_provider_fails(otp_service, cache, sms_provider):
    sms_provider.start_verification.side_effect = SmsServiceError(provider="mock")

    with pytest.raises(SmsServiceError) as exc:
        await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    assert exc.value.status_code == 503
    assert keys()["inflight_key"] not in cache.store
    assert f"otp-limit:user:{PHONE}" not in cache.store


@pytest.mark.asyncio
async def test_send_otp_wraps_unexpected_errors(otp_service, sms_provider, cache):
    sms_provider.start_verification.side_effect = RuntimeError("boom")

    with pytest.raises(BaseError) as exc:
        await otp_service.send_otp(RequestOTPInput(phone=PHONE))

    assert exc.value.status_code == 500
    assert exc.value.error_code == "INTERNAL_SERVER_ERROR"
    assert keys()["inflight_key"] not in cache.store


@pytest.mark.asyncio
async def test_verify_otp_creates_account_and_session(otp_service, cache, accounts, members):
    await cache.setex(keys()["inflight_key"], 60, "1")
    await cache.setex(keys()["attempt_key"], 3600, "2")

    result = await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="123456", role="user"))

    assert result["is_new_user"] is True
    assert result["user"] == {"id": "acc-1", "phone_number": PHONE, "role": "user"}
    assert result["session"]["token_type"] == "bearer"
    accounts.resolve_or_create.assert_awaited_once_with(PHONE, "user")
    members.link_account.assert_awaited_once_with("user", PHONE, "acc-1")
    assert keys()["inflight_key"] not in cache.store
    assert keys()["attempt_key"] not in cache.store

    payload = await decode_token(result["session"]["access_token"], "access", cache)
    assert payload["sub"] == "acc-1"
    assert payload["phone"] == PHONE
    assert payload["session_id"] == result["session"]["session_id"]
    assert f"sessions:acc-1:{payload['session_id']}" in cache.store


@pytest.mark.asyncio
async def test_verify_otp_existing_account(otp_service, accounts):
    accounts.resolve_or_create.return_value = ({"_id": "acc-9", "phone": PHONE}, False)

    result = await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="123456", role="user"))

    assert result["is_new_user"] is False
    assert result["user"]["id"] == "acc-9"


@pytest.mark.asyncio
async def test_verify_otp_wrong_code_counts_attempt(otp_service, sms_provider, cache, accounts):
    sms_provider.check_verification.return_value = VerificationResult(sid="VE123", status="pending")

    with pytest.raises(BaseError) as exc:
        await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="000000", role="user"))

    assert exc.value.status_code == 400
    assert exc.value.error_code == "OTP_INVALID"
    assert exc.value.details["remaining_attempts"] == settings.MAX_OTP_ATTEMPTS - 1
    assert cache.store[keys()["attempt_key"]] == "1"
    accounts.resolve_or_create.assert_not_awaited()


@pytest.mark.asyncio
async def test_verify_otp_blocks_after_max_attempts(otp_service, sms_provider, cache):
    sms_provider.check_verification.return_value = VerificationResult(sid="VE123", status="pending")
    await cache.setex(keys()["inflight_key"], 60, "1")
    await cache.setex(keys()["attempt_key"], 3600, str(settings.MAX_OTP_ATTEMPTS - 1))

    with pytest.raises(RateLimitExceededError) as exc:
        await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="000000", role="user"))

    assert exc.value.error_code == "OTP_RATE_LIMIT"
    assert cache.ttls[keys()["block_key"]] == settings.BLOCK_DURATION_OTP
    assert keys()["inflight_key"] not in cache.store

    # Even the right code is refused while blocked
    sms_provider.check_verification.return_value = VerificationResult(sid="VE123", status="approved")
    with pytest.raises(RateLimitExceededError):
        await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="123456", role="user"))


@pytest.mark.asyncio
async def test_verify_otp_expired_challenge(otp_service, sms_provider, cache):
    sms_provider.check_verification.return_value = VerificationResult(status="expired", expired=True)

    with pytest.raises(BaseError) as exc:
        await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="123456", role="user"))

    assert exc.value.status_code == 400
    assert exc.value.error_code == "OTP_EXPIRED"
    assert keys()["attempt_key"] not in cache.store


@pytest.mark.asyncio
async def test_verify_otp_refuses_unapproved_admin(otp_service, members, sms_provider):
    members.exists.return_value = False

    with pytest.raises(NotPreApprovedError):
        await otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="123456", role="admin"))

    sms_provider.check_verification.assert_not_awaited()


@pytest.mark.asyncio
async def test_parallel_wrong_codes_share_one_attempt_budget(otp_service, sms_provider, cache):
    sms_provider.check_verification.return_value = VerificationResult(sid="VE123", status="pending")

    results = await asyncio.gather(
        *(otp_service.verify_otp(VerifyOTPInput(phone=PHONE, code="000000", role="user")) for _ in range(20)),
        return_exceptions=True
    )

    assert sms_provider.check_verification.await_count == settings.MAX_OTP_ATTEMPTS
    codes = [r.error_code for r in results]
    assert codes.count("OTP_INVALID") == settings.MAX_OTP_ATTEMPTS - 1
    assert codes.count("OTP_RATE_LIMIT") == 20 - (settings.MAX_OTP_ATTEMPTS - 1)
    assert keys()["block_key"] in cache.store
