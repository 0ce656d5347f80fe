from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from dependency_injector import providers
from fastapi.testclient import TestClient

from main import app
from otpgate.infrastructure.di.container import container
from otpgate.infrastructure.sms.provider import VerificationResult
from otpgate.shared.errors import exception_handlers
from otpgate.shared.errors.infrastructure.external import SmsServiceError
from otpgate.shared.utilities.password import hash_pin
from otpgate.shared.utilities.text import hash_otp
from otpgate.shared.utilities.time import utc_now

USER_PHONE = "+919876543210"
ADMIN_PHONE = "+919812345678"

ACCOUNT_IDS = {USER_PHONE: "acc-user", ADMIN_PHONE: "acc-admin"}


@pytest.fixture
def client(cache, members, accounts, audit, shares, sms_provider):
    accounts.resolve_or_create.side_effect = lambda phone, role: ({"_id": ACCOUNT_IDS[phone], "phone": phone}, False)
    overrides = [
        (container.cache_repo, cache),
        (container.member_repo, members),
        (container.account_repo, accounts),
        (container.audit_repo, audit),
        (container.card_share_repo, shares),
        (container.sms_provider, sms_provider),
    ]
    for provider, value in overrides:
        provider.override(providers.Object(value))
    yield TestClient(app)
    container.reset_override()


def login(client, phone=USER_PHONE, role="user"):
    response = client.post("/api/v1/verify-otp", json={"phone": phone, "code": "123456", "role": role})
    assert response.status_code == 200, response.json()
    return response.json()["data"]["session"]


def bearer(session):
    return {"Authorization": f"Bearer {session['access_token']}"}


# Pre-approval

def test_check_role_pre_approved(client):
    response = client.post("/api/v1/check-role", json={"phone": USER_PHONE, "role": "user"})

    assert response.status_code == 200
    assert response.json()["data"] == {"can_proceed": True, "role": "user"}


def test_check_role_not_pre_approved(client, members):
    members.exists.return_value = False

    response = client.post("/api/v1/check-role", json={"phone": USER_PHONE, "role": "user"})

    body = response.json()
    assert response.status_code == 403
    assert body["error_code"] == "NOT_PRE_APPROVED"
    assert body["message"] == "User not pre-approved by Admin."
    assert body["status"] == "error"


@pytest.mark.parametrize("payload", [
    {"phone": USER_PHONE},
    {"role": "user"},
    {"phone": USER_PHONE, "role": "vendor"},
    {"phone": "12", "role": "user"},
])
def test_check_role_validation(client, payload):
    response = client.post("/api/v1/check-role", json=payload)

    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_validation_errors_do_not_log_submitted_phone(client):
    bad_phone = "+0123456789"

    with patch.object(exception_handlers.logger, "log") as log:
        response = client.post("/api/v1/check-role", json={"phone": bad_phone, "role": "user"})

    assert response.status_code == 400
    assert log.called
    assert bad_phone not in repr(log.call_args_list)
    assert bad_phone.lstrip("+") not in repr(log.call_args_list)


# OTP

def test_send_otp(client, sms_provider):
    response = client.post("/api/v1/send-otp", json={"phone": "9876543210"})

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["sid"] == "VE123"
    assert data["resend_after"] == 60
    sms_provider.start_verification.assert_awaited_once_with(USER_PHONE)


def test_send_otp_twice_is_refused(client):
    client.post("/api/v1/send-otp", json={"phone": USER_PHONE})

    response = client.post("/api/v1/send-otp", json={"phone": USER_PHONE})

    body = response.json()
    assert response.status_code == 429
    assert body["error_code"] == "OTP_ALREADY_SENT"
    assert body["metadata"]["retry_after"] == 60


def test_send_otp_provider_down(client, sms_provider):
    sms_provider.start_verification.side_effect = SmsServiceError(provider="mock")

    response = client.post("/api/v1/send-otp", json={"phone": USER_PHONE})

    assert response.status_code == 503
    assert response.json()["error_code"] == "SMS_SERVICE_ERROR"


def test_verify_otp_issues_session(client):
    response = client.post("/api/v1/verify-otp", json={"phone": USER_PHONE, "code": "123456", "role": "user"})

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["user"] == {"id": "acc-user", "phone_number": USER_PHONE, "role": "user"}
    assert data["is_new_user"] is False
    assert set(data["session"]) == {"access_token", "refresh_token", "token_type", "expires_in", "session_id"}


def test_verify_otp_wrong_code(client, sms_provider):
    sms_provider.check_verification.return_value = VerificationResult(sid="VE123", status="pending")

    response = client.post("/api/v1/verify-otp", json={"phone": USER_PHONE, "code": "000000", "role": "user"})

    body = response.json()
    assert response.status_code == 400
    assert body["error_code"] == "OTP_INVALID"
    assert body["metadata"]["remaining_attempts"] == 4


def test_verify_otp_requires_code(client):
    response = client.post("/api/v1/verify-otp", json={"phone": USER_PHONE, "role": "user"})

    assert response.status_code == 400


# Sessions

def test_sessions_refresh_and_logout(client):
    session = login(client)

    listed = client.get("/api/v1/sessions", headers=bearer(session))
    assert listed.status_code == 200
    assert [s["current"] for s in listed.json()["data"]["sessions"]] == [True]

    refreshed = client.post("/api/v1/refresh-token", json={"refresh_token": session["refresh_token"]})
    assert refreshed.status_code == 200
    new_session = refreshed.json()["data"]
    assert client.get("/api/v1/sessions", headers=bearer(session)).status_code == 401

    logout = client.post("/api/v1/logout", headers=bearer(new_session))
    assert logout.status_code == 200
    assert client.get("/api/v1/sessions", headers=bearer(new_session)).status_code == 401


def test_refresh_token_reuse(client):
    session = login(client)
    client.post("/api/v1/refresh-token", json={"refresh_token": session["refresh_token"]})

    response = client.post("/api/v1/refresh-token", json={"refresh_token": session["refresh_token"]})

    assert response.status_code == 401
    assert response.json()["error_code"] == "TOKEN_REVOKED"


def test_protected_endpoint_without_token(client):
    response = client.get("/api/v1/sessions")

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED_ACCESS"


# PIN

def test_check_pin(client):
    session = login(client)

    response = client.post("/api/v1/check-pin", json={"phone_number": USER_PHONE, "role": "user"},
                           headers=bearer(session))

    assert response.status_code == 200
    assert response.json()["data"] == {"pin_set": False}


def test_pin_endpoints_require_matching_session(client):
    session = login(client)

    response = client.post("/api/v1/check-pin", json={"phone_number": ADMIN_PHONE, "role": "user"},
                           headers=bearer(session))

    assert response.status_code == 403
    assert response.json()["error_code"] == "PERMISSION_DENIED"


def test_set_pin(client, members):
    session = login(client)

    response = client.post("/api/v1/set-pin", json={"phone_number": USER_PHONE, "role": "user", "pin": "2468"},
                           headers=bearer(session))

    assert response.status_code == 200
    assert response.json()["meta"]["message"] == "PIN set successfully."
    members.set_pin.assert_awaited_once()


def test_verify_pin(client, members):
    members.find_by_phone.return_value = {"phone_number": USER_PHONE, "transaction_pin": hash_pin("2468")}
    session = login(client)
    payload = {"phone_number": USER_PHONE, "role": "user"}

    ok = client.post("/api/v1/verify-pin", json={**payload, "pin": "2468"}, headers=bearer(session))
    wrong = client.post("/api/v1/verify-pin", json={**payload, "pin": "1111"}, headers=bearer(session))

    assert ok.status_code == 200
    assert ok.json()["data"] == {"verified": True}
    assert wrong.status_code == 401
    assert wrong.json()["error_code"] == "PIN_INVALID"


# Card sharing

def pending_share(**overrides):
    now = utc_now()
    share = {
        "_id": "share-1",
        "card_id": "card-1",
        "shared_with_user": "acc-user",
        "shared_by_admin": "acc-admin",
        "phone_number": USER_PHONE,
        "otp_hash": hash_otp("123456"),
        "is_verified": False,
        "attempts": 0,
        "shared_at": now,
        "expires_at": now + timedelta(minutes=10),
    }
    share.update(overrides)
    return share


def share_payload(**overrides):
    payload = {
        "card_id": "card-1",
        "shared_with_user": "acc-user",
        "shared_by_admin": "acc-admin",
        "phone_number": USER_PHONE,
    }
    payload.update(overrides)
    return payload


def test_share_card_as_admin(client, shares, sms_provider):
    shares.create_pending.side_effect = lambda **kwargs: pending_share(**kwargs)
    session = login(client, ADMIN_PHONE, "admin")

    response = client.post("/api/v1/share-card", json=share_payload(), headers=bearer(session))

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["card_id"] == "card-1"
    assert data["is_verified"] is False
    assert "otp_hash" not in data
    sms_provider.send_message.assert_awaited_once()


def test_share_card_requires_admin_scope(client, shares):
    session = login(client)

    response = client.post("/api/v1/share-card", json=share_payload(shared_by_admin="acc-user"),
                           headers=bearer(session))

    assert response.status_code == 403
    shares.create_pending.assert_not_called()


def test_share_card_pending(client, shares):
    shares.find_pending.return_value = pending_share()
    session = login(client, ADMIN_PHONE, "admin")

    response = client.post("/api/v1/share-card", json=share_payload(), headers=bearer(session))

    assert response.status_code == 409
    assert response.json()["error_code"] == "CARD_SHARE_PENDING"


def test_share_card_missing_fields(client):
    session = login(client, ADMIN_PHONE, "admin")

    response = client.post("/api/v1/share-card", json={"card_id": "card-1"}, headers=bearer(session))

    assert response.status_code == 400


def test_verify_card_share(client, shares):
    shares.find_pending.return_value = pending_share()
    shares.mark_verified.return_value = pending_share(is_verified=True, verified_at=utc_now())
    session = login(client)

    response = client.post("/api/v1/share-card/verify",
                           json={"card_id": "card-1", "shared_with_user": "acc-user", "otp": "123456"},
                           headers=bearer(session))

    assert response.status_code == 200
    assert response.json()["data"]["is_verified"] is True


# Health

def test_health(client):
    redis = MagicMock(ping=AsyncMock(return_value=True))
    db = MagicMock(command=AsyncMock(return_value={"ok": 1}))
    container.mongo_db.override(providers.Object(db))

    with patch("otpgate.api.v1.endpoints.health.get_cache_client", AsyncMock(return_value=redis)):
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["data"] == {"redis_ok": True, "mongo_ok": True}


def test_health_degraded(client):
    redis = MagicMock(ping=AsyncMock(side_effect=ConnectionError("down")))
    db = MagicMock(command=AsyncMock(return_value={"ok": 1}))
    container.mongo_db.override(providers.Object(db))

    with patch("otpgate.api.v1.endpoints.health.get_cache_client", AsyncMock(return_value=redis)):
        response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["data"]["redis_ok"] is False
