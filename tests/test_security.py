import pytest
from jose import jwt

from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import InvalidTokenError, UnauthorizedAccessError
from otpgate.shared.security.payload_builder import build_jwt_payload
from otpgate.shared.security.permissions_loader import check_permissions, get_scopes_for_role
from otpgate.shared.security.token import decode_token, generate_access_token, generate_refresh_token


def test_access_token_claims():
    token, payload = generate_access_token("acc-1", "user", "sess-1", "+919876543210", ["read:pin"])

    claims = jwt.get_unverified_claims(token)
    assert claims == payload
    assert claims["iss"] == settings.TOKEN_ISSUER
    assert claims["aud"] == "api"
    assert claims["token_type"] == "access"
    assert claims["exp"] - claims["iat"] == settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60


def test_unknown_role_is_rejected():
    with pytest.raises(ValueError):
        generate_access_token("acc-1", "vendor", "sess-1", "+919876543210")


@pytest.mark.asyncio
async def test_decode_refresh_token(cache):
    token, payload = generate_refresh_token("acc-1", "admin", "sess-1", "+919876543210")

    decoded = await decode_token(token, "refresh", cache)

    assert decoded["jti"] == payload["jti"]
    assert decoded["aud"] == "auth-service"


@pytest.mark.asyncio
async def test_decode_expired_token(cache):
    payload = build_jwt_payload(
        token_type="access", role="user", subject_id="acc-1", session_id="sess-1", expires_in=-10
    )
    token = jwt.encode(payload, settings.ACCESS_SECRET, algorithm=settings.ALGORITHM)

    with pytest.raises(InvalidTokenError) as exc:
        await decode_token(token, "access", cache)

    assert exc.value.error_code == "TOKEN_EXPIRED"


@pytest.mark.asyncio
async def test_decode_rejects_foreign_issuer(cache):
    payload = build_jwt_payload(
        token_type="access", role="user", subject_id="acc-1", session_id="sess-1", expires_in=60, issuer="other"
    )
    token = jwt.encode(payload, settings.ACCESS_SECRET, algorithm=settings.ALGORITHM)

    with pytest.raises(InvalidTokenError) as exc:
        await decode_token(token, "access", cache)

    assert exc.value.error_code == "INVALID_TOKEN"


def test_scopes_by_role():
    assert "write:card_share" in get_scopes_for_role("admin")
    assert "write:card_share" not in get_scopes_for_role("user")
    assert get_scopes_for_role("vendor") == []


def test_check_permissions():
    check_permissions("admin", "write", "card_share")

    with pytest.raises(UnauthorizedAccessError) as exc:
        check_permissions("user", "write", "card_share")

    assert exc.value.status_code == 403
    assert exc.value.error_code == "PERMISSION_DENIED"
