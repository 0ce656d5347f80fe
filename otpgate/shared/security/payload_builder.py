# Path: otpgate/shared/security/payload_builder.py
from typing import List, Optional
from uuid import uuid4

from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import InvalidTokenError
from otpgate.shared.utilities.constants import DomainErrorCode, HttpStatus
from otpgate.shared.utilities.time import utc_now

AUDIENCE_MAP = {
    "access": "api",
    "refresh": "auth-service",
}


def default_audience(token_type: str) -> str:
    """Return the audience claim for a token type."""
    audience = AUDIENCE_MAP.get(token_type)
    if not audience:
        raise InvalidTokenError(
            error_code=DomainErrorCode.INVALID_TOKEN.value,
            message=f"Unknown token type: {token_type}",
            status_code=HttpStatus.BAD_REQUEST.value,
            details={"token_type": token_type}
        )
    return audience


def build_jwt_payload(
    *,
    token_type: str,
    role: str,
    subject_id: str,
    session_id: str,
    expires_in: int,
    phone: Optional[str] = None,
    scopes: Optional[List[str]] = None,
    jti: Optional[str] = None,
    issuer: str = settings.TOKEN_ISSUER,
) -> dict:
    """Build a standardized JWT payload with the provided claims."""
    now = int(utc_now().timestamp())
    payload = {
        "iss": issuer,
        "aud": default_audience(token_type),
        "sub": subject_id,
        "jti": jti or str(uuid4()),
        "role": role,
        "token_type": token_type,
        "session_id": session_id,
        "iat": now,
        "exp": now + expires_in,
    }
    if phone:
        payload["phone"] = phone
    if scopes:
        payload["scopes"] = scopes
    return payload
