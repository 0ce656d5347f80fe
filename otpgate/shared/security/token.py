# Path: otpgate/shared/security/token.py
from typing import List, Optional, Tuple

from fastapi import Request
from jose import jwt, ExpiredSignatureError, JWTError

from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import InvalidTokenError, UnauthorizedAccessError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.security.payload_builder import build_jwt_payload, default_audience
from otpgate.shared.utilities.constants import DomainErrorCode
from otpgate.shared.utilities.time import utc_now

logger = LoggingService(LogConfig())

VALID_ROLES = {"user", "admin"}
TOKEN_SECRETS = {
    "access": lambda: settings.ACCESS_SECRET,
    "refresh": lambda: settings.REFRESH_SECRET,
}


def blacklist_key(jti: str) -> str:
    return f"blacklist:{jti}"


def refresh_token_key(account_id: str, jti: str) -> str:
    return f"refresh_tokens:{account_id}:{jti}"


def generate_access_token(
        account_id: str,
        role: str,
        session_id: str,
        phone: str,
        scopes: Optional[List[str]] = None
) -> Tuple[str, dict]:
    """Sign an access token; returns the token and its payload."""
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role: {role}")
    payload = build_jwt_payload(
        token_type="access",
        role=role,
        subject_id=account_id,
        session_id=session_id,
        phone=phone,
        scopes=scopes,
        expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    token = jwt.encode(payload, settings.ACCESS_SECRET, algorithm=settings.ALGORITHM)
    logger.debug("Access token generated", context={"jti": payload["jti"], "account_id": account_id})
    return token, payload


def generate_refresh_token(account_id: str, role: str, session_id: str, phone: str) -> Tuple[str, dict]:
    """Sign a refresh token; returns the token and its payload."""
    if role not in VALID_ROLES:
        raise ValueError(f"Invalid role: {role}")
    payload = build_jwt_payload(
        token_type="refresh",
        role=role,
        subject_id=account_id,
        session_id=session_id,
        phone=phone,
        expires_in=settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400,
    )
    token = jwt.encode(payload, settings.REFRESH_SECRET, algorithm=settings.ALGORITHM)
    logger.debug("Refresh token generated", context={"jti": payload["jti"], "account_id": account_id})
    return token, payload


async def validate_token_blacklist(jti: str, repo: CacheRepository, language: str = "en") -> None:
    """Raise if the token's jti is blacklisted."""
    if await repo.get(blacklist_key(jti)):
        raise InvalidTokenError(
            error_code=DomainErrorCode.TOKEN_REVOKED.value,
            message=get_message("token.revoked", language),
            details={"jti": jti},
            language=language
        )


async def blacklist_token(jti: str, exp: int, repo: CacheRepository) -> None:
    """Blacklist a jti until the token would have expired anyway."""
    ttl = max(int(exp) - int(utc_now().timestamp()), 1)
    await repo.setex(blacklist_key(jti), ttl, "revoked")
    logger.info("Token blacklisted", context={"jti": jti, "ttl": ttl})


async def decode_token(token: str, token_type: str, repo: CacheRepository, language: str = "en") -> dict:
    """Decode and validate a JWT: signature, expiry, issuer, audience, type and blacklist."""
    secret = TOKEN_SECRETS.get(token_type)
    if secret is None:
        raise InvalidTokenError(
            error_code=DomainErrorCode.INVALID_TOKEN.value,
            message=get_message("token.invalid", language),
            details={"token_type": token_type},
            language=language
        )
    try:
        payload = jwt.decode(
            token,
            secret(),
            algorithms=[settings.ALGORITHM],
            audience=default_audience(token_type),
            issuer=settings.TOKEN_ISSUER,
        )
    except ExpiredSignatureError:
        raise InvalidTokenError(
            error_code=DomainErrorCode.TOKEN_EXPIRED.value,
            message=get_message("token.expired", language),
            language=language
        )
    except JWTError as e:
        logger.info("Invalid token", context={"token_type": token_type, "error": str(e)})
        raise InvalidTokenError(
            error_code=DomainErrorCode.INVALID_TOKEN.value,
            message=get_message("token.invalid", language),
            language=language
        )

    if payload.get("token_type") != token_type or not payload.get("jti") or not payload.get("session_id"):
        logger.warning("Token claims mismatch", context={"expected": token_type, "actual": payload.get("token_type")})
        raise InvalidTokenError(
            error_code=DomainErrorCode.INVALID_TOKEN.value,
            message=get_message("token.invalid", language),
            details={"expected": token_type},
            language=language
        )

    await validate_token_blacklist(payload["jti"], repo, language)
    return payload


def get_token_from_header(request: Request, language: str = "en") -> str:
    """Extract the Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedAccessError(
            resource="token",
            message=get_message("auth.unauthorized", language),
            language=language
        )

    token = auth_header[len("Bearer "):].strip()
    if not token:
        raise UnauthorizedAccessError(
            resource="token",
            message=get_message("auth.unauthorized", language),
            language=language
        )
    return token
