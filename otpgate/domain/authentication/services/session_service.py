# Path: otpgate/domain/authentication/services/session_service.py
from typing import List, Optional
from uuid import uuid4

from pydantic import ValidationError

from otpgate.domain.authentication.models.session import CurrentSession, Session, SessionTokens
from otpgate.infrastructure.storage.cache.repositories.cache_repository import CacheRepository
from otpgate.shared.base_service.base_service import BaseService
from otpgate.shared.config.settings import settings
from otpgate.shared.errors.domain.security import InvalidTokenError
from otpgate.shared.i18n.messages import get_message
from otpgate.shared.security.permissions_loader import get_scopes_for_role
from otpgate.shared.security.token import (
    blacklist_key,
    blacklist_token,
    decode_token,
    generate_access_token,
    generate_refresh_token,
    refresh_token_key,
)
from otpgate.shared.utilities.constants import DomainErrorCode
from otpgate.shared.utilities.network import get_location_from_ip, parse_user_agent
from otpgate.shared.utilities.time import utc_now
from otpgate.shared.utilities.types import LanguageCode


def session_key(account_id: str, session_id: str) -> str:
    return f"sessions:{account_id}:{session_id}"


def stringify_session_data(data: dict) -> dict:
    """Drop empty values and stringify the rest for a Redis hash."""
    return {str(k): str(v) for k, v in data.items() if v is not None}


class SessionService(BaseService):
    """Issues, validates, rotates and revokes sessions.

    Every access token is bound to a Redis session hash and is only honoured while
    that hash exists with status `active`.
    """

    def __init__(self, cache: CacheRepository):
        super().__init__()
        self.cache = cache

    async def _issue_tokens(self, account_id: str, role: str, phone: str, session_id: str) -> SessionTokens:
        access_token, access_payload = generate_access_token(
            account_id=account_id,
            role=role,
            session_id=session_id,
            phone=phone,
            scopes=get_scopes_for_role(role)
        )
        refresh_token, refresh_payload = generate_refresh_token(
            account_id=account_id,
            role=role,
            session_id=session_id,
            phone=phone
        )
        await self.cache.setex(
            refresh_token_key(account_id, refresh_payload["jti"]),
            settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400,
            session_id
        )
        await self.cache.hset(session_key(account_id, session_id), {
            "access_jti": access_payload["jti"],
            "last_seen_at": utc_now().isoformat()
        })
        return SessionTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            session_id=session_id
        )

    async def create_session(
            self,
            account_id: str,
            role: str,
            phone: str,
            client_ip: str = "unknown",
            user_agent: str = ""
    ) -> SessionTokens:
        """Store a new active session and sign its access/refresh pair."""
        session_id = str(uuid4())
        now = utc_now().isoformat()
        key = session_key(account_id, session_id)
        session_data = {
            "session_id": session_id,
            "account_id": account_id,
            "role": role,
            "phone": phone,
            "status": "active",
            "ip": client_ip,
            "user_agent": user_agent,
            "location": await get_location_from_ip(client_ip),
            "created_at": now,
            "last_seen_at": now,
            **parse_user_agent(user_agent),
        }
        await self.cache.hset(key, stringify_session_data(session_data))
        await self.cache.expire(key, settings.SESSION_EXPIRY)

        tokens = await self._issue_tokens(account_id, role, phone, session_id)
        self.logger.info("Session created", context={"account_id": account_id, "session_id": session_id, "role": role})
        return tokens

    async def get_session(self, account_id: str, session_id: str) -> Optional[Session]:
        data = await self.cache.hgetall(session_key(account_id, session_id))
        if not data:
            return None
        try:
            return Session(**data)
        except ValidationError as e:
            # e.g. a rotation that finished after revoke_all removed the hash
            self.logger.error("Corrupt session hash", context={"session_id": session_id, "error": str(e)})
            await self.cache.delete(session_key(account_id, session_id))
            return None

    async def authenticate(self, access_token: str, language: LanguageCode = "en") -> CurrentSession:
        """Resolve a bearer access token to its live session."""
        payload = await decode_token(access_token, "access", self.cache, language)
        session = await self.get_session(payload["sub"], payload["session_id"])
        if session is None or not session.is_active:
            raise InvalidTokenError(
                error_code=DomainErrorCode.SESSION_NOT_FOUND.value,
                message=get_message("session.not_found", language),
                details={"session_id": payload["session_id"]},
                language=language
            )
        return CurrentSession(
            account_id=payload["sub"],
            session_id=payload["session_id"],
            role=payload["role"],
            phone=payload.get("phone", session.phone),
            jti=payload["jti"],
            exp=payload["exp"],
            scopes=payload.get("scopes", [])
        )

    async def refresh(self, refresh_token: str, language: LanguageCode = "en") -> dict:
        """Rotate a refresh token. Presenting an already-rotated token revokes every session."""
        async def operation():
            payload = await decode_token(refresh_token, "refresh", self.cache, language)
            account_id, session_id, jti = payload["sub"], payload["session_id"], payload["jti"]

            key = refresh_token_key(account_id, jti)
            # Consuming the key is the rotation; a second presenter of this token finds it gone
            if await self.cache.getdel(key) != session_id:
                self.logger.critical("Refresh token reuse detected", context={"account_id": account_id, "jti": jti})
                await self.revoke_all(account_id)
                raise InvalidTokenError(
                    error_code=DomainErrorCode.TOKEN_REVOKED.value,
                    message=get_message("token.reuse", language),
                    details={"jti": jti},
                    language=language
                )

            session = await self.get_session(account_id, session_id)
            if session is None or not session.is_active:
                await self._revoke_refresh_keys([key])
                raise InvalidTokenError(
                    error_code=DomainErrorCode.SESSION_NOT_FOUND.value,
                    message=get_message("session.not_found", language),
                    details={"session_id": session_id},
                    language=language
                )

            if session.access_jti:
                await self.cache.setex(blacklist_key(session.access_jti),
                                       settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, "revoked")

            tokens = await self._issue_tokens(account_id, session.role, session.phone, session_id)
            self.logger.info("Session refreshed", context={"account_id": account_id, "session_id": session_id})
            return tokens.model_dump()

        return await self.execute(operation, {"action": "refresh_token"}, language)

    async def _revoke_refresh_keys(self, keys: List[str]) -> None:
        # Revoked refresh tokens are blacklisted so they are not mistaken for reuse
        for key in keys:
            await self.cache.setex(blacklist_key(key.rsplit(":", 1)[-1]),
                                   settings.REFRESH_TOKEN_EXPIRE_DAYS * 86400, "revoked")
        await self.cache.delete(*keys)

    async def revoke_session(self, current: CurrentSession, language: LanguageCode = "en") -> dict:
        """Log out: drop the session hash, its refresh tokens and blacklist the access token."""
        async def operation():
            await self.cache.delete(session_key(current.account_id, current.session_id))
            refresh_keys = [
                key for key in await self.cache.scan_keys(f"refresh_tokens:{current.account_id}:*")
                if await self.cache.get(key) == current.session_id
            ]
            await self._revoke_refresh_keys(refresh_keys)
            await blacklist_token(current.jti, current.exp, self.cache)
            self.logger.info("Session revoked", context={
                "account_id": current.account_id,
                "session_id": current.session_id
            })
            return {"session_id": current.session_id, "status": "revoked"}

        return await self.execute(operation, {"action": "logout", "account_id": current.account_id}, language)

    async def revoke_all(self, account_id: str) -> None:
        """Revoke every session and refresh token belonging to an account."""
        await self._revoke_refresh_keys(await self.cache.scan_keys(f"refresh_tokens:{account_id}:*"))
        sessions = await self.cache.scan_keys(f"sessions:{account_id}:*")
        await self.cache.delete(*sessions)
        self.logger.warning("All sessions revoked", context={"account_id": account_id, "sessions": len(sessions)})

    async def list_sessions(self, account_id: str) -> List[Session]:
        sessions = []
        for key in await self.cache.scan_keys(f"sessions:{account_id}:*"):
            session = await self.get_session(account_id, key.rsplit(":", 1)[-1])
            if session and session.is_active:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.created_at or "", reverse=True)

    async def get_sessions(self, current: CurrentSession, language: LanguageCode = "en") -> dict:
        async def operation():
            sessions = await self.list_sessions(current.account_id)
            return {
                "sessions": [
                    {**s.model_dump(exclude={"access_jti"}), "current": s.session_id == current.session_id}
                    for s in sessions
                ]
            }

        return await self.execute(operation, {"action": "list_sessions", "account_id": current.account_id}, language)
