# Path: otpgate/domain/authentication/models/session.py
from typing import Optional

from pydantic import BaseModel, Field


class Session(BaseModel):
    """Session as stored in the `sessions:{account_id}:{session_id}` hash."""
    session_id: str
    account_id: str
    role: str
    phone: str
    status: str = "active"
    ip: Optional[str] = None
    device_name: Optional[str] = None
    device_type: Optional[str] = None
    os: Optional[str] = None
    browser: Optional[str] = None
    user_agent: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[str] = None
    last_seen_at: Optional[str] = None
    access_jti: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    session_id: str


class CurrentSession(BaseModel):
    """Authenticated caller resolved from a bearer access token."""
    account_id: str
    session_id: str
    role: str
    phone: str
    jti: str
    exp: int
    scopes: list = Field(default_factory=list)


class RefreshTokenInput(BaseModel):
    refresh_token: str = Field(..., min_length=1)
