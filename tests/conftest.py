import os

# Settings are read once at import time
os.environ["ENVIRONMENT"] = "test"
os.environ["SMS_PROVIDER"] = "dev"
os.environ["SENTRY_DSN"] = ""
os.environ["IPINFO_TOKEN"] = ""
os.environ["ADMIN_REQUIRES_PREAPPROVAL"] = "true"

import asyncio
from fnmatch import fnmatch
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from otpgate.domain.authentication.services.preapproval_service import PreApprovalService
from otpgate.domain.authentication.services.session_service import SessionService
from otpgate.infrastructure.sms.provider import SmsProvider, VerificationResult
from otpgate.infrastructure.storage.nosql.repositories.account_repository import AccountRepository
from otpgate.infrastructure.storage.nosql.repositories.audit_log_repository import AuditLogRepository
from otpgate.infrastructure.storage.nosql.repositories.card_share_repository import CardShareRepository
from otpgate.infrastructure.storage.nosql.repositories.role_member_repository import RoleMemberRepository

USER_PHONE = "+919876543210"


class FakeCache:
    """In-memory stand-in for CacheRepository. TTLs are recorded, never elapsed.

    Every call yields to the event loop once, like a Redis round trip, so
    concurrent callers interleave the way they would against a real server.
    """

    def __init__(self):
        self.store: Dict[str, object] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        value = self.store.get(key)
        return value if isinstance(value, str) else None

    async def getdel(self, key: str) -> Optional[str]:
        await asyncio.sleep(0)
        value = self.store.pop(key, None)
        self.ttls.pop(key, None)
        return value if isinstance(value, str) else None

    async def setex(self, key: str, ttl: int, value: str) -> None:
        await asyncio.sleep(0)
        self.store[key] = str(value)
        self.ttls[key] = ttl

    async def set_nx(self, key: str, ttl: int, value: str) -> bool:
        await asyncio.sleep(0)
        if key in self.store:
            return False
        self.store[key] = str(value)
        self.ttls[key] = ttl
        return True

    async def incr(self, key: str) -> int:
        await asyncio.sleep(0)
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> None:
        await asyncio.sleep(0)
        if key in self.store:
            self.ttls[key] = ttl

    async def ttl(self, key: str) -> int:
        await asyncio.sleep(0)
        if key not in self.store:
            return -2
        return self.ttls.get(key, -1)

    async def delete(self, *keys: str) -> None:
        await asyncio.sleep(0)
        for key in keys:
            self.store.pop(key, None)
            self.ttls.pop(key, None)

    async def hset(self, key: str, mapping: Dict[str, str]) -> None:
        await asyncio.sleep(0)
        current = self.store.setdefault(key, {})
        current.update({k: str(v) for k, v in mapping.items()})

    async def hgetall(self, key: str) -> Dict[str, str]:
        await asyncio.sleep(0)
        value = self.store.get(key)
        return dict(value) if isinstance(value, dict) else {}

    async def scan_keys(self, pattern: str) -> List[str]:
        await asyncio.sleep(0)
        return [key for key in list(self.store) if fnmatch(key, pattern)]

    async def ping(self) -> bool:
        return True


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def members():
    repo = MagicMock(spec=RoleMemberRepository)
    repo.exists.return_value = True
    repo.find_by_phone.return_value = {"phone_number": USER_PHONE}
    repo.set_pin.return_value = True
    return repo


@pytest.fixture
def accounts():
    repo = MagicMock(spec=AccountRepository)
    repo.resolve_or_create.return_value = ({"_id": "acc-1", "phone": USER_PHONE, "roles": ["user"]}, True)
    return repo


@pytest.fixture
def audit():
    repo = MagicMock(spec=AuditLogRepository)
    repo.log = AsyncMock()
    return repo


@pytest.fixture
def shares():
    repo = MagicMock(spec=CardShareRepository)
    repo.find_pending.return_value = None
    repo.reserve_attempt.side_effect = lambda share_id, max_attempts: {"_id": share_id, "attempts": 1}
    return repo


@pytest.fixture
def sms_provider():
    provider = MagicMock(spec=SmsProvider)
    provider.name = "mock"
    provider.start_verification = AsyncMock(return_value=VerificationResult(sid="VE123", status="pending"))
    provider.check_verification = AsyncMock(return_value=VerificationResult(sid="VE123", status="approved"))
    provider.send_message = AsyncMock(return_value="SM123")
    return provider


@pytest.fixture
def session_service(cache):
    return SessionService(cache)


@pytest.fixture
def preapproval(members):
    return PreApprovalService(members)
