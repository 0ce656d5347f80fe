# Path: otpgate/infrastructure/storage/cache/repositories/cache_repository.py
from typing import Any, Awaitable, Callable, Dict, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from otpgate.infrastructure.storage.cache.client import get_cache_client
from otpgate.shared.logging.service import LoggingService
from otpgate.shared.logging.config import LogConfig
from otpgate.shared.errors.infrastructure.database import CacheError


class CacheRepository:
    """Repository for counters, slots, sessions and blacklist entries in Redis."""

    def __init__(self, redis: Redis = None):
        """Initialize repository with optional Redis client."""
        self._redis = redis
        self.logger = LoggingService(LogConfig())

    async def _get_redis(self) -> Redis:
        """Lazily resolve the shared Redis client."""
        if self._redis is None:
            self._redis = await get_cache_client()
        return self._redis

    async def _run(self, operation: str, key: str, call: Callable[[Redis], Awaitable[Any]]) -> Any:
        try:
            redis = await self._get_redis()
            return await call(redis)
        except RedisError as e:
            self.logger.error(f"Redis {operation.upper()} failed", context={"key": key, "error": str(e)})
            raise CacheError(
                operation=operation,
                message=f"Redis operation failed: {str(e)}",
                trace_id=self.logger.tracer.get_trace_id(),
                details={"key": key, "error": str(e)}
            )

    async def get(self, key: str) -> Optional[str]:
        """Get value from Redis by key."""
        value = await self._run("get", key, lambda r: r.get(key))
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def getdel(self, key: str) -> Optional[str]:
        """Atomically read and remove a key; only one caller ever sees its value."""
        value = await self._run("getdel", key, lambda r: r.getdel(key))
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def setex(self, key: str, ttl: int, value: str) -> None:
        """Set key with expiration."""
        await self._run("setex", key, lambda r: r.setex(key, ttl, value))

    async def set_nx(self, key: str, ttl: int, value: str) -> bool:
        """Set key only if absent; returns True when the key was claimed."""
        result = await self._run("set", key, lambda r: r.set(key, value, ex=ttl, nx=True))
        return bool(result)

    async def incr(self, key: str) -> int:
        """Increment key."""
        return await self._run("incr", key, lambda r: r.incr(key))

    async def expire(self, key: str, ttl: int) -> None:
        """Set expiration for key."""
        await self._run("expire", key, lambda r: r.expire(key, ttl))

    async def ttl(self, key: str) -> int:
        """Remaining time to live in seconds; negative when the key is missing or persistent."""
        return await self._run("ttl", key, lambda r: r.ttl(key))

    async def delete(self, *keys: str) -> None:
        """Delete keys."""
        if not keys:
            return
        await self._run("delete", ",".join(keys), lambda r: r.delete(*keys))

    async def hset(self, key: str, mapping: Dict[str, str]) -> None:
        """Set hash fields."""
        await self._run("hset", key, lambda r: r.hset(key, mapping=mapping))

    async def hgetall(self, key: str) -> Dict[str, str]:
        """Get all hash fields."""
        data = await self._run("hgetall", key, lambda r: r.hgetall(key))
        return {
            (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
            for k, v in (data or {}).items()
        }

    async def scan_keys(self, pattern: str) -> List[str]:
        """Scan keys matching pattern."""
        async def _scan(redis: Redis) -> List[str]:
            keys = []
            async for key in redis.scan_iter(match=pattern, count=100):
                keys.append(key.decode() if isinstance(key, bytes) else key)
            return keys

        return await self._run("scan", pattern, _scan)

    async def ping(self) -> bool:
        return bool(await self._run("ping", "-", lambda r: r.ping()))
