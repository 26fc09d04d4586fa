"""Usage stores — per-day, per-identity, per-feature counters.

The quota tracker talks to a ``UsageStore``; two implementations:
  - MemoryUsageStore: process-local dicts, old days dropped on rollover
  - RedisUsageStore: one hash per (day, identity), 2-day expiry,
    atomic check-and-increment via a Lua script; every count seen in Redis
    is mirrored into the memory fallback so an outage keeps the last known
    usage instead of granting a fresh budget
"""

import logging
import threading
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_TTL_SECONDS = 2 * 86400

_INCR_IF_BELOW = """
local current = tonumber(redis.call('HGET', KEYS[1], ARGV[1]) or '0')
if current >= tonumber(ARGV[2]) then
  return -1
end
local count = redis.call('HINCRBY', KEYS[1], ARGV[1], 1)
redis.call('EXPIRE', KEYS[1], ARGV[3])
return count
"""

_DECR_FLOOR_ZERO = """
local current = tonumber(redis.call('HGET', KEYS[1], ARGV[1]) or '0')
if current <= 0 then
  return 0
end
return redis.call('HINCRBY', KEYS[1], ARGV[1], -1)
"""


class UsageStore(Protocol):
    """Counter storage used by the quota tracker."""

    async def get(self, day: str, identity: str) -> dict[str, int]:
        """Return counts by feature name (absent features count as 0)."""
        ...

    async def incr(self, day: str, identity: str, feature: str, amount: int = 1) -> int:
        """Add ``amount`` and return the new count."""
        ...

    async def incr_if_below(self, day: str, identity: str, feature: str, limit: int) -> bool:
        """Atomically increment when the count is below ``limit``."""
        ...

    async def decr(self, day: str, identity: str, feature: str) -> int:
        """Decrement, never below zero. Returns the new count."""
        ...


class MemoryUsageStore:
    """In-process counters. Thread-safe; no awaits inside critical sections."""

    def __init__(self):
        self._days: dict[str, dict[str, dict[str, int]]] = {}
        self._lock = threading.Lock()

    def _counts(self, day: str, identity: str) -> dict[str, int]:
        if day not in self._days:
            stale = [d for d in self._days if d < day]
            for d in stale:
                del self._days[d]
            if stale:
                logger.info("Usage rollover | day=%s | dropped=%d", day, len(stale))
            self._days[day] = {}
        return self._days[day].setdefault(identity, {})

    async def get(self, day: str, identity: str) -> dict[str, int]:
        with self._lock:
            return dict(self._counts(day, identity))

    async def incr(self, day: str, identity: str, feature: str, amount: int = 1) -> int:
        with self._lock:
            counts = self._counts(day, identity)
            counts[feature] = counts.get(feature, 0) + amount
            return counts[feature]

    async def incr_if_below(self, day: str, identity: str, feature: str, limit: int) -> bool:
        with self._lock:
            counts = self._counts(day, identity)
            if counts.get(feature, 0) >= limit:
                return False
            counts[feature] = counts.get(feature, 0) + 1
            return True

    async def decr(self, day: str, identity: str, feature: str) -> int:
        with self._lock:
            counts = self._counts(day, identity)
            counts[feature] = max(0, counts.get(feature, 0) - 1)
            return counts[feature]

    def mirror(self, day: str, identity: str, counts: dict[str, int]) -> None:
        """Overwrite counts with values read from another store."""
        with self._lock:
            self._counts(day, identity).update(counts)

    def days(self) -> list[str]:
        with self._lock:
            return sorted(self._days)


class RedisUsageStore:
    """Redis-backed counters shared across processes."""

    def __init__(self, client: aioredis.Redis, prefix: str = "ts", fallback: MemoryUsageStore | None = None):
        self._redis = client
        self._prefix = prefix
        self._fallback = fallback or MemoryUsageStore()
        self._incr_if_below = client.register_script(_INCR_IF_BELOW)
        self._decr = client.register_script(_DECR_FLOOR_ZERO)

    def key(self, day: str, identity: str) -> str:
        return f"{self._prefix}:usage:{day}:{identity}"

    async def get(self, day: str, identity: str) -> dict[str, int]:
        try:
            raw = await self._redis.hgetall(self.key(day, identity))
        except RedisError as e:
            logger.warning("Redis usage GET failed, memory fallback: %s", str(e)[:100])
            return await self._fallback.get(day, identity)
        counts = {field: int(value) for field, value in raw.items()}
        self._fallback.mirror(day, identity, counts)
        return counts

    async def incr(self, day: str, identity: str, feature: str, amount: int = 1) -> int:
        key = self.key(day, identity)
        try:
            async with self._redis.pipeline(transaction=True) as pipe:
                pipe.hincrby(key, feature, amount)
                pipe.expire(key, KEY_TTL_SECONDS)
                count, _ = await pipe.execute()
        except RedisError as e:
            logger.warning("Redis usage INCR failed, memory fallback: %s", str(e)[:100])
            return await self._fallback.incr(day, identity, feature, amount)
        self._fallback.mirror(day, identity, {feature: int(count)})
        return int(count)

    async def incr_if_below(self, day: str, identity: str, feature: str, limit: int) -> bool:
        try:
            taken = await self._incr_if_below(
                keys=[self.key(day, identity)],
                args=[feature, limit, KEY_TTL_SECONDS],
            )
        except RedisError as e:
            logger.warning(
                "Redis usage reserve failed, enforcing from last known counts: %s", str(e)[:100],
            )
            return await self._fallback.incr_if_below(day, identity, feature, limit)
        if int(taken) < 0:
            return False
        self._fallback.mirror(day, identity, {feature: int(taken)})
        return True

    async def decr(self, day: str, identity: str, feature: str) -> int:
        try:
            count = await self._decr(keys=[self.key(day, identity)], args=[feature])
        except RedisError as e:
            logger.warning("Redis usage DECR failed, memory fallback: %s", str(e)[:100])
            return await self._fallback.decr(day, identity, feature)
        self._fallback.mirror(day, identity, {feature: int(count)})
        return int(count)
