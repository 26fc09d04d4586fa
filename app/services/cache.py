"""Response cache with Redis backend and in-memory fallback.

Content-addressed: keys are digests of the semantically relevant request
fields only (never identity or time), namespaced per feature. Entries are
write-once, last write wins.

Expiry is a configuration choice:
  - CACHE_TTL_SECONDS=0 (default): entries never expire; memory is bounded
    by CACHE_MAX_ENTRIES with LRU eviction
  - CACHE_TTL_SECONDS>0: cachetools.TTLCache in memory, SETEX in Redis

Graceful degradation: if Redis is unavailable, only the in-memory cache is used.
"""

import hashlib
import json
import logging
import time
from typing import Any

import redis.asyncio as aioredis
from cachetools import LRUCache, TTLCache
from pydantic import BaseModel, Field

from app.config import settings

logger = logging.getLogger(__name__)


class CacheEntry(BaseModel):
    provider: str
    payload: dict[str, Any]
    created_at: float = Field(default_factory=time.time)


class ResponseCache:
    """Async cache with optional Redis primary and in-memory fallback."""

    def __init__(
        self,
        ttl_seconds: int | None = None,
        max_entries: int | None = None,
        prefix: str = "ts",
    ):
        self.ttl = settings.cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        maxsize = max_entries or settings.cache_max_entries
        if self.ttl > 0:
            self._fallback = TTLCache(maxsize=maxsize, ttl=self.ttl)
        else:
            self._fallback = LRUCache(maxsize=maxsize)
        self._redis: aioredis.Redis | None = None
        self.prefix = prefix

    def attach(self, client: aioredis.Redis | None) -> None:
        """Use a connected Redis client as the primary store."""
        self._redis = client

    def detach(self) -> None:
        self._redis = None

    @property
    def redis_enabled(self) -> bool:
        return self._redis is not None

    def fingerprint(self, feature: str, fields: dict[str, Any]) -> str:
        """Deterministic cache key from the feature and its normalized input."""
        normalized = json.dumps(fields, sort_keys=True, ensure_ascii=False)
        digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
        return f"{self.prefix}:{feature}:{digest}"

    async def get(self, key: str) -> CacheEntry | None:
        """Read from cache. Returns None on miss."""
        if self._redis is not None:
            try:
                data = await self._redis.get(key)
                if data:
                    logger.info("Cache HIT (Redis) | key=%s", key[:24])
                    return CacheEntry.model_validate_json(data)
            except Exception as e:
                logger.debug("Redis GET error: %s", str(e)[:100])

        entry = self._fallback.get(key)
        if entry is not None:
            logger.info("Cache HIT (memory) | key=%s", key[:24])
        return entry

    async def put(self, key: str, provider: str, payload: dict[str, Any]) -> CacheEntry:
        """Store a provider result under its fingerprint."""
        entry = CacheEntry(provider=provider, payload=payload)

        if self._redis is not None:
            try:
                data = entry.model_dump_json()
                if self.ttl > 0:
                    await self._redis.setex(key, self.ttl, data)
                else:
                    await self._redis.set(key, data)
                logger.info("Cache SET (Redis) | key=%s | ttl=%s", key[:24], self.ttl or "none")
            except Exception as e:
                logger.debug("Redis SET error: %s", str(e)[:100])

        # Always write to in-memory fallback too
        self._fallback[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._fallback)
