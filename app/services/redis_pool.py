"""Shared async Redis connection (optional).

Both the response cache and the usage store use the same client. When
REDIS_URL is empty or the server is unreachable, callers get ``None`` and
stay on their in-memory stores.
"""

import logging

import redis.asyncio as aioredis

logger = logging.getLogger(__name__)


async def connect_redis(url: str) -> aioredis.Redis | None:
    """Connect and ping. Returns the client, or None when unavailable."""
    if not url:
        return None
    client = aioredis.from_url(
        url,
        decode_responses=True,
        socket_connect_timeout=3,
    )
    try:
        await client.ping()
    except Exception as e:
        logger.warning("Redis connection failed — using in-memory stores: %s", str(e)[:100])
        await client.aclose()
        return None
    logger.info("Redis connected | url=%s", url.split("@")[-1])
    return client


async def close_redis(client: aioredis.Redis | None) -> None:
    if client is not None:
        await client.aclose()
