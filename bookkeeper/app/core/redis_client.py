"""
Redis client for the per-account recompute locks.

The module-level ``redis_client`` is looked up at call time by
``services.account_lock`` so tests can swap it for an in-process fake.
"""

import logging

import redis.asyncio as redis
from bookkeeper.app.core.config import settings

logger = logging.getLogger("bookkeeper.redis")

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def ping_redis() -> bool:
    """True when the lock store answers a PING."""
    try:
        return bool(await redis_client.ping())
    except redis.RedisError as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False
