"""Shared Redis client."""

import logging

import redis.asyncio as aioredis

from ooh_billing.core.config import settings

logger = logging.getLogger(__name__)

_redis: aioredis.Redis | None = None


def get_redis() -> aioredis.Redis:
    """Lazily created process-wide client; connections open on first command."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        try:
            await _redis.aclose()
        except Exception:
            logger.exception("Failed to close Redis client")
        _redis = None


def make_cache_key(*parts: str) -> str:
    return "cache:" + ":".join(parts)
