"""Redis-based guard against duplicate submissions."""

import logging

from ooh_billing.core.cache import get_redis

logger = logging.getLogger(__name__)


async def check_idempotency(key: str, ttl: int = 300) -> bool:
    """Return True if this is the first call with this key (proceed).

    Return False if a duplicate (skip). Redis outages let the call through.
    """
    try:
        was_set = await get_redis().set(f"idempotent:{key}", "1", nx=True, ex=ttl)
        return bool(was_set)
    except Exception:
        logger.exception("Idempotency check failed for key=%s, allowing through", key)
        return True
