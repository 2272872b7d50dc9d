"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from anuva.redis_client import get_redis as _get_redis


async def get_redis_dep() -> AsyncGenerator[object | None, None]:
    """Yield the Redis client, or None when Redis was never initialized.

    Redis is only used for best-effort broadcasts, so a missing pool
    must not fail the request.
    """
    try:
        redis = _get_redis()
    except RuntimeError:
        redis = None
    yield redis
