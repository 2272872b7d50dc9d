"""Shared Redis client for pub/sub broadcasts and rate-limit counters."""

import redis.asyncio as redis

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20, health_check_interval: int = 30) -> None:
    """Create the process-wide client. Connections are opened lazily on first command."""
    global _client  # noqa: PLW0603
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        health_check_interval=health_check_interval,
    )


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis:
    """Raises RuntimeError before init_redis or after close_redis."""
    if _client is None:
        msg = "Redis client is not initialised"
        raise RuntimeError(msg)
    return _client
