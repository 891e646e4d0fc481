from typing import Optional

from redis.asyncio import Redis

from app.platform.config import settings

_redis: Optional[Redis] = None


def get_redis_client() -> Optional[Redis]:
    """
    Return the shared async Redis client, or None when REDIS_URL is not configured.

    The client connects lazily, so an unreachable server only surfaces on the
    first command.
    """
    global _redis

    if not settings.REDIS_URL:
        return None

    if _redis is None:
        _redis = Redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _redis


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None
