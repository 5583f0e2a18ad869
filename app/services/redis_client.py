"""
Optional Redis connection shared by the opportunity cache and the rate
limiter. REDIS_URL unset or unreachable means both run without it.
"""
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.config import get_settings
from app.utils.logger import logger

_client: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _client

    url = get_settings().redis_url
    if not url:
        logger.info("[Redis] REDIS_URL not set; cache and shared rate limits disabled")
        return

    client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=5, socket_timeout=5)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning(f"[Redis] Unreachable ({exc}); continuing without it")
        await client.aclose()
        return

    _client = client
    logger.info("[Redis] Connected")


async def close_redis() -> None:
    global _client
    if _client is None:
        return
    try:
        await _client.aclose()
    except RedisError as exc:
        logger.warning(f"[Redis] Error while closing: {exc}")
    _client = None


def get_redis() -> Optional[aioredis.Redis]:
    return _client


def set_redis(client) -> None:
    """Install a client directly (tests use an in-memory fake)"""
    global _client
    _client = client


async def is_redis_healthy() -> bool:
    if _client is None:
        return False
    try:
        return bool(await _client.ping())
    except (RedisError, OSError):
        return False
