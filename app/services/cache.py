"""
JSON cache on top of the optional Redis connection.

Used for local opportunity searches, which are slow LLM calls whose answer
for a given student context does not change within the hour. With Redis
down or unset every lookup is a miss and every write is skipped.
"""
import json
from typing import Any, Optional

from redis.exceptions import RedisError

from app.services.redis_client import get_redis
from app.utils.logger import logger

KEY_PREFIX = "camino:"
DEFAULT_TTL_SECONDS = 3600


async def cache_get(key: str) -> Optional[Any]:
    client = get_redis()
    if client is None:
        return None
    try:
        raw = await client.get(KEY_PREFIX + key)
        return json.loads(raw) if raw is not None else None
    except (RedisError, ValueError) as exc:
        logger.warning(f"[Cache] Lookup of {key} skipped: {exc}")
        return None


async def cache_set(key: str, value: Any, ttl: int = DEFAULT_TTL_SECONDS) -> bool:
    client = get_redis()
    if client is None:
        return False
    try:
        await client.set(KEY_PREFIX + key, json.dumps(value, ensure_ascii=False), ex=ttl)
    except (RedisError, TypeError) as exc:
        logger.warning(f"[Cache] Write of {key} skipped: {exc}")
        return False
    return True
