"""
Process-wide request budget shared across instances through Redis.

Each caller gets a fixed one-minute window: signed-in sessions 200 requests,
anonymous callers 60 per IP. The per-endpoint slowapi limits on the LLM routes
apply on top of this. Without Redis the middleware passes everything through.
"""
import hashlib
import time
from typing import Tuple

from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from app.config import get_settings
from app.services.redis_client import get_redis
from app.utils.logger import logger

SESSION_BUDGET = 200
ANONYMOUS_BUDGET = 60
WINDOW_SECONDS = 60

UNMETERED_PATHS = frozenset({"/", "/health", "/metrics"})


def budget_for(request: Request) -> Tuple[str, int]:
    session = request.headers.get("authorization") or request.cookies.get(get_settings().session_cookie_name)
    if session:
        digest = hashlib.sha256(session.encode()).hexdigest()[:32]
        return f"camino:rl:session:{digest}", SESSION_BUDGET
    ip = request.client.host if request.client else "unknown"
    return f"camino:rl:ip:{ip}", ANONYMOUS_BUDGET


class RedisRateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        client = get_redis()
        if client is None or request.method == "OPTIONS" or request.url.path in UNMETERED_PATHS:
            return await call_next(request)

        bucket, budget = budget_for(request)
        window = int(time.time()) // WINDOW_SECONDS
        key = f"{bucket}:{window}"

        try:
            async with client.pipeline(transaction=True) as pipe:
                used, _ = await pipe.incr(key).expire(key, WINDOW_SECONDS + 1).execute()
        except RedisError as exc:
            logger.warning(f"[RateLimit] Redis unavailable, not metering: {exc}")
            return await call_next(request)

        if used > budget:
            logger.warning(f"[RateLimit] Budget of {budget}/min exhausted", extra={"path": request.url.path})
            return JSONResponse(
                status_code=429,
                content={"success": False, "error": "Too many requests, please wait a minute and try again"},
                headers={"Retry-After": str(WINDOW_SECONDS), "X-RateLimit-Limit": str(budget), "X-RateLimit-Remaining": "0"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(budget)
        response.headers["X-RateLimit-Remaining"] = str(budget - used)
        response.headers["X-RateLimit-Reset"] = str((window + 1) * WINDOW_SECONDS)
        return response
