"""
Request correlation ids.

Takes X-Correlation-ID from the caller (the frontend forwards it) or mints a
UUID4, exposes it to the logger through a contextvar and echoes it back.
"""
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.utils.logger import correlation_id_var, logger

HEADER = "X-Correlation-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        token = correlation_id_var.set(request.headers.get(HEADER) or str(uuid.uuid4()))
        started = time.monotonic()
        request_info = {"method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"{request.method} {request.url.path} raised {type(exc).__name__}",
                extra={**request_info, "error": str(exc), "error_type": type(exc).__name__},
            )
            correlation_id_var.reset(token)
            raise

        elapsed_ms = round((time.monotonic() - started) * 1000)
        level = logger.warning if response.status_code >= 400 else logger.info
        level(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)",
            extra={**request_info, "status": response.status_code, "duration_ms": elapsed_ms},
        )

        response.headers[HEADER] = correlation_id_var.get()
        correlation_id_var.reset(token)
        return response
