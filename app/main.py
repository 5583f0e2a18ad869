from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.config import get_settings
from app.database import init_db
from app.middleware.correlation import CorrelationMiddleware
from app.middleware.rate_limit import RedisRateLimitMiddleware
from app.routes import action_plans, analysis, auth, onboarding, opportunities, reminders
from app.services.gateway import CircuitOpenError, get_gateway
from app.services.json_repair import LLMResponseParseError
from app.services.llm_client import LLMConfigurationError
from app.services.redis_client import close_redis, init_redis, is_redis_healthy
from app.services.supabase_auth import SupabaseAuthError
from app.utils.logger import logger
from app.utils.metrics import get_snapshot

settings = get_settings()

# Initialize rate limiter
limiter = Limiter(key_func=get_remote_address)

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.state.limiter = limiter


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    """Every failure leaves the API as {success: false, error}"""
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


# ========== Exception handlers ==========
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # auth_error() carries extra keys such as requiresAuth
    if isinstance(exc.detail, dict):
        detail = dict(exc.detail)
        message = detail.pop("error", "Request failed")
        return error_response(exc.status_code, message, **detail)
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Invalid or missing request fields are a 400"""
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        logger.warning(f"Malformed JSON body on {request.url.path}")
        return error_response(400, "Invalid JSON body")

    fields = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query")]
        field = ".".join(loc) or "body"
        if field not in fields:
            fields.append(field)
    logger.warning(f"Request validation failed on {request.url.path}: {fields}")
    return error_response(400, f"Missing required fields: {', '.join(fields)}")


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(429, f"Rate limit exceeded: {exc.detail}")


@app.exception_handler(LLMConfigurationError)
async def llm_configuration_handler(request: Request, exc: LLMConfigurationError):
    return error_response(500, str(exc))


@app.exception_handler(LLMResponseParseError)
async def llm_parse_handler(request: Request, exc: LLMResponseParseError):
    logger.error(f"Unrecoverable model output on {request.url.path}: {exc}")
    return error_response(500, "Could not parse the AI response. Please try again.", details=str(exc))


@app.exception_handler(CircuitOpenError)
async def circuit_open_handler(request: Request, exc: CircuitOpenError):
    return error_response(500, str(exc))


@app.exception_handler(SupabaseAuthError)
async def supabase_auth_handler(request: Request, exc: SupabaseAuthError):
    return error_response(exc.status_code, exc.message)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_type": type(exc).__name__},
    )
    return error_response(500, "Internal server error")


# ========== Middleware ==========
allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",")]
app.add_middleware(RedisRateLimitMiddleware)
app.add_middleware(CorrelationMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,  # Explicit origins from config
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
    expose_headers=["X-Correlation-ID"],
)


# ========== Lifecycle ==========
@app.on_event("startup")
async def startup_event():
    logger.info("Starting CaminoAI Backend...")

    missing = settings.missing_required()
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
    for warning in settings.configuration_warnings():
        logger.warning(warning)

    await init_db()
    await init_redis()
    logger.info(f"Backend ready at http://{settings.backend_host}:{settings.backend_port}")


@app.on_event("shutdown")
async def shutdown_event():
    await close_redis()


@app.get("/health")
async def health_check():
    return {
        "status": "ok",
        "redis": await is_redis_healthy(),
        "circuits": get_gateway().get_circuit_states(),
    }


@app.get("/metrics")
async def metrics():
    return get_snapshot()


@app.get("/")
async def root():
    return {"status": "ok"}


# Register routes
app.include_router(analysis.router, prefix="/api")
app.include_router(action_plans.router, prefix="/api")
app.include_router(opportunities.router, prefix="/api")
app.include_router(onboarding.router, prefix="/api/onboarding")
app.include_router(reminders.router, prefix="/api/reminders", tags=["Reminders"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

# Railway deployment - use railway.json startCommand instead
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.debug
    )
