from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from datetime import datetime
from typing import Optional
import jwt
import time
import httpx
from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.utils.logger import logger

# Cache for Supabase public key (ES256/RS256) with TTL
_supabase_public_key_cache = None
_supabase_public_key_cached_at = 0.0
_JWKS_CACHE_TTL_SECONDS = 6 * 3600  # 6 hours

AUTH_REQUIRED_MESSAGE = "Authentication required"


def auth_error(message: str = AUTH_REQUIRED_MESSAGE) -> HTTPException:
    """401 rendered as {success: false, error, requiresAuth: true}"""
    return HTTPException(
        status_code=401,
        detail={"error": message, "requiresAuth": True},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_supabase_public_key():
    """
    Fetch the Supabase public key for ES256/RS256 JWT verification.
    Cached with a 6-hour TTL to pick up key rotations.
    """
    global _supabase_public_key_cache, _supabase_public_key_cached_at

    now = time.monotonic()
    if _supabase_public_key_cache and (now - _supabase_public_key_cached_at) < _JWKS_CACHE_TTL_SECONDS:
        return _supabase_public_key_cache

    supabase_url = get_settings().supabase_url
    jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
    logger.info(f"[Auth] Fetching JWKS from: {jwks_url}")

    try:
        async with httpx.AsyncClient() as client:
            response = await client.get(jwks_url, timeout=5.0)
            response.raise_for_status()
            jwks = response.json()
    except httpx.HTTPError as e:
        logger.error(f"[Auth] Failed to fetch Supabase public key: {e}")
        raise auth_error("Cannot verify session token")

    keys = jwks.get("keys") or []
    if not keys:
        logger.error("[Auth] No keys found in JWKS")
        raise auth_error("Cannot verify session token")

    key_data = keys[0]
    from jwt.algorithms import RSAAlgorithm, ECAlgorithm

    if key_data.get("kty") == "RSA":
        public_key = RSAAlgorithm.from_jwk(key_data)
    elif key_data.get("kty") == "EC":
        public_key = ECAlgorithm.from_jwk(key_data)
    else:
        logger.error(f"[Auth] Unsupported key type: {key_data.get('kty')}")
        raise auth_error("Cannot verify session token")

    _supabase_public_key_cache = public_key
    _supabase_public_key_cached_at = time.monotonic()
    logger.info(f"[Auth] Cached Supabase public key (type: {key_data.get('kty')}, TTL: {_JWKS_CACHE_TTL_SECONDS}s)")
    return public_key


async def decode_session_token(token: str) -> dict:
    """Verify a Supabase access token and return its claims"""
    try:
        token_algorithm = jwt.get_unverified_header(token).get("alg", "HS256")
    except jwt.InvalidTokenError as e:
        raise auth_error(f"Invalid token: {e}")

    if token_algorithm in ("ES256", "RS256"):
        verification_key = await get_supabase_public_key()
        algorithms = ["ES256", "RS256"]
    else:
        secret = get_settings().supabase_jwt_secret
        if not secret:
            logger.error("[Auth] SUPABASE_JWT_SECRET not set; cannot verify HS256 token")
            raise HTTPException(status_code=500, detail="Server misconfiguration: JWT secret not set")
        verification_key = secret
        algorithms = ["HS256"]

    try:
        return jwt.decode(
            token,
            verification_key,
            algorithms=algorithms,
            options={"verify_exp": True, "verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise auth_error("Token expired. Please sign in again.")
    except jwt.InvalidTokenError as e:
        raise auth_error(f"Invalid token: {e}")


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Bearer header first, then the session cookie"""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return request.cookies.get(get_settings().session_cookie_name)


async def _find_user(db: AsyncSession, supabase_id: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.supabase_id == supabase_id))
    return result.scalar_one_or_none()


async def upsert_user(
    db: AsyncSession, supabase_id: str, email: Optional[str], name: Optional[str] = None
) -> User:
    """Find or create the local mirror of a Supabase user"""
    user = await _find_user(db, supabase_id)

    if not user:
        try:
            user = User(supabase_id=supabase_id, email=email, name=name, is_active=True, last_login=datetime.utcnow())
            db.add(user)
            await db.commit()
            logger.info(f"[Auth] Created local user for {email}")
        except IntegrityError:
            # A concurrent first request inserted the same supabase_id
            await db.rollback()
            user = await _find_user(db, supabase_id)
            if user is None:
                raise
        else:
            await db.refresh(user)
            return user

    if name and not user.name:
        user.name = name
    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)
    return user


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Resolve the signed-in user from `Authorization: Bearer <jwt>` or the
    session cookie. Creates the local user row on first sight.

    Usage:
        @router.get("/endpoint")
        async def protected_endpoint(current_user: User = Depends(get_current_user)):
            ...
    """
    token = extract_token(request, authorization)
    if not token:
        raise auth_error()

    payload = await decode_session_token(token)
    supabase_id = payload.get("sub")
    if not supabase_id:
        raise auth_error("Invalid token: missing user ID")

    metadata = payload.get("user_metadata") or {}
    user = await upsert_user(db, supabase_id, payload.get("email"), metadata.get("name"))

    if not user.is_active:
        raise HTTPException(status_code=403, detail="User account is disabled")
    return user


async def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """None instead of 401 when no valid session is present"""
    if not extract_token(request, authorization):
        return None
    try:
        return await get_current_user(request, authorization, db)
    except HTTPException as e:
        logger.warning(f"[Auth] Ignoring invalid session on optional route: {e.detail}")
        return None
