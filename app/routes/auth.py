from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, EmailStr, Field
from slowapi import Limiter
from slowapi.util import get_remote_address
from app.config import get_settings
from app.database import get_db
from app.models.user import User
from app.middleware.auth import get_current_user, upsert_user
from app.services.supabase_auth import SupabaseAuthClient, SupabaseAuthError, get_auth_client
from app.utils.logger import logger

router = APIRouter()

# Rate limiter for authentication endpoints
limiter = Limiter(key_func=get_remote_address)

SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: str = Field(..., min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


def _set_session_cookie(response: Response, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=not settings.debug,
        samesite="lax",
        path="/",
    )


@router.post("/register")
@limiter.limit("10/hour")  # Account creation spam
async def register(
    request: Request,
    response: Response,
    data: RegisterRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a Supabase account and mirror it in the local users table.

    Returns the access token too when Supabase issues a session right away
    (email confirmation disabled).
    """
    try:
        session = await auth_client.sign_up(data.email, data.password, data.name)
    except SupabaseAuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    user = await upsert_user(db, session.user_id, session.email or data.email, session.name or data.name)
    if session.access_token:
        _set_session_cookie(response, session.access_token)

    return {"success": True, "user": user.to_dict(), "token": session.access_token}


@router.post("/login")
@limiter.limit("20/hour")
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    auth_client: SupabaseAuthClient = Depends(get_auth_client),
    db: AsyncSession = Depends(get_db),
):
    try:
        session = await auth_client.sign_in_with_password(data.email, data.password)
    except SupabaseAuthError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    user = await upsert_user(db, session.user_id, session.email or data.email, session.name)
    _set_session_cookie(response, session.access_token)
    logger.info(f"[Auth] Login for {user.email}")

    return {"success": True, "user": user.to_dict(), "token": session.access_token}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "user": current_user.to_dict()}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return {"success": True}
