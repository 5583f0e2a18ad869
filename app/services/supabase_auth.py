"""
Supabase Auth (GoTrue) client.

Registration and password login are delegated to Supabase; this service only
talks to the REST API and normalizes its answers. Requests go through the
service gateway so a Supabase outage trips the "supabase" circuit.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.config import get_settings
from app.services.gateway import get_gateway
from app.utils.logger import logger


class SupabaseAuthError(Exception):
    """Auth request rejected or failed; status_code is the HTTP status to return."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(message)


@dataclass
class AuthSession:
    user_id: str
    email: str
    name: Optional[str]
    access_token: Optional[str]


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    return (
        body.get("msg")
        or body.get("message")
        or body.get("error_description")
        or body.get("error")
        or f"HTTP {response.status_code}"
    )


def _session_from_payload(payload: Dict[str, Any], fallback_name: Optional[str] = None) -> AuthSession:
    # Sign-up returns the user at top level when email confirmation is on
    user = payload.get("user") or payload
    metadata = user.get("user_metadata") or {}
    return AuthSession(
        user_id=user.get("id", ""),
        email=user.get("email", ""),
        name=metadata.get("name") or fallback_name,
        access_token=payload.get("access_token"),
    )


class SupabaseAuthClient:
    def __init__(
        self,
        base_url: str,
        anon_key: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: Dict[str, Any], params: Optional[Dict[str, str]] = None) -> httpx.Response:
        if not self.base_url or not self.anon_key:
            logger.error("[Auth] SUPABASE_URL / SUPABASE_ANON_KEY not set")
            raise SupabaseAuthError(500, "Authentication is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)")

        async def send() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}{path}", headers=self._headers(), json=payload, params=params
                )
            # 5xx counts against the circuit; 4xx is a normal answer
            if response.status_code >= 500:
                response.raise_for_status()
            return response

        try:
            return await get_gateway().execute("supabase", send)
        except httpx.HTTPError as e:
            logger.error(f"[Auth] Supabase request to {path} failed: {type(e).__name__}: {e}")
            raise SupabaseAuthError(500, "Authentication service unavailable") from e

    async def sign_up(self, email: str, password: str, name: str) -> AuthSession:
        response = await self._post(
            "/auth/v1/signup",
            {"email": email, "password": password, "data": {"name": name}},
        )
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"[Auth] Sign-up rejected for {email}: {message}")
            if "already" in message.lower():
                raise SupabaseAuthError(400, "User already exists")
            raise SupabaseAuthError(400, message)

        session = _session_from_payload(response.json(), fallback_name=name)
        logger.info(f"[Auth] Registered {email}")
        return session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        response = await self._post(
            "/auth/v1/token",
            {"email": email, "password": password},
            params={"grant_type": "password"},
        )
        if response.status_code >= 400:
            logger.warning(f"[Auth] Login rejected for {email}: {_error_message(response)}")
            raise SupabaseAuthError(401, "Invalid credentials")

        session = _session_from_payload(response.json())
        if not session.access_token:
            raise SupabaseAuthError(401, "Invalid credentials")
        return session


def get_auth_client() -> SupabaseAuthClient:
    """FastAPI dependency; tests override it with a fake"""
    settings = get_settings()
    return SupabaseAuthClient(settings.supabase_url or "", settings.supabase_anon_key or "")
