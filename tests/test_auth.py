import httpx
import pytest

from app.config import get_settings
from app.middleware import auth as auth_middleware
from app.services.supabase_auth import SupabaseAuthClient, SupabaseAuthError

CREDENTIALS = {"email": "ana@camino.cl", "password": "secreto123", "name": "Ana Pérez"}


def test_register_returns_user_and_token(client, fake_auth):
    resp = client.post("/api/auth/register", json=CREDENTIALS)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"] == {"id": "sb-1", "email": "ana@camino.cl", "name": "Ana Pérez"}
    assert body["token"]
    assert get_settings().session_cookie_name in resp.headers.get("set-cookie", "")


def test_register_duplicate_email_is_400(client, fake_auth):
    client.post("/api/auth/register", json=CREDENTIALS)

    resp = client.post("/api/auth/register", json=CREDENTIALS)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "User already exists"}


def test_register_missing_fields_is_400(client, fake_auth):
    resp = client.post("/api/auth/register", json={"email": "ana@camino.cl"})

    assert resp.status_code == 400
    assert resp.json()["success"] is False


def test_login_sets_session_cookie(client, fake_auth):
    client.post("/api/auth/register", json=CREDENTIALS)

    resp = client.post("/api/auth/login", json={"email": CREDENTIALS["email"], "password": CREDENTIALS["password"]})

    assert resp.status_code == 200
    assert resp.json()["user"]["email"] == "ana@camino.cl"
    assert get_settings().session_cookie_name in resp.headers.get("set-cookie", "")


def test_login_with_wrong_password_is_401(client, fake_auth):
    client.post("/api/auth/register", json=CREDENTIALS)

    resp = client.post("/api/auth/login", json={"email": CREDENTIALS["email"], "password": "otra"})

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "error": "Invalid credentials"}


def test_me_resolves_bearer_token(client, fake_auth):
    token = client.post("/api/auth/register", json=CREDENTIALS).json()["token"]

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.json()["user"]["id"] == "sb-1"


def test_me_without_session_is_401(client):
    resp = client.get("/api/auth/me")

    assert resp.status_code == 401
    assert resp.json()["requiresAuth"] is True


def test_me_rejects_token_signed_with_other_secret(client, session_token):
    token = session_token("sb-x", "x@camino.cl", secret="some-other-secret-that-is-long-enough")

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401


# ---------------------------------------------------------------------------
# Supabase REST client
# ---------------------------------------------------------------------------

def _client(handler) -> SupabaseAuthClient:
    return SupabaseAuthClient("https://camino-test.supabase.co/", "anon", transport=httpx.MockTransport(handler))


async def test_sign_up_posts_to_signup_endpoint():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["apikey"] = request.headers["apikey"]
        return httpx.Response(
            200,
            json={
                "access_token": "tok",
                "user": {"id": "uuid-1", "email": "ana@camino.cl", "user_metadata": {"name": "Ana"}},
            },
        )

    session = await _client(handler).sign_up("ana@camino.cl", "secreto123", "Ana")

    assert seen == {"path": "/auth/v1/signup", "apikey": "anon"}
    assert (session.user_id, session.email, session.name, session.access_token) == (
        "uuid-1", "ana@camino.cl", "Ana", "tok",
    )


async def test_sign_up_existing_user_maps_to_400():
    def handler(request):
        return httpx.Response(422, json={"code": 422, "msg": "User already registered"})

    with pytest.raises(SupabaseAuthError) as exc_info:
        await _client(handler).sign_up("ana@camino.cl", "secreto123", "Ana")

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "User already exists"


async def test_password_grant_failure_maps_to_401():
    seen = {}

    def handler(request):
        seen["grant_type"] = request.url.params.get("grant_type")
        return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

    with pytest.raises(SupabaseAuthError) as exc_info:
        await _client(handler).sign_in_with_password("ana@camino.cl", "mala")

    assert exc_info.value.status_code == 401
    assert seen["grant_type"] == "password"


async def test_supabase_outage_maps_to_500():
    def handler(request):
        return httpx.Response(503, text="upstream down")

    with pytest.raises(SupabaseAuthError) as exc_info:
        await _client(handler).sign_in_with_password("ana@camino.cl", "secreto123")

    assert exc_info.value.status_code == 500


async def test_failed_sign_up_is_sent_once():
    calls = []

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(503, text="upstream down")

    with pytest.raises(SupabaseAuthError) as exc_info:
        await _client(handler).sign_up("ana@camino.cl", "secreto123", "Ana")

    assert exc_info.value.status_code == 500
    assert calls == ["/auth/v1/signup"]


async def test_unconfigured_client_fails_before_any_request():
    def handler(request):
        raise AssertionError("no request expected")

    client = SupabaseAuthClient("", "", transport=httpx.MockTransport(handler))

    with pytest.raises(SupabaseAuthError) as exc_info:
        await client.sign_in_with_password("ana@camino.cl", "secreto123")

    assert exc_info.value.status_code == 500


# ---------------------------------------------------------------------------
# Local user mirror
# ---------------------------------------------------------------------------

async def test_upsert_user_recovers_from_concurrent_insert(session_factory, monkeypatch):
    async with session_factory() as other:
        await auth_middleware.upsert_user(other, "sb-race", "race@camino.cl", "Primera")

    real_find = auth_middleware._find_user
    lookups = []

    async def find_after_losing_race(db, supabase_id):
        # The first lookup runs before the competing request has committed
        lookups.append(supabase_id)
        if len(lookups) == 1:
            return None
        return await real_find(db, supabase_id)

    monkeypatch.setattr(auth_middleware, "_find_user", find_after_losing_race)

    async with session_factory() as db:
        user = await auth_middleware.upsert_user(db, "sb-race", "race@camino.cl", "Segunda")

    assert user.supabase_id == "sb-race"
    assert user.name == "Primera"
    assert len(lookups) == 2
