"""
Shared fixtures: a throwaway SQLite database per test, a scripted fake LLM,
a fake Supabase Auth client and helpers for signed session tokens.
"""
import os
import time

# Must be set before app modules read settings
os.environ["LOG_TO_FILE"] = "false"
os.environ["LLM_PROVIDER"] = "anthropic"
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""
os.environ["SUPABASE_URL"] = "https://camino-test.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "test-anon-key"
os.environ["SUPABASE_JWT_SECRET"] = "test-jwt-secret-with-enough-length-123"
os.environ["REDIS_URL"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from app.config import get_settings
from app.models import ActionPlan, Reminder, User  # noqa: F401
from app.database import Base, get_db
from app.main import app
from app.routes import action_plans, analysis, auth, opportunities
from app.services.gateway import reset_gateway
from app.services.llm_client import get_llm_client
from app.services.redis_client import set_redis
from app.services.supabase_auth import AuthSession, SupabaseAuthError, get_auth_client
from app.utils import metrics


class FakeLLM:
    """Returns queued responses in order and records every call"""

    provider = "fake"

    def __init__(self):
        self.responses = []
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    async def generate_text(self, prompt, system=None, max_tokens=2000, temperature=0.7, operation="generate"):
        self.calls.append(
            {
                "prompt": prompt,
                "system": system,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "operation": operation,
            }
        )
        if not self.responses:
            raise AssertionError(f"Unexpected LLM call for {operation}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeAuthClient:
    """In-memory stand-in for Supabase Auth"""

    def __init__(self):
        self.users = {}

    async def sign_up(self, email, password, name):
        if email in self.users:
            raise SupabaseAuthError(400, "User already exists")
        user_id = f"sb-{len(self.users) + 1}"
        self.users[email] = {"id": user_id, "password": password, "name": name}
        return AuthSession(user_id=user_id, email=email, name=name, access_token=make_token(user_id, email))

    async def sign_in_with_password(self, email, password):
        user = self.users.get(email)
        if not user or user["password"] != password:
            raise SupabaseAuthError(401, "Invalid credentials")
        return AuthSession(
            user_id=user["id"], email=email, name=user["name"], access_token=make_token(user["id"], email)
        )


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the cache and the rate limiter"""

    def __init__(self):
        self.store = {}
        self.ttls = {}
        self.counters = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        self.ttls[key] = ex
        return True

    async def ping(self):
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.ops = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def incr(self, key):
        self.ops.append(("incr", key))
        return self

    def expire(self, key, seconds):
        self.ops.append(("expire", key))
        return self

    async def execute(self):
        results = []
        for op, key in self.ops:
            if op == "incr":
                self.redis.counters[key] = self.redis.counters.get(key, 0) + 1
                results.append(self.redis.counters[key])
            else:
                results.append(True)
        self.ops = []
        return results


def make_token(sub, email, expires_in=3600, secret=None, **claims):
    payload = {"sub": sub, "email": email, "exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, secret or get_settings().supabase_jwt_secret, algorithm="HS256")


@pytest.fixture
def session_factory(tmp_path):
    db_path = tmp_path / "camino_test.db"
    # Schema is created with the sync driver so no event loop is involved
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def reset_state():
    reset_gateway()
    metrics.reset()
    set_redis(None)
    for module in (analysis, action_plans, opportunities, auth):
        module.limiter.reset()
    yield
    app.dependency_overrides.clear()
    set_redis(None)


@pytest.fixture
def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def fake_llm():
    llm = FakeLLM()
    app.dependency_overrides[get_llm_client] = lambda: llm
    return llm


@pytest.fixture
def fake_auth():
    auth_client = FakeAuthClient()
    app.dependency_overrides[get_auth_client] = lambda: auth_client
    return auth_client


@pytest.fixture
def auth_headers():
    token = make_token("sb-student-1", "ana@example.com", user_metadata={"name": "Ana"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def session_token():
    """Factory for HS256 access tokens signed with the test project secret"""
    return make_token


@pytest.fixture
def fake_redis():
    redis = FakeRedis()
    set_redis(redis)
    return redis
