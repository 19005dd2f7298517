from __future__ import annotations

import json
import time

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from nextplay import dependencies
from nextplay.core.settings import get_settings
from nextplay.db import get_engine, get_sessionmaker, init_db
from nextplay.main import create_app
from nextplay.services.gateway_client import AiGatewayClient

TEST_JWT_SECRET = "test-jwt-secret"
GATEWAY_URL = "https://gateway.test/v1"
# In-memory SQLite; get_engine pins it to one shared connection.
TEST_DATABASE_URL = "sqlite://"


def _clear_caches() -> None:
    get_settings.cache_clear()
    dependencies.get_gateway_client.cache_clear()
    dependencies.get_auth_provider.cache_clear()
    dependencies.get_change_feed.cache_clear()


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    monkeypatch.delenv("LOVABLE_API_KEY", raising=False)
    monkeypatch.delenv("SUPABASE_JWT_SECRET", raising=False)
    monkeypatch.setenv("AUTH_JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setenv("AI_GATEWAY_API_KEY", "test-gateway-key")
    monkeypatch.setenv("AI_GATEWAY_URL", GATEWAY_URL)
    monkeypatch.setenv("AI_MODEL", "test/coach-model")
    _clear_caches()
    yield
    _clear_caches()


def make_token(
    sub: str = "athlete-1",
    email: str | None = "athlete@example.com",
    *,
    expires_in: int = 3600,
    audience: str = "authenticated",
    secret: str = TEST_JWT_SECRET,
) -> str:
    claims = {"sub": sub, "aud": audience, "exp": int(time.time()) + expires_in}
    if email:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm="HS256")


def auth_headers(sub: str = "athlete-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(sub=sub)}"}


def sse_body(*deltas: str, done: bool = True) -> bytes:
    """Gateway-style event stream carrying ``deltas``."""
    lines = [
        "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": d}}]})
        for d in deltas
    ]
    if done:
        lines.append("data: [DONE]")
    return ("\n\n".join(lines) + "\n\n").encode("utf-8")


class GatewayStub:
    """Records gateway requests and answers with a canned response."""

    def __init__(self, status_code: int = 200, body: bytes | None = None, json_body=None):
        self.status_code = status_code
        self.body = body if body is not None else sse_body("Hello", ", champ.")
        self.json_body = json_body
        self.requests: list[httpx.Request] = []

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        headers = {"content-type": "text/event-stream"} if self.status_code == 200 else {}
        return httpx.Response(self.status_code, content=self.body, headers=headers)

    def client(self) -> AiGatewayClient:
        return AiGatewayClient(get_settings(), transport=httpx.MockTransport(self))


@pytest.fixture
def session_factory():
    engine = get_engine(TEST_DATABASE_URL)
    init_db(engine)
    yield get_sessionmaker(TEST_DATABASE_URL)
    engine.dispose()
    get_engine.cache_clear()


@pytest.fixture
def gateway() -> GatewayStub:
    return GatewayStub()


@pytest.fixture
def app(session_factory, gateway):
    app = create_app()

    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[dependencies.get_db] = _get_db
    app.dependency_overrides[dependencies.get_gateway_client] = gateway.client
    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
