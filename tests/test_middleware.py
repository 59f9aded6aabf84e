"""
mdsnips: Middleware Tests
===========================

What we test:
    ✅ Rate limit: writes over the limit get 429 + Retry-After
    ✅ Rate limit: reads are never limited; clients are bucketed separately
    ✅ Basic auth: challenge on missing/wrong credentials, pass-through when correct
    ✅ Basic auth: /health is reachable without credentials
    ✅ Authorization header parsing
"""

import base64

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from mdsnips.middleware.basic_auth import BasicAuthMiddleware, parse_basic_credentials
from mdsnips.middleware.rate_limit import RateLimitMiddleware


def _basic(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _small_app() -> FastAPI:
    app = FastAPI()

    @app.post("/md")
    async def create():
        return {"ok": True}

    @app.get("/md")
    async def read():
        return {"ok": True}

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


@pytest.fixture
def rate_limited_app():
    app = _small_app()
    app.add_middleware(RateLimitMiddleware, max_requests=2, window_seconds=60)
    return app


@pytest.fixture
def protected_app():
    app = _small_app()
    app.add_middleware(BasicAuthMiddleware, username="alice", password="s3cret")
    return app


async def _client(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_writes_over_limit_are_rejected(self, rate_limited_app):
        async with await _client(rate_limited_app) as client:
            first = await client.post("/md")
            second = await client.post("/md")
            third = await client.post("/md")

        assert first.status_code == 200
        assert second.status_code == 200
        assert third.status_code == 429
        assert third.json()["error"] == "rate_limit_exceeded"
        assert 0 < int(third.headers["Retry-After"]) <= 61

    @pytest.mark.asyncio
    async def test_reads_are_not_limited(self, rate_limited_app):
        async with await _client(rate_limited_app) as client:
            responses = [await client.get("/md") for _ in range(10)]

        assert all(r.status_code == 200 for r in responses)

    @pytest.mark.asyncio
    async def test_clients_are_limited_independently(self, rate_limited_app):
        async with await _client(rate_limited_app) as client:
            for _ in range(2):
                await client.post("/md", headers={"X-Forwarded-For": "10.0.0.1"})
            blocked = await client.post("/md", headers={"X-Forwarded-For": "10.0.0.1"})
            other = await client.post("/md", headers={"X-Forwarded-For": "10.0.0.2, 172.16.0.1"})

        assert blocked.status_code == 429
        assert other.status_code == 200


class TestBasicAuth:

    @pytest.mark.asyncio
    async def test_missing_credentials_get_challenge(self, protected_app):
        async with await _client(protected_app) as client:
            response = await client.get("/md")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == 'Basic realm="Forbidden"'

    @pytest.mark.asyncio
    async def test_wrong_password_is_rejected(self, protected_app):
        async with await _client(protected_app) as client:
            response = await client.get("/md", headers={"Authorization": _basic("alice", "nope")})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_correct_credentials_pass(self, protected_app):
        async with await _client(protected_app) as client:
            response = await client.post("/md", headers={"Authorization": _basic("alice", "s3cret")})

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_is_open(self, protected_app):
        async with await _client(protected_app) as client:
            response = await client.get("/health")

        assert response.status_code == 200


class TestParseBasicCredentials:

    def test_valid_header(self):
        assert parse_basic_credentials(_basic("alice", "pa:ss")) == ("alice", "pa:ss")

    @pytest.mark.parametrize(
        "header",
        [None, "", "Bearer abc", "Basic", "Basic !!!notbase64", "Basic " + base64.b64encode(b"nocolon").decode()],
    )
    def test_malformed_headers(self, header):
        assert parse_basic_credentials(header) is None
