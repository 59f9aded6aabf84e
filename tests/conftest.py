"""
mdsnips: Test Configuration (conftest.py)
===========================================

What:  Shared pytest fixtures for the whole suite.
How:   A file-backed SQLite database (aiosqlite) stands in for PostgreSQL,
       so the real SnippetStore and AccessGuard run against real SQL. Failure
       paths use a mocked session factory instead.

Fixture Hierarchy (all function-scoped):
    ├── engine / session_factory: fresh SQLite database per test
    ├── snippet_store: SnippetStore with the schema ensured
    ├── access_guard: AccessGuard on the same database
    ├── failing_session_factory: factory whose session.execute is injectable
    ├── api_app: FastAPI app wired to the fixtures above
    └── test_client: HTTPX AsyncClient talking to api_app
"""

import os

# Settings are read at import time: configure the environment before any
# mdsnips import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./mdsnips_test.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
for _name in ("MDSNIPS_USER", "MDSNIPS_PASS", "BASIC_AUTH_USER", "BASIC_AUTH_PASS"):
    os.environ.pop(_name, None)

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from mdsnips.database import create_session_factory
from mdsnips.services.access_guard import AccessGuard
from mdsnips.services.snippet_store import SnippetStore


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'mdsnips.db'}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def snippet_store(session_factory):
    store = SnippetStore(session_factory)
    await store.ensure_indexes()
    return store


@pytest.fixture
def access_guard(session_factory, snippet_store):
    return AccessGuard(session_factory)


@pytest.fixture
def failing_session_factory():
    """
    Session factory returning one mocked AsyncSession.

    Usage:
        factory, session = failing_session_factory
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    """
    session = AsyncMock()
    session.add = MagicMock()
    session.begin = MagicMock()
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    return factory, session


@pytest.fixture
def api_app(engine, snippet_store, access_guard):
    from mdsnips.main import create_app

    app = create_app()
    app.state.engine = engine
    app.state.snippet_store = snippet_store
    app.state.access_guard = access_guard
    return app


@pytest_asyncio.fixture
async def test_client(api_app):
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
