"""
mdsnips: Database Engine & Session Management
===============================================

What:  Async SQLAlchemy engine factory, session factory, declarative base and
       the startup connectivity check.
How:   The process bootstrap (main.lifespan) builds exactly one engine and one
       session factory, then hands the factory to the SnippetStore and the
       AccessGuard. Nothing in the core reaches for a module-level engine.
Who:   main.py (bootstrap), the services layer (session factory type),
       alembic/env.py (Base.metadata), the test suite.

Connection Pooling:
    pool_size / max_overflow come from settings; pool_pre_ping validates
    connections before use; pool_recycle=3600 recycles hour-old connections.
    The engine and its pool are safe for concurrent use by many requests.
"""

import logging

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mdsnips.config import Settings

logger = logging.getLogger(__name__)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, used by SnippetStore.ensure_indexes()
    and by Alembic for migrations.
    """
    pass


# ── Engine Factory ────────────────────────────────────────────────────────
def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Build the process-wide async engine.

    Pool sizing only applies to server databases; SQLite (used by the test
    suite and for local experiments) runs on SQLAlchemy's default pool.
    """
    options = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.database_url.startswith("sqlite"):
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory shared by every store operation.

    expire_on_commit=False keeps loaded attributes readable after the
    per-operation transaction has committed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Startup Connectivity Check ────────────────────────────────────────────
async def ping(engine: AsyncEngine) -> None:
    """Runs SELECT 1 on a pooled connection. Raises on any failure."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def wait_for_database(engine: AsyncEngine, settings: Settings) -> None:
    """
    Block startup until the database answers, or give up.

    What:    Pings the database with exponential backoff.
    When:    Once, from the application lifespan, before any store is built.
    Raises:  The last connection error after db_connect_attempts failures.

    This is the only place that retries. Store and guard operations fail
    immediately and leave retry policy to their callers.
    """

    @retry(
        retry=retry_if_exception_type((SQLAlchemyError, OSError)),
        stop=stop_after_attempt(settings.db_connect_attempts),
        wait=wait_exponential(multiplier=settings.db_connect_wait, max=30),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _ping_with_retry() -> None:
        await ping(engine)

    await _ping_with_retry()
    logger.info("Database connection established")


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine(engine: AsyncEngine) -> None:
    """Closes every pooled connection. Called during application shutdown."""
    await engine.dispose()
