"""Database configuration and session management.

This module constructs an asynchronous SQLAlchemy engine and session
factory for the application.  The connection string comes from
``DATABASE_URL``.  PostgreSQL URLs are normalised to the async psycopg
driver and plain SQLite URLs to aiosqlite.  When no URL is configured a
local SQLite database may be used in development if
``DB_DEV_FALLBACK_SQLITE`` is enabled; otherwise the first attempt to
open a session fails loudly.

The engine is created lazily so that importing the API (for example in
tests that override ``get_db``) never requires a reachable database.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import event
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from receipt_keeper.core.config import Settings, settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite+aiosqlite:///./receipt_keeper.db"

# Declarative base
Base = declarative_base()

engine: Optional[AsyncEngine] = None
AsyncSessionLocal: Optional[async_sessionmaker[AsyncSession]] = None


def resolve_database_url(cfg: Settings = settings) -> str:
    """Return the async connection string to use for ``cfg``.

    Raises ``RuntimeError`` when no URL is configured and the SQLite
    development fallback is disabled.
    """
    db_url = cfg.DATABASE_URL
    if not db_url:
        if not (cfg.DB_DEV_FALLBACK_SQLITE and cfg.is_development):
            raise RuntimeError(
                "No database URL provided via DATABASE_URL; set it to a Postgres URL "
                "or enable DB_DEV_FALLBACK_SQLITE in development."
            )
        logger.warning("DATABASE_URL unset; using SQLite fallback %s", SQLITE_FALLBACK_URL)
        return SQLITE_FALLBACK_URL

    url_obj = make_url(db_url)
    driver = url_obj.drivername or ""
    # SQLite: upgrade to aiosqlite
    if driver == "sqlite":
        url_obj = url_obj.set(drivername="sqlite+aiosqlite")
    # PostgreSQL: normalise to the async psycopg driver
    elif driver in {"postgresql", "postgres", "postgresql+psycopg2", "postgresql+asyncpg"}:
        url_obj = url_obj.set(drivername="postgresql+psycopg")
    return url_obj.render_as_string(hide_password=False)


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """Turn on FK enforcement for every SQLite connection of ``async_engine``.

    SQLite ignores ``ON DELETE CASCADE`` unless the pragma is set per
    connection.  No-op for other dialects.
    """
    if async_engine.dialect.name != "sqlite":
        return

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for ``db_url`` with the app's pool settings."""
    engine_kwargs: dict[str, Any] = dict(echo=echo, pool_pre_ping=True)
    new_engine = create_async_engine(db_url, **engine_kwargs)
    enable_sqlite_foreign_keys(new_engine)
    return new_engine


def get_engine() -> AsyncEngine:
    """Return the process-wide engine, creating it on first use."""
    global engine, AsyncSessionLocal
    if engine is None:
        db_url = resolve_database_url(settings)
        logger.info("Creating async engine for %s", make_url(db_url).render_as_string(hide_password=True))
        engine = build_engine(db_url, echo=settings.DB_ECHO)
        AsyncSessionLocal = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    get_engine()
    assert AsyncSessionLocal is not None
    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that yields a database session.

    This function is intended for FastAPI dependency injection.  Each
    session is scoped to the request and closed after use.
    """
    async with get_sessionmaker()() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_db(target: Optional[AsyncEngine] = None) -> None:
    """Create all tables defined on the declarative ``Base``.

    Typically called during application startup in development; use the
    Alembic revisions for managed databases.
    """
    # Import all models to ensure metadata is populated
    from receipt_keeper.models import tables  # noqa: F401

    async with (target or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections held by the process-wide engine."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
    engine = None
    AsyncSessionLocal = None
