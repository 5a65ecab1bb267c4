"""Persistence: async engine, session factory, and Base for SQLAlchemy ORM.

The engine and session factory are created explicitly by init_engine()
(called from the lifespan at startup) and torn down by dispose_engine()
at shutdown. Request sessions come from the session factory returned by init_engine().
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from flagaccess.core.config import Settings, get_settings
from flagaccess.domain.exceptions import SqlNotConfiguredException
from flagaccess.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

engine: AsyncEngine | None = None
AsyncSessionLocal: async_sessionmaker[AsyncSession] | None = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy declarative models."""


def _on_sqlite_connect(dbapi_connection: Any, _record: Any) -> None:
    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave (see _on_sqlite_begin).
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _on_sqlite_begin(conn: Any) -> None:
    conn.exec_driver_sql("BEGIN")


def _is_memory_sqlite(url: str) -> bool:
    path = url.split("://", 1)[1] if "://" in url else ""
    return path in ("", "/") or ":memory:" in path


def build_engine(settings: Settings) -> AsyncEngine:
    """Create an AsyncEngine for settings.database_url.

    In-memory SQLite shares one connection (StaticPool) so every session
    sees the same database; server databases get a sized pool.
    """
    url = settings.database_url
    if url.startswith("sqlite"):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if _is_memory_sqlite(url):
            kwargs["poolclass"] = StaticPool
        new_engine = create_async_engine(url, echo=settings.database_echo, **kwargs)
        event.listen(new_engine.sync_engine, "connect", _on_sqlite_connect)
        event.listen(new_engine.sync_engine, "begin", _on_sqlite_begin)
        return new_engine
    pool_size = settings.db_pool_size if settings.db_pool_size is not None else 20
    max_overflow = (
        settings.db_max_overflow if settings.db_max_overflow is not None else 30
    )
    return create_async_engine(
        url,
        echo=settings.database_echo,
        pool_pre_ping=True,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=3600,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def init_engine(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Create the process-wide engine and session factory (idempotent)."""
    global engine, AsyncSessionLocal
    if AsyncSessionLocal is not None:
        return AsyncSessionLocal
    engine = build_engine(settings or get_settings())
    AsyncSessionLocal = build_session_factory(engine)
    return AsyncSessionLocal


async def create_schema() -> None:
    """Create all tables (development and tests; production uses migrations)."""
    from flagaccess.infrastructure.persistence import models  # noqa: F401

    if engine is None:
        raise SqlNotConfiguredException()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close pooled connections and forget the engine."""
    global engine, AsyncSessionLocal
    if engine is not None:
        await engine.dispose()
        logger.info("Database engine disposed")
    engine = None
    AsyncSessionLocal = None

