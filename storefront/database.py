"""Database configuration used across the application."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from .config import ConfigError

_ASYNC_POSTGRES_DRIVER = "postgresql+psycopg_async"
_POSTGRES_DRIVERS = {"postgres", "postgresql", "postgresql+psycopg", _ASYNC_POSTGRES_DRIVER}
_ASYNC_SQLITE_DRIVER = "sqlite+aiosqlite"
_SQLITE_DRIVERS = {"sqlite", _ASYNC_SQLITE_DRIVER}

# Base class for all ORM models
Base = declarative_base()


def normalise_database_url(url: str) -> URL:
    """Return ``url`` rewritten for an async driver.

    PostgreSQL URLs are switched to psycopg's async driver and SQLite URLs to
    aiosqlite; anything else is rejected.
    """

    try:
        parsed = make_url(url)
    except Exception as exc:  # sqlalchemy raises ArgumentError subclasses
        raise ConfigError("DATABASE_URL is not a valid connection string") from exc
    if parsed.drivername in _POSTGRES_DRIVERS:
        return parsed.set(drivername=_ASYNC_POSTGRES_DRIVER)
    if parsed.drivername in _SQLITE_DRIVERS:
        return parsed.set(drivername=_ASYNC_SQLITE_DRIVER)
    raise ConfigError(
        "DATABASE_URL must use a PostgreSQL ('postgresql', 'postgresql+psycopg') "
        "or SQLite ('sqlite', 'sqlite+aiosqlite') driver"
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Own the async engine and session factory for one application instance."""

    def __init__(self, url: str) -> None:
        self.url = normalise_database_url(url)
        if self.url.drivername == _ASYNC_SQLITE_DRIVER:
            self.engine: AsyncEngine = create_async_engine(self.url)
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_async_engine(
                self.url,
                pool_size=10,
                max_overflow=20,
                pool_timeout=30,
                pool_recycle=1800,
                pool_pre_ping=True,
            )
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        from . import models  # noqa: F401 - registers tables on the metadata

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_async_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session for a single request."""

    database: Database = request.app.state.database
    async with database.session_factory() as session:
        yield session
