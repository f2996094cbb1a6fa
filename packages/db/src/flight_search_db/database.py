"""Async database engine and session configuration."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .models import Base
from .notifier import NOTIFIER_KEY, TrackingSession

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    from .notifier import ChangeNotifier

logger = logging.getLogger(__name__)


def sqlite_url(path: Path) -> str:
    """Return the aiosqlite URL for a database file."""
    return f"sqlite+aiosqlite:///{path}"


def create_engine(path: Path, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the SQLite file at *path*."""
    engine = create_async_engine(sqlite_url(path), echo=echo)

    @event.listens_for(engine.sync_engine, "connect")
    def _configure_connection(dbapi_connection: Any, connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        # Readers keep working while the single writer holds its lock.
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    return engine


def create_session_factory(
    engine: AsyncEngine,
    notifier: ChangeNotifier,
) -> async_sessionmaker[AsyncSession]:
    """Session factory whose commits are published through *notifier*."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        sync_session_class=TrackingSession,
        expire_on_commit=False,
        info={NOTIFIER_KEY: notifier},
    )


async def init_schema(engine: AsyncEngine) -> None:
    """Create any missing tables (existing snapshot tables are left alone)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Schema ensured for %s", engine.url)


@contextlib.asynccontextmanager
async def session_scope(
    factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
