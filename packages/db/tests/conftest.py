"""Shared fixtures for database layer tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from flight_search_db.database import create_engine, create_session_factory, init_schema
from flight_search_db.models import Airport
from flight_search_db.notifier import ChangeNotifier

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker


@pytest.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine]:
    """Engine on a fresh SQLite file with the schema created."""
    engine = create_engine(tmp_path / "flight_search.db")
    await init_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def session_factory(
    engine: AsyncEngine, notifier: ChangeNotifier
) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine, notifier)


@pytest.fixture
async def seeded(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Load three airports."""
    async with session_factory() as session:
        session.add_all(
            [
                Airport(id=1, iata_code="JFK", name="John F Kennedy", passengers=500),
                Airport(id=2, iata_code="LAX", name="Los Angeles", passengers=400),
                Airport(id=3, iata_code="ORD", name="O'Hare", passengers=300),
            ]
        )
        await session.commit()


@pytest.fixture
def wait_until() -> Callable[..., object]:
    """Poll a predicate until it holds (fails the test after *timeout*)."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async with asyncio.timeout(timeout):
            while not predicate():
                await asyncio.sleep(0.01)

    return _wait
