"""Shared fixtures for store, view model and CLI tests."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING

import pytest

from flight_search_app.config import AppSettings
from flight_search_app.snapshot import build_snapshot
from flight_search_app.store import FlightStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from pathlib import Path

SEED_AIRPORTS = [
    {"id": 1, "iata_code": "JFK", "name": "John F Kennedy", "passengers": 500},
    {"id": 2, "iata_code": "LAX", "name": "Los Angeles", "passengers": 400},
    {"id": 3, "iata_code": "ORD", "name": "O'Hare", "passengers": 300},
    {"id": 4, "iata_code": "SFO", "name": "San Francisco", "passengers": 450},
    {"id": 5, "iata_code": "JAX", "name": "Jacksonville", "passengers": 100},
]


@pytest.fixture
def seed_file(tmp_path: Path) -> Path:
    path = tmp_path / "seed" / "airports.json"
    path.parent.mkdir()
    path.write_text(json.dumps(SEED_AIRPORTS), encoding="utf-8")
    return path


@pytest.fixture
def app_settings(tmp_path: Path, seed_file: Path) -> AppSettings:
    """Settings pointing at a snapshot built from :data:`SEED_AIRPORTS`."""
    snapshot = tmp_path / "bundle" / "flight_search.db"
    asyncio.run(build_snapshot(seed_file, snapshot))
    return AppSettings(
        database_path=tmp_path / "var" / "flight_search.db",
        snapshot_path=snapshot,
        seed_path=seed_file,
    )


@pytest.fixture
async def store(tmp_path: Path, seed_file: Path) -> AsyncGenerator[FlightStore]:
    snapshot = tmp_path / "bundle" / "flight_search.db"
    await build_snapshot(seed_file, snapshot)
    settings = AppSettings(
        database_path=tmp_path / "var" / "flight_search.db",
        snapshot_path=snapshot,
        seed_path=seed_file,
    )
    store = await FlightStore.open(settings)
    yield store
    await store.close()


@pytest.fixture
def wait_until() -> Callable[..., object]:
    """Poll a predicate until it holds (fails the test after *timeout*)."""

    async def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        async with asyncio.timeout(timeout):
            while not predicate():
                await asyncio.sleep(0.01)

    return _wait


@pytest.fixture
def seed_airports() -> list[dict]:
    return SEED_AIRPORTS
