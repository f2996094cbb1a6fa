"""Bundled database snapshot: first-launch copy and snapshot building."""

from __future__ import annotations

import json
import logging
import shutil
from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from flight_search_core.schemas import SeedAirport
from flight_search_db.database import create_engine, init_schema
from flight_search_db.models import Airport

from .services import AirportService

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_seed_adapter = TypeAdapter(list[SeedAirport])


def ensure_database(database_path: Path, snapshot_path: Path | None) -> bool:
    """Copy the bundled snapshot to *database_path* unless it already exists.

    Returns True when a copy was made.  Without a snapshot the database file
    is left to be created empty by the engine.
    """
    if database_path.exists():
        return False

    database_path.parent.mkdir(parents=True, exist_ok=True)
    if snapshot_path is None or not snapshot_path.exists():
        logger.warning(
            "No bundled snapshot at %s, starting with an empty database", snapshot_path
        )
        return False

    shutil.copyfile(snapshot_path, database_path)
    logger.info("Copied bundled snapshot %s -> %s", snapshot_path, database_path)
    return True


def read_seed(seed_path: Path) -> list[SeedAirport]:
    """Parse and validate the airport seed file."""
    with open(seed_path, encoding="utf-8") as f:
        data = json.load(f)

    airports = _seed_adapter.validate_python(data)

    seen: set[int] = set()
    for airport in airports:
        if airport.id in seen:
            msg = f"Duplicate airport id {airport.id} in {seed_path}"
            raise ValueError(msg)
        seen.add(airport.id)
    return airports


async def load_airports(session: AsyncSession, airports: list[SeedAirport]) -> int:
    """Load airports unless the table is already populated.  Returns the count."""
    existing = await AirportService(session).count_airports()
    if existing:
        logger.info("Airports already loaded (%d rows), skipping", existing)
        return existing

    session.add_all(
        Airport(
            id=item.id,
            iata_code=item.iata_code,
            name=item.name,
            passengers=item.passengers,
        )
        for item in airports
    )
    await session.flush()
    logger.info("Loaded %d airports", len(airports))
    return len(airports)


async def build_snapshot(seed_path: Path, output_path: Path, *, force: bool = False) -> int:
    """Create the bundled snapshot at *output_path* from the seed file."""
    airports = read_seed(seed_path)

    if output_path.exists():
        if not force:
            msg = f"Snapshot {output_path} already exists (use force to rebuild)"
            raise FileExistsError(msg)
        output_path.unlink()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(output_path)
    try:
        await init_schema(engine)
        async with AsyncSession(engine, expire_on_commit=False) as session:
            count = await load_airports(session, airports)
            await session.commit()
    finally:
        await engine.dispose()
    return count
