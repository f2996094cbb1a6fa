"""Flight store: the query surface consumed by the view layer."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from flight_search_db.database import (
    create_engine,
    create_session_factory,
    init_schema,
    session_scope,
)
from flight_search_db.live import LiveQuery
from flight_search_db.notifier import ChangeNotifier

from .services import AirportService, FavoriteService
from .snapshot import ensure_database, load_airports, read_seed

if TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine

    from flight_search_core.schemas import AirportItem, FavoriteItem

    from .config import AppSettings

logger = logging.getLogger(__name__)

AIRPORT_TABLES = ("airport",)
FAVORITE_TABLES = ("favorite",)


class FlightStore:
    """Airport lookups and favorite management over one SQLite database.

    Construct one store per database and pass it to whatever needs it.
    Writes are serialized through a single lock (one writer at a time);
    reads run concurrently on pooled connections.  Every committed write
    wakes the live queries reading the affected table.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self.notifier = ChangeNotifier()
        self._session_factory = create_session_factory(engine, self.notifier)
        self._write_lock = asyncio.Lock()
        self._closed = False

    @classmethod
    async def open(cls, settings: AppSettings) -> FlightStore:
        """Bootstrap the database file from the snapshot and open a store.

        An empty ``airport`` table (no snapshot at first launch) is filled
        from the seed file.
        """
        ensure_database(settings.database_path, settings.snapshot_path)
        engine = create_engine(settings.database_path, echo=settings.echo_sql)
        await init_schema(engine)
        store = cls(engine)
        try:
            await store._ensure_airports(settings.seed_path)
        except Exception:
            await store.close()
            raise
        logger.info("Opened flight store at %s", settings.database_path)
        return store

    async def _ensure_airports(self, seed_path: Path) -> None:
        async with self._write_lock, session_scope(self._session_factory) as session:
            if await AirportService(session).count_airports():
                return
            if not seed_path.exists():
                logger.warning("No airports loaded and no seed file at %s", seed_path)
                return
            await load_airports(session, read_seed(seed_path))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()

    async def __aenter__(self) -> FlightStore:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _check_open(self) -> None:
        if self._closed:
            msg = "Flight store is closed"
            raise RuntimeError(msg)

    # -- airports ----------------------------------------------------------

    async def search_airports(self, query: str) -> list[AirportItem]:
        """Airports whose code or name contains *query*; blank → ``[]``."""
        self._check_open()
        if not query.strip():
            return []
        async with session_scope(self._session_factory) as session:
            return await AirportService(session).search_airports(query)

    def get_airport_by_code(self, code: str) -> LiveQuery[AirportItem | None]:
        async def fetch() -> AirportItem | None:
            self._check_open()
            async with session_scope(self._session_factory) as session:
                return await AirportService(session).get_airport_by_code(code)

        return LiveQuery(self.notifier, AIRPORT_TABLES, fetch, name=f"airport:{code}")

    def get_all_other_airports(self, departure_code: str) -> LiveQuery[list[AirportItem]]:
        async def fetch() -> list[AirportItem]:
            self._check_open()
            async with session_scope(self._session_factory) as session:
                return await AirportService(session).get_all_other_airports(
                    departure_code
                )

        return LiveQuery(
            self.notifier,
            AIRPORT_TABLES,
            fetch,
            name=f"destinations:{departure_code}",
        )

    # -- favorites ---------------------------------------------------------

    def get_favorites(self) -> LiveQuery[list[FavoriteItem]]:
        async def fetch() -> list[FavoriteItem]:
            self._check_open()
            async with session_scope(self._session_factory) as session:
                return await FavoriteService(session).get_favorites()

        return LiveQuery(self.notifier, FAVORITE_TABLES, fetch, name="favorites")

    def is_favorite(self, departure_code: str, destination_code: str) -> LiveQuery[bool]:
        async def fetch() -> bool:
            self._check_open()
            async with session_scope(self._session_factory) as session:
                return await FavoriteService(session).is_favorite(
                    departure_code, destination_code
                )

        return LiveQuery(
            self.notifier,
            FAVORITE_TABLES,
            fetch,
            name=f"is-favorite:{departure_code}-{destination_code}",
        )

    async def insert_favorite(self, departure_code: str, destination_code: str) -> None:
        """Save a route; saving an already saved route does nothing."""
        self._check_open()
        async with self._write_lock, session_scope(self._session_factory) as session:
            await FavoriteService(session).insert_favorite(
                departure_code, destination_code
            )

    async def delete_favorite(self, departure_code: str, destination_code: str) -> int:
        """Remove a saved route.  Returns how many rows were removed (0 or 1)."""
        self._check_open()
        async with self._write_lock, session_scope(self._session_factory) as session:
            return await FavoriteService(session).delete_favorite(
                departure_code, destination_code
            )
