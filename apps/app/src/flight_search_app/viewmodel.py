"""Search/selection state for the flight search screen.

The screen shows exactly one of four lists, chosen by precedence:

1. destinations from the selected departure airport,
2. saved favorites (blank search text, at least one favorite),
3. airport suggestions for the current search text,
4. a prompt to start searching.

All lists are fed by live queries, so favorites toggled anywhere show up
everywhere once the store re-emits.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from flight_search_core.schemas import AirportItem, DisplayMode, FavoriteItem

if TYPE_CHECKING:
    from collections.abc import Callable

    from flight_search_db.live import Subscription

    from .store import FlightStore

logger = logging.getLogger(__name__)


class DestinationRow(BaseModel):
    """One synthetic flight from the selected departure airport."""

    departure: AirportItem
    destination: AirportItem
    is_favorite: bool = False


class FavoriteRow(BaseModel):
    """A saved route whose endpoints resolve asynchronously."""

    favorite: FavoriteItem
    departure: AirportItem | None = None
    destination: AirportItem | None = None

    @property
    def is_resolved(self) -> bool:
        return self.departure is not None and self.destination is not None


class FlightSearchViewModel:
    """Holds search text and selection and derives the visible lists."""

    def __init__(self, store: FlightStore) -> None:
        self._store = store

        self.search_text = ""
        self.selected_departure: AirportItem | None = None
        self.suggestions: list[AirportItem] = []
        self.destinations: list[DestinationRow] = []
        self.favorites: list[FavoriteRow] = []

        self._favorites_sub: Subscription[list[FavoriteItem]] | None = None
        self._destinations_sub: Subscription[list[AirportItem]] | None = None
        self._destination_row_subs: dict[str, Subscription[bool]] = {}
        self._favorite_row_subs: dict[int, list[Subscription[AirportItem | None]]] = {}
        self._pending_writes: set[asyncio.Task[object]] = set()
        self._listeners: list[Callable[[FlightSearchViewModel], object]] = []

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        """Begin observing saved favorites."""
        if self._favorites_sub is None:
            self._favorites_sub = self._store.get_favorites().subscribe(
                self._on_favorites
            )

    async def close(self) -> None:
        """Release every subscription and wait for outstanding writes."""
        subs: list[Subscription] = [
            sub
            for sub in (self._favorites_sub, self._destinations_sub)
            if sub is not None
        ]
        subs.extend(self._destination_row_subs.values())
        for row_subs in self._favorite_row_subs.values():
            subs.extend(row_subs)

        self._favorites_sub = None
        self._favorite_row_subs.clear()
        self._clear_selection()
        await asyncio.gather(*(sub.aclose() for sub in subs))
        await self.wait_for_writes()

    async def __aenter__(self) -> FlightSearchViewModel:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -- observers ---------------------------------------------------------

    def add_listener(
        self, listener: Callable[[FlightSearchViewModel], object]
    ) -> Callable[[], None]:
        """Call *listener* after every state change.  Returns a remover."""
        self._listeners.append(listener)
        return functools.partial(self._remove_listener, listener)

    def _remove_listener(self, listener: Callable[[FlightSearchViewModel], object]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _changed(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("View model listener raised")

    # -- derived state -----------------------------------------------------

    @property
    def display_mode(self) -> DisplayMode:
        if self.selected_departure is not None:
            return DisplayMode.DESTINATIONS
        if not self.search_text.strip() and self.favorites:
            return DisplayMode.FAVORITES
        if self.search_text.strip():
            return DisplayMode.SUGGESTIONS
        return DisplayMode.PROMPT

    @property
    def visible_favorites(self) -> list[FavoriteRow]:
        """Favorites whose departure and destination airports both resolved."""
        return [row for row in self.favorites if row.is_resolved]

    # -- user input --------------------------------------------------------

    async def update_query(self, text: str) -> None:
        """Handle an edit of the search box."""
        self.search_text = text
        if self.selected_departure is not None:
            self._clear_selection()

        if not text.strip():
            self.suggestions = []
            self._changed()
            return

        self._changed()
        results = await self._store.search_airports(text)
        # A newer edit or a selection supersedes this result.
        if self.search_text != text or self.selected_departure is not None:
            logger.debug("Discarding stale suggestions for %r", text)
            return
        self.suggestions = results
        self._changed()

    async def select_airport(self, airport: AirportItem) -> None:
        """Commit *airport* as the departure and show its destinations."""
        self._clear_selection()
        self.selected_departure = airport
        self.search_text = airport.label
        self.suggestions = []
        self._destinations_sub = self._store.get_all_other_airports(
            airport.code
        ).subscribe(functools.partial(self._on_destinations, airport))
        self._changed()

    def toggle_favorite(self, row: DestinationRow) -> asyncio.Task[object]:
        """Flip the favorite state of *row* without waiting for the write.

        The row itself updates when its membership query re-emits.  The
        returned task may be awaited by callers that need the write done.
        """
        departure_code = row.departure.code
        destination_code = row.destination.code
        if row.is_favorite:
            write = self._store.delete_favorite(departure_code, destination_code)
        else:
            write = self._store.insert_favorite(departure_code, destination_code)

        task: asyncio.Task[object] = asyncio.create_task(write)
        self._pending_writes.add(task)
        task.add_done_callback(self._write_done)
        return task

    async def wait_for_writes(self) -> None:
        if self._pending_writes:
            await asyncio.gather(*self._pending_writes, return_exceptions=True)

    def _write_done(self, task: asyncio.Task[object]) -> None:
        self._pending_writes.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Favorite write failed: %s", task.exception())

    # -- destinations ------------------------------------------------------

    def _clear_selection(self) -> None:
        self.selected_departure = None
        if self._destinations_sub is not None:
            self._destinations_sub.close()
            self._destinations_sub = None
        for sub in self._destination_row_subs.values():
            sub.close()
        self._destination_row_subs.clear()
        self.destinations = []

    def _on_destinations(
        self, departure: AirportItem, airports: list[AirportItem]
    ) -> None:
        if self.selected_departure != departure:
            return

        existing = {row.destination.code: row for row in self.destinations}
        rows: list[DestinationRow] = []
        for airport in airports:
            row = existing.pop(airport.code, None)
            if row is None or row.destination != airport:
                row = DestinationRow(departure=departure, destination=airport)
                old = self._destination_row_subs.pop(airport.code, None)
                if old is not None:
                    old.close()
                self._destination_row_subs[airport.code] = self._store.is_favorite(
                    departure.code, airport.code
                ).subscribe(functools.partial(self._on_membership, row))
            rows.append(row)

        for code in existing:
            sub = self._destination_row_subs.pop(code, None)
            if sub is not None:
                sub.close()

        self.destinations = rows
        self._changed()

    def _on_membership(self, row: DestinationRow, is_favorite: bool) -> None:
        if row.is_favorite == is_favorite:
            return
        row.is_favorite = is_favorite
        self._changed()

    # -- favorites ---------------------------------------------------------

    def _on_favorites(self, favorites: list[FavoriteItem]) -> None:
        existing = {row.favorite.id: row for row in self.favorites}
        rows: list[FavoriteRow] = []
        for favorite in favorites:
            row = existing.pop(favorite.id, None)
            if row is None:
                row = FavoriteRow(favorite=favorite)
                self._favorite_row_subs[favorite.id] = [
                    self._store.get_airport_by_code(favorite.departure_code).subscribe(
                        functools.partial(self._on_endpoint, row, "departure")
                    ),
                    self._store.get_airport_by_code(
                        favorite.destination_code
                    ).subscribe(functools.partial(self._on_endpoint, row, "destination")),
                ]
            rows.append(row)

        for favorite_id in existing:
            for sub in self._favorite_row_subs.pop(favorite_id, []):
                sub.close()

        self.favorites = rows
        self._changed()

    def _on_endpoint(
        self, row: FavoriteRow, endpoint: str, airport: AirportItem | None
    ) -> None:
        setattr(row, endpoint, airport)
        self._changed()
