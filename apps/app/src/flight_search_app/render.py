"""Plain-text rendering of the search screen."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flight_search_core.schemas import DisplayMode

if TYPE_CHECKING:
    from flight_search_core.schemas import AirportItem

    from .viewmodel import DestinationRow, FavoriteRow, FlightSearchViewModel

PROMPT_TEXT = "Search for flights by entering the departure airport in the search box."


def format_flight(departure: AirportItem, destination: AirportItem) -> str:
    return f"Depart: {departure.label}  →  Arrive: {destination.label}"


def format_destination(index: int, row: DestinationRow) -> str:
    marker = "★" if row.is_favorite else "☆"
    return f"  {index}. {marker} {format_flight(row.departure, row.destination)}"


def format_favorite(index: int, row: FavoriteRow) -> str:
    if row.departure is None or row.destination is None:
        return f"  {index}. Loading favorite flight..."
    return f"  {index}. ★ {format_flight(row.departure, row.destination)}"


def render_screen(vm: FlightSearchViewModel) -> list[str]:
    """Lines describing whatever the screen currently shows."""
    lines = [f"Search: {vm.search_text}", ""]
    mode = vm.display_mode

    departure = vm.selected_departure
    if mode is DisplayMode.DESTINATIONS and departure is not None:
        lines.append(f"Flights from {departure.label}")
        lines.extend(
            format_destination(i, row) for i, row in enumerate(vm.destinations, 1)
        )
    elif mode is DisplayMode.FAVORITES:
        lines.append("Favorite Flights")
        lines.extend(
            format_favorite(i, row) for i, row in enumerate(vm.favorites, 1)
        )
    elif mode is DisplayMode.SUGGESTIONS:
        if not vm.suggestions:
            lines.append("No matching airports.")
        lines.extend(
            f"  {i}. {airport.label}" for i, airport in enumerate(vm.suggestions, 1)
        )
    else:
        lines.append(PROMPT_TEXT)
    return lines
