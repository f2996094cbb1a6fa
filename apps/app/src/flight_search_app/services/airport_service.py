"""Airport lookup service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, or_, select

from flight_search_core.schemas import AirportItem
from flight_search_db.models import Airport

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession


def like_pattern(query: str) -> str:
    """Wrap *query* for a substring ``LIKE``; caller wildcards pass through."""
    return f"%{query}%"


def to_item(airport: Airport) -> AirportItem:
    return AirportItem(
        id=airport.id,
        code=airport.iata_code,
        name=airport.name,
        passengers=airport.passengers,
    )


class AirportService:
    """Handles airport queries."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def search_airports(self, query: str) -> list[AirportItem]:
        """Airports whose code or name contains *query*, busiest first.

        Matching follows SQLite ``LIKE``, which is case-insensitive for
        ASCII letters.  Callers handle blank queries.
        """
        pattern = like_pattern(query)
        stmt = (
            select(Airport)
            .where(
                or_(
                    Airport.iata_code.like(pattern),
                    Airport.name.like(pattern),
                )
            )
            .order_by(Airport.passengers.desc(), Airport.id)
        )

        result = await self._db.execute(stmt)
        return [to_item(ap) for ap in result.scalars().all()]

    async def get_airport_by_code(self, code: str) -> AirportItem | None:
        """Exact code lookup; ``None`` when no airport has that code."""
        result = await self._db.execute(
            select(Airport).where(Airport.iata_code == code).order_by(Airport.id)
        )
        airport = result.scalars().first()
        return to_item(airport) if airport is not None else None

    async def get_all_other_airports(self, departure_code: str) -> list[AirportItem]:
        """Every airport except *departure_code*, in storage order."""
        result = await self._db.execute(
            select(Airport)
            .where(Airport.iata_code != departure_code)
            .order_by(Airport.id)
        )
        return [to_item(ap) for ap in result.scalars().all()]

    async def count_airports(self) -> int:
        result = await self._db.execute(select(func.count()).select_from(Airport))
        return result.scalar_one()
