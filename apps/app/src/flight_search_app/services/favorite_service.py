"""Favorite route service."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, exists, insert, literal, select

from flight_search_core.schemas import FavoriteItem
from flight_search_db.models import Favorite

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def _route_clause(departure_code: str, destination_code: str) -> ColumnElement[bool]:
    return (Favorite.departure_code == departure_code) & (
        Favorite.destination_code == destination_code
    )


class FavoriteService:
    """Handles favorite route reads and writes."""

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def get_favorites(self) -> list[FavoriteItem]:
        """All favorites in insertion order."""
        result = await self._db.execute(select(Favorite).order_by(Favorite.id))
        return [
            FavoriteItem(
                id=fav.id,
                departure_code=fav.departure_code,
                destination_code=fav.destination_code,
            )
            for fav in result.scalars().all()
        ]

    async def insert_favorite(self, departure_code: str, destination_code: str) -> None:
        """Save a route; an already saved route is left untouched."""
        already_saved = exists().where(_route_clause(departure_code, destination_code))
        stmt = insert(Favorite).from_select(
            ["departure_code", "destination_code"],
            select(literal(departure_code), literal(destination_code)).where(
                ~already_saved
            ),
        )
        result = await self._db.execute(stmt)
        if result.rowcount == 0:
            logger.debug(
                "Favorite %s-%s already saved", departure_code, destination_code
            )

    async def delete_favorite(self, departure_code: str, destination_code: str) -> int:
        """Remove a saved route.  Returns the number of rows removed."""
        result = await self._db.execute(
            delete(Favorite).where(_route_clause(departure_code, destination_code))
        )
        return result.rowcount

    async def is_favorite(self, departure_code: str, destination_code: str) -> bool:
        result = await self._db.execute(
            select(exists().where(_route_clause(departure_code, destination_code)))
        )
        return bool(result.scalar())
