"""Favorite route DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class FavoriteItem(BaseModel):
    """A saved departure/destination pair."""

    model_config = ConfigDict(frozen=True)

    id: int
    departure_code: str
    destination_code: str

    @property
    def route(self) -> tuple[str, str]:
        return self.departure_code, self.destination_code
