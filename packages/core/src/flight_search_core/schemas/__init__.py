"""Core schemas for Flight Search."""

from .airport import AirportItem, SeedAirport
from .enums import DisplayMode
from .favorite import FavoriteItem

__all__ = [
    "AirportItem",
    "DisplayMode",
    "FavoriteItem",
    "SeedAirport",
]
