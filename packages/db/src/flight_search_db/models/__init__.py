"""SQLAlchemy ORM models for Flight Search."""

from .airport import Airport
from .base import Base
from .favorite import Favorite

__all__ = [
    "Airport",
    "Base",
    "Favorite",
]
