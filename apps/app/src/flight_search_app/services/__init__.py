from .airport_service import AirportService
from .favorite_service import FavoriteService

__all__ = ["AirportService", "FavoriteService"]
