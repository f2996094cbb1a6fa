"""Favorite route model."""

from __future__ import annotations

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Favorite(Base):
    """Favorite table - user-saved departure/destination pairs."""

    __tablename__ = "favorite"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    departure_code: Mapped[str] = mapped_column(String(3), nullable=False)
    destination_code: Mapped[str] = mapped_column(String(3), nullable=False)

    __table_args__ = (
        Index(
            "ux_favorite_route",
            "departure_code",
            "destination_code",
            unique=True,
        ),
    )

    def __repr__(self) -> str:
        return f"<Favorite {self.departure_code}-{self.destination_code}>"
