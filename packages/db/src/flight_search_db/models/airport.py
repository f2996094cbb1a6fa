"""Airport model."""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Airport(Base):
    """Airport table - immutable reference data shipped in the snapshot."""

    __tablename__ = "airport"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    iata_code: Mapped[str] = mapped_column(String(3), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    passengers: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<Airport {self.iata_code} ({self.name})>"
