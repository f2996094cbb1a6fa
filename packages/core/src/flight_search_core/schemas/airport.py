"""Airport DTOs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class AirportItem(BaseModel):
    """Single airport entry as seen by the view layer."""

    model_config = ConfigDict(frozen=True)

    id: int
    code: str = Field(description="IATA airport code")
    name: str
    passengers: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def label(self) -> str:
        """Display label, e.g. ``John F Kennedy (JFK)``."""
        return f"{self.name} ({self.code})"


class SeedAirport(BaseModel):
    """Airport record as stored in the seed dataset."""

    id: int = Field(ge=1)
    iata_code: str = Field(min_length=3, max_length=3)
    name: str = Field(min_length=1)
    passengers: int = Field(ge=0)

    @field_validator("iata_code")
    @classmethod
    def _validate_code(cls, value: str) -> str:
        if not (value.isascii() and value.isalpha() and value.isupper()):
            msg = f"IATA code must be three upper-case letters, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not value.strip():
            msg = "Airport name must not be blank"
            raise ValueError(msg)
        return value
