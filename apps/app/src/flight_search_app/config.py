"""Application configuration via environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Settings loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_prefix="FLIGHT_SEARCH_", env_file=".env", extra="ignore"
    )

    # Writable database, created from the snapshot on first launch
    database_path: Path = Path("var/flight_search.db")

    # Read-only snapshot bundled with the application
    snapshot_path: Path = Path("data/flight_search.db")

    # Airport reference data used to build the snapshot
    seed_path: Path = Path("data/seed/airports.json")

    echo_sql: bool = False
    log_level: str = "INFO"


settings = AppSettings()
