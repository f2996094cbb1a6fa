"""Enums shared between the store and the view layer."""

from enum import StrEnum


class DisplayMode(StrEnum):
    """Which list the search screen currently shows."""

    DESTINATIONS = "DESTINATIONS"
    FAVORITES = "FAVORITES"
    SUGGESTIONS = "SUGGESTIONS"
    PROMPT = "PROMPT"
