"""Allow ``python -m flight_search_app``."""

from .cli import cli

cli()
