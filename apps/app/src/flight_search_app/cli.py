"""Terminal front-end for the flight search store and screen state."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from .config import settings
from .render import format_flight, render_screen
from .snapshot import build_snapshot
from .store import FlightStore
from .viewmodel import FlightSearchViewModel

if TYPE_CHECKING:
    from flight_search_core.schemas import AirportItem

logger = logging.getLogger(__name__)

SHELL_HELP = (
    "Type to search departure airports. Commands: "
    ":select N, :toggle N, :clear, :help, :quit"
)


async def _lookup(store: FlightStore, code: str) -> AirportItem | None:
    airport = await store.get_airport_by_code(code.upper()).get()
    if airport is None:
        click.echo(f"Unknown airport code: {code}", err=True)
    return airport


@click.group()
@click.option("--log-level", default=None, help="Override the configured log level")
def cli(log_level: str | None) -> None:
    """Flight Search CLI."""
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(levelname)s: %(message)s",
    )


@cli.command("build-snapshot")
@click.option(
    "--seed",
    "seed_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Airport seed JSON",
)
@click.option(
    "--output",
    "output_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Snapshot file to write",
)
@click.option("--force", is_flag=True, help="Overwrite an existing snapshot")
def build_snapshot_cmd(
    seed_path: Path | None, output_path: Path | None, force: bool
) -> None:
    """Build the bundled database snapshot from the seed data."""
    seed_path = seed_path or settings.seed_path
    output_path = output_path or settings.snapshot_path
    try:
        count = asyncio.run(build_snapshot(seed_path, output_path, force=force))
    except (FileExistsError, FileNotFoundError, ValueError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Snapshot {output_path} contains {count} airport(s).")


@cli.command("search")
@click.argument("query")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def search(query: str, json_output: bool) -> None:
    """Search departure airports by code or name."""

    async def _run() -> list[AirportItem]:
        async with await FlightStore.open(settings) as store:
            return await store.search_airports(query)

    airports = asyncio.run(_run())
    if json_output:
        click.echo(json.dumps([a.model_dump(mode="json") for a in airports], indent=2))
        return
    if not airports:
        click.echo("No matching airports.")
        return
    for i, airport in enumerate(airports, 1):
        click.echo(f"  {i}. {airport.label} | {airport.passengers:,} passengers")


@cli.command("destinations")
@click.argument("code")
def destinations(code: str) -> None:
    """List flights from CODE to every other airport."""

    async def _run() -> list[str] | None:
        async with await FlightStore.open(settings) as store:
            departure = await _lookup(store, code)
            if departure is None:
                return None
            lines = [f"Flights from {departure.label}"]
            others = await store.get_all_other_airports(departure.code).get()
            for i, destination in enumerate(others, 1):
                saved = await store.is_favorite(departure.code, destination.code).get()
                marker = "★" if saved else "☆"
                lines.append(f"  {i}. {marker} {format_flight(departure, destination)}")
            return lines

    lines = asyncio.run(_run())
    if lines is None:
        sys.exit(1)
    for line in lines:
        click.echo(line)


@cli.command("favorites")
def favorites() -> None:
    """List saved favorite flights."""

    async def _run() -> list[str]:
        lines: list[str] = []
        async with await FlightStore.open(settings) as store:
            for favorite in await store.get_favorites().get():
                departure = await store.get_airport_by_code(favorite.departure_code).get()
                destination = await store.get_airport_by_code(
                    favorite.destination_code
                ).get()
                if departure is None or destination is None:
                    logger.debug(
                        "Favorite %s-%s references a missing airport",
                        favorite.departure_code,
                        favorite.destination_code,
                    )
                    continue
                lines.append(f"  ★ {format_flight(departure, destination)}")
        return lines

    lines = asyncio.run(_run())
    if not lines:
        click.echo("No favorite flights yet.")
        return
    click.echo("Favorite Flights")
    for line in lines:
        click.echo(line)


@cli.group("favorite")
def favorite() -> None:
    """Save or remove a favorite flight."""


@favorite.command("add")
@click.argument("departure")
@click.argument("destination")
def favorite_add(departure: str, destination: str) -> None:
    """Save the flight DEPARTURE → DESTINATION."""

    async def _run() -> str | None:
        async with await FlightStore.open(settings) as store:
            dep = await _lookup(store, departure)
            dest = await _lookup(store, destination)
            if dep is None or dest is None:
                return None
            await store.insert_favorite(dep.code, dest.code)
            return format_flight(dep, dest)

    saved = asyncio.run(_run())
    if saved is None:
        sys.exit(1)
    click.echo(f"Saved: {saved}")


@favorite.command("remove")
@click.argument("departure")
@click.argument("destination")
def favorite_remove(departure: str, destination: str) -> None:
    """Remove the saved flight DEPARTURE → DESTINATION."""

    async def _run() -> int:
        async with await FlightStore.open(settings) as store:
            return await store.delete_favorite(departure.upper(), destination.upper())

    removed = asyncio.run(_run())
    click.echo(f"Removed {removed} favorite(s).")


async def _settle(changes: asyncio.Event, quiet: float = 0.05, limit: float = 1.0) -> None:
    """Wait until the screen state stops changing (bounded by *limit*)."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + limit
    while loop.time() < deadline:
        changes.clear()
        try:
            await asyncio.wait_for(changes.wait(), quiet)
        except TimeoutError:
            return


async def _handle_command(vm: FlightSearchViewModel, line: str) -> bool:
    """Apply one shell command.  Returns False when the shell should exit."""
    command, _, arg = line.strip().partition(" ")
    if command == ":quit":
        return False
    if command == ":help":
        click.echo(SHELL_HELP)
    elif command == ":clear":
        await vm.update_query("")
    elif command in (":select", ":toggle"):
        items = vm.suggestions if command == ":select" else vm.destinations
        try:
            index = int(arg) - 1
        except ValueError:
            index = -1
        if not 0 <= index < len(items):
            click.echo(f"No item {arg or '?'} to {command[1:]}.")
        elif command == ":select":
            await vm.select_airport(vm.suggestions[index])
        else:
            await vm.toggle_favorite(vm.destinations[index])
    else:
        await vm.update_query(line.rstrip("\n"))
    return True


@cli.command("shell")
def shell() -> None:
    """Interactive search screen."""
    stdin = click.get_text_stream("stdin")

    async def _run() -> None:
        changes = asyncio.Event()
        async with await FlightStore.open(settings) as store:
            async with FlightSearchViewModel(store) as vm:
                vm.add_listener(lambda _vm: changes.set())
                click.echo(SHELL_HELP)
                while True:
                    await _settle(changes)
                    click.echo("\n".join(render_screen(vm)))
                    line = await asyncio.to_thread(stdin.readline)
                    if not line:
                        break
                    if not await _handle_command(vm, line):
                        break

    asyncio.run(_run())


if __name__ == "__main__":
    cli()
