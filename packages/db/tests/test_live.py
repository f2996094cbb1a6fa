"""Live query re-emission and subscriptions."""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy import func, select

from flight_search_db.database import session_scope
from flight_search_db.live import LiveQuery
from flight_search_db.models import Favorite


def _favorite_count(notifier, session_factory) -> LiveQuery[int]:
    async def fetch() -> int:
        async with session_scope(session_factory) as session:
            result = await session.execute(select(func.count()).select_from(Favorite))
            return result.scalar_one()

    return LiveQuery(notifier, ["favorite"], fetch, name="favorite-count")


async def _add_favorite(session_factory, departure: str, destination: str) -> None:
    async with session_scope(session_factory) as session:
        session.add(Favorite(departure_code=departure, destination_code=destination))


async def test_get_returns_current_value(notifier, session_factory):
    live = _favorite_count(notifier, session_factory)
    assert await live.get() == 0

    await _add_favorite(session_factory, "JFK", "LAX")

    assert await live.get() == 1


async def test_iteration_re_emits_after_commit(notifier, session_factory):
    live = _favorite_count(notifier, session_factory)
    values = aiter(live)

    assert await anext(values) == 0
    assert notifier.watcher_count == 1

    await _add_favorite(session_factory, "JFK", "LAX")
    assert await asyncio.wait_for(anext(values), 1) == 1

    await _add_favorite(session_factory, "JFK", "ORD")
    await _add_favorite(session_factory, "LAX", "ORD")
    # Both commits landed before the next fetch: one emission, latest state.
    assert await asyncio.wait_for(anext(values), 1) == 3

    await values.aclose()
    assert notifier.watcher_count == 0


async def test_subscription_delivers_until_closed(notifier, session_factory, wait_until):
    received: list[int] = []
    subscription = _favorite_count(notifier, session_factory).subscribe(received.append)

    await wait_until(lambda: received == [0])
    await _add_favorite(session_factory, "JFK", "LAX")
    await wait_until(lambda: received[-1] == 1)

    await subscription.aclose()
    assert subscription.closed
    assert notifier.watcher_count == 0

    await _add_favorite(session_factory, "JFK", "ORD")
    await asyncio.sleep(0.1)
    assert received[-1] == 1


async def test_async_callbacks_are_awaited(notifier, session_factory, wait_until):
    received: list[int] = []

    async def on_value(value: int) -> None:
        await asyncio.sleep(0)
        received.append(value)

    subscription = _favorite_count(notifier, session_factory).subscribe(on_value)
    await wait_until(lambda: received == [0])
    await subscription.aclose()


async def test_failing_callback_keeps_subscription(
    notifier, session_factory, wait_until, caplog
):
    received: list[int] = []

    def on_value(value: int) -> None:
        received.append(value)
        if value == 0:
            msg = "boom"
            raise ValueError(msg)

    with caplog.at_level(logging.ERROR):
        subscription = _favorite_count(notifier, session_factory).subscribe(on_value)
        await wait_until(lambda: received == [0])
        await _add_favorite(session_factory, "JFK", "LAX")
        await wait_until(lambda: received == [0, 1])

    assert not subscription.closed
    assert "raised" in caplog.text
    await subscription.aclose()


async def test_failing_fetch_ends_subscription(notifier, wait_until, caplog):
    async def fetch() -> int:
        msg = "database gone"
        raise RuntimeError(msg)

    with caplog.at_level(logging.ERROR):
        subscription = LiveQuery(notifier, ["favorite"], fetch, name="broken").subscribe(
            lambda value: None
        )
        await wait_until(lambda: subscription.closed)

    assert "broken" in caplog.text
    assert notifier.watcher_count == 0


async def test_closing_during_callback_releases_watcher(notifier, session_factory):
    entered = asyncio.Event()

    async def on_value(value: int) -> None:
        entered.set()
        await asyncio.Event().wait()

    subscription = _favorite_count(notifier, session_factory).subscribe(on_value)
    await asyncio.wait_for(entered.wait(), 1)
    assert notifier.watcher_count == 1

    await subscription.aclose()

    assert subscription.closed
    assert notifier.watcher_count == 0
