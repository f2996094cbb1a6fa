"""Live (re-emitting) query results."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Iterable

    from .notifier import ChangeNotifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveQuery(Generic[T]):
    """A query result that is re-delivered after every relevant write.

    ``await live.get()`` returns the current value once.  Iterating with
    ``async for`` yields the current value immediately and then the latest
    value each time one of *tables* is changed by a committed transaction.
    Changes that land while a fetch is running trigger exactly one more
    fetch, so observers always converge on the latest state.
    """

    def __init__(
        self,
        notifier: ChangeNotifier,
        tables: Iterable[str],
        fetch: Callable[[], Awaitable[T]],
        *,
        name: str = "live-query",
    ) -> None:
        self._notifier = notifier
        self._tables = frozenset(tables)
        self._fetch = fetch
        self.name = name

    @property
    def tables(self) -> frozenset[str]:
        return self._tables

    async def get(self) -> T:
        return await self._fetch()

    async def __aiter__(self) -> AsyncIterator[T]:
        # Register before the first fetch so no commit can slip in between.
        with self._notifier.watch(self._tables) as watcher:
            yield await self._fetch()
            while True:
                await watcher.wait()
                yield await self._fetch()

    def subscribe(self, callback: Callable[[T], object]) -> Subscription[T]:
        """Deliver every value to *callback* from a background task."""
        return Subscription(self, callback)

    def __repr__(self) -> str:
        return f"<LiveQuery {self.name} tables={sorted(self._tables)}>"


class Subscription(Generic[T]):
    """Background consumer of a :class:`LiveQuery`.

    The callback may be a plain function or a coroutine function.  A failing
    callback is logged and the subscription keeps running; a failing fetch
    ends the subscription.  Must be created from a running event loop.
    """

    def __init__(self, live: LiveQuery[T], callback: Callable[[T], object]) -> None:
        self._live = live
        self._callback = callback
        self._task = asyncio.create_task(self._run(), name=f"subscription:{live.name}")

    async def _run(self) -> None:
        try:
            # Closing the iterator unregisters its watcher even on cancellation.
            async with contextlib.aclosing(aiter(self._live)) as values:
                async for value in values:
                    try:
                        result = self._callback(value)
                        if inspect.isawaitable(result):
                            await result
                    except Exception:
                        logger.exception("Subscriber of %s raised", self._live.name)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Live query %s failed, subscription ended", self._live.name)

    @property
    def closed(self) -> bool:
        return self._task.done()

    def close(self) -> None:
        """Release the subscription; no further values are delivered."""
        self._task.cancel()

    async def aclose(self) -> None:
        """Close and wait until the background task has finished."""
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
