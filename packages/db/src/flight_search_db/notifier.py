"""Table-level change notification for committed transactions.

Every session produced by :func:`flight_search_db.database.create_session_factory`
is a :class:`TrackingSession`.  Session events record which tables a
transaction writes to; once the transaction commits, the owning
:class:`ChangeNotifier` wakes every :class:`TableWatcher` interested in one of
those tables.  Rolled-back transactions publish nothing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.orm import ORMExecuteState, UOWTransaction

logger = logging.getLogger(__name__)

NOTIFIER_KEY = "flight_search.notifier"
_PENDING_KEY = "flight_search.pending_tables"


class TableWatcher:
    """Wakes up when one of the watched tables changes.

    Multiple notifications that arrive before :meth:`wait` returns are
    coalesced into a single wake-up.
    """

    def __init__(self, notifier: ChangeNotifier, tables: frozenset[str]) -> None:
        self._notifier = notifier
        self.tables = tables
        self._event = asyncio.Event()

    def invalidate(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        """Block until a watched table has changed since the last wait."""
        await self._event.wait()
        self._event.clear()

    def close(self) -> None:
        self._notifier.unwatch(self)

    def __enter__(self) -> TableWatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ChangeNotifier:
    """Fan-out of committed table changes to registered watchers."""

    def __init__(self) -> None:
        self._watchers: set[TableWatcher] = set()

    def watch(self, tables: Iterable[str]) -> TableWatcher:
        """Register a watcher for *tables*; close it to unregister."""
        watcher = TableWatcher(self, frozenset(tables))
        self._watchers.add(watcher)
        return watcher

    def unwatch(self, watcher: TableWatcher) -> None:
        self._watchers.discard(watcher)

    @property
    def watcher_count(self) -> int:
        return len(self._watchers)

    def publish(self, tables: Iterable[str]) -> None:
        """Invalidate every watcher observing any of *tables*."""
        changed = frozenset(tables)
        if not changed:
            return
        logger.debug("Tables changed: %s", ", ".join(sorted(changed)))
        for watcher in list(self._watchers):
            if watcher.tables & changed:
                watcher.invalidate()


class TrackingSession(Session):
    """Session that reports the tables written by each committed transaction."""


def _pending(session: Session) -> set[str]:
    return session.info.setdefault(_PENDING_KEY, set())


@event.listens_for(TrackingSession, "do_orm_execute")
def _record_statement(orm_execute_state: ORMExecuteState) -> None:
    if not (
        orm_execute_state.is_insert
        or orm_execute_state.is_update
        or orm_execute_state.is_delete
    ):
        return
    table = getattr(orm_execute_state.statement, "table", None)
    name = getattr(table, "name", None)
    if name:
        _pending(orm_execute_state.session).add(name)


@event.listens_for(TrackingSession, "after_flush")
def _record_flush(session: Session, flush_context: UOWTransaction) -> None:
    tables = _pending(session)
    for obj in (*session.new, *session.dirty, *session.deleted):
        tables.add(inspect(obj).mapper.local_table.name)


@event.listens_for(TrackingSession, "after_commit")
def _publish_commit(session: Session) -> None:
    tables = session.info.pop(_PENDING_KEY, None)
    notifier: ChangeNotifier | None = session.info.get(NOTIFIER_KEY)
    if tables and notifier is not None:
        notifier.publish(tables)


@event.listens_for(TrackingSession, "after_rollback")
def _discard_rollback(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
