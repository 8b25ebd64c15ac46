"""
Storage context: the SQLModel session a unit of work commits through.

``StorageContextBase`` is a regular ``sqlmodel.Session`` that also records which
entities each flush writes, so that a commit can report how many records it
affected and, when asked, keep those records marked as changed afterwards.
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import event
from sqlmodel import Session

from persistkit.logging.logger import get_logger

logger = get_logger("storage_context")


class EntityState(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class ChangeEntry:
    """A change marker: an entity and how it differs from the database."""
    entity: Any
    state: EntityState


class IStorageContext(ABC):
    """Storage context interface; what a unit of work needs to commit."""

    @abstractmethod
    def save_changes(self, accept_all_changes_on_success: bool = True) -> int:
        """Commit pending changes; return the number of affected records."""
        pass

    @abstractmethod
    async def save_changes_async(
        self,
        accept_all_changes_on_success: bool = True,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> int:
        """Commit pending changes without blocking the event loop."""
        pass


class StorageContextBase(Session, IStorageContext):
    """SQLModel session with affected-record counting and change markers."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Entities written by flushes of the current transaction
        self._written: Dict[int, ChangeEntry] = {}
        # Entities committed with accept_all_changes_on_success=False
        self._unaccepted: Dict[int, ChangeEntry] = {}
        event.listen(self, "before_flush", self._on_before_flush)
        event.listen(self, "after_rollback", self._on_after_rollback)

    def _on_before_flush(self, session, flush_context, instances):
        for entity in session.new:
            self._record(entity, EntityState.ADDED)
        for entity in session.dirty:
            if session.is_modified(entity):
                self._record(entity, EntityState.MODIFIED)
        for entity in session.deleted:
            self._record(entity, EntityState.DELETED)

    def _on_after_rollback(self, session):
        self._written.clear()

    def _record(self, entity: Any, state: EntityState) -> None:
        key = id(entity)
        previous = self._written.get(key)
        if previous is None:
            self._written[key] = ChangeEntry(entity, state)
        elif previous.state == EntityState.ADDED and state == EntityState.DELETED:
            # Inserted and removed within one transaction: no net change
            del self._written[key]
        elif previous.state != EntityState.ADDED:
            previous.state = state

    @property
    def change_entries(self) -> List[ChangeEntry]:
        """All change markers: retained, flushed and still unflushed."""
        entries = dict(self._unaccepted)
        entries.update(self._written)
        for entity in self.new:
            entries[id(entity)] = ChangeEntry(entity, EntityState.ADDED)
        for entity in self.dirty:
            if id(entity) not in entries and self.is_modified(entity):
                entries[id(entity)] = ChangeEntry(entity, EntityState.MODIFIED)
        for entity in self.deleted:
            entries[id(entity)] = ChangeEntry(entity, EntityState.DELETED)
        return list(entries.values())

    def has_changes(self) -> bool:
        return bool(self.change_entries)

    def accept_all_changes(self) -> None:
        """Drop the markers retained by earlier commits."""
        self._unaccepted.clear()

    def save_changes(self, accept_all_changes_on_success: bool = True) -> int:
        """
        Flush and commit the current transaction.

        Args:
            accept_all_changes_on_success: clear change markers after the commit;
                when False the committed entities stay in ``change_entries``
                until ``accept_all_changes()`` is called.

        Returns:
            Number of records written by the transaction.
        """
        self.flush()
        return self._commit_flushed(accept_all_changes_on_success)

    def _commit_flushed(self, accept_all_changes_on_success: bool) -> int:
        written = list(self._written.values())
        self.commit()
        self._written.clear()

        if accept_all_changes_on_success:
            self._unaccepted.clear()
        else:
            for entry in written:
                self._unaccepted[id(entry.entity)] = entry

        logger.debug(f"Committed {len(written)} record(s) | accepted={accept_all_changes_on_success}")
        return len(written)

    def _save_changes_unless_stopped(self, accept_all_changes_on_success: bool, stop: threading.Event) -> int:
        self.flush()
        if stop.is_set():
            self.rollback()
            raise _CommitStopped()
        return self._commit_flushed(accept_all_changes_on_success)

    async def save_changes_async(
        self,
        accept_all_changes_on_success: bool = True,
        cancellation_token: Optional[asyncio.Event] = None,
    ) -> int:
        """
        Run ``save_changes`` in a worker thread and await it.

        ``asyncio.CancelledError`` is raised when ``cancellation_token`` is set
        before the commit starts or while it is in flight. In flight, the worker
        always finishes before the error is raised, so the session is no longer
        in use when the caller sees it. The outcome depends on how far the worker got:

        - token seen after the flush, before the engine commit: the transaction
          is rolled back and nothing is stored;
        - engine commit already running: it completes and the changes are stored,
          the error message says so.

        The commit is never started a second time.
        """
        if cancellation_token is not None and cancellation_token.is_set():
            raise asyncio.CancelledError("Commit cancelled before it started")

        stop = threading.Event()
        commit = asyncio.ensure_future(
            asyncio.to_thread(self._save_changes_unless_stopped, accept_all_changes_on_success, stop)
        )

        watcher = None
        if cancellation_token is not None:
            watcher = asyncio.ensure_future(cancellation_token.wait())
            watcher.add_done_callback(lambda fired: None if fired.cancelled() else stop.set())

        try:
            count = await asyncio.shield(commit)
        except _CommitStopped:
            raise asyncio.CancelledError("Commit cancelled; the transaction was rolled back") from None
        except asyncio.CancelledError:
            # Awaiting task cancelled: the worker still holds the session until it returns
            stop.set()
            await asyncio.wait({commit})
            if not commit.cancelled():
                commit.exception()
            raise
        finally:
            if watcher is not None:
                watcher.cancel()

        if stop.is_set():
            raise asyncio.CancelledError(
                f"Commit cancelled after the engine committed; {count} record(s) are stored"
            )
        return count


class _CommitStopped(Exception):
    """Raised in the worker when cancellation was seen before the engine commit."""
