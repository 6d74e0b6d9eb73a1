"""
In-memory list of todo records observed by consumers.

Writes are whole-list replacements or single-id removals, applied by
the sync engine once a remote operation has completed. Readers always
see an immutable snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum

from .models import TodoRecord

logger = logging.getLogger(__name__)


class ChangeType(Enum):
    """Kind of change applied to the list."""

    REPLACED = "replaced"
    REMOVED = "removed"


@dataclass(frozen=True)
class ListChange:
    """Notification delivered to observers after each change."""

    change_type: ChangeType
    records: tuple[TodoRecord, ...]
    version: int
    removed: TodoRecord | None = None


Observer = Callable[[ListChange], None]


class ListState:
    """Authoritative snapshot of todo records as seen by the consumer.

    Example:
        >>> state = ListState()
        >>> unsubscribe = state.subscribe(lambda change: print(len(change.records)))
        >>> engine = SyncEngine(records, blobs, state)
        >>> await engine.refresh()
        >>> unsubscribe()
    """

    def __init__(self, records: Sequence[TodoRecord] = ()) -> None:
        self._records: tuple[TodoRecord, ...] = tuple(records)
        self._version = 0
        self._observers: list[Observer] = []

    @property
    def records(self) -> tuple[TodoRecord, ...]:
        return self._records

    @property
    def version(self) -> int:
        """Monotonic counter bumped on every applied change."""
        return self._version

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TodoRecord]:
        return iter(self._records)

    def get(self, record_id: str) -> TodoRecord | None:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer.

        Returns:
            A callable that removes the observer again
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def replace(self, records: Sequence[TodoRecord]) -> None:
        """Replace the whole list, preserving the given order."""
        self._records = tuple(records)
        self._version += 1
        self._notify(ListChange(ChangeType.REPLACED, self._records, self._version))

    def remove(self, record_id: str) -> TodoRecord | None:
        """Remove the record with ``record_id``.

        Returns:
            The removed record, or None if no record matched (no notification is sent)
        """
        removed = self.get(record_id)
        if removed is None:
            return None
        self._records = tuple(r for r in self._records if r.id != record_id)
        self._version += 1
        self._notify(ListChange(ChangeType.REMOVED, self._records, self._version, removed))
        return removed

    def _notify(self, change: ListChange) -> None:
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception(f"List observer failed on {change.change_type.value} change")
