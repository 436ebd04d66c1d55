"""Per-document bookkeeping between open and close events."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, NamedTuple


class TrackingSnapshot(NamedTuple):
    """Tracker state handed to the collector when a document closes."""

    opened_at: datetime
    sync_count: int


@dataclass
class DocumentTrackingEntry:
    """Open time and sync count for one live document.

    Holds a reference to the document so its ``id()`` cannot be recycled
    while the entry exists.
    """

    document: Any
    opened_at: datetime | None = None
    sync_count: int = 0


class DocumentTracker:
    """Registry of open documents keyed by object identity.

    Documents are never compared by value: two distinct open documents may be
    equal by their fields, and each must keep its own entry.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._entries: dict[int, DocumentTrackingEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, document: object) -> bool:
        return id(document) in self._entries

    def record_open(self, document: Any, now: datetime | None = None) -> None:
        """Remember when a document was opened. Repeat calls are no-ops."""
        if document is None:
            return
        key = id(document)
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = DocumentTrackingEntry(
                document=document,
                opened_at=now or self._clock(),
            )
        elif entry.opened_at is None:
            entry.opened_at = now or self._clock()

    def record_sync(self, document: Any) -> int:
        """Count a synchronization and return the running total.

        A sync for a document that was never seen opening is counted, but the
        document keeps no open time.
        """
        if document is None:
            return 0
        key = id(document)
        entry = self._entries.get(key)
        if entry is None:
            entry = DocumentTrackingEntry(document=document)
            self._entries[key] = entry
        entry.sync_count += 1
        return entry.sync_count

    def consume_on_close(
        self, document: Any, now: datetime | None = None
    ) -> TrackingSnapshot:
        """Remove the document's entry and return what was known about it.

        Documents never seen opening report ``now`` as their open time.
        Unknown documents (or ones already closed) also report zero syncs.
        """
        now = now or self._clock()
        entry = self._entries.pop(id(document), None) if document is not None else None
        if entry is None:
            return TrackingSnapshot(opened_at=now, sync_count=0)
        return TrackingSnapshot(
            opened_at=entry.opened_at or now,
            sync_count=entry.sync_count,
        )

    def clear(self) -> None:
        """Forget every document (plugin unload)."""
        self._entries.clear()
