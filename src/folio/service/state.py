"""The process-wide handle on the active index snapshot.

Readers call `IndexHandle.current` once per request and work with the
returned `PublishedIndex` for the rest of it; they never lock. The refresh
worker is the only writer: every write builds a new `PublishedIndex` and
replaces the reference in a single assignment under the writer lock, so the
snapshot and its sync record are always observed together.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from folio.search.builder import IndexSnapshot

# Smallest step between two published build timestamps
_TICK = timedelta(milliseconds=1)


@dataclass(frozen=True, slots=True)
class SyncRecord:
    """When the last rebuild began and when the active snapshot was published."""

    started: Optional[datetime] = None
    finished: Optional[datetime] = None


@dataclass(frozen=True, slots=True)
class PublishedIndex:
    snapshot: IndexSnapshot
    sync: SyncRecord


class IndexHandle:
    """Holds the active snapshot and sync record with atomic swap semantics."""

    def __init__(self, snapshot: Optional[IndexSnapshot] = None) -> None:
        self._write_lock = threading.Lock()
        self._current = PublishedIndex(snapshot or IndexSnapshot.empty(), SyncRecord())

    @property
    def current(self) -> PublishedIndex:
        return self._current

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._current.snapshot

    @property
    def sync(self) -> SyncRecord:
        return self._current.sync

    def mark_started(self, when: datetime) -> None:
        with self._write_lock:
            current = self._current
            self._current = replace(current, sync=replace(current.sync, started=when))

    def publish(self, snapshot: IndexSnapshot) -> IndexSnapshot:
        """Make `snapshot` active and return it as published.

        Build timestamps strictly increase across publications; a snapshot
        stamped at or before the active one is restamped one tick later.
        `finished` is set to the published build time.
        """
        with self._write_lock:
            current = self._current
            previous = current.snapshot.built_at
            if snapshot.built_at <= previous:
                snapshot = snapshot.restamped(previous + _TICK)
            self._current = PublishedIndex(
                snapshot=snapshot,
                sync=replace(current.sync, finished=snapshot.built_at),
            )
            return snapshot
