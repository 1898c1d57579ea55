"""Background index rebuilds with a single in-flight guarantee.

`RefreshOrchestrator.trigger()` never blocks: it hands the rebuild to a
dedicated worker thread and returns. While a rebuild is running, further
triggers are coalesced into one follow-up rebuild, so at most one rebuild runs
at a time and sources changed mid-rebuild are still picked up.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional

from folio.search.builder import IndexSnapshot, build_snapshot, utcnow
from folio.search.freshness import format_timestamp
from folio.service.state import IndexHandle
from folio.sources.base import RawCollection

logger = logging.getLogger(__name__)

LoadSources = Callable[[], Awaitable[Mapping[str, RawCollection]]]
BuildSnapshot = Callable[[Mapping[str, RawCollection]], IndexSnapshot]


@dataclass(frozen=True, slots=True)
class RefreshTicket:
    """Answer to a refresh trigger.

    `coalesced` is True when a rebuild was already running and the trigger was
    folded into the follow-up rebuild.
    """

    accepted: bool = True
    coalesced: bool = False


class RefreshOrchestrator:
    """Coordinates rebuilds of the index held by an `IndexHandle`.

    Parameters
    ----------
    handle: IndexHandle
        Where new snapshots are published.
    load_sources: Callable[[], Awaitable[Mapping[str, RawCollection]]]
        Coroutine factory returning fresh raw collections.
    build: Callable[[Mapping[str, RawCollection]], IndexSnapshot]
        The index builder (defaults to `build_snapshot`).
    """

    def __init__(
        self,
        handle: IndexHandle,
        load_sources: LoadSources,
        build: BuildSnapshot = build_snapshot,
    ) -> None:
        self._handle = handle
        self._load_sources = load_sources
        self._build = build
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="folio-refresh")
        self._state_lock = threading.Lock()
        self._rebuild_lock = threading.Lock()
        self._running = False
        self._pending = False
        self._idle = threading.Event()
        self._idle.set()
        self._last_error: Optional[BaseException] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_error(self) -> Optional[BaseException]:
        """The error of the most recent rebuild, None if it succeeded."""
        return self._last_error

    def trigger(self) -> RefreshTicket:
        """Schedule a rebuild and return immediately."""
        with self._state_lock:
            if self._running:
                self._pending = True
                logger.info("Refresh already in progress; trigger coalesced")
                return RefreshTicket(coalesced=True)
            self._running = True
            self._idle.clear()
        try:
            self._executor.submit(self._drain)
        except RuntimeError:
            # Executor already shut down
            with self._state_lock:
                self._running = False
                self._idle.set()
            raise
        return RefreshTicket()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no rebuild is running or queued; False on timeout."""
        return self._idle.wait(timeout)

    def run_once(self, timeout: Optional[float] = None) -> bool:
        """Run one rebuild on the worker thread and wait for its outcome."""
        return self._executor.submit(self.refresh_now).result(timeout)

    def refresh_now(self) -> bool:
        """Run one rebuild in the calling thread; True if it was published.

        Must not be called from a thread running an event loop, since sources
        are loaded with `asyncio.run`.
        """
        with self._rebuild_lock:
            started = utcnow()
            self._handle.mark_started(started)
            logger.info("Refresh started at %s", format_timestamp(started))
            try:
                sources = asyncio.run(self._load_sources())
                snapshot = self._build(sources)
            except Exception as exc:
                self._last_error = exc
                logger.exception(
                    "Refresh failed; keeping index built at %s",
                    format_timestamp(self._handle.snapshot.built_at),
                )
                return False

            published = self._handle.publish(snapshot)
            self._last_error = None
            logger.info(
                "Refresh finished at %s: %d collections",
                format_timestamp(published.built_at),
                len(published.collections),
            )
            return True

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _drain(self) -> None:
        try:
            while True:
                with self._state_lock:
                    self._pending = False
                self.refresh_now()
                with self._state_lock:
                    # Checked and released under one lock so no trigger is lost
                    if not self._pending:
                        self._running = False
                        self._idle.set()
                        return
        except BaseException:
            with self._state_lock:
                self._running = False
                self._idle.set()
            raise
