"""Wires the index handle, query engine and refresh machinery together.

`SearchService` is what the HTTP routes and MCP tools talk to. Every
snapshot-dependent method accepts the `PublishedIndex` the caller already read
so a freshness check and the body it guards come from the same snapshot.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Mapping, Optional

from folio.config import Settings
from folio.search.builder import IndexSnapshot, build_snapshot
from folio.search.engine import QueryEngine, Scope
from folio.service.models import RefreshResponse, SearchResponse, StatusResponse
from folio.service.refresh import LoadSources, RefreshOrchestrator
from folio.service.scheduler import RefreshScheduler
from folio.service.state import IndexHandle, PublishedIndex
from folio.sources import load_sources
from folio.sources.base import RawCollection

logger = logging.getLogger(__name__)


class SearchService:
    """Application service exposing status, search and refresh."""

    def __init__(
        self,
        settings: Settings,
        *,
        sources: Optional[LoadSources] = None,
        handle: Optional[IndexHandle] = None,
    ) -> None:
        self.settings = settings
        self.handle = handle or IndexHandle()
        self.engine = QueryEngine.from_config(settings.search)
        self.orchestrator = RefreshOrchestrator(
            self.handle, sources or self._load_configured_sources, build=self._build
        )
        self.scheduler = RefreshScheduler()

    async def _load_configured_sources(self) -> Mapping[str, RawCollection]:
        return await load_sources(self.settings.manifests.selectors(), self.settings)

    def _build(self, sources: Mapping[str, RawCollection]) -> IndexSnapshot:
        return build_snapshot(sources, field_weights=self.settings.search.field_weights)

    def initial_load(self) -> bool:
        """Build and publish the first snapshot, blocking until it is done."""
        return self.orchestrator.run_once()

    def start(self) -> None:
        """Start periodic refreshes if an interval is configured."""
        minutes = self.settings.manifests.refresh_interval_minutes
        if minutes > 0:
            self.scheduler.schedule_refresh(self.orchestrator, interval=timedelta(minutes=minutes))
            self.scheduler.start()
            logger.info("Periodic refresh every %d minutes", minutes)

    def shutdown(self, *, wait: bool = True) -> None:
        self.scheduler.shutdown(wait=wait)
        self.orchestrator.shutdown(wait=wait)

    def status(self, published: Optional[PublishedIndex] = None) -> StatusResponse:
        return StatusResponse.from_published(published or self.handle.current)

    def search(
        self,
        query: str,
        scope: Scope = None,
        published: Optional[PublishedIndex] = None,
    ) -> SearchResponse:
        snapshot = (published or self.handle.current).snapshot
        return SearchResponse.from_outcome(self.engine.search(snapshot, query, scope))

    def refresh(self) -> RefreshResponse:
        ticket = self.orchestrator.trigger()
        return RefreshResponse(accepted=ticket.accepted, coalesced=ticket.coalesced)
