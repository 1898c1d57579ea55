"""Response bodies of the HTTP and MCP surfaces."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from folio.search.engine import SearchOutcome
from folio.search.freshness import format_timestamp
from folio.service.state import PublishedIndex


class LastSync(BaseModel):
    started: Optional[str] = None
    finished: Optional[str] = None


class StatusResponse(BaseModel):
    """Body of `GET /status`."""

    model_config = ConfigDict(populate_by_name=True)

    last_sync: LastSync = Field(alias="lastSync")
    manifests: List[str]

    @classmethod
    def from_published(cls, published: PublishedIndex) -> "StatusResponse":
        return cls(
            last_sync=LastSync(
                started=format_timestamp(published.sync.started),
                finished=format_timestamp(published.sync.finished),
            ),
            manifests=list(published.snapshot.manifests()),
        )


class SearchResultItem(BaseModel):
    title: str
    preview: str
    url: str


class SearchResponse(BaseModel):
    """Body of `GET /search`."""

    model_config = ConfigDict(populate_by_name=True)

    results: List[SearchResultItem] = Field(default_factory=list)
    spelling_corrections: Dict[str, Optional[str]] = Field(
        default_factory=dict, alias="spellingCorrections"
    )

    @classmethod
    def from_outcome(cls, outcome: SearchOutcome) -> "SearchResponse":
        return cls(
            results=[
                SearchResultItem(**doc.as_result())
                for doc in outcome.results
            ],
            spelling_corrections=dict(outcome.spelling_corrections),
        )


class RefreshResponse(BaseModel):
    """Body of `POST /refresh`."""

    accepted: bool = True
    coalesced: bool = False
