"""Search tools for FastMCP.

The same operations as the REST routes, for MCP clients.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional

from fastmcp import FastMCP

from folio.exceptions import CollectionNotFoundError
from folio.service.search_service import SearchService


def register_search_tools(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register search tools on the given FastMCP instance."""

    def _service() -> SearchService:
        state = get_state()
        service = getattr(state, "service", None)
        if service is None:
            raise RuntimeError("Search service is not initialized.")
        return service

    @mcp.tool
    async def search_docs(query: str, search_property: Optional[str] = None) -> Dict[str, Any]:
        """Full-text search over the loaded documentation collections.

        Parameters
        ----------
        query: str
            Words and "quoted phrases"; every term must match.
        search_property: str | None
            Comma-separated collection ids or aliases. Default: all collections.
        """
        service = _service()
        try:
            response = await asyncio.to_thread(service.search, query, search_property)
        except CollectionNotFoundError as exc:
            raise ValueError(f"Unknown collection: {exc.name}") from exc
        return response.model_dump(by_alias=True)

    @mcp.tool
    def index_status() -> Dict[str, Any]:
        """Last sync timestamps and the ids of the loaded collections."""
        return _service().status().model_dump(by_alias=True)

    @mcp.tool
    def refresh_index() -> Dict[str, Any]:
        """Schedule a background rebuild of the index; returns immediately."""
        return _service().refresh().model_dump()
