"""Folio server entrypoint using FastMCP.

Serves the search service as MCP tools and, on the HTTP transports, as the
REST routes `/status`, `/search` and `/refresh`.
Run with:
  - folio
  - or: python -m folio.mcp.server (ensure PYTHONPATH includes ./src)
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

from fastmcp import FastMCP

from folio.config import Settings, load_settings
from folio.exceptions import ConfigError
from folio.mcp.routes import register_http_routes
from folio.mcp.tools import register_search_tools
from folio.service.search_service import SearchService
from folio.sources import parse_manifest_source

logger = logging.getLogger(__name__)


class AppState:
    """Application state shared by MCP tools and routes."""

    def __init__(self, settings: Settings, service: Optional[SearchService] = None) -> None:
        self.settings = settings
        self.service = service or SearchService(settings)


# Global state and server instance
_state: Optional[AppState] = None
mcp = FastMCP("Folio Search Server")


# ----- Tools -----

@mcp.tool
def health() -> str:
    """Simple health check tool."""
    return "ok"


# ----- Entrypoint -----

def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout belongs to the stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _validate_sources(settings: Settings) -> None:
    selectors = settings.manifests.selectors()
    if not selectors:
        raise ConfigError("No manifest sources configured (set FOLIO_MANIFESTS__SOURCES)")
    for selector in selectors:
        parse_manifest_source(selector, settings)


def main() -> None:
    """Initialize state, build the first index and run the server."""
    global _state
    settings = load_settings()
    configure_logging(settings.app.log_level)

    try:
        _validate_sources(settings)
    except ConfigError as exc:
        logger.error("%s", exc)
        sys.exit(1)

    _state = AppState(settings)
    if not _state.service.initial_load():
        logger.error("Initial index build failed; exiting")
        _state.service.shutdown(wait=False)
        sys.exit(1)
    _state.service.start()

    register_search_tools(mcp, get_state=lambda: _state)
    register_http_routes(mcp, get_state=lambda: _state)
    # Choose transport based on configuration: http (default), sse, or stdio
    transport = settings.app.transport
    try:
        if transport in ("http", "sse"):
            logger.info("Serving on %s:%d (%s)", settings.app.host, settings.app.port, transport)
            mcp.run(transport=transport, host=settings.app.host, port=settings.app.port)
        else:
            mcp.run()
    finally:
        _state.service.shutdown(wait=False)


if __name__ == "__main__":  # pragma: no cover
    main()
