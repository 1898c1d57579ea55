"""REST routes served next to the MCP endpoint on the HTTP transports.

* `GET /status`  -> last sync record and loaded collection ids
* `GET /search`  -> ranked results and spelling corrections
* `POST /refresh` -> schedules a background rebuild

Both GET routes are conditional on the active snapshot's build time
(`If-Modified-Since` / `Last-Modified`). Each request reads the active
`PublishedIndex` once, so the freshness check and the body always describe the
same snapshot.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from folio.exceptions import CollectionNotFoundError
from folio.search.freshness import Freshness, check_freshness, format_http_date, parse_http_date
from folio.service.models import SearchResponse
from folio.service.state import PublishedIndex

logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=120, must-revalidate"


def _snapshot_headers(published: PublishedIndex) -> Dict[str, str]:
    return {
        "Last-Modified": format_http_date(published.snapshot.built_at),
        "Cache-Control": CACHE_CONTROL,
        "Access-Control-Allow-Origin": "*",
    }


def _not_modified(request: Request, published: PublishedIndex) -> Optional[Response]:
    since = parse_http_date(request.headers.get("if-modified-since"))
    if check_freshness(published.snapshot.built_at, since) is Freshness.NOT_MODIFIED:
        return Response(status_code=304, headers=_snapshot_headers(published))
    return None


def register_http_routes(mcp: FastMCP, get_state: Callable[[], Any]) -> None:
    """Register the REST routes on the given FastMCP instance.

    `get_state()` must return an object with a `service` attribute holding a
    `SearchService`.
    """

    @mcp.custom_route("/status", methods=["GET"])
    async def status(request: Request) -> Response:
        service = get_state().service
        published = service.handle.current
        cached = _not_modified(request, published)
        if cached is not None:
            return cached
        body = service.status(published)
        return JSONResponse(body.model_dump(by_alias=True), headers=_snapshot_headers(published))

    @mcp.custom_route("/search", methods=["GET"])
    async def search(request: Request) -> Response:
        service = get_state().service
        published = service.handle.current
        cached = _not_modified(request, published)
        if cached is not None:
            return cached

        params = request.query_params
        query = params.get("q", "")
        scope = params.get("searchProperty") or params.get("searchProperties")
        headers = _snapshot_headers(published)
        try:
            body = await asyncio.to_thread(service.search, query, scope, published)
        except CollectionNotFoundError as exc:
            return JSONResponse(
                {"error": str(exc), "collection": exc.name},
                status_code=400,
                headers={"Access-Control-Allow-Origin": "*"},
            )
        except Exception:
            logger.exception("Search failed for query %r", query)
            body = SearchResponse()
        return JSONResponse(body.model_dump(by_alias=True), headers=headers)

    @mcp.custom_route("/refresh", methods=["POST"])
    async def refresh(request: Request) -> Response:
        body = get_state().service.refresh()
        return JSONResponse(body.model_dump(), headers={"Access-Control-Allow-Origin": "*"})
