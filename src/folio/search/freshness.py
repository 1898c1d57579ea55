"""Conditional-request handling against a snapshot's build time."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import Optional


class Freshness(enum.Enum):
    FRESH = "fresh"
    NOT_MODIFIED = "not_modified"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_freshness(built_at: datetime, since: Optional[datetime]) -> Freshness:
    """Decide whether a client copy stamped `since` is still current.

    HTTP dates carry whole seconds, so `built_at` is truncated to the second
    before comparing. Without a client timestamp the answer is always FRESH.
    """
    if since is None:
        return Freshness.FRESH
    built = _as_utc(built_at).replace(microsecond=0)
    if _as_utc(since) >= built:
        return Freshness.NOT_MODIFIED
    return Freshness.FRESH


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an If-Modified-Since style header; None if absent or invalid."""
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    return _as_utc(parsed)


def format_http_date(value: datetime) -> str:
    """Format a timestamp as an RFC 7231 HTTP date (e.g. for Last-Modified)."""
    return format_datetime(_as_utc(value).replace(microsecond=0), usegmt=True)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """RFC 3339 UTC timestamp with milliseconds, as used in status bodies."""
    if value is None:
        return None
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")
