"""Custom exception hierarchy for Folio.

These exceptions allow callers to discriminate error categories
and handle them appropriately while preserving the original context.
"""

from __future__ import annotations


class FolioError(Exception):
    """Base class for all Folio exceptions."""


class ConfigError(FolioError):
    """Raised when configuration loading or validation fails."""


class ParsingError(FolioError):
    """Raised when a document fails to parse."""


class ManifestError(FolioError):
    """Raised when a manifest source cannot be read or validated."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class BuildError(FolioError):
    """Raised when collection sources are malformed for indexing."""


class SearchError(FolioError):
    """Raised for search query issues."""


class CollectionNotFoundError(SearchError):
    """Raised when a collection identifier or alias is not loaded."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown collection: {name!r}")
        self.name = name
