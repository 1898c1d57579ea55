"""Manifest sources: where raw collections come from.

Selectors are strings of the form `<scheme>:<location>`:

* `dir:<path>` loads `*.json` manifests and document folders from a directory,
* `github:<owner>/<repo>[@<ref>]` loads a repository's Markdown docs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

from folio.config import Settings
from folio.exceptions import ConfigError, ManifestError

from .base import ManifestLoader, RawCollection, RawDocument, normalize_url
from .files import FileManifestLoader
from .github import GitHubClient, GitHubManifestLoader, GitHubRepo

logger = logging.getLogger(__name__)

__all__ = [
    "ManifestLoader",
    "RawCollection",
    "RawDocument",
    "normalize_url",
    "FileManifestLoader",
    "GitHubManifestLoader",
    "parse_manifest_source",
    "load_sources",
]


def _split_globs(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    globs = [g.strip() for g in value.split(",") if g.strip()]
    return globs or None


def parse_manifest_source(selector: str, settings: Optional[Settings] = None) -> ManifestLoader:
    """Create the loader for one selector; raises `ConfigError` if it is malformed."""
    settings = settings or Settings()
    scheme, sep, location = selector.strip().partition(":")
    if not sep or not location.strip():
        raise ConfigError(f"Invalid manifest source: {selector!r}")

    if scheme == "dir":
        return FileManifestLoader(location.strip())
    if scheme == "github":
        gh = settings.github
        return GitHubManifestLoader(
            GitHubRepo.parse(location),
            client=GitHubClient(
                api_base_url=gh.api_base_url,
                web_base_url=gh.web_base_url,
                raw_base_url=gh.raw_base_url,
                token=gh.token,
            ),
            include_globs=_split_globs(gh.include_globs),
            max_files=gh.max_files,
        )
    raise ConfigError(f"Unsupported manifest source scheme {scheme!r} in {selector!r}")


async def load_sources(
    selectors: Iterable[str], settings: Optional[Settings] = None
) -> Dict[str, RawCollection]:
    """Load every selector concurrently and key the collections by identifier.

    Raises `ManifestError` if any source fails or two sources provide the same
    collection identifier.
    """
    loaders = [parse_manifest_source(s, settings) for s in selectors]
    batches = await asyncio.gather(*(loader.load() for loader in loaders))

    collections: Dict[str, RawCollection] = {}
    for loader, batch in zip(loaders, batches):
        for collection in batch:
            existing = collections.get(collection.identifier)
            if existing is not None:
                raise ManifestError(
                    loader.selector,
                    f"collection {collection.identifier!r} already provided by {existing.source}",
                )
            collections[collection.identifier] = collection
    logger.info("Loaded %d collections from %d sources", len(collections), len(loaders))
    return collections
