"""GitHub manifest source (`github:<owner>/<repo>[@<ref>]`).

Markdown/MDX files of a repository become one collection named after the
repository. Uses the GitHub REST API v3 tree listing and raw content URLs.
"""

from __future__ import annotations

import asyncio
import fnmatch
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from folio.exceptions import ConfigError, ManifestError, ParsingError
from folio.parsers.markdown_parser import MarkdownParser

from .base import ManifestLoader, RawCollection, RawDocument
from .files import raw_document_from_parsed

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_GLOBS = [
    "README.md",
    "docs/**/*.md",
    "docs/**/*.mdx",
    "**/*.md",
    "**/*.mdx",
]


@dataclass(slots=True)
class GitHubRepo:
    owner: str
    repo: str
    ref: str = "HEAD"

    @classmethod
    def parse(cls, spec: str) -> "GitHubRepo":
        """Parse `owner/repo[@ref]`."""
        name, _, ref = spec.strip().partition("@")
        owner, _, repo = name.partition("/")
        if not owner or not repo or "/" in repo:
            raise ConfigError(f"Invalid GitHub repository: {spec!r} (expected owner/repo[@ref])")
        return cls(owner=owner, repo=repo, ref=ref or "HEAD")


class GitHubClient:
    def __init__(
        self,
        *,
        api_base_url: str = "https://api.github.com",
        web_base_url: str = "https://github.com",
        raw_base_url: str = "https://raw.githubusercontent.com",
        token: Optional[str] = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_base_url = api_base_url.rstrip("/")
        self.web_base_url = web_base_url.rstrip("/")
        self.raw_base_url = raw_base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._md = MarkdownParser()

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(timeout=self.timeout, headers=headers)

    async def list_tree(self, client: httpx.AsyncClient, repo: GitHubRepo) -> List[Dict[str, Any]]:
        """List tree (all files) at a ref using git/trees with recursive=1."""
        url = f"{self.api_base_url}/repos/{repo.owner}/{repo.repo}/git/trees/{repo.ref}"
        resp = await client.get(url, params={"recursive": 1})
        resp.raise_for_status()
        data = resp.json()
        return data.get("tree", []) if isinstance(data, dict) else []

    def _match_any(self, path: str, patterns: Iterable[str]) -> bool:
        path = path.lstrip("/")
        return any(fnmatch.fnmatch(path, pat) for pat in patterns)

    def blob_url(self, repo: GitHubRepo, path: str) -> str:
        return f"{self.web_base_url}/{repo.owner}/{repo.repo}/blob/{repo.ref}/{path.lstrip('/')}"

    def raw_url(self, repo: GitHubRepo, path: str) -> str:
        return f"{self.raw_base_url}/{repo.owner}/{repo.repo}/{repo.ref}/{path.lstrip('/')}"

    async def fetch_markdown_docs(
        self,
        repo: GitHubRepo,
        *,
        include_globs: Optional[List[str]] = None,
        max_files: int = 200,
    ) -> List[RawDocument]:
        """Fetch and parse Markdown/MDX docs from a repository.

        Files that fail to download or parse are skipped with a warning; a
        failure to list the repository tree raises `httpx.HTTPError`.
        """
        patterns = include_globs or DEFAULT_INCLUDE_GLOBS
        async with self._client() as client:
            tree = await self.list_tree(client, repo)
            file_paths = [item.get("path") for item in tree if item.get("type") == "blob"]
            selected = [
                p for p in file_paths if isinstance(p, str) and self._match_any(p, patterns)
            ]
            selected = sorted(selected)[: max(0, int(max_files))]

            async def fetch_one(path: str) -> Optional[RawDocument]:
                try:
                    resp = await client.get(self.raw_url(repo, path))
                    resp.raise_for_status()
                    parsed = self._md.parse_markdown_content(resp.text, metadata={"path": path})
                except (httpx.HTTPError, ParsingError) as exc:
                    logger.warning("Skipping %s/%s:%s: %s", repo.owner, repo.repo, path, exc)
                    return None
                stem = path.rsplit("/", 1)[-1].rsplit(".", 1)[0]
                return raw_document_from_parsed(
                    parsed, url=self.blob_url(repo, path), fallback_title=stem
                )

            results = await asyncio.gather(*(fetch_one(p) for p in selected))
        return [r for r in results if r is not None]


class GitHubManifestLoader(ManifestLoader):
    """Loads one repository's Markdown docs as a collection."""

    def __init__(
        self,
        repo: GitHubRepo,
        *,
        client: Optional[GitHubClient] = None,
        include_globs: Optional[List[str]] = None,
        max_files: int = 200,
    ) -> None:
        self.repo = repo
        self.client = client or GitHubClient()
        self.include_globs = include_globs
        self.max_files = max_files

    @property
    def selector(self) -> str:
        suffix = f"@{self.repo.ref}" if self.repo.ref != "HEAD" else ""
        return f"github:{self.repo.owner}/{self.repo.repo}{suffix}"

    async def load(self) -> List[RawCollection]:
        try:
            documents = await self.client.fetch_markdown_docs(
                self.repo, include_globs=self.include_globs, max_files=self.max_files
            )
        except httpx.HTTPError as exc:
            raise ManifestError(self.selector, f"failed to list repository: {exc}") from exc
        logger.debug("Loaded %s (%d documents)", self.selector, len(documents))
        return [
            RawCollection(identifier=self.repo.repo, documents=tuple(documents), source=self.selector)
        ]
