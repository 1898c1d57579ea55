import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from folio.config import GitHubConfig, Settings
from folio.exceptions import ConfigError, ManifestError
from folio.sources import load_sources, parse_manifest_source
from folio.sources.base import normalize_url
from folio.sources.files import FileManifestLoader
from folio.sources.github import GitHubClient, GitHubManifestLoader, GitHubRepo

# ---------- Helpers ----------


def write_manifest(root: Path, name: str, body: Any) -> Path:
    path = root / f"{name}.json"
    path.write_text(json.dumps(body), encoding="utf-8")
    return path


def write_docs_folder(root: Path) -> None:
    folder = root / "handbook"
    (folder / "sub").mkdir(parents=True)
    (folder / "intro.md").write_text(
        "# Welcome\n\nFirst paragraph.\n\n## Setup\n\nMore text.\n", encoding="utf-8"
    )
    (folder / "sub" / "page.html").write_text(
        "<html><head><title>Page</title></head><body><h1>Heading</h1><p>Hello</p></body></html>",
        encoding="utf-8",
    )
    (folder / "notes.txt").write_text("not indexed", encoding="utf-8")


GUIDE_MANIFEST = {
    "url": "https://docs.example/guide/",
    "aliases": ["g"],
    "includeInGlobalSearch": True,
    "documents": [
        {"slug": "intro/index.html", "title": "Intro", "preview": "Start here", "text": "Intro text"},
        {
            "slug": "/install/",
            "title": "Install",
            "headings": ["Linux"],
            "tags": "setup",
            "links": ["https://docs.example/guide/intro/"],
        },
    ],
}


def patch_client_with_responder(client: GitHubClient, responder: Any) -> None:
    def _client() -> httpx.AsyncClient:  # type: ignore[override]
        return httpx.AsyncClient(transport=httpx.MockTransport(responder))

    setattr(client, "_client", _client)


# ---------- Selectors ----------


def test_normalize_url() -> None:
    assert normalize_url("https://d.example/a/index.html") == "https://d.example/a/"
    assert normalize_url("https://d.example/a") == "https://d.example/a/"
    assert normalize_url("https://d.example/a/") == "https://d.example/a/"


def test_parse_manifest_source() -> None:
    settings = Settings(github=GitHubConfig(include_globs="docs/*.md, README.md", max_files=5))
    loader = parse_manifest_source("dir:./manifests", settings)
    assert isinstance(loader, FileManifestLoader)
    assert loader.path == Path("./manifests")

    gh = parse_manifest_source("github:octo/docs@v1", settings)
    assert isinstance(gh, GitHubManifestLoader)
    assert gh.selector == "github:octo/docs@v1"
    assert gh.include_globs == ["docs/*.md", "README.md"]
    assert gh.max_files == 5


@pytest.mark.parametrize("selector", ["s3:bucket", "dir:", "manifests", "github:octo", "github:a/b/c"])
def test_invalid_selectors_raise_config_error(selector: str) -> None:
    with pytest.raises(ConfigError):
        parse_manifest_source(selector, Settings())


def test_github_repo_parse() -> None:
    assert GitHubRepo.parse("octo/docs") == GitHubRepo("octo", "docs", "HEAD")
    assert GitHubRepo.parse("octo/docs@main") == GitHubRepo("octo", "docs", "main")


# ---------- Directory sources ----------


@pytest.mark.asyncio
async def test_file_loader_reads_manifests_and_folders(tmp_path: Path) -> None:
    write_manifest(tmp_path, "guide", GUIDE_MANIFEST)
    write_docs_folder(tmp_path)
    (tmp_path / ".cache").mkdir()

    collections = {c.identifier: c for c in await FileManifestLoader(tmp_path).load()}
    assert sorted(collections) == ["guide", "handbook"]

    guide = collections["guide"]
    assert guide.aliases == ("g",)
    assert [d.url for d in guide.documents] == [
        "https://docs.example/guide/intro/",
        "https://docs.example/guide/install/",
    ]
    assert guide.documents[1].headings == ("Linux",)
    assert guide.documents[1].tags == "setup"

    handbook = collections["handbook"]
    assert [d.url for d in handbook.documents] == ["intro.md", "sub/page.html"]
    intro, page = handbook.documents
    assert intro.title == "Welcome"
    assert intro.preview == "First paragraph."
    assert intro.headings == ("Welcome", "Setup")
    assert page.title == "Page"
    assert page.preview == "Hello"


def test_missing_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(ManifestError):
        FileManifestLoader(tmp_path / "missing").load_sync()


@pytest.mark.parametrize("body", ["{not json", json.dumps({"documents": []}), json.dumps([1, 2])])
def test_invalid_manifest_raises(tmp_path: Path, body: str) -> None:
    (tmp_path / "broken.json").write_text(body, encoding="utf-8")
    with pytest.raises(ManifestError) as exc_info:
        FileManifestLoader(tmp_path).load_sync()
    assert exc_info.value.source.endswith("broken.json")


@pytest.mark.asyncio
async def test_load_sources_keys_by_identifier(tmp_path: Path) -> None:
    write_manifest(tmp_path, "guide", GUIDE_MANIFEST)
    sources = await load_sources([f"dir:{tmp_path}"], Settings())
    assert list(sources) == ["guide"]
    assert sources["guide"].source == f"dir:{tmp_path}"


@pytest.mark.asyncio
async def test_load_sources_rejects_duplicate_identifiers(tmp_path: Path) -> None:
    for name in ("one", "two"):
        (tmp_path / name).mkdir()
        write_manifest(tmp_path / name, "guide", GUIDE_MANIFEST)
    with pytest.raises(ManifestError):
        await load_sources([f"dir:{tmp_path / 'one'}", f"dir:{tmp_path / 'two'}"], Settings())


# ---------- GitHub sources ----------


def github_responder(request: httpx.Request) -> httpx.Response:
    if request.url.host == "api.github.com":
        if request.url.path == "/repos/octo/docs/git/trees/HEAD":
            return httpx.Response(
                200,
                json={
                    "tree": [
                        {"path": "README.md", "type": "blob"},
                        {"path": "docs", "type": "tree"},
                        {"path": "docs/guide.md", "type": "blob"},
                        {"path": "docs/broken.md", "type": "blob"},
                        {"path": "src/app.py", "type": "blob"},
                    ]
                },
            )
        return httpx.Response(404, json={"message": "Not Found"})
    pages = {
        "/octo/docs/HEAD/README.md": "# Octo Docs\n\nWelcome to octo.\n",
        "/octo/docs/HEAD/docs/guide.md": "# Guide\n\nInstall it.\n",
    }
    if request.url.path in pages:
        return httpx.Response(200, text=pages[request.url.path])
    return httpx.Response(500, text="boom")


@pytest.mark.asyncio
async def test_github_loader_builds_one_collection() -> None:
    client = GitHubClient(token="t0k")
    patch_client_with_responder(client, github_responder)
    loader = GitHubManifestLoader(GitHubRepo("octo", "docs"), client=client)

    [collection] = await loader.load()

    assert collection.identifier == "docs"
    assert collection.source == "github:octo/docs"
    assert [d.url for d in collection.documents] == [
        "https://github.com/octo/docs/blob/HEAD/README.md",
        "https://github.com/octo/docs/blob/HEAD/docs/guide.md",
    ]
    assert [d.title for d in collection.documents] == ["Octo Docs", "Guide"]
    assert collection.documents[0].preview == "Welcome to octo."


@pytest.mark.asyncio
async def test_github_loader_respects_globs_and_cap() -> None:
    client = GitHubClient()
    patch_client_with_responder(client, github_responder)
    loader = GitHubManifestLoader(
        GitHubRepo("octo", "docs"), client=client, include_globs=["docs/*.md"], max_files=1
    )
    [collection] = await loader.load()
    # docs/broken.md sorts first and fails to download
    assert collection.documents == ()


@pytest.mark.asyncio
async def test_github_tree_failure_raises_manifest_error() -> None:
    client = GitHubClient()
    patch_client_with_responder(client, github_responder)
    loader = GitHubManifestLoader(GitHubRepo("octo", "missing"), client=client)
    with pytest.raises(ManifestError) as exc_info:
        await loader.load()
    assert exc_info.value.source == "github:octo/missing"
