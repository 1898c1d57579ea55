import json
from pathlib import Path

import pytest

from folio.config import AppConfig, ManifestConfig, Settings
from folio.mcp import server
from folio.service.models import SearchResponse
from folio.service.scheduler import REFRESH_JOB_ID
from folio.service.search_service import SearchService

# ---------- Helpers ----------


def write_manifests(root: Path) -> None:
    (root / "alpha.json").write_text(
        json.dumps(
            {
                "url": "https://docs.example/alpha",
                "aliases": ["a"],
                "documents": [
                    {"slug": "connect", "title": "Connect", "text": "Connect to a cluster."},
                ],
            }
        ),
        encoding="utf-8",
    )
    (root / "beta.json").write_text(
        json.dumps(
            {
                "url": "https://docs.example/beta/",
                "documents": [
                    {"slug": "agg/", "title": "Aggregation", "text": "Aggregation stages."},
                ],
            }
        ),
        encoding="utf-8",
    )


def settings_for(path: Path, **manifests) -> Settings:
    return Settings(manifests=ManifestConfig(sources=f"dir:{path}", **manifests))


# ---------- Configuration ----------


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FOLIO_MANIFESTS__SOURCES", "dir:./manifests, github:octo/docs ,")
    monkeypatch.setenv("FOLIO_MANIFESTS__REFRESH_INTERVAL_MINUTES", "10")
    monkeypatch.setenv("FOLIO_SEARCH__UNKNOWN_SCOPE", "reject")
    monkeypatch.setenv("FOLIO_APP__PORT", "8080")

    settings = Settings(_env_file=None)

    assert settings.manifests.selectors() == ["dir:./manifests", "github:octo/docs"]
    assert settings.manifests.refresh_interval_minutes == 10
    assert settings.search.unknown_scope == "reject"
    assert settings.app.port == 8080
    assert settings.search.max_results == 150
    assert settings.search.field_weights["tags"] == 75.0


def test_selectors_empty_by_default() -> None:
    assert ManifestConfig().selectors() == []


# ---------- SearchService ----------


def test_service_loads_configured_sources(tmp_path: Path) -> None:
    write_manifests(tmp_path)
    service = SearchService(settings_for(tmp_path))
    try:
        assert service.initial_load()
        status = service.status()
        assert status.manifests == ["alpha", "beta"]

        response = service.search("connect", "a")
        assert [r.url for r in response.results] == ["https://docs.example/alpha/connect/"]
        assert response.model_dump(by_alias=True)["spellingCorrections"] == {}
    finally:
        service.shutdown()


def test_service_picks_up_changed_sources_on_refresh(tmp_path: Path) -> None:
    write_manifests(tmp_path)
    service = SearchService(settings_for(tmp_path))
    try:
        assert service.initial_load()
        (tmp_path / "beta.json").unlink()

        ticket = service.refresh()
        assert ticket.accepted
        assert service.orchestrator.wait_idle(5)
        assert service.status().manifests == ["alpha"]
    finally:
        service.shutdown()


def test_service_schedules_periodic_refresh(tmp_path: Path) -> None:
    write_manifests(tmp_path)
    idle = SearchService(settings_for(tmp_path))
    idle.start()
    assert not idle.scheduler.running
    idle.shutdown()

    periodic = SearchService(settings_for(tmp_path, refresh_interval_minutes=30))
    periodic.start()
    try:
        assert periodic.scheduler.running
        assert periodic.scheduler.job_ids() == [REFRESH_JOB_ID]
    finally:
        periodic.shutdown(wait=False)
    assert not periodic.scheduler.running


# ---------- Entrypoint ----------


def test_main_exits_without_sources(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(server, "load_settings", lambda: Settings(_env_file=None))
    with pytest.raises(SystemExit) as exc_info:
        server.main()
    assert exc_info.value.code == 1


def test_main_exits_when_initial_build_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    settings = settings_for(tmp_path / "missing")
    monkeypatch.setattr(server, "load_settings", lambda: settings)
    with pytest.raises(SystemExit) as exc_info:
        server.main()
    assert exc_info.value.code == 1


def test_main_runs_selected_transport(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    write_manifests(tmp_path)
    settings = Settings(
        app=AppConfig(transport="sse", port=3999),
        manifests=ManifestConfig(sources=f"dir:{tmp_path}"),
    )
    calls = []
    monkeypatch.setattr(server, "load_settings", lambda: settings)
    monkeypatch.setattr(server.mcp, "run", lambda **kwargs: calls.append(kwargs))

    server.main()

    assert calls == [{"transport": "sse", "host": "127.0.0.1", "port": 3999}]
    assert server._state is not None
    assert server._state.service.status().manifests == ["alpha", "beta"]


def test_search_response_from_outcome(tmp_path: Path) -> None:
    write_manifests(tmp_path)
    service = SearchService(settings_for(tmp_path))
    try:
        assert service.initial_load()
        outcome = service.engine.search(service.handle.snapshot, "connect")
        body = SearchResponse.from_outcome(outcome).model_dump(by_alias=True)
    finally:
        service.shutdown()
    assert body["results"] == [doc.as_result() for doc in outcome.results]
    assert body["results"][0] == {
        "title": "Connect",
        "preview": "",
        "url": "https://docs.example/alpha/connect/",
    }
