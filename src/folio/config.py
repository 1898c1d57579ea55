from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseModel):
    """Application-specific configuration values."""

    name: str = "Folio"
    env: str = "development"
    debug: bool = False
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"
    # The REST routes are only served by the "http" and "sse" transports
    transport: Literal["stdio", "http", "sse"] = "http"


class ManifestConfig(BaseModel):
    """Where collections are loaded from and how often they are reloaded."""

    sources: Optional[str] = None  # Comma-separated selectors, e.g. "dir:./manifests, github:org/docs"
    refresh_interval_minutes: int = 0  # 0 disables periodic refresh

    def selectors(self) -> List[str]:
        """Return the configured source selectors, in order."""
        if not self.sources:
            return []
        return [s.strip() for s in self.sources.split(",") if s.strip()]


class SearchConfig(BaseModel):
    """Query engine configuration values."""

    max_results: int = 150
    max_query_length: int = 100
    max_edit_distance: int = 2
    # What to do with a searchProperty entry that names no loaded collection
    unknown_scope: Literal["ignore", "reject"] = "ignore"
    field_weights: Dict[str, float] = Field(
        default_factory=lambda: {"text": 1.0, "headings": 5.0, "title": 10.0, "tags": 75.0}
    )


class GitHubConfig(BaseModel):
    """GitHub manifest source configuration values."""

    token: Optional[str] = None  # Personal Access Token (optional for public repos)
    api_base_url: str = "https://api.github.com"
    web_base_url: str = "https://github.com"
    raw_base_url: str = "https://raw.githubusercontent.com"
    max_files: int = 200
    include_globs: Optional[str] = None  # Comma-separated, e.g. "README.md, docs/**/*.md"


class Settings(BaseSettings):
    """Top-level settings loaded from environment variables and .env only."""

    model_config = SettingsConfigDict(
        env_prefix="FOLIO_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    app: AppConfig = AppConfig()
    manifests: ManifestConfig = ManifestConfig()
    search: SearchConfig = SearchConfig()
    github: GitHubConfig = GitHubConfig()


def load_settings() -> Settings:
    """Load settings from environment variables and .env only."""
    return Settings()  # type: ignore[call-arg]
