from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Semantic Scholar endpoints
    s2_base_url: str = "https://www.semanticscholar.org"
    s2_api_base_url: str = "https://api.semanticscholar.org"
    references_page_size: int = 1000
    http_timeout_s: float = 12.0

    vanity_base_url: str = "https://www.arxiv-vanity.org"

    # Link rendering
    service_name: str = "Semantic Scholar"
    link_target: str = "_blank"
    citation_tag: str = "cite"

    # Readiness polling (None disables the limit)
    readiness_interval_s: float = 0.1
    readiness_timeout_s: float | None = 30.0
    readiness_max_attempts: int | None = None

    # Structured logging
    log_format: str = "json"  # "json" or "text"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
