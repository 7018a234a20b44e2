"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: Literal["development", "production", "test"] = "development"
    debug: bool = False
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    # Perplexity (AI analysis and SERP research)
    perplexity_api_key: str | None = None
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar-pro"

    # DataForSEO (technical, content and competitor data)
    dataforseo_login: str | None = None
    dataforseo_password: str | None = None
    dataforseo_base_url: str = "https://api.dataforseo.com/v3"

    # Audit orchestration
    audit_step_timeout_seconds: float = 30.0  # Per-step budget, fallback after this
    audit_default_language: str = "en"
    audit_use_fallbacks: bool = True

    # Sentry
    sentry_dsn: str | None = None

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.env == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test mode."""
        return self.env == "test"

    @property
    def perplexity_configured(self) -> bool:
        """Check if Perplexity credentials are present."""
        return bool(self.perplexity_api_key)

    @property
    def dataforseo_configured(self) -> bool:
        """Check if DataForSEO credentials are present."""
        return bool(self.dataforseo_login and self.dataforseo_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
