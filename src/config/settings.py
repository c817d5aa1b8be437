"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "DeckReview"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # LLM gateway (OpenAI-compatible chat completions)
    llm_host: str = ""
    llm_token: str = ""

    # Model endpoints
    reasoning_endpoint: str = "/serving-endpoints/reasoning-model/invocations"
    fast_endpoint: str = "/serving-endpoints/fast-model/invocations"
    llm_request_timeout_seconds: float = 60.0

    # Langfuse tracing
    langfuse_enabled: bool = False
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Review settings
    collaborator_timeout_seconds: float = 60.0  # Deadline for any single external call
    max_total_questions: int = 10
    easy_question_count: int = 5
    medium_question_count: int = 5
    hard_question_count: int = 3
    min_detection_chars: int = 50  # Slides shorter than this are not screened
    finished_session_ttl_seconds: float = 3600.0  # How long finished sessions stay readable
    detection_concurrency: int = 5  # Slides screened in parallel

    # CORS - stored as comma-separated string in env
    # Uses validation_alias to read from CORS_ORIGINS env var
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
