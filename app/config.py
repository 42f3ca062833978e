from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=(str(Path(__file__).resolve().parents[1] / ".env"), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    app_name: str = Field(default="Email Log Dashboard API", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="production",
        alias="APP_ENV",
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        alias="CORS_ORIGINS",
    )

    # Workflow bridge. Missing values are reported per request.
    n8n_url: str | None = Field(default=None, alias="N8N_URL")
    n8n_api_key: SecretStr | None = Field(default=None, alias="N8N_API_KEY")
    n8n_workflow_id: str | None = Field(default=None, alias="N8N_WORKFLOW_ID")
    n8n_dialect: Literal["v1", "put_active"] = Field(default="v1", alias="N8N_DIALECT")
    n8n_strict_parsing: bool = Field(default=False, alias="N8N_STRICT_PARSING")
    n8n_lookup_canonical_id: bool = Field(default=True, alias="N8N_LOOKUP_CANONICAL_ID")
    n8n_timeout_seconds: float = Field(default=30.0, gt=0, le=300, alias="N8N_TIMEOUT_SECONDS")

    # Dashboard data source.
    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_anon_key: SecretStr | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    db_pool_size: int = Field(default=5, ge=1, le=100, alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, ge=0, le=200, alias="DB_MAX_OVERFLOW")

    email_log_limit: int = Field(default=50, ge=1, le=1000, alias="EMAIL_LOG_LIMIT")
    email_log_poll_seconds: float = Field(default=5.0, gt=0, le=3600, alias="EMAIL_LOG_POLL_SECONDS")

    @field_validator("api_v1_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        """Ensure the API prefix starts with a slash and has no trailing slash."""
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("API_V1_PREFIX must start with '/'.")
        if len(normalized) > 1 and normalized.endswith("/"):
            normalized = normalized.rstrip("/")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str]) -> list[str]:
        """Support comma-separated CORS origins from environment variables."""
        if isinstance(value, str):
            if not value.strip():
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, value: str | None) -> str | None:
        """Accept PostgreSQL URLs, plus SQLite for local runs and tests."""
        if value is None or not value.strip():
            return None
        lowered = value.lower()
        if not lowered.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite")):
            raise ValueError("DATABASE_URL must start with postgresql://, postgresql+psycopg2:// or sqlite")
        return value

    def presence(self) -> dict[str, bool]:
        """Which settings are present, without revealing any values."""
        return {
            "N8N_URL": bool(self.n8n_url and self.n8n_url.strip()),
            "N8N_API_KEY": bool(self.n8n_api_key and self.n8n_api_key.get_secret_value().strip()),
            "N8N_WORKFLOW_ID": bool(self.n8n_workflow_id and self.n8n_workflow_id.strip()),
            "DATABASE_URL": bool(self.database_url),
            "SUPABASE_URL": bool(self.supabase_url),
            "SUPABASE_ANON_KEY": bool(self.supabase_anon_key and self.supabase_anon_key.get_secret_value()),
        }


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return Settings()
