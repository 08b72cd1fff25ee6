"""Application configuration using pydantic-settings pattern."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Decision Engine"
    app_version: str = "0.1.0"
    app_env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Record store (Turso/libSQL)
    database_url: str | None = Field(default=None)
    database_auth_token: str | None = Field(default=None)
    store_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Upper bound for a single store call",
    )

    # Rules
    default_rule_priority: int = Field(
        default=100,
        description="Priority given to new rules when none is supplied",
    )

    # Audit
    audit_events: bool = Field(
        default=True,
        description="Persist decision events to the audit log",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
