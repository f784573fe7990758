"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings

from src.shared.constants import ANALYZER_PORT, DEFAULT_MODEL_ID, OPENROUTER_BASE_URL


class SharedConfig(BaseSettings):
    """Base configuration shared by the service and its CLI."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    database_path: str = Field(
        default="./data/app.db", validation_alias="DATABASE_PATH"
    )

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "env_file": ".env",
    }


class AnalyzerConfig(SharedConfig):
    """Configuration for the requirements analyzer service."""
    openrouter_api_key: str | None = Field(
        default=None, validation_alias="OPENROUTER_API_KEY"
    )
    model_id: str = Field(default=DEFAULT_MODEL_ID, validation_alias="MODEL_ID")
    openrouter_base_url: str = Field(
        default=OPENROUTER_BASE_URL, validation_alias="OPENROUTER_BASE_URL"
    )
    upstream_timeout_seconds: float = Field(
        default=60.0, gt=0, validation_alias="UPSTREAM_TIMEOUT_SECONDS"
    )
    port: int = Field(default=ANALYZER_PORT, validation_alias="PORT")

    @property
    def has_api_key(self) -> bool:
        return bool(self.openrouter_api_key)
