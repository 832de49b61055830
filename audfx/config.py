"""Settings for the upstream rate provider, read from the environment."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised when required upstream configuration is missing or blank."""


class Settings(BaseSettings):
    """Configuration options for the audfx service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    oxr_base_url: str | None = Field(default=None, validation_alias="OXR_BASE_URL")
    oxr_app_id: str | None = Field(default=None, validation_alias="OXR_APP_ID")
    http_timeout: float = Field(default=30.0, gt=0, validation_alias="OXR_HTTP_TIMEOUT")
    log_level: str = Field(default="INFO", validation_alias="AUDFX_LOG_LEVEL")

    def base_url(self) -> str:
        """Trimmed base URL without a trailing slash."""
        value = (self.oxr_base_url or "").strip()
        if not value:
            raise ConfigurationError("[oxr] OXR_BASE_URL is not set")
        return value[:-1] if value.endswith("/") else value

    def app_id(self) -> str:
        value = (self.oxr_app_id or "").strip()
        if not value:
            raise ConfigurationError("[oxr] OXR_APP_ID is not set")
        return value

    def dict_for_logging(self) -> dict[str, Any]:
        """Return a sanitized dict for logging purposes."""

        hidden = {"oxr_app_id"}
        return {k: ("***" if k in hidden else v) for k, v in self.model_dump().items()}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""
    return Settings()
