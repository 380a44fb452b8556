"""Configuration for the Y8 bridge."""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .log import configure_logging


class Y8Settings(BaseSettings):
    """Bridge settings, read from ``Y8_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="Y8_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # SDK
    app_id: str = Field(default="", description="Application id registered on y8.com")
    ads_id: str = Field(default="", description="Ads id; ads are skipped when empty")

    # Call ids start above this value
    first_call_id: int = Field(default=10000, description="Base of the call id counter")

    # HTTP relay
    relay_url: str | None = Field(
        default=None, description="Base URL of the HTTP relay hosting the JS SDK"
    )
    relay_timeout: float = Field(
        default=30.0, description="Timeout for relay requests in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("app_id", "ads_id", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


def get_settings(**overrides: Any) -> Y8Settings:
    """Build settings from the environment, applying explicit overrides.

    Also configures logging at the resulting level.
    """
    settings = Y8Settings(**overrides)
    configure_logging(settings.log_level)
    return settings
