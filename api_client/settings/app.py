"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from api_client.http.constants import DEFAULT_RETRIES, DEFAULT_TIMEOUT_MS


class AppSettings(BaseSettings):
    """Centralized environment configuration.

    Read only when a caller asks for it; the executor never looks at the
    process environment itself.
    """

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    api_base_url: str = Field(default="", validation_alias="API_BASE_URL")
    api_timeout_ms: int = Field(
        default=DEFAULT_TIMEOUT_MS, ge=0, validation_alias="API_TIMEOUT_MS"
    )
    api_retries: int = Field(
        default=DEFAULT_RETRIES, ge=1, validation_alias="API_RETRIES"
    )
    api_access_token: str | None = Field(
        default=None, validation_alias="API_ACCESS_TOKEN"
    )


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
