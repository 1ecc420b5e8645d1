"""Configuration models for the HTTP request layer."""

from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api_client.http.cancellation import KeyCollisionPolicy
from api_client.http.constants import (
    DEFAULT_RETRIES,
    DEFAULT_TIMEOUT_MS,
    JSON_CONTENT_TYPE,
)
from api_client.http.models import RetryPolicy


if TYPE_CHECKING:
    from api_client.settings.app import AppSettings


class ClientConfig(BaseModel):
    """Configuration for an ApiClient.

    Central configuration for the backend address, default headers,
    per-call defaults and retry behavior.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str = Field(default="", description="Default backend address")
    base_urls: dict[str, str] = Field(
        default_factory=dict, description="Named alternative backend addresses"
    )
    default_headers: dict[str, str] = Field(
        default_factory=lambda: {"Accept": JSON_CONTENT_TYPE},
        description="Headers sent with every request",
    )
    default_timeout_ms: Annotated[int, Field(ge=0)] = DEFAULT_TIMEOUT_MS
    default_retries: Annotated[int, Field(ge=1, le=20)] = DEFAULT_RETRIES
    retry_policy: RetryPolicy = Field(default_factory=RetryPolicy)
    key_collision_policy: KeyCollisionPolicy = KeyCollisionPolicy.REPLACE

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Paths start with '/', so the base address must not end with one."""
        return v.rstrip("/")

    def select_base_url(self, name: str | None = None) -> str:
        """Get a named backend address.

        Args:
            name: Key in base_urls. None or "default" selects base_url.

        Returns:
            The named address, falling back to base_url for unknown names.
        """
        if name is None or name == "default":
            return self.base_url
        return self.base_urls.get(name, self.base_url).rstrip("/")

    @classmethod
    def from_settings(
        cls, settings: "AppSettings", **overrides: object
    ) -> "ClientConfig":
        """Build a config from environment-backed settings.

        Args:
            settings: Loaded application settings.
            overrides: Fields that take precedence over the settings.

        Returns:
            ClientConfig instance.
        """
        values: dict[str, object] = {
            "base_url": settings.api_base_url,
            "default_timeout_ms": settings.api_timeout_ms,
            "default_retries": settings.api_retries,
        }
        values.update(overrides)
        return cls.model_validate(values)
