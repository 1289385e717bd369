"""Client configuration."""

import os
from typing import Any

from pydantic import BaseModel, Field, field_validator

ENV_URL = "DIALOQBASE_URL"
ENV_API_KEY = "DIALOQBASE_API_KEY"
ENV_TIMEOUT = "DIALOQBASE_TIMEOUT"


class ClientConfig(BaseModel):
    """Configuration for the Dialoqbase client."""

    url: str = Field(..., description="Dialoqbase server URL")
    api_key: str = Field(..., description="Dialoqbase API key")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        if not value:
            raise ValueError("Missing dialoqbase_url")
        return value[:-1] if value.endswith("/") else value

    @field_validator("api_key")
    @classmethod
    def require_api_key(cls, value: str) -> str:
        if not value:
            raise ValueError("Missing dialoqbase_api_key")
        return value

    @property
    def admin_url(self) -> str:
        return f"{self.url}/api/v1/admin"

    @property
    def bot_url(self) -> str:
        return f"{self.url}/api/v1/bot"

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Build a config from ``DIALOQBASE_*`` environment variables.

        Keyword arguments that are not ``None`` take precedence.
        """
        values: dict[str, Any] = {
            "url": os.environ.get(ENV_URL, ""),
            "api_key": os.environ.get(ENV_API_KEY, ""),
        }
        if ENV_TIMEOUT in os.environ:
            values["timeout"] = os.environ[ENV_TIMEOUT]
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
