"""
Client configuration using Pydantic settings.

Settings come from environment variables (prefixed WEBSTORAGE_) or a
.env file, with defaults for everything except credentials. The core
client never reads the environment itself: credentials can always be
passed in code, and settings are only consulted when a caller asks for
them (create_webstorage_client, the upload script).

Mock mode swaps the HTTP backend for an in-memory emulation of the
service, enabling local development without credentials.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.models import DEFAULT_MAX_CONCURRENT, DEFAULT_SERVICE_URL, MAX_UPLOAD_SIZE_BYTES


class Settings(BaseSettings):
    """
    WebStorage client settings loaded from environment variables.

    All settings can be overridden via WEBSTORAGE_<NAME>.
    """

    # Credentials
    api_key: str = Field(
        default="",
        description="API key sent as 'Authorization: ApiKey <key>'."
    )
    storage_name: Optional[str] = Field(
        default=None,
        description="Storage to scope operations to. Needed for storage info and listings."
    )

    # Service
    service_url: str = Field(
        default=DEFAULT_SERVICE_URL,
        description="Base URL of the WebStorage service."
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for every request. The client enforces no other timeout."
    )

    # Uploads
    max_upload_size_bytes: int = Field(
        default=MAX_UPLOAD_SIZE_BYTES,
        gt=0,
        description="Largest file accepted for upload. Checked locally before presigning."
    )
    max_concurrent: int = Field(
        default=DEFAULT_MAX_CONCURRENT,
        ge=1,
        description="Default chunk size for concurrent batch uploads."
    )

    # Runtime selection
    host_environment: Literal["auto", "server", "browser"] = Field(
        default="auto",
        description="Host environment. 'auto' probes the running interpreter."
    )
    http_backend: Literal["auto", "httpx", "requests", "mock"] = Field(
        default="auto",
        description="HTTP backend. 'auto' uses httpx on servers and requests in browser hosts."
    )
    mock_mode: bool = Field(
        default=False,
        description="Use the in-memory mock service instead of the network."
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    model_config = SettingsConfigDict(
        env_prefix="WEBSTORAGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def effective_backend(self) -> str:
        """Mock mode wins over whatever backend is configured."""
        return "mock" if self.mock_mode else self.http_backend

    def validate_required_fields(self) -> list[str]:
        """
        Return the names of required settings that are missing.

        The API key is required unless running in mock mode.
        """
        missing = []
        if not self.api_key and not self.mock_mode:
            missing.append("WEBSTORAGE_API_KEY")
        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once per process. For tests, call
    get_settings.cache_clear() to reset.
    """
    return Settings()
