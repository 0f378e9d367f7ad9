"""
WebStorage client.

The public entry point. A WebStorage instance wires together:
- the host environment (detected once, or passed in)
- an HTTP backend picked for that environment
- the service Transport
- the source resolver (filesystem and/or in-memory adapters)
- the upload orchestrator and batch scheduler

Every public method returns an OperationResult (a list of them for
batches). Only construction raises, so bad credentials fail fast.

Usage:
    client = WebStorage(api_key="...", storage_name="photos")
    result = await client.upload_file("holiday.jpg")
    if result.success:
        await client.delete_file(result.data["key"])
"""

import logging
from dataclasses import replace
from typing import Any, Optional, Union
from urllib.parse import quote

from .config.settings import Settings, get_settings
from .core.batch import upload_batch
from .core.environment import HostEnvironment, resolve_environment
from .core.models import (
    BatchOptions,
    ClientConfig,
    OperationResult,
    UploadOptions,
    source_name,
)
from .core.upload import UploadOrchestrator
from .infrastructure.sources import create_source_resolver
from .infrastructure.transport import HttpBackend, Transport, create_http_backend

logger = logging.getLogger(__name__)

DELETE_PATH = "/cdn/delete-object/"
STORAGES_PATH = "/cdn/storages"


class WebStorage:
    """
    Client for uploading, deleting and listing objects in WebStorage.

    Args:
        api_key: API key for the service (required)
        storage_name: storage to scope calls to; required for
            get_storage_info and list_files
        settings: service URL, timeout, size cap and backend selection;
            defaults to get_settings()
        environment: force a host environment instead of probing
        backend: use this HTTP backend instead of picking one
    """

    def __init__(
        self,
        api_key: str,
        storage_name: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        environment: Union[HostEnvironment, str, None] = None,
        backend: Optional[HttpBackend] = None,
    ) -> None:
        settings = settings or get_settings()

        self._config = ClientConfig(
            api_key=api_key,
            storage_name=storage_name,
            service_url=settings.service_url,
            timeout_seconds=settings.timeout_seconds,
        )
        self._settings = settings
        self._environment = resolve_environment(
            environment if environment is not None else settings.host_environment
        )

        if backend is None:
            backend = create_http_backend(
                settings.effective_backend,
                environment=self._environment,
                timeout=self._config.timeout_seconds,
            )

        self._transport = Transport(self._config, backend)
        self._orchestrator = UploadOrchestrator(
            self._transport,
            create_source_resolver(self._environment),
            max_upload_size=settings.max_upload_size_bytes,
        )

        logger.info(
            "Initialized WebStorage client",
            extra={
                "service_url": self._config.service_url,
                "storage_name": self._config.storage_name,
                "environment": self._environment.value,
                "backend": getattr(backend, "name", type(backend).__name__),
            },
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def environment(self) -> HostEnvironment:
        return self._environment

    @property
    def is_server_side(self) -> bool:
        return self._environment is HostEnvironment.SERVER

    @property
    def is_client_side(self) -> bool:
        return self._environment is HostEnvironment.BROWSER

    @property
    def transport(self) -> Transport:
        return self._transport

    # -- uploads --------------------------------------------------------------

    async def upload_file(
        self,
        source: Any,
        options: Optional[UploadOptions] = None,
    ) -> OperationResult:
        """
        Upload one file.

        source is a path (str / os.PathLike / FilePath) on server hosts or
        an InMemoryFile on either host. On success, data["key"] is the
        object key to use for deletion.
        """
        return await self._orchestrator.upload(source, options)

    async def upload_multiple_files(
        self,
        sources: Any,
        options: Optional[BatchOptions] = None,
    ) -> list[OperationResult]:
        """
        Upload many files, returning one tagged result per input, in order.

        Concurrent by default. Unless options set max_concurrent, the
        settings value (default 3) caps how many run at a time.
        """
        options = options or BatchOptions()
        if options.max_concurrent is None:
            options = replace(options, max_concurrent=self._settings.max_concurrent)

        async def upload_one(source: Any) -> OperationResult:
            upload_options = UploadOptions()
            if options.on_progress is not None:
                name = source_name(source)
                upload_options.on_progress = lambda percent: options.on_progress(name, percent)
            return await self._orchestrator.upload(source, upload_options)

        return await upload_batch(sources, upload_one, options)

    # -- deletion -------------------------------------------------------------

    async def delete_file(self, object_key: str) -> OperationResult:
        """Delete an object by key. No existence check is made first."""
        if not isinstance(object_key, str) or not object_key.strip():
            return OperationResult.fail("object key is required")

        result = await self._transport.execute(
            "DELETE",
            DELETE_PATH,
            payload={"key": object_key},
        )
        if result.success:
            logger.info("Deleted object", extra={"key": object_key})
        return result

    # -- metadata -------------------------------------------------------------

    async def get_storage_info(self) -> OperationResult:
        """Fetch information about the configured storage."""
        if not self._config.storage_name:
            return OperationResult.fail("storage name is required for this operation")

        return await self._transport.execute("GET", self._storage_path())

    async def list_files(
        self,
        limit: Optional[int] = None,
        prefix: Optional[str] = None,
    ) -> OperationResult:
        """List files in the configured storage, optionally limited and filtered by key prefix."""
        if not self._config.storage_name:
            return OperationResult.fail("storage name is required for this operation")
        if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit < 1):
            return OperationResult.fail("limit must be a positive integer")

        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if prefix:
            params["prefix"] = prefix

        return await self._transport.execute(
            "GET",
            f"{self._storage_path()}files/",
            params=params or None,
        )

    def _storage_path(self) -> str:
        return f"{STORAGES_PATH}/{quote(self._config.storage_name, safe='')}/"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_webstorage_client(
    settings: Optional[Settings] = None,
    mock_mode: Optional[bool] = None,
) -> WebStorage:
    """
    Create a client from settings.

    Args:
        settings: settings to use (defaults to get_settings())
        mock_mode: override settings.mock_mode

    Raises:
        ValueError: if required settings are missing
    """
    settings = settings or get_settings()
    if mock_mode is not None:
        settings = settings.model_copy(update={"mock_mode": mock_mode})

    missing = settings.validate_required_fields()
    if missing:
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    # mock mode runs without credentials
    api_key = settings.api_key or "mock-api-key"
    return WebStorage(api_key, settings.storage_name, settings=settings)
