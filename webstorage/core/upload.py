"""
Single-file upload orchestration.

An upload is two steps with no retries in between:
1. Presign: ask the service for a one-time upload URL and object key.
2. Put: stream the bytes straight to that URL.

If the put fails the object key is dropped. A new attempt starts again
from step 1, because presigned URLs are single-use.

This module doesn't know about HTTP libraries or file APIs. It talks to
them through the protocols below.
"""

import logging
from typing import Any, Callable, Optional, Protocol

from .content_types import resolve_content_type
from .errors import SourceError
from .models import (
    MAX_UPLOAD_SIZE_BYTES,
    OperationResult,
    PresignGrant,
    ResolvedSource,
    UploadOptions,
    UploadSource,
    as_upload_source,
)

logger = logging.getLogger(__name__)

PRESIGN_PATH = "/cdn/upload-url/"
UPLOAD_SUCCEEDED = "upload succeeded"


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ServiceTransport(Protocol):
    """What the orchestrator needs from the transport layer."""

    async def execute(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> OperationResult:
        ...

    async def put_object(
        self,
        upload_url: str,
        source: ResolvedSource,
        on_progress: Optional[Callable[[int], None]] = None,
    ) -> OperationResult:
        ...


class SourceResolving(Protocol):
    """Turns an UploadSource into a ResolvedSource, or raises SourceError."""

    async def resolve(self, source: UploadSource) -> ResolvedSource:
        ...


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------

class UploadOrchestrator:
    """
    Runs the presign -> put protocol for one source.

    Local problems (bad source type, missing file, size over the cap) come
    back as failed results before any request is made.
    """

    def __init__(
        self,
        transport: ServiceTransport,
        resolver: SourceResolving,
        max_upload_size: int = MAX_UPLOAD_SIZE_BYTES,
    ) -> None:
        self._transport = transport
        self._resolver = resolver
        self._max_upload_size = max_upload_size

    async def upload(
        self,
        source: Any,
        options: Optional[UploadOptions] = None,
    ) -> OperationResult:
        options = options or UploadOptions()

        try:
            resolved = await self._resolver.resolve(as_upload_source(source))
        except (SourceError, TypeError) as e:
            logger.warning("Rejected upload source", extra={"error": str(e)})
            return OperationResult.fail(str(e))

        resolved = self._apply_overrides(resolved, options)

        if resolved.size_bytes > self._max_upload_size:
            logger.warning(
                "Upload exceeds size cap",
                extra={
                    "file_name": resolved.name,
                    "size_bytes": resolved.size_bytes,
                    "max_bytes": self._max_upload_size,
                },
            )
            return OperationResult.fail(
                f"file too large: {resolved.name} is {resolved.size_bytes} bytes "
                f"(maximum is {self._max_upload_size} bytes)"
            )

        presign_result = await self._transport.execute(
            "POST",
            PRESIGN_PATH,
            payload={
                "fileName": resolved.name,
                "fileType": resolved.content_type,
                "fileSize": resolved.size_bytes,
            },
        )
        if not presign_result.success:
            return presign_result

        grant = PresignGrant.from_payload(presign_result.data)
        if grant is None:
            logger.error(
                "Presign response missing url or key",
                extra={"file_name": resolved.name},
            )
            return OperationResult.fail(
                "invalid presign response: missing upload url or object key",
                status=presign_result.status,
            )

        put_result = await self._transport.put_object(
            grant.upload_url,
            resolved,
            on_progress=options.on_progress,
        )
        if not put_result.success:
            return put_result

        logger.info(
            "Uploaded file",
            extra={
                "file_name": resolved.name,
                "size_bytes": resolved.size_bytes,
                "key": grant.object_key,
            },
        )
        return OperationResult.ok(
            data={"key": grant.object_key},
            status=put_result.status,
            message=UPLOAD_SUCCEEDED,
        )

    def _apply_overrides(
        self,
        resolved: ResolvedSource,
        options: UploadOptions,
    ) -> ResolvedSource:
        if options.file_name:
            resolved.name = options.file_name
            resolved.content_type = resolve_content_type(options.file_name)
        if options.content_type:
            resolved.content_type = options.content_type
        return resolved
