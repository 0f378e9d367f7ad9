"""
Service-facing transport.

Transport adds the service headers to every call, joins relative paths
onto the service URL, and turns whatever the backend reports into an
OperationResult. It does not care which backend served the request.
"""

import logging
from typing import Any, Optional

from ...core.errors import SourceError, TransportConnectionError
from ...core.models import ClientConfig, OperationResult, ResolvedSource
from .backends import HttpBackend, HttpRequest, HttpResponse, ProgressCallback

logger = logging.getLogger(__name__)

GENERIC_HTTP_ERROR = "HTTP error occurred."
CONNECTION_FAILED_STATUS = 500


def _error_message(response: HttpResponse) -> str:
    """Pull a readable message out of a failed response body."""
    payload = response.payload
    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("detail")
        if message:
            return message if isinstance(message, str) else str(message)
    return GENERIC_HTTP_ERROR


class Transport:
    """
    Executes service calls through a pluggable HttpBackend.

    Every service call carries the API key (and the storage name when the
    client has one). Raw uploads to a presigned URL skip those headers;
    the URL carries its own authorization.
    """

    def __init__(self, config: ClientConfig, backend: HttpBackend) -> None:
        self._config = config
        self._backend = backend

    @property
    def backend(self) -> HttpBackend:
        return self._backend

    def service_headers(self) -> dict[str, str]:
        headers = {
            "Authorization": f"ApiKey {self._config.api_key}",
            "Content-Type": "application/json",
        }
        if self._config.storage_name:
            headers["Storage"] = f"Storage {self._config.storage_name}"
        return headers

    def build_url(self, path: str) -> str:
        if "://" in path:
            return path
        return f"{self._config.service_url}/{path.lstrip('/')}"

    async def execute(
        self,
        method: str,
        path: str,
        *,
        payload: Optional[Any] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> OperationResult:
        """
        Call the service and normalize the outcome.

        - 2xx: success, data is the decoded JSON body
        - other statuses: failure with the server's message/detail
        - no response: failure with status 500 and the underlying cause
        """
        merged_headers = self.service_headers()
        if headers:
            merged_headers.update(headers)

        request = HttpRequest(
            method=method,
            url=self.build_url(path),
            headers=merged_headers,
            json=payload,
            params=params,
        )

        try:
            response = await self._backend.send(request)
        except TransportConnectionError as e:
            logger.error(
                "Service call failed",
                extra={"method": method, "url": request.url, "error": str(e)},
            )
            return OperationResult.fail(f"connection failed: {e}", status=CONNECTION_FAILED_STATUS)

        if not response.is_success:
            message = _error_message(response)
            logger.warning(
                "Service returned an error",
                extra={"method": method, "url": request.url, "status": response.status_code},
            )
            return OperationResult.fail(message, status=response.status_code)

        logger.debug(
            "Service call succeeded",
            extra={"method": method, "url": request.url, "status": response.status_code},
        )
        return OperationResult.ok(data=response.payload, status=response.status_code)

    async def put_object(
        self,
        upload_url: str,
        source: ResolvedSource,
        on_progress: Optional[ProgressCallback] = None,
    ) -> OperationResult:
        """Stream the source bytes to a presigned URL with a raw PUT."""
        request = HttpRequest(
            method="PUT",
            url=upload_url,
            headers={
                "Content-Type": source.content_type,
                "Content-Length": str(source.size_bytes),
            },
            content=source.open_stream(),
            content_length=source.size_bytes,
        )

        try:
            response = await self._backend.send(request, on_progress=on_progress)
        except TransportConnectionError as e:
            logger.error(
                "Upload to storage failed",
                extra={"file_name": source.name, "error": str(e)},
            )
            return OperationResult.fail(
                f"connection to storage failed: {e}",
                status=CONNECTION_FAILED_STATUS,
            )
        except SourceError as e:
            logger.error(
                "Reading upload source failed",
                extra={"file_name": source.name, "error": str(e)},
            )
            return OperationResult.fail(str(e))

        if not response.is_success:
            logger.warning(
                "Storage rejected upload",
                extra={"file_name": source.name, "status": response.status_code},
            )
            return OperationResult.fail(
                f"upload to storage failed: {response.status_code} - {response.reason}",
                status=response.status_code,
            )

        return OperationResult.ok(status=response.status_code)
