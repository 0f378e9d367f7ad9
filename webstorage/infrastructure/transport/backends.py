"""
HTTP backends for the transport layer.

Two real backends sit behind one protocol:
- HttpxBackend (primary): async client with streamed request bodies and
  upload progress reporting.
- RequestsBackend (fallback): blocking requests call pushed onto a worker
  thread. Bodies are buffered and progress is not reported.

Which one is used is decided once from the host environment (see
create_http_backend). Callers only see HttpResponse or a
TransportConnectionError, never library-specific exceptions.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Optional, Protocol, Union

import httpx
import requests

from ...core.environment import HostEnvironment
from ...core.errors import TransportConnectionError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]
RequestBody = Union[bytes, AsyncIterator[bytes]]


@dataclass
class HttpRequest:
    """A backend-neutral description of one HTTP call."""
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    json: Optional[Any] = None
    params: Optional[dict[str, Any]] = None
    content: Optional[RequestBody] = None
    content_length: Optional[int] = None


@dataclass
class HttpResponse:
    """What came back. payload is the decoded JSON body, if there was one."""
    status_code: int
    reason: str = ""
    payload: Optional[Any] = None
    text: str = ""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HttpBackend(Protocol):
    """
    Interface for anything that can execute an HttpRequest.

    Implementations raise TransportConnectionError when no response was
    received, and return an HttpResponse for every status code otherwise.
    """

    async def send(
        self,
        request: HttpRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> HttpResponse:
        ...


def _decode_payload(text: str) -> Optional[Any]:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return None


async def iter_body(content: RequestBody) -> AsyncIterator[bytes]:
    if isinstance(content, (bytes, bytearray, memoryview)):
        yield bytes(content)
        return
    async for chunk in content:
        yield chunk


async def _track_progress(
    content: RequestBody,
    total: int,
    on_progress: ProgressCallback,
) -> AsyncIterator[bytes]:
    """Pass chunks through while reporting integer percent sent."""
    sent = 0
    last_percent = -1
    async for chunk in iter_body(content):
        sent += len(chunk)
        percent = min(100, sent * 100 // total) if total else 100
        if percent != last_percent:
            on_progress(percent)
            last_percent = percent
        yield chunk
    if last_percent != 100:
        on_progress(100)


# ---------------------------------------------------------------------------
# httpx (primary)
# ---------------------------------------------------------------------------

class HttpxBackend:
    """
    Primary backend built on httpx.AsyncClient.

    A fresh client is opened per request, so there is nothing to close.
    Tests (or callers with special networking needs) can pass their own
    httpx transport, e.g. httpx.MockTransport.
    """

    name = "httpx"

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def send(
        self,
        request: HttpRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> HttpResponse:
        content = request.content
        if content is not None and on_progress is not None:
            content = _track_progress(content, request.content_length or 0, on_progress)

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(
                    request.method,
                    request.url,
                    headers=request.headers,
                    json=request.json,
                    params=request.params,
                    content=content,
                )
        except httpx.RequestError as e:
            logger.warning(
                "HTTP request failed without response",
                extra={"method": request.method, "url": request.url, "error": str(e)},
            )
            raise TransportConnectionError(str(e) or type(e).__name__) from e

        return HttpResponse(
            status_code=response.status_code,
            reason=response.reason_phrase,
            payload=_decode_payload(response.text),
            text=response.text,
        )


# ---------------------------------------------------------------------------
# requests (fallback)
# ---------------------------------------------------------------------------

class RequestsBackend:
    """
    Fallback backend built on requests.

    requests is synchronous, so each call runs in a worker thread to keep
    the event loop free. Streamed bodies are read into memory first and
    no progress is reported.
    """

    name = "requests"

    def __init__(self, timeout: float = 30.0) -> None:
        self._timeout = timeout

    async def send(
        self,
        request: HttpRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> HttpResponse:
        data = None
        if request.content is not None:
            data = b"".join([chunk async for chunk in iter_body(request.content)])

        try:
            response = await asyncio.to_thread(
                requests.request,
                request.method,
                request.url,
                headers=request.headers,
                json=request.json,
                params=request.params,
                data=data,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning(
                "HTTP request failed without response",
                extra={"method": request.method, "url": request.url, "error": str(e)},
            )
            raise TransportConnectionError(str(e) or type(e).__name__) from e

        return HttpResponse(
            status_code=response.status_code,
            reason=response.reason or "",
            payload=_decode_payload(response.text),
            text=response.text,
        )


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_http_backend(
    name: str = "auto",
    environment: HostEnvironment = HostEnvironment.SERVER,
    timeout: float = 30.0,
) -> HttpBackend:
    """
    Pick a backend by name or by host capability.

    "auto" means httpx wherever a full network stack is available and
    requests in a browser host. "mock" returns an in-memory emulation of
    the service.
    """
    if name == "auto":
        name = "requests" if environment is HostEnvironment.BROWSER else "httpx"

    if name == "httpx":
        backend: HttpBackend = HttpxBackend(timeout=timeout)
    elif name == "requests":
        backend = RequestsBackend(timeout=timeout)
    elif name == "mock":
        from .mock import MockStorageBackend
        backend = MockStorageBackend()
    else:
        raise ValueError(f"Unknown HTTP backend: {name!r}")

    logger.debug(
        "Selected HTTP backend",
        extra={"backend": name, "environment": environment.value},
    )
    return backend
