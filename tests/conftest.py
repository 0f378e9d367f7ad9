"""
Shared fixtures for the WebStorage client tests.

Nothing here touches the network: HTTP calls go to a StubBackend that
records requests and answers from a handler, or to the in-memory
MockStorageBackend.
"""

import json
from typing import Callable, Optional

import pytest

from webstorage import HostEnvironment, WebStorage
from webstorage.config import Settings
from webstorage.core.environment import detect_environment
from webstorage.infrastructure.transport import HttpRequest, HttpResponse, MockStorageBackend
from webstorage.infrastructure.transport.backends import iter_body


def json_response(status_code: int, payload, reason: str = "") -> HttpResponse:
    return HttpResponse(
        status_code=status_code,
        reason=reason,
        payload=payload,
        text=json.dumps(payload),
    )


class StubBackend:
    """
    HttpBackend that answers from a handler and records every request.

    Streamed bodies are drained so the recorded request carries the bytes
    that would have gone over the wire in `bodies`.
    """

    name = "stub"

    def __init__(self, handler: Callable[[HttpRequest], HttpResponse]) -> None:
        self._handler = handler
        self.requests: list[HttpRequest] = []
        self.bodies: list[Optional[bytes]] = []

    async def send(self, request: HttpRequest, on_progress=None) -> HttpResponse:
        self.requests.append(request)
        body = None
        if request.content is not None:
            body = b"".join([chunk async for chunk in iter_body(request.content)])
        self.bodies.append(body)
        return self._handler(request)


@pytest.fixture(autouse=True)
def reset_environment_cache():
    """Each test probes the host environment from scratch."""
    detect_environment.cache_clear()
    yield
    detect_environment.cache_clear()


@pytest.fixture
def settings() -> Settings:
    """Settings that ignore any local .env file."""
    return Settings(_env_file=None, api_key="test-key", storage_name="photos")


@pytest.fixture
def mock_backend() -> MockStorageBackend:
    return MockStorageBackend()


@pytest.fixture
def mock_client(settings, mock_backend) -> WebStorage:
    """Server-side client wired to the in-memory mock service."""
    return WebStorage(
        "test-key",
        "photos",
        settings=settings,
        environment=HostEnvironment.SERVER,
        backend=mock_backend,
    )
