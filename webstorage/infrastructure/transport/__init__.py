"""
HTTP transport for the WebStorage service.

Transport normalizes results; backends (httpx, requests, in-memory mock)
do the actual calls.
"""

from .backends import (
    HttpBackend,
    HttpRequest,
    HttpResponse,
    HttpxBackend,
    RequestsBackend,
    create_http_backend,
)
from .client import Transport
from .mock import MockStorageBackend, StoredObject

__all__ = [
    "HttpBackend",
    "HttpRequest",
    "HttpResponse",
    "HttpxBackend",
    "RequestsBackend",
    "MockStorageBackend",
    "StoredObject",
    "Transport",
    "create_http_backend",
]
