"""
WebStorage - Python client for the WebStorage object-storage service.

This package contains:
- client: the WebStorage facade and its factory
- core: framework-agnostic models, upload orchestration and batching
- infrastructure: HTTP transport and upload source adapters
- config: pydantic settings
"""

from .client import WebStorage, create_webstorage_client
from .core.environment import HostEnvironment, detect_environment, is_client_side, is_server_side
from .core.models import (
    BatchOptions,
    ClientConfig,
    FilePath,
    InMemoryFile,
    OperationResult,
    UploadOptions,
)

__version__ = "0.1.0"

__all__ = [
    "BatchOptions",
    "ClientConfig",
    "FilePath",
    "HostEnvironment",
    "InMemoryFile",
    "OperationResult",
    "UploadOptions",
    "WebStorage",
    "create_webstorage_client",
    "detect_environment",
    "is_client_side",
    "is_server_side",
]
