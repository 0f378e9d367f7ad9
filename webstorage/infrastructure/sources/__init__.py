"""
Upload source adapters (filesystem and in-memory).
"""

from .adapters import (
    FilesystemAdapter,
    MemoryAdapter,
    SourceAdapter,
    SourceResolver,
    create_source_resolver,
)

__all__ = [
    "FilesystemAdapter",
    "MemoryAdapter",
    "SourceAdapter",
    "SourceResolver",
    "create_source_resolver",
]
