"""
Upload source adapters.

Each adapter knows how to turn one kind of UploadSource into a
ResolvedSource (name, size, content type, byte stream):
- FilesystemAdapter: FilePath values, streamed from disk
- MemoryAdapter: InMemoryFile values, streamed from memory

SourceResolver holds the adapters the host environment allows and
dispatches on the source's type. A source with no matching adapter
(e.g. a path in a browser host) is a SourceError, raised before anything
touches the network.
"""

import asyncio
import logging
import os
import stat
from typing import AsyncIterator, Optional, Protocol, Sequence

from ...core.content_types import resolve_content_type
from ...core.environment import HostEnvironment
from ...core.errors import SourceError
from ...core.models import FilePath, InMemoryFile, ResolvedSource, UploadSource

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class SourceAdapter(Protocol):
    """
    Interface for resolving upload sources.

    Using a protocol means the orchestrator doesn't know whether bytes
    come from disk or memory; it just gets a ResolvedSource.
    """

    def supports(self, source: UploadSource) -> bool:
        """True if this adapter can resolve the source."""
        ...

    async def resolve(self, source: UploadSource) -> ResolvedSource:
        """Resolve metadata and a byte stream. Raises SourceError."""
        ...


class FilesystemAdapter:
    """Reads files from the local filesystem."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def supports(self, source: UploadSource) -> bool:
        return isinstance(source, FilePath)

    async def resolve(self, source: UploadSource) -> ResolvedSource:
        path = os.fspath(source.path)
        try:
            stats = await asyncio.to_thread(os.stat, path)
        except FileNotFoundError:
            raise SourceError(f"file not found: {path}") from None
        except OSError as e:
            raise SourceError(f"cannot read file {path}: {e}") from e
        except ValueError as e:
            raise SourceError(f"invalid file path {path!r}: {e}") from e

        if not stat.S_ISREG(stats.st_mode):
            raise SourceError(f"not a regular file: {path}")

        name = os.path.basename(path)
        return ResolvedSource(
            name=name,
            size_bytes=stats.st_size,
            content_type=resolve_content_type(name),
            open_stream=lambda: self._stream(path),
        )

    async def _stream(self, path: str) -> AsyncIterator[bytes]:
        # the file can vanish or change between stat and read
        try:
            handle = await asyncio.to_thread(open, path, "rb")
        except OSError as e:
            raise SourceError(f"cannot read file {path}: {e}") from e
        try:
            while True:
                try:
                    chunk = await asyncio.to_thread(handle.read, self._chunk_size)
                except OSError as e:
                    raise SourceError(f"cannot read file {path}: {e}") from e
                if not chunk:
                    break
                yield chunk
        finally:
            handle.close()


class MemoryAdapter:
    """Serves bytes already held in memory (browser file handles)."""

    def __init__(self, chunk_size: int = CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def supports(self, source: UploadSource) -> bool:
        return isinstance(source, InMemoryFile)

    async def resolve(self, source: UploadSource) -> ResolvedSource:
        data = bytes(source.data)
        return ResolvedSource(
            name=source.name,
            size_bytes=len(data),
            content_type=source.content_type or resolve_content_type(source.name),
            open_stream=lambda: self._stream(data),
        )

    async def _stream(self, data: bytes) -> AsyncIterator[bytes]:
        view = memoryview(data)
        for start in range(0, len(view), self._chunk_size):
            yield bytes(view[start:start + self._chunk_size])
            await asyncio.sleep(0)


class SourceResolver:
    """Dispatches sources to the first adapter that supports them."""

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        environment: HostEnvironment,
    ) -> None:
        self._adapters = list(adapters)
        self._environment = environment

    @property
    def environment(self) -> HostEnvironment:
        return self._environment

    async def resolve(self, source: UploadSource) -> ResolvedSource:
        if not self._adapters:
            raise SourceError(
                f"no file access available in this host ({self._environment.value} environment)"
            )

        adapter = self._find_adapter(source)
        if adapter is None:
            raise SourceError(
                f"{type(source).__name__} sources are not supported "
                f"in the {self._environment.value} environment"
            )
        return await adapter.resolve(source)

    def _find_adapter(self, source: UploadSource) -> Optional[SourceAdapter]:
        for adapter in self._adapters:
            if adapter.supports(source):
                return adapter
        return None


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_source_resolver(environment: HostEnvironment) -> SourceResolver:
    """
    Build the resolver allowed by the host environment.

    Server hosts read from disk and also accept in-memory files.
    Browser hosts only have in-memory files. Unknown hosts get no
    adapters, so every upload is rejected with a clear message.
    """
    if environment is HostEnvironment.SERVER:
        adapters: list[SourceAdapter] = [FilesystemAdapter(), MemoryAdapter()]
    elif environment is HostEnvironment.BROWSER:
        adapters = [MemoryAdapter()]
    else:
        adapters = []

    logger.debug(
        "Created source resolver",
        extra={
            "environment": environment.value,
            "adapters": [type(a).__name__ for a in adapters],
        },
    )
    return SourceResolver(adapters, environment)
