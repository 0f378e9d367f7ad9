"""
Data types shared across the client.

Nothing here is persisted. Configs are built once per client, sources
are resolved lazily at upload time, and every public operation hands
back an OperationResult.
"""

import os
from dataclasses import dataclass, replace
from typing import Any, AsyncIterator, Callable, Optional, Union

DEFAULT_SERVICE_URL = "https://storage.teknohole.com"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
MAX_UPLOAD_SIZE_BYTES = 5 * 1024 ** 3  # 5 GiB
DEFAULT_MAX_CONCURRENT = 3


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    The API key is always required. The storage name is only needed by
    operations scoped to a named storage (storage info, listings), so it
    may be omitted, but an empty string is rejected.
    """
    api_key: str
    storage_name: Optional[str] = None
    service_url: str = DEFAULT_SERVICE_URL
    timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.api_key or not self.api_key.strip():
            raise ValueError("API key is required")
        if self.storage_name is not None and not self.storage_name.strip():
            raise ValueError("Storage name cannot be empty")
        if not self.service_url:
            raise ValueError("Service URL is required")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        # frozen, so go through object.__setattr__
        object.__setattr__(self, "service_url", self.service_url.rstrip("/"))


# ---------------------------------------------------------------------------
# Upload sources
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilePath:
    """A file on the local filesystem, referenced by path."""
    path: Union[str, "os.PathLike[str]"]

    @property
    def name(self) -> str:
        return os.path.basename(os.fspath(self.path))


@dataclass(frozen=True)
class InMemoryFile:
    """
    A file handle that only exists in memory.

    This is what a browser host hands us: a name, the bytes, and
    usually a MIME type picked by the host.
    """
    name: str
    data: bytes
    content_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("In-memory file name cannot be empty")
        if not isinstance(self.data, (bytes, bytearray, memoryview)):
            raise ValueError("In-memory file data must be bytes")


UploadSource = Union[FilePath, InMemoryFile]


def as_upload_source(value: Any) -> UploadSource:
    """
    Normalize a public-API argument into an UploadSource.

    Plain strings and path-like objects are treated as filesystem paths.
    Anything else that isn't already a FilePath or InMemoryFile is rejected.
    """
    if isinstance(value, (FilePath, InMemoryFile)):
        return value
    if isinstance(value, (str, os.PathLike)):
        return FilePath(value)
    raise TypeError(f"unsupported upload source type: {type(value).__name__}")


def source_name(value: Any) -> str:
    """Best-effort display name for a source, used to tag batch results."""
    if isinstance(value, (FilePath, InMemoryFile)):
        return value.name
    if isinstance(value, (str, os.PathLike)):
        return os.path.basename(os.fspath(value))
    return repr(value)


@dataclass
class ResolvedSource:
    """
    Everything the orchestrator needs to upload a source.

    open_stream is a factory rather than an iterator so each read
    starts from the first byte.
    """
    name: str
    size_bytes: int
    content_type: str
    open_stream: Callable[[], AsyncIterator[bytes]]

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError("size_bytes cannot be negative")

    async def read_all(self) -> bytes:
        """Buffer the whole stream. Used by backends that cannot stream."""
        chunks = [chunk async for chunk in self.open_stream()]
        return b"".join(chunks)


# ---------------------------------------------------------------------------
# Protocol values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PresignGrant:
    """Single-use upload URL plus the object key the service assigned."""
    upload_url: str
    object_key: str

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["PresignGrant"]:
        """Build from the service's {url, key} payload, or None if malformed."""
        if not isinstance(payload, dict):
            return None
        url = payload.get("url")
        key = payload.get("key")
        if not url or not key:
            return None
        return cls(upload_url=str(url), object_key=str(key))


@dataclass
class OperationResult:
    """
    The envelope every public operation returns.

    A failed result always carries a message. Batch results are also
    tagged with the name of the file they belong to.
    """
    success: bool
    status: Optional[int] = None
    data: Optional[Any] = None
    message: Optional[str] = None
    file_name: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.success and not self.message:
            raise ValueError("A failed result must include a message")

    @classmethod
    def ok(
        cls,
        data: Optional[Any] = None,
        status: Optional[int] = None,
        message: Optional[str] = None,
    ) -> "OperationResult":
        return cls(success=True, status=status, data=data, message=message)

    @classmethod
    def fail(cls, message: str, status: Optional[int] = None) -> "OperationResult":
        return cls(success=False, status=status, message=message)

    def with_file_name(self, file_name: str) -> "OperationResult":
        return replace(self, file_name=file_name)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form, leaving out fields that were never set."""
        result: dict[str, Any] = {"success": self.success}
        for key in ("status", "data", "message", "file_name"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

@dataclass
class UploadOptions:
    """Per-call options for a single upload."""
    on_progress: Optional[Callable[[int], None]] = None
    file_name: Optional[str] = None  # overrides the name sent to presign
    content_type: Optional[str] = None


@dataclass
class BatchOptions:
    """
    Options for uploading many files.

    In concurrent mode the inputs are split into chunks of max_concurrent
    and each chunk has to settle before the next one starts. Leaving
    max_concurrent unset uses the client's configured limit (settings
    max_concurrent), or DEFAULT_MAX_CONCURRENT outside a client.
    """
    concurrent: bool = True
    max_concurrent: Optional[int] = None
    on_progress: Optional[Callable[[str, int], None]] = None
