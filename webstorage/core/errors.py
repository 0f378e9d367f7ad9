"""
Exception types raised inside the client.

Public operations never let these escape: they are caught at the
operation boundary and turned into failed OperationResult envelopes.
Only client construction raises to the caller (as ValueError).
"""


class WebStorageError(Exception):
    """Base class for errors raised by the WebStorage client."""
    pass


class SourceError(WebStorageError):
    """Raised when an upload source cannot be resolved locally."""
    pass


class TransportConnectionError(WebStorageError):
    """Raised by HTTP backends when no response was received."""
    pass
