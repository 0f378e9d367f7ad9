"""
Host environment detection.

The client runs either in a regular Python process with filesystem
access (server) or inside a WebAssembly host such as Pyodide (browser),
where files only arrive as in-memory handles. Detection runs once per
process; clients can still override it at construction.
"""

import logging
import os
import sys
from enum import Enum
from functools import lru_cache
from typing import Union

logger = logging.getLogger(__name__)


class HostEnvironment(Enum):
    """Where the client is running."""
    SERVER = "server"
    BROWSER = "browser"
    UNKNOWN = "unknown"  # neither filesystem nor browser file handles


def _has_filesystem() -> bool:
    try:
        os.stat(os.curdir)
    except OSError:
        return False
    return True


@lru_cache()
def detect_environment() -> HostEnvironment:
    """
    Probe the host once and cache the answer.

    For tests, call detect_environment.cache_clear() to probe again.
    """
    if sys.platform == "emscripten":
        environment = HostEnvironment.BROWSER
    elif _has_filesystem():
        environment = HostEnvironment.SERVER
    else:
        environment = HostEnvironment.UNKNOWN

    logger.debug("Detected host environment", extra={"environment": environment.value})
    return environment


def is_server_side() -> bool:
    return detect_environment() is HostEnvironment.SERVER


def is_client_side() -> bool:
    return detect_environment() is HostEnvironment.BROWSER


def resolve_environment(value: Union[HostEnvironment, str, None] = None) -> HostEnvironment:
    """
    Turn a configured value into a concrete environment.

    Accepts a HostEnvironment, one of "auto", "server", "browser", or None
    (same as "auto").
    """
    if isinstance(value, HostEnvironment):
        return value
    if value is None or value == "auto":
        return detect_environment()
    try:
        return HostEnvironment(value)
    except ValueError:
        raise ValueError(f"Unknown host environment: {value!r}") from None
