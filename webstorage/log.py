"""
Logging setup for applications and scripts using the client.

The library only creates module loggers; it never configures handlers on
import. Applications that want the default format call configure_logging.
"""

import logging
from typing import Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """Configure the root logger with the standard format."""
    if isinstance(level, str):
        level = level.upper()
    logging.basicConfig(format=LOG_FORMAT, level=level)
    logging.getLogger("webstorage").setLevel(level)
