"""
Client configuration using Pydantic settings.

Configuration comes from WEBSTORAGE_* environment variables with sensible
defaults. Supports a mock mode for local development.
"""

from .settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
