"""
Infrastructure layer - external integrations.

Each subpackage wraps something outside the core:
- transport: HTTP backends (httpx, requests, in-memory mock)
- sources: filesystem and in-memory file access

These wrappers translate between external APIs and our core models.
"""
