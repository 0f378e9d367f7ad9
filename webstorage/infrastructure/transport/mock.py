"""
In-memory emulation of the WebStorage service.

MockStorageBackend speaks the same HTTP contract as the real service
(presign, raw PUT, delete, storage info, listing), so the full client
flow can run without network access or credentials. Uploaded bytes are
kept in a dictionary and presigned URLs use a mock:// scheme.

Not suitable for production, but useful for development and testing.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import unquote, urlsplit
from uuid import uuid4

from .backends import HttpRequest, HttpResponse, ProgressCallback, iter_body

logger = logging.getLogger(__name__)

MOCK_UPLOAD_PREFIX = "mock://storage/upload/"


@dataclass
class StoredObject:
    """An object held by the mock service."""
    key: str
    storage_name: str
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class _PendingUpload:
    key: str
    storage_name: str
    file_name: str
    content_type: str
    size: int


class MockStorageBackend:
    """
    Fake service that records every request it receives.

    Service calls must carry an "Authorization: ApiKey ..." header; raw
    uploads to a mock:// URL must not need one, like a real presigned URL.
    Each presigned URL can be used once.
    """

    name = "mock"

    def __init__(self) -> None:
        self.objects: dict[str, StoredObject] = {}
        self.requests: list[HttpRequest] = []
        self._pending: dict[str, _PendingUpload] = {}
        logger.info("Initialized mock storage backend (in-memory)")

    async def send(
        self,
        request: HttpRequest,
        on_progress: Optional[ProgressCallback] = None,
    ) -> HttpResponse:
        self.requests.append(request)

        if request.url.startswith(MOCK_UPLOAD_PREFIX):
            return await self._handle_upload(request, on_progress)

        if not request.headers.get("Authorization", "").startswith("ApiKey "):
            return _json(401, {"detail": "Authentication credentials were not provided."})

        path = urlsplit(request.url).path
        storage_name = self._storage_from_header(request.headers)

        if request.method == "POST" and path == "/cdn/upload-url/":
            return self._handle_presign(request.json, storage_name)
        if request.method == "DELETE" and path == "/cdn/delete-object/":
            return self._handle_delete(request.json)

        if request.method == "GET" and path.startswith("/cdn/storages/"):
            parts = [unquote(p) for p in path[len("/cdn/storages/"):].split("/") if p]
            if len(parts) == 1:
                return self._handle_storage_info(parts[0])
            if len(parts) == 2 and parts[1] == "files":
                return self._handle_list(parts[0], request.params or {})

        return _json(404, {"detail": "Not found."})

    # -- handlers -----------------------------------------------------------

    def _handle_presign(self, body: Any, storage_name: str) -> HttpResponse:
        if not isinstance(body, dict) or not body.get("fileName"):
            return _json(400, {"message": "fileName is required."})

        key = f"uploads/{uuid4().hex}/{body['fileName']}"
        url = f"{MOCK_UPLOAD_PREFIX}{uuid4().hex}"
        self._pending[url] = _PendingUpload(
            key=key,
            storage_name=storage_name,
            file_name=body["fileName"],
            content_type=body.get("fileType") or "application/octet-stream",
            size=int(body.get("fileSize") or 0),
        )
        return _json(200, {"url": url, "key": key})

    async def _handle_upload(
        self,
        request: HttpRequest,
        on_progress: Optional[ProgressCallback],
    ) -> HttpResponse:
        pending = self._pending.pop(request.url, None)
        if request.method != "PUT" or pending is None:
            return HttpResponse(status_code=403, reason="Forbidden", text="expired or unknown upload URL")

        data = b""
        if request.content is not None:
            data = b"".join([chunk async for chunk in iter_body(request.content)])
        if len(data) != pending.size:
            return HttpResponse(status_code=400, reason="Bad Request", text="size mismatch")

        self.objects[pending.key] = StoredObject(
            key=pending.key,
            storage_name=pending.storage_name,
            file_name=pending.file_name,
            content_type=request.headers.get("Content-Type", pending.content_type),
            data=data,
        )
        if on_progress is not None:
            on_progress(100)
        return HttpResponse(status_code=200, reason="OK")

    def _handle_delete(self, body: Any) -> HttpResponse:
        key = body.get("key") if isinstance(body, dict) else None
        if not key:
            return _json(400, {"message": "key is required."})
        if key not in self.objects:
            return _json(404, {"detail": "Object not found."})
        del self.objects[key]
        return _json(200, {"message": "Object deleted.", "key": key})

    def _handle_storage_info(self, storage_name: str) -> HttpResponse:
        stored = self._objects_in(storage_name)
        return _json(200, {
            "name": storage_name,
            "file_count": len(stored),
            "total_size": sum(obj.size for obj in stored),
        })

    def _handle_list(self, storage_name: str, params: dict[str, Any]) -> HttpResponse:
        stored = self._objects_in(storage_name)
        prefix = params.get("prefix")
        if prefix:
            stored = [obj for obj in stored if obj.key.startswith(prefix)]
        limit = params.get("limit")
        if limit is not None:
            stored = stored[:int(limit)]
        return _json(200, {
            "files": [
                {"key": obj.key, "size": obj.size, "content_type": obj.content_type}
                for obj in stored
            ],
        })

    # -- helpers ------------------------------------------------------------

    def _objects_in(self, storage_name: str) -> list[StoredObject]:
        return [obj for obj in self.objects.values() if obj.storage_name == storage_name]

    def _storage_from_header(self, headers: dict[str, str]) -> str:
        value = headers.get("Storage", "")
        if value.startswith("Storage "):
            return value[len("Storage "):]
        return "default"


def _json(status_code: int, payload: Any) -> HttpResponse:
    reasons = {200: "OK", 400: "Bad Request", 401: "Unauthorized", 404: "Not Found"}
    return HttpResponse(
        status_code=status_code,
        reason=reasons.get(status_code, ""),
        payload=payload,
        text=json.dumps(payload),
    )
