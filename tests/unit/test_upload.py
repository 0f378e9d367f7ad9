"""
Unit tests for single-file uploads and deletion.

Uses StubBackend when a test needs exact control over responses and the
in-memory MockStorageBackend for end-to-end flows.
"""

import os

import pytest

from conftest import StubBackend, json_response
from webstorage import FilePath, HostEnvironment, InMemoryFile, UploadOptions, WebStorage
from webstorage.config import Settings
from webstorage.core.models import OperationResult


def make_client(settings, backend, environment=HostEnvironment.SERVER) -> WebStorage:
    return WebStorage("test-key", "photos", settings=settings, environment=environment, backend=backend)


def unexpected(request):
    raise AssertionError(f"unexpected request: {request.method} {request.url}")


# ---------------------------------------------------------------------------
# Local Validation Tests
# ---------------------------------------------------------------------------

class TestLocalValidation:
    """Problems found locally never reach the network."""

    @pytest.mark.asyncio
    async def test_missing_file_fails_without_network(self, settings, tmp_path):
        backend = StubBackend(unexpected)
        client = make_client(settings, backend)

        result = await client.upload_file(str(tmp_path / "missing.txt"))

        assert not result.success
        assert "file not found" in result.message
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_directory_is_rejected(self, settings, tmp_path):
        backend = StubBackend(unexpected)

        result = await make_client(settings, backend).upload_file(tmp_path)

        assert not result.success
        assert "not a regular file" in result.message

    @pytest.mark.asyncio
    async def test_oversized_file_fails_without_network(self, tmp_path):
        """Files over the size cap are rejected before presigning."""
        small_cap = Settings(_env_file=None, api_key="k", max_upload_size_bytes=10)
        path = tmp_path / "big.bin"
        path.write_bytes(b"0" * 11)
        backend = StubBackend(unexpected)

        result = await make_client(small_cap, backend).upload_file(path)

        assert not result.success
        assert "file too large" in result.message
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_default_cap_is_five_gib(self, settings):
        """A 5 GiB + 1 byte source is rejected by the default cap."""
        from webstorage.core.models import ResolvedSource
        from webstorage.core.upload import UploadOrchestrator

        class HugeSource:
            async def resolve(self, source):
                return ResolvedSource(
                    name="huge.iso",
                    size_bytes=5 * 1024 ** 3 + 1,
                    content_type="application/octet-stream",
                    open_stream=lambda: None,
                )

        backend = StubBackend(unexpected)
        client = make_client(settings, backend)
        orchestrator = UploadOrchestrator(client.transport, HugeSource())

        result = await orchestrator.upload(FilePath("huge.iso"))

        assert not result.success
        assert "file too large" in result.message
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_path_in_browser_host_is_rejected(self, settings):
        backend = StubBackend(unexpected)
        client = make_client(settings, backend, environment=HostEnvironment.BROWSER)

        result = await client.upload_file("photo.jpg")

        assert not result.success
        assert "not supported in the browser environment" in result.message
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_unknown_host_rejects_every_upload(self, settings):
        backend = StubBackend(unexpected)
        client = make_client(settings, backend, environment=HostEnvironment.UNKNOWN)

        result = await client.upload_file(InMemoryFile(name="a.txt", data=b"hi"))

        assert not result.success
        assert "no file access available" in result.message

    @pytest.mark.asyncio
    async def test_unsupported_source_type(self, settings):
        backend = StubBackend(unexpected)

        result = await make_client(settings, backend).upload_file(12345)

        assert not result.success
        assert "unsupported upload source" in result.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["bad\x00name.txt", "dir/\x00"])
    async def test_path_with_null_byte_fails_without_network(self, settings, path):
        backend = StubBackend(unexpected)

        result = await make_client(settings, backend).upload_file(path)

        assert not result.success
        assert "invalid file path" in result.message
        assert backend.requests == []


# ---------------------------------------------------------------------------
# Presign -> Put Protocol Tests
# ---------------------------------------------------------------------------

class TestUploadProtocol:
    """The two-step presign and put flow."""

    @pytest.mark.asyncio
    async def test_presign_failure_short_circuits(self, settings, tmp_path):
        """No PUT is attempted and the presign failure comes back verbatim."""
        path = tmp_path / "a.txt"
        path.write_text("hello")
        backend = StubBackend(lambda request: json_response(403, {"detail": "Invalid API key."}))

        result = await make_client(settings, backend).upload_file(path)

        assert result == OperationResult(success=False, status=403, message="Invalid API key.")
        assert [r.method for r in backend.requests] == ["POST"]

    @pytest.mark.asyncio
    async def test_presign_payload_and_put_request(self, settings, tmp_path):
        path = tmp_path / "photo.PNG"
        path.write_bytes(b"\x89PNG-data")

        def handler(request):
            if request.method == "POST":
                return json_response(200, {"url": "https://bucket.test/put?sig=1", "key": "uploads/photo.PNG"})
            return json_response(200, None)

        backend = StubBackend(handler)
        result = await make_client(settings, backend).upload_file(FilePath(path))

        presign, put = backend.requests
        assert presign.url == "https://storage.teknohole.com/cdn/upload-url/"
        assert presign.json == {"fileName": "photo.PNG", "fileType": "image/png", "fileSize": 9}
        assert put.method == "PUT"
        assert put.url == "https://bucket.test/put?sig=1"
        assert "Authorization" not in put.headers
        assert put.headers == {"Content-Type": "image/png", "Content-Length": "9"}
        assert backend.bodies[1] == b"\x89PNG-data"

        assert result.success
        assert result.message == "upload succeeded"
        assert result.data == {"key": "uploads/photo.PNG"}

    @pytest.mark.asyncio
    async def test_put_failure_discards_key(self, settings):
        def handler(request):
            if request.method == "POST":
                return json_response(200, {"url": "https://bucket.test/put", "key": "k1"})
            return json_response(500, None, reason="Internal Server Error")

        result = await make_client(settings, StubBackend(handler)).upload_file(
            InMemoryFile(name="a.txt", data=b"hi")
        )

        assert not result.success
        assert result.data is None
        assert result.message == "upload to storage failed: 500 - Internal Server Error"

    @pytest.mark.asyncio
    async def test_invalid_presign_payload(self, settings):
        backend = StubBackend(lambda request: json_response(200, {"url": "https://bucket.test/put"}))

        result = await make_client(settings, backend).upload_file(InMemoryFile(name="a.txt", data=b"hi"))

        assert not result.success
        assert "invalid presign response" in result.message
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_options_override_name_and_type(self, settings):
        def handler(request):
            if request.method == "POST":
                return json_response(200, {"url": "https://bucket.test/put", "key": "k"})
            return json_response(200, None)

        backend = StubBackend(handler)
        await make_client(settings, backend).upload_file(
            InMemoryFile(name="blob", data=b"{}"),
            UploadOptions(file_name="data.json", content_type="application/json"),
        )

        assert backend.requests[0].json["fileName"] == "data.json"
        assert backend.requests[0].json["fileType"] == "application/json"
        assert backend.requests[1].headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_file_removed_after_presign(self, settings, tmp_path):
        """A file that disappears before the PUT gives a failed result."""
        path = tmp_path / "a.txt"
        path.write_text("hello")

        def handler(request):
            if request.method == "POST":
                os.remove(path)
                return json_response(200, {"url": "https://bucket.test/put", "key": "k1"})
            return json_response(200, None)

        result = await make_client(settings, StubBackend(handler)).upload_file(str(path))

        assert not result.success
        assert result.data is None
        assert "cannot read file" in result.message

    @pytest.mark.asyncio
    async def test_file_name_override_guesses_content_type(self, settings):
        def handler(request):
            if request.method == "POST":
                return json_response(200, {"url": "https://bucket.test/put", "key": "k"})
            return json_response(200, None)

        backend = StubBackend(handler)
        await make_client(settings, backend).upload_file(
            InMemoryFile(name="blob", data=b"png"),
            UploadOptions(file_name="a.png"),
        )

        assert backend.requests[0].json["fileName"] == "a.png"
        assert backend.requests[0].json["fileType"] == "image/png"
        assert backend.requests[1].headers["Content-Type"] == "image/png"

    @pytest.mark.asyncio
    async def test_each_attempt_presigns_again(self, mock_client, mock_backend):
        """Presigned URLs are single-use; a second upload gets a fresh one."""
        source = InMemoryFile(name="a.txt", data=b"hi")

        first = await mock_client.upload_file(source)
        second = await mock_client.upload_file(source)

        put_urls = [r.url for r in mock_backend.requests if r.method == "PUT"]
        assert first.success and second.success
        assert len(set(put_urls)) == 2
        assert first.data["key"] != second.data["key"]


# ---------------------------------------------------------------------------
# Browser Host Tests
# ---------------------------------------------------------------------------

class TestBrowserUploads:
    """In-memory handles are the upload path in browser hosts."""

    @pytest.mark.asyncio
    async def test_in_memory_file_uses_its_own_content_type(self, settings, mock_backend):
        client = make_client(settings, mock_backend, environment=HostEnvironment.BROWSER)

        result = await client.upload_file(InMemoryFile(name="notes", data=b"abc", content_type="text/plain"))

        stored = mock_backend.objects[result.data["key"]]
        assert result.success
        assert stored.content_type == "text/plain"
        assert stored.data == b"abc"

    @pytest.mark.asyncio
    async def test_in_memory_file_type_guessed_from_name(self, settings, mock_backend):
        client = make_client(settings, mock_backend, environment=HostEnvironment.BROWSER)

        result = await client.upload_file(InMemoryFile(name="photo.JPG", data=b"jpeg"))

        assert mock_backend.objects[result.data["key"]].content_type == "image/jpeg"


# ---------------------------------------------------------------------------
# Deletion Tests
# ---------------------------------------------------------------------------

class TestDeleteFile:
    """Delete by object key."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("key", ["", "   ", None])
    async def test_empty_key_fails_without_network(self, settings, key):
        backend = StubBackend(unexpected)

        result = await make_client(settings, backend).delete_file(key)

        assert not result.success
        assert result.message == "object key is required"
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_sends_delete_with_key(self, settings):
        backend = StubBackend(lambda request: json_response(200, {"message": "deleted"}))

        result = await make_client(settings, backend).delete_file("uploads/a.txt")

        request = backend.requests[0]
        assert result.success
        assert request.method == "DELETE"
        assert request.url == "https://storage.teknohole.com/cdn/delete-object/"
        assert request.json == {"key": "uploads/a.txt"}
        assert request.headers["Authorization"] == "ApiKey test-key"
        assert request.headers["Storage"] == "Storage photos"

    @pytest.mark.asyncio
    async def test_not_found_surfaces_as_http_error(self, mock_client):
        result = await mock_client.delete_file("uploads/never-uploaded.txt")

        assert not result.success
        assert result.status == 404
        assert result.message == "Object not found."

    @pytest.mark.asyncio
    async def test_upload_then_delete_round_trip(self, mock_client, mock_backend, tmp_path):
        path = tmp_path / "report.pdf"
        path.write_bytes(b"%PDF-1.7 content")

        uploaded = await mock_client.upload_file(path)
        key = uploaded.data["key"]
        assert mock_backend.objects[key].data == b"%PDF-1.7 content"
        assert mock_backend.objects[key].content_type == "application/pdf"

        deleted = await mock_client.delete_file(key)

        assert deleted.success
        assert key not in mock_backend.objects
