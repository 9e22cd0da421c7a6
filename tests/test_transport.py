"""Tests for the registry HTTP client — httpx.MockTransport, no network."""

from __future__ import annotations

import json

import httpx
import pytest

from sf_registry.exceptions import AuthError, RegistryConnectionError, TransportError
from sf_registry.models import ArtifactType
from sf_registry.transport import FileTokenProvider, RegistryClient

BASE = "https://registry.test"

CATALOG = {
    "component": [
        {
            "name": "card",
            "versions": [
                {
                    "version": "1.0.0",
                    "description": "A card",
                    "hash": "abc",
                    "staticresources": ["chartjs"],
                    "registryDependencies": [
                        {"name": "CardCtrl", "type": "class", "version": "1.0.0"}
                    ],
                }
            ],
        }
    ],
    "class": [],
}


def _client(handler, token: str | None = "tok") -> RegistryClient:
    return RegistryClient(BASE, lambda: token, transport=httpx.MockTransport(handler))


class TestFileTokenProvider:
    def test_reads_token(self, tmp_path):
        f = tmp_path / "auth.json"
        f.write_text(json.dumps({"token": "secret"}))
        assert FileTokenProvider(f)() == "secret"

    def test_missing_file(self, tmp_path):
        assert FileTokenProvider(tmp_path / "absent.json")() is None

    def test_malformed_file(self, tmp_path):
        f = tmp_path / "auth.json"
        f.write_text("{not json")
        assert FileTokenProvider(f)() is None

    def test_empty_token(self, tmp_path):
        f = tmp_path / "auth.json"
        f.write_text(json.dumps({"token": ""}))
        assert FileTokenProvider(f)() is None


class TestAuth:
    @pytest.mark.anyio
    async def test_no_token_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200)

        async with _client(handler, token=None) as client:
            with pytest.raises(AuthError) as exc_info:
                await client.fetch_catalog()
        assert exc_info.value.code == "no_token"
        assert calls == []

    @pytest.mark.anyio
    async def test_bearer_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=CATALOG)

        async with _client(handler) as client:
            await client.fetch_catalog()
        assert seen["auth"] == "Bearer tok"

    @pytest.mark.anyio
    @pytest.mark.parametrize("code", ["token_expired", "token_invalid"])
    async def test_known_401_codes(self, code):
        def handler(request):
            return httpx.Response(401, json={"code": code, "error": "nope"})

        async with _client(handler) as client:
            with pytest.raises(AuthError) as exc_info:
                await client.fetch_catalog()
        assert exc_info.value.code == code
        assert str(exc_info.value) == "nope"

    @pytest.mark.anyio
    async def test_unknown_401_is_invalid(self):
        def handler(request):
            return httpx.Response(401, text="denied")

        async with _client(handler) as client:
            with pytest.raises(AuthError) as exc_info:
                await client.fetch_catalog()
        assert exc_info.value.code == "token_invalid"


class TestRequests:
    @pytest.mark.anyio
    async def test_upload(self, tmp_path):
        archive = tmp_path / "a.zip"
        archive.write_bytes(b"PK\x05\x06" + b"\x00" * 18)
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["type"] = request.headers["Content-Type"]
            seen["length"] = request.headers["Content-Length"]
            seen["body"] = request.content
            return httpx.Response(200, text="ok")

        async with _client(handler) as client:
            text = await client.upload(archive)

        assert text == "ok"
        assert seen["method"] == "POST"
        assert seen["path"] == "/deploy"
        assert seen["type"] == "application/zip"
        assert seen["length"] == str(archive.stat().st_size)
        assert seen["body"] == archive.read_bytes()

    @pytest.mark.anyio
    async def test_download(self, tmp_path):
        def handler(request):
            assert request.url.path == "/download/class/Svc/1.2.3"
            return httpx.Response(200, content=b"zipbytes")

        dest = tmp_path / "dl.zip"
        async with _client(handler) as client:
            await client.download(ArtifactType.CLASS, "Svc", "1.2.3", dest)
        assert dest.read_bytes() == b"zipbytes"

    @pytest.mark.anyio
    async def test_catalog_validated(self):
        def handler(request):
            return httpx.Response(200, json=CATALOG)

        async with _client(handler) as client:
            catalog = await client.fetch_catalog()

        card = catalog.entries(ArtifactType.COMPONENT)[0]
        assert card.name == "card"
        assert card.versions[0].registryDependencies[0].name == "CardCtrl"
        assert catalog.entries(ArtifactType.CLASS) == []

    @pytest.mark.anyio
    @pytest.mark.parametrize(
        "version, path",
        [(None, "/delete/component/card"), ("1.0.0", "/delete/component/card/1.0.0")],
    )
    async def test_delete_paths(self, version, path):
        def handler(request):
            assert request.method == "DELETE"
            assert request.url.path == path
            return httpx.Response(200, json={"message": "removed"})

        async with _client(handler) as client:
            message = await client.delete(ArtifactType.COMPONENT, "card", version)
        assert message == "removed"

    @pytest.mark.anyio
    async def test_http_error_carries_server_message(self):
        def handler(request):
            return httpx.Response(409, json={"error": "version already exists"})

        async with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.download(ArtifactType.COMPONENT, "card", "1.0.0", None)
        assert exc_info.value.status == 409
        assert exc_info.value.body == "version already exists"


class TestNetworkFailures:
    @pytest.mark.anyio
    @pytest.mark.parametrize("error_cls", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_request_error_wrapped(self, error_cls):
        def handler(request):
            raise error_cls("unreachable", request=request)

        async with _client(handler) as client:
            with pytest.raises(RegistryConnectionError) as exc_info:
                await client.fetch_catalog()
        assert exc_info.value.url == "https://registry.test/catalog"
        assert "unreachable" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, error_cls)
