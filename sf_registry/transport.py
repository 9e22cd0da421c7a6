"""Async registry client — bearer-authenticated upload, download and catalog calls."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import httpx
import structlog

from sf_registry.exceptions import AuthError, RegistryConnectionError, TransportError
from sf_registry.models import ArtifactType, Catalog

log = structlog.get_logger("sf_registry.transport")

_NO_TOKEN_MESSAGE = "You are not authenticated. Log in to the registry first."
_UNAUTHORIZED_MESSAGE = "Unauthorized access (401)."
_AUTH_CODES = ("token_expired", "token_invalid")

TokenProvider = Callable[[], str | None]


class FileTokenProvider:
    """Read the bearer token from a ``{"token": "..."}`` JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __call__(self) -> str | None:
        try:
            config = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return None
        token = config.get("token") if isinstance(config, dict) else None
        return token if isinstance(token, str) and token else None


class RegistryClient:
    """Thin async wrapper around the registry HTTP API."""

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 60.0,
    ) -> None:
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            transport=transport,
            timeout=timeout,
        )

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def upload(self, archive_path: Path) -> str:
        """POST the deployment archive; returns the server's response text."""
        data = archive_path.read_bytes()
        resp = await self._request(
            "POST",
            "/deploy",
            content=data,
            headers={"Content-Type": "application/zip", "Content-Length": str(len(data))},
        )
        log.info("transport.uploaded", archive=str(archive_path), size=len(data))
        return resp.text

    async def download(
        self, artifact_type: ArtifactType, name: str, version: str, dest: Path
    ) -> Path:
        """Fetch an artifact archive and write it to *dest*."""
        resp = await self._request("GET", f"/download/{artifact_type.value}/{name}/{version}")
        dest.write_bytes(resp.content)
        log.info("transport.downloaded", artifact=name, version=version, size=len(resp.content))
        return dest

    async def fetch_catalog(self) -> Catalog:
        resp = await self._request("GET", "/catalog")
        return Catalog.model_validate(resp.json())

    async def delete(
        self, artifact_type: ArtifactType, name: str, version: str | None = None
    ) -> str:
        """Delete one version, or every version when *version* is None."""
        path = f"/delete/{artifact_type.value}/{name}"
        if version:
            path += f"/{version}"
        resp = await self._request("DELETE", path)
        try:
            body = resp.json()
        except ValueError:
            return resp.text
        return body.get("message", "") if isinstance(body, dict) else resp.text

    # ── internal ───────────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        token = self._token_provider()
        if not token:
            raise AuthError("no_token", _NO_TOKEN_MESSAGE)

        headers = {**kwargs.pop("headers", {}), "Authorization": f"Bearer {token}"}
        try:
            resp = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            url = str(self._client.base_url.join(path))
            log.error("transport.request_failed", method=method, url=url, error=str(exc))
            raise RegistryConnectionError(url, str(exc) or type(exc).__name__) from exc

        if resp.status_code == 401:
            raise self._auth_error(resp)
        if resp.is_error:
            log.warning("transport.http_error", method=method, path=path, status=resp.status_code)
            raise TransportError(resp.status_code, self._error_text(resp))
        return resp

    @staticmethod
    def _auth_error(response: httpx.Response) -> AuthError:
        """Map a 401 body ``{"code", "error"}`` to an AuthError kind."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("code") in _AUTH_CODES:
            return AuthError(body["code"], body.get("error") or _UNAUTHORIZED_MESSAGE)
        return AuthError("token_invalid", _UNAUTHORIZED_MESSAGE)

    @staticmethod
    def _error_text(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text
        if isinstance(body, dict) and "error" in body:
            return str(body["error"])
        return response.text
