"""Client for the Mux Video API (direct uploads + asset status)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx
import structlog

from adsmith.clients._http import request_json
from adsmith.errors import CollaboratorError, ServiceNotConfiguredError
from adsmith.metrics import collaborator_calls_total
from adsmith.polling import wait_until_ready

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

logger = structlog.get_logger()

SERVICE = "mux"

_UPLOAD_FAILED = frozenset({"errored", "cancelled", "timed_out"})

UPLOAD_CHUNK_SIZE = 1024 * 1024


async def _file_chunks(path: Path) -> AsyncIterator[bytes]:
    with path.open("rb") as fh:
        while chunk := fh.read(UPLOAD_CHUNK_SIZE):
            yield chunk


@dataclass(frozen=True, slots=True)
class DirectUpload:
    id: str
    url: str


@dataclass(frozen=True, slots=True)
class MuxAsset:
    asset_id: str
    playback_id: str


class MuxClient:
    """Mux API client authenticated with an access token id/secret pair."""

    def __init__(
        self,
        token_id: str,
        token_secret: str,
        *,
        timeout: float = 30.0,
        upload_timeout: float = 300.0,
        poll_interval: float = 2.0,
        max_polls: int = 60,
    ) -> None:
        if not (token_id and token_secret):
            raise ServiceNotConfiguredError("Mux token")
        self.auth = httpx.BasicAuth(token_id, token_secret)
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.base_url = "https://api.mux.com/video/v1"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, auth=self.auth)

    async def create_direct_upload(self) -> DirectUpload:
        async with self._client() as client:
            data = await request_json(
                client,
                "POST",
                f"{self.base_url}/uploads",
                service=SERVICE,
                operation="create_upload",
                json={
                    "new_asset_settings": {"playback_policy": ["public"]},
                    "cors_origin": "*",
                },
            )
        upload = data.get("data") or {}
        if not upload.get("id") or not upload.get("url"):
            raise CollaboratorError(SERVICE, "create_upload returned no upload url")
        return DirectUpload(id=str(upload["id"]), url=str(upload["url"]))

    async def upload_file(self, upload_url: str, path: Path) -> None:
        """PUT the file body to the provisioned upload URL."""
        logger.info("Uploading to Mux", path=str(path), bytes=path.stat().st_size)
        try:
            async with httpx.AsyncClient(timeout=self.upload_timeout) as client:
                resp = await client.put(
                    upload_url,
                    content=_file_chunks(path),
                    headers={
                        "Content-Type": "video/mp4",
                        "Content-Length": str(path.stat().st_size),
                    },
                )
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            collaborator_calls_total.labels(service=SERVICE, operation="put", status="error").inc()
            raise CollaboratorError(SERVICE, f"upload failed: {exc}") from exc
        collaborator_calls_total.labels(service=SERVICE, operation="put", status="ok").inc()

    async def _asset_id_for_upload(self, upload_id: str) -> str | None:
        async with self._client() as client:
            data = await request_json(
                client,
                "GET",
                f"{self.base_url}/uploads/{upload_id}",
                service=SERVICE,
                operation="get_upload",
            )
        upload = data.get("data") or {}
        status = upload.get("status")
        if status in _UPLOAD_FAILED:
            raise CollaboratorError(SERVICE, f"upload {upload_id} {status}")
        asset_id = upload.get("asset_id")
        return str(asset_id) if asset_id else None

    async def _ready_playback_id(self, asset_id: str) -> str | None:
        async with self._client() as client:
            data = await request_json(
                client,
                "GET",
                f"{self.base_url}/assets/{asset_id}",
                service=SERVICE,
                operation="get_asset",
            )
        asset = data.get("data") or {}
        status = asset.get("status")
        if status == "errored":
            errors = asset.get("errors") or {}
            raise CollaboratorError(SERVICE, f"asset {asset_id} errored: {errors}")
        if status != "ready":
            return None
        playback_ids = asset.get("playback_ids") or []
        first = playback_ids[0] if isinstance(playback_ids, list) and playback_ids else None
        if not isinstance(first, dict) or not first.get("id"):
            raise CollaboratorError(SERVICE, f"asset {asset_id} has no playback id")
        return str(first["id"])

    async def wait_for_asset(self, upload_id: str) -> MuxAsset:
        """Wait for the upload to become an asset, then for the asset to be ready.

        Both waits share the same bounded interval/attempt budget.
        """
        asset_id = await wait_until_ready(
            lambda: self._asset_id_for_upload(upload_id),
            interval=self.poll_interval,
            max_attempts=self.max_polls,
            label=f"mux upload {upload_id}",
        )
        playback_id = await wait_until_ready(
            lambda: self._ready_playback_id(asset_id),
            interval=self.poll_interval,
            max_attempts=self.max_polls,
            label=f"mux asset {asset_id}",
        )
        logger.info("Mux asset ready", asset_id=asset_id, playback_id=playback_id)
        return MuxAsset(asset_id=asset_id, playback_id=playback_id)

    async def publish(self, path: Path) -> MuxAsset:
        """Direct-upload a local file and wait until it is playable."""
        upload = await self.create_direct_upload()
        await self.upload_file(upload.url, path)
        return await self.wait_for_asset(upload.id)
