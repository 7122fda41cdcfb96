"""ImageKit CDN client built on httpx."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import httpx

from ..config import ImageKitConfig
from ..errors import InternalError

logger = logging.getLogger("storefront.cdn")

_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


@dataclass(frozen=True, slots=True)
class CdnUpload:
    """What the CDN reports back about a stored file."""

    file_id: str
    url: str
    name: str
    size: int


class ImageKitClient:
    """Upload and delete files through the ImageKit REST API."""

    def __init__(self, config: ImageKitConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http_client = http_client

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            yield client

    def _auth(self) -> httpx.BasicAuth:
        if not self._config.private_key:
            raise InternalError("CDN credentials are not configured")
        # ImageKit authenticates with the private key as user and an empty password
        return httpx.BasicAuth(self._config.private_key, "")

    async def upload(self, *, content: bytes, file_name: str, content_type: str) -> CdnUpload:
        auth = self._auth()
        async with self._client() as client:
            response = await client.post(
                self._config.upload_url,
                auth=auth,
                data={
                    "fileName": file_name,
                    "folder": self._config.folder,
                    "useUniqueFileName": "true",
                },
                files={"file": (file_name, content, content_type)},
            )
        response.raise_for_status()
        payload = response.json()
        logger.info(
            "File uploaded to CDN",
            extra={
                "event_dataset": "storefront-api.cdn",
                "event_action": "cdn_upload",
                "cdn_file_id": payload.get("fileId"),
            },
        )
        return CdnUpload(
            file_id=str(payload["fileId"]),
            url=str(payload["url"]),
            name=str(payload.get("name") or file_name),
            size=int(payload.get("size") or len(content)),
        )

    async def delete(self, file_id: str) -> None:
        auth = self._auth()
        async with self._client() as client:
            response = await client.delete(
                f"{self._config.api_url}/files/{file_id}", auth=auth
            )
        response.raise_for_status()
        logger.info(
            "File deleted from CDN",
            extra={
                "event_dataset": "storefront-api.cdn",
                "event_action": "cdn_delete",
                "cdn_file_id": file_id,
            },
        )

    async def delete_many(self, file_ids: list[str]) -> None:
        if not file_ids:
            return
        auth = self._auth()
        async with self._client() as client:
            response = await client.post(
                f"{self._config.api_url}/files/batch/deleteByFileIds",
                auth=auth,
                json={"fileIds": file_ids},
            )
        response.raise_for_status()
