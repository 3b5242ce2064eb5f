"""HTTP client for the metadata API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from fastapi_pod.exceptions import (
    CommunicationError,
    DeliveryNotFoundError,
    RemoteRejectedError,
)

logger = logging.getLogger(__name__)


class MetadataApiClient:
    """Async client for the metadata API and presigned uploads.

    Transport failures and 5xx answers raise CommunicationError so callers
    can retry later; 4xx answers raise RemoteRejectedError.
    """

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def _request(
        self, method: str, url: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self.http_client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise CommunicationError(
                f"{method} {url} failed: {exc}"
            ) from exc
        if response.status_code >= 500:
            raise CommunicationError(
                f"{method} {url} failed: HTTP {response.status_code}"
            )
        return response

    @staticmethod
    def _detail(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("detail") or body.get("error") or body)
        return str(body)

    async def _api(
        self, method: str, path: str, **kwargs: Any
    ) -> dict[str, Any]:
        response = await self._request(
            method, f"{self.base_url}{path}", **kwargs
        )
        if response.status_code >= 400:
            raise RemoteRejectedError(
                self._detail(response), status_code=response.status_code
            )
        return response.json()

    async def health(self) -> dict[str, Any]:
        return await self._api("GET", "/health")

    async def create_presigned_upload(
        self, *, filename: str, content_type: str, awb: str
    ) -> dict[str, Any]:
        return await self._api(
            "POST",
            "/presigned-url",
            json={
                "filename": filename,
                "contentType": content_type,
                "awb": awb,
            },
        )

    async def upload_media(
        self, target: dict[str, Any], data: bytes, content_type: str
    ) -> None:
        """POST the media as multipart form data to a presigned target."""
        response = await self._request(
            "POST",
            target["url"],
            data=target.get("fields", {}),
            files={"file": ("upload", data, content_type)},
        )
        if response.status_code >= 400:
            raise RemoteRejectedError(
                f"Upload rejected: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        logger.debug("Uploaded %d bytes to %s", len(data), target["url"])

    async def save_delivery(
        self,
        *,
        awb: str,
        filename: str,
        media_type: str,
        timestamp: str | None = None,
        file_size: int | None = None,
        s3_key: str | None = None,
    ) -> dict[str, Any]:
        body = {
            "awb": awb,
            "filename": filename,
            "mediaType": media_type,
            "timestamp": timestamp,
            "fileSize": file_size,
            "s3Key": s3_key,
        }
        return await self._api(
            "POST",
            "/delivery",
            json={k: v for k, v in body.items() if v is not None},
        )

    async def list_deliveries(
        self, *, awb: str | None = None, limit: int = 50
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"limit": limit}
        if awb:
            params["awb"] = awb
        return await self._api("GET", "/deliveries", params=params)

    async def get_delivery(self, awb: str) -> dict[str, Any]:
        try:
            return await self._api("GET", f"/delivery/{awb}")
        except RemoteRejectedError as exc:
            if exc.status_code == 404:
                raise DeliveryNotFoundError(awb) from exc
            raise

    async def delete_delivery(
        self, delivery_id: str, *, delete_from_storage: bool = False
    ) -> dict[str, Any]:
        params = {"deleteFromS3": "true"} if delete_from_storage else {}
        try:
            return await self._api(
                "DELETE", f"/delivery/{delivery_id}", params=params
            )
        except RemoteRejectedError as exc:
            if exc.status_code == 404:
                raise DeliveryNotFoundError(delivery_id) from exc
            raise
