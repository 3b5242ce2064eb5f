"""Collaborator protocols for the capture client and metadata API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueBackend(Protocol):
    """Durable string storage addressed by a fixed key."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


@runtime_checkable
class DeviceStream(Protocol):
    """Open camera (and optionally microphone) stream."""

    async def snapshot(self) -> bytes: ...

    async def start_recording(self) -> None: ...

    async def stop_recording(self) -> bytes: ...

    def release(self) -> None: ...


@runtime_checkable
class CaptureDevice(Protocol):
    """Source of device streams; raises DeviceAccessError when denied."""

    async def open_stream(self, *, audio: bool = True) -> DeviceStream: ...


@runtime_checkable
class DeliveryRepository(Protocol):
    """Server-side storage of delivery metadata."""

    async def create(self, **fields: Any) -> Any: ...

    async def list(
        self, *, awb: str | None = None, limit: int = 50
    ) -> tuple[Sequence[Any], int]: ...

    async def get_by_awb(self, awb: str) -> Any: ...

    async def get_by_id(self, delivery_id: str) -> Any: ...

    async def delete(self, delivery_id: str) -> None: ...


@runtime_checkable
class MetadataClient(Protocol):
    """Client half of the metadata API used by background sync."""

    async def create_presigned_upload(
        self, *, filename: str, content_type: str, awb: str
    ) -> dict[str, Any]: ...

    async def upload_media(
        self, target: dict[str, Any], data: bytes, content_type: str
    ) -> None: ...

    async def save_delivery(self, **fields: Any) -> dict[str, Any]: ...


@runtime_checkable
class ObjectStorage(Protocol):
    """S3-style object storage issuing presigned POST targets."""

    def create_presigned_post(
        self,
        *,
        key: str,
        content_type: str,
        max_bytes: int,
        expires_in: int,
    ) -> dict[str, Any]: ...

    def public_url(self, key: str) -> str: ...

    async def delete_object(self, key: str) -> None: ...


@runtime_checkable
class AssetCache(Protocol):
    """One named cache of static assets."""

    async def match(self, url: str) -> Any | None: ...

    async def put(self, url: str, asset: Any) -> None: ...


@runtime_checkable
class CacheStorage(Protocol):
    """Collection of named asset caches.

    Lookups that fail on the storage side raise PersistenceError.
    """

    async def open(self, name: str) -> AssetCache: ...

    async def keys(self) -> list[str]: ...

    async def delete(self, name: str) -> bool: ...

    async def match(self, url: str) -> Any | None: ...
