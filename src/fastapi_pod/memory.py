"""In-memory collaborators for tests, demos and single-process use."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fastapi_pod.exceptions import (
    DeliveryNotFoundError,
    StorageQuotaExceededError,
)
from fastapi_pod.gateway import CachedAsset


class InMemoryKeyValueBackend:
    """Key-value backend with an optional byte quota."""

    def __init__(self, quota_bytes: int | None = None) -> None:
        self.quota_bytes = quota_bytes
        self.items: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.items.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(
                len(v.encode("utf-8"))
                for k, v in self.items.items()
                if k != key
            )
            if others + len(value.encode("utf-8")) > self.quota_bytes:
                raise StorageQuotaExceededError(
                    f"Storage quota of {self.quota_bytes} bytes exceeded"
                )
        self.items[key] = value


@dataclass
class StoredDelivery:
    id: str
    awb: str
    filename: str
    media_type: str
    timestamp: datetime
    created_at: datetime
    status: str = "completed"
    file_size: int | None = None
    s3_key: str | None = None
    s3_url: str | None = None


class InMemoryDeliveryRepository:
    """Delivery metadata held in a process-local list."""

    def __init__(self) -> None:
        self.items: list[StoredDelivery] = []

    async def create(self, **fields: Any) -> StoredDelivery:
        now = datetime.now(tz=UTC)
        delivery = StoredDelivery(
            id=fields.get("id") or str(uuid.uuid4()),
            awb=fields["awb"],
            filename=fields["filename"],
            media_type=str(fields["media_type"]),
            timestamp=fields.get("timestamp") or now,
            created_at=now,
            status=str(fields.get("status", "completed")),
            file_size=fields.get("file_size"),
            s3_key=fields.get("s3_key"),
            s3_url=fields.get("s3_url"),
        )
        self.items.append(delivery)
        return delivery

    async def list(
        self, *, awb: str | None = None, limit: int = 50
    ) -> tuple[list[StoredDelivery], int]:
        matches = self.items
        if awb:
            needle = awb.lower()
            matches = [d for d in matches if needle in d.awb.lower()]
        ordered = sorted(
            reversed(matches), key=lambda d: d.created_at, reverse=True
        )
        return ordered[:limit], len(matches)

    async def get_by_awb(self, awb: str) -> StoredDelivery:
        for delivery in self.items:
            if delivery.awb == awb:
                return delivery
        raise DeliveryNotFoundError(awb)

    async def get_by_id(self, delivery_id: str) -> StoredDelivery:
        for delivery in self.items:
            if delivery.id == delivery_id:
                return delivery
        raise DeliveryNotFoundError(delivery_id)

    async def delete(self, delivery_id: str) -> None:
        delivery = await self.get_by_id(delivery_id)
        self.items.remove(delivery)


@dataclass
class InMemoryAssetCache:
    assets: dict[str, CachedAsset] = field(default_factory=dict)

    async def match(self, url: str) -> CachedAsset | None:
        return self.assets.get(url)

    async def put(self, url: str, asset: CachedAsset) -> None:
        self.assets[url] = asset


class InMemoryCacheStorage:
    """Named asset caches, searched in creation order."""

    def __init__(self) -> None:
        self.caches: dict[str, InMemoryAssetCache] = {}

    async def open(self, name: str) -> InMemoryAssetCache:
        return self.caches.setdefault(name, InMemoryAssetCache())

    async def keys(self) -> list[str]:
        return list(self.caches)

    async def delete(self, name: str) -> bool:
        return self.caches.pop(name, None) is not None

    async def match(self, url: str) -> CachedAsset | None:
        for cache in self.caches.values():
            asset = await cache.match(url)
            if asset is not None:
                return asset
        return None
