"""Offline asset cache and background sync trigger."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import CommunicationError, PersistenceError
from fastapi_pod.protocols import CacheStorage

if TYPE_CHECKING:
    from fastapi_pod.sync import BackgroundSync, SyncReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedAsset:
    url: str
    status_code: int
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class SyncCacheGateway:
    """Cache-first asset access with a single retained cache version.

    ``install`` pre-warms the current cache, ``activate`` drops every
    other version, ``fetch`` serves cache, then network, then the offline
    document for navigations. ``handle_sync`` is the background sync
    trigger; without a ``BackgroundSync`` attached it is a no-op.
    """

    def __init__(
        self,
        *,
        caches: CacheStorage,
        http_client: httpx.AsyncClient,
        config: PodConfig | None = None,
        background_sync: BackgroundSync | None = None,
    ) -> None:
        self.caches = caches
        self.http_client = http_client
        self.config = config or PodConfig()
        self.background_sync = background_sync

    async def _request(self, url: str) -> CachedAsset:
        try:
            response = await self.http_client.get(url)
        except httpx.HTTPError as exc:
            raise CommunicationError(f"Fetching {url} failed: {exc}") from exc
        return CachedAsset(
            url=url,
            status_code=response.status_code,
            content=response.content,
            headers=dict(response.headers),
        )

    async def install(self) -> None:
        """Fetch every manifest asset, then store them all or none."""
        assets = []
        for url in self.config.precache_urls:
            asset = await self._request(url)
            if not asset.ok:
                raise CommunicationError(
                    f"Fetching {url} failed: HTTP {asset.status_code}"
                )
            assets.append(asset)

        cache = await self.caches.open(self.config.cache_name)
        for asset in assets:
            await cache.put(asset.url, asset)
        logger.info(
            "Cached %d app resources in %s",
            len(assets),
            self.config.cache_name,
        )

    async def activate(self) -> list[str]:
        """Delete every cache not named after the current version."""
        deleted = []
        for name in await self.caches.keys():
            if name != self.config.cache_name:
                logger.info("Deleting old cache: %s", name)
                await self.caches.delete(name)
                deleted.append(name)
        return deleted

    async def fetch(
        self, url: str, *, navigation: bool = False
    ) -> CachedAsset | None:
        """Cache first, then network; navigations fall back offline."""
        try:
            cached = await self.caches.match(url)
            if cached is not None:
                return cached
            return await self._request(url)
        except (CommunicationError, PersistenceError) as exc:
            if navigation:
                logger.debug("Serving offline document for %s: %s", url, exc)
                return await self.caches.match(self.config.offline_document)
            logger.debug("No cached or network copy of %s: %s", url, exc)
            return None

    async def handle_sync(self, tag: str) -> SyncReport | None:
        if tag != self.config.sync_tag:
            logger.debug("Ignoring unknown sync tag %s", tag)
            return None
        logger.info("Background sync triggered")
        if self.background_sync is None:
            return None
        return await self.background_sync.run()
