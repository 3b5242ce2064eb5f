"""Draining locally pending deliveries to the metadata API."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import (
    CommunicationError,
    MediaEncodingError,
    PersistenceError,
    RecordNotFoundError,
    RemoteRejectedError,
)
from fastapi_pod.media import decode_data_url
from fastapi_pod.models import DeliveryRecord, DeliveryStatus
from fastapi_pod.protocols import MetadataClient
from fastapi_pod.store import RecordStore

logger = logging.getLogger(__name__)


def compute_next_retry_at(
    attempt: int,
    backoff_seconds: int,
) -> datetime:
    """Compute the next sync attempt time with exponential backoff.

    delay = backoff_seconds * 2^(attempt - 1)
    """
    delay = backoff_seconds * (2 ** (attempt - 1))
    return datetime.now(tz=UTC) + timedelta(seconds=delay)


@dataclass
class SyncReport:
    synced: list[str] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)
    remaining: int = 0
    error: str | None = None

    @property
    def interrupted(self) -> bool:
        return self.error is not None


async def _push_record(
    record: DeliveryRecord, client: MetadataClient
) -> tuple[DeliveryStatus, dict]:
    """Upload one record's media and metadata; returns local updates."""
    media: tuple[str, bytes] | None = None
    if record.media_payload is not None:
        try:
            media = decode_data_url(record.media_payload)
        except MediaEncodingError as exc:
            logger.warning(
                "Record %s has unreadable media, syncing metadata only: %s",
                record.id,
                exc,
            )

    s3_key = None
    if media is not None:
        content_type, data = media
        target = await client.create_presigned_upload(
            filename=record.filename,
            content_type=content_type,
            awb=record.awb,
        )
        await client.upload_media(target, data, content_type)
        s3_key = target["s3Key"]

    saved = await client.save_delivery(
        awb=record.awb,
        filename=record.filename,
        media_type=str(record.media_type),
        timestamp=record.timestamp.isoformat(),
        file_size=record.file_size,
        s3_key=s3_key,
    )
    delivery = saved.get("delivery", {})
    status = (
        DeliveryStatus.COMPLETED
        if media is not None
        else DeliveryStatus.MEDIA_ERROR
    )
    return status, {"s3_key": s3_key, "s3_url": delivery.get("s3Url")}


async def drain_pending(
    *,
    store: RecordStore,
    client: MetadataClient,
) -> SyncReport:
    """Push every pending record, oldest first.

    Stops at the first communication failure so records stay queued in
    order. Rejected records stay pending and are skipped. Local status
    only moves forward after the remote side has accepted the record.
    """
    report = SyncReport()
    pending = await store.pending()

    for index, record in enumerate(pending):
        try:
            status, fields = await _push_record(record, client)
        except CommunicationError as exc:
            report.error = str(exc)
            report.remaining = len(pending) - index
            logger.warning(
                "Sync interrupted at record %s, %d left: %s",
                record.id,
                report.remaining,
                exc,
            )
            return report
        except RemoteRejectedError as exc:
            report.rejected.append(record.id)
            logger.error(
                "Metadata API rejected record %s (AWB %s): %s",
                record.id,
                record.awb,
                exc,
            )
            continue

        try:
            await store.update(record.id, status=status, **fields)
        except RecordNotFoundError:
            logger.warning(
                "Record %s was evicted before sync completed", record.id
            )
        except PersistenceError as exc:
            report.error = str(exc)
            report.remaining = len(pending) - index
            logger.error(
                "Could not mark record %s as synced: %s", record.id, exc
            )
            return report
        report.synced.append(record.id)
        logger.info("Synced delivery %s for AWB %s", record.id, record.awb)

    report.remaining = len(report.rejected)
    return report


class BackgroundSync:
    """Single-flight drain runner with exponential backoff between attempts."""

    def __init__(
        self,
        *,
        store: RecordStore,
        client: MetadataClient,
        config: PodConfig | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.config = config or PodConfig()
        self.attempts = 0
        self.next_attempt_at: datetime | None = None
        self._running: asyncio.Task | None = None

    def is_due(self) -> bool:
        if self.next_attempt_at is None:
            return False
        return datetime.now(tz=UTC) >= self.next_attempt_at

    async def run(self) -> SyncReport:
        """Drain now; concurrent callers share the in-flight drain."""
        if self._running is None or self._running.done():
            self._running = asyncio.create_task(self._drain())
        return await asyncio.shield(self._running)

    async def run_due(self) -> SyncReport | None:
        """Drain only if a scheduled retry has come due."""
        if not self.is_due():
            return None
        return await self.run()

    async def _drain(self) -> SyncReport:
        report = await drain_pending(store=self.store, client=self.client)
        if not report.interrupted:
            self.attempts = 0
            self.next_attempt_at = None
            return report

        self.attempts += 1
        if self.attempts >= self.config.sync_max_attempts:
            logger.warning(
                "Sync gave up after %d attempts, waiting for next trigger",
                self.attempts,
            )
            self.attempts = 0
            self.next_attempt_at = None
        else:
            self.next_attempt_at = compute_next_retry_at(
                self.attempts, self.config.sync_backoff_seconds
            )
            logger.info(
                "Sync attempt %d failed, next attempt at %s",
                self.attempts,
                self.next_attempt_at.isoformat(),
            )
        return report
