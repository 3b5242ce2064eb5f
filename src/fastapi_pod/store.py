"""Bounded, most-recent-first local store of delivery records."""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from fastapi_pod.exceptions import PersistenceError, RecordNotFoundError
from fastapi_pod.models import (
    DeliveryRecord,
    DeliveryStatus,
    check_status_transition,
)
from fastapi_pod.protocols import KeyValueBackend

logger = logging.getLogger(__name__)


class RecordStore:
    """Delivery records kept as one ordered collection under a fixed key.

    Every mutation is a whole-collection read-modify-write against the
    backend. A single writer is assumed.
    """

    def __init__(
        self,
        backend: KeyValueBackend,
        *,
        storage_key: str = "pod_deliveries",
        limit: int = 50,
    ) -> None:
        self.backend = backend
        self.storage_key = storage_key
        self.limit = limit

    async def load_all(self) -> list[DeliveryRecord]:
        try:
            raw = await self.backend.get(self.storage_key)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Failed to read {self.storage_key}: {exc}"
            ) from exc
        if not raw:
            return []
        try:
            entries = json.loads(raw)
            return [DeliveryRecord.model_validate(e) for e in entries]
        except (ValueError, TypeError, PydanticValidationError) as exc:
            raise PersistenceError(
                f"Stored collection {self.storage_key} is unreadable: {exc}"
            ) from exc

    async def replace_all(self, records: list[DeliveryRecord]) -> None:
        payload = json.dumps([r.to_storage() for r in records])
        try:
            await self.backend.set(self.storage_key, payload)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(
                f"Failed to write {self.storage_key}: {exc}"
            ) from exc

    async def insert(self, record: DeliveryRecord) -> None:
        """Prepend ``record`` and drop the oldest entries beyond the limit."""
        records = await self.load_all()
        records.insert(0, record)
        if len(records) > self.limit:
            dropped = len(records) - self.limit
            del records[self.limit :]
            logger.info(
                "Evicted %d oldest delivery record(s) from %s",
                dropped,
                self.storage_key,
            )
        await self.replace_all(records)
        logger.info(
            "Stored delivery record %s for AWB %s (%s)",
            record.id,
            record.awb,
            record.status,
        )

    async def list_recent(self, limit: int) -> list[DeliveryRecord]:
        records = await self.load_all()
        return records[: max(limit, 0)]

    async def find_by_awb(self, awb: str) -> DeliveryRecord | None:
        for record in await self.load_all():
            if record.awb == awb:
                return record
        return None

    async def pending(self) -> list[DeliveryRecord]:
        """Pending records, oldest first."""
        records = await self.load_all()
        return [
            r for r in reversed(records) if r.status is DeliveryStatus.PENDING
        ]

    async def update(
        self,
        record_id: str,
        *,
        status: DeliveryStatus,
        **fields: Any,
    ) -> DeliveryRecord:
        """Move a record's status forward and attach sync fields."""
        records = await self.load_all()
        for index, record in enumerate(records):
            if record.id == record_id:
                break
        else:
            raise RecordNotFoundError(record_id)

        check_status_transition(record.status, status)
        updated = record.model_copy(update={"status": status, **fields})
        records[index] = updated
        await self.replace_all(records)
        return updated
