"""Delivery record model and AWB normalisation."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from fastapi_pod.exceptions import InvalidAwbError, InvalidTransitionError


class MediaType(StrEnum):
    PHOTO = "photo"
    VIDEO = "video"

    @property
    def default_content_type(self) -> str:
        return "image/jpeg" if self is MediaType.PHOTO else "video/webm"

    @property
    def extension(self) -> str:
        return "jpg" if self is MediaType.PHOTO else "webm"


class DeliveryStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    MEDIA_ERROR = "media_error"


# Forward-only moves; completed and media_error are terminal.
STATUS_TRANSITIONS: dict[DeliveryStatus, frozenset[DeliveryStatus]] = {
    DeliveryStatus.PENDING: frozenset(
        {DeliveryStatus.COMPLETED, DeliveryStatus.MEDIA_ERROR}
    ),
    DeliveryStatus.COMPLETED: frozenset(),
    DeliveryStatus.MEDIA_ERROR: frozenset(),
}


def normalize_awb(raw: str, min_length: int = 8) -> str:
    """Trim and uppercase an AWB, rejecting values below ``min_length``."""
    awb = (raw or "").strip().upper()
    if len(awb) < min_length:
        raise InvalidAwbError(awb, min_length)
    return awb


def check_status_transition(
    current: DeliveryStatus, target: DeliveryStatus
) -> None:
    if current == target:
        return
    if target not in STATUS_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move delivery record from {current} to {target}"
        )


def _now() -> datetime:
    return datetime.now(tz=UTC)


class DeliveryRecord(BaseModel):
    """Proof-of-delivery record as persisted in the local store.

    Serialised with camelCase keys (``mediaType``, ``fileSize`` ...) so the
    stored collection keeps the layout used by the capture client.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    awb: str = Field(min_length=1)
    filename: str
    media_type: MediaType
    content_type: str
    media_payload: str | None = None
    file_size: int = Field(ge=0)
    status: DeliveryStatus
    metadata_only: bool = False
    timestamp: datetime = Field(default_factory=_now)
    created_at: datetime = Field(default_factory=_now)
    s3_key: str | None = None
    s3_url: str | None = None

    @model_validator(mode="after")
    def _completed_needs_payload(self) -> Self:
        if (
            self.status is DeliveryStatus.COMPLETED
            and self.media_payload is None
            and not self.metadata_only
        ):
            raise ValueError(
                "completed record without media payload must be "
                "flagged media_error or saved metadata-only"
            )
        return self

    @classmethod
    def create(
        cls,
        *,
        awb: str,
        media_type: MediaType,
        file_size: int,
        status: DeliveryStatus,
        media_payload: str | None = None,
        content_type: str | None = None,
        metadata_only: bool = False,
    ) -> DeliveryRecord:
        """Build a fresh record stamped with the current time."""
        now = _now()
        filename = (
            f"{awb}_{media_type}_{int(now.timestamp() * 1000)}"
            f".{media_type.extension}"
        )
        return cls(
            awb=awb,
            filename=filename,
            media_type=media_type,
            content_type=content_type or media_type.default_content_type,
            media_payload=media_payload,
            file_size=file_size,
            status=status,
            metadata_only=metadata_only,
            timestamp=now,
            created_at=now,
        )

    @property
    def has_preview(self) -> bool:
        return self.media_payload is not None

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
