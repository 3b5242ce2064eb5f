"""Pydantic request/response schemas for the metadata API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema exchanged with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PresignedUrlRequest(CamelModel):
    """All fields optional; the route reports which are missing."""

    filename: str | None = None
    content_type: str | None = None
    awb: str | None = None


class PresignedUrlResponse(CamelModel):
    url: str
    fields: dict[str, str]
    filename: str
    s3_key: str


class CreateDeliveryRequest(CamelModel):
    awb: str | None = None
    filename: str | None = None
    media_type: str | None = None
    timestamp: datetime | None = None
    file_size: int | None = None
    s3_key: str | None = None


class DeliveryResponse(CamelModel):
    id: str
    awb: str
    filename: str
    media_type: str
    timestamp: datetime
    file_size: int | None = None
    s3_key: str | None = None
    s3_url: str | None = None
    status: str
    created_at: datetime

    @classmethod
    def from_delivery(cls, delivery: Any) -> DeliveryResponse:
        return cls(
            id=str(delivery.id),
            awb=delivery.awb,
            filename=delivery.filename,
            media_type=str(delivery.media_type),
            timestamp=delivery.timestamp,
            file_size=delivery.file_size,
            s3_key=delivery.s3_key,
            s3_url=delivery.s3_url,
            status=str(delivery.status),
            created_at=delivery.created_at,
        )


class SaveDeliveryResponse(CamelModel):
    success: bool = True
    delivery: DeliveryResponse


class DeliveryListResponse(CamelModel):
    deliveries: list[DeliveryResponse]
    total: int


class DeleteDeliveryResponse(CamelModel):
    success: bool = True
    message: str = "Delivery deleted successfully"


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    version: str
