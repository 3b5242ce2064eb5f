"""Delivery metadata endpoints."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query

from fastapi_pod.config import PodConfig
from fastapi_pod.dependencies import (
    get_config,
    get_object_storage,
    get_repository,
)
from fastapi_pod.exceptions import MissingFieldsError
from fastapi_pod.protocols import DeliveryRepository, ObjectStorage
from fastapi_pod.schemas import (
    CreateDeliveryRequest,
    DeleteDeliveryResponse,
    DeliveryListResponse,
    DeliveryResponse,
    HealthResponse,
    PresignedUrlRequest,
    PresignedUrlResponse,
    SaveDeliveryResponse,
)
from fastapi_pod.storage import build_storage_key

logger = logging.getLogger(__name__)

router = APIRouter()


def _require_fields(**values: object) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise MissingFieldsError(missing)


@router.get("/health", response_model=HealthResponse)
async def health(config: PodConfig = Depends(get_config)) -> HealthResponse:
    """Healthcheck endpoint for the metadata API."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(tz=UTC),
        version=config.api_version,
    )


@router.post("/presigned-url", response_model=PresignedUrlResponse)
async def create_presigned_url(
    body: PresignedUrlRequest,
    config: PodConfig = Depends(get_config),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> PresignedUrlResponse:
    """Issue a presigned POST target for direct media upload."""
    _require_fields(
        filename=body.filename,
        contentType=body.content_type,
        awb=body.awb,
    )
    if storage is None:
        raise HTTPException(
            status_code=500,
            detail="Failed to generate upload URL - storage not configured",
        )

    key = build_storage_key(body.awb, body.filename)
    post = storage.create_presigned_post(
        key=key,
        content_type=body.content_type,
        max_bytes=config.max_upload_bytes,
        expires_in=config.presign_expires_seconds,
    )
    return PresignedUrlResponse(
        url=post["url"],
        fields=post["fields"],
        filename=body.filename,
        s3_key=key,
    )


@router.post("/delivery", response_model=SaveDeliveryResponse)
async def save_delivery(
    body: CreateDeliveryRequest,
    repository: DeliveryRepository = Depends(get_repository),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> SaveDeliveryResponse:
    """Store delivery metadata, deriving the public media URL."""
    _require_fields(
        awb=body.awb,
        filename=body.filename,
        mediaType=body.media_type,
    )
    s3_url = (
        storage.public_url(body.s3_key)
        if body.s3_key and storage is not None
        else None
    )
    delivery = await repository.create(
        awb=body.awb,
        filename=body.filename,
        media_type=body.media_type,
        timestamp=body.timestamp,
        file_size=body.file_size,
        s3_key=body.s3_key,
        s3_url=s3_url,
        status="completed",
    )
    logger.info("Delivery saved: %s - %s", body.awb, body.filename)
    return SaveDeliveryResponse(
        delivery=DeliveryResponse.from_delivery(delivery)
    )


@router.get("/deliveries", response_model=DeliveryListResponse)
async def list_deliveries(
    awb: str | None = None,
    limit: int = Query(default=50, ge=0),
    repository: DeliveryRepository = Depends(get_repository),
) -> DeliveryListResponse:
    """List deliveries most-recent-first, optionally filtered by AWB."""
    deliveries, total = await repository.list(awb=awb, limit=limit)
    return DeliveryListResponse(
        deliveries=[DeliveryResponse.from_delivery(d) for d in deliveries],
        total=total,
    )


@router.get("/delivery/{awb}", response_model=DeliveryResponse)
async def get_delivery(
    awb: str,
    repository: DeliveryRepository = Depends(get_repository),
) -> DeliveryResponse:
    delivery = await repository.get_by_awb(awb)
    return DeliveryResponse.from_delivery(delivery)


@router.delete(
    "/delivery/{delivery_id}", response_model=DeleteDeliveryResponse
)
async def delete_delivery(
    delivery_id: str,
    delete_from_s3: bool = Query(default=False, alias="deleteFromS3"),
    repository: DeliveryRepository = Depends(get_repository),
    storage: ObjectStorage | None = Depends(get_object_storage),
) -> DeleteDeliveryResponse:
    """Delete delivery metadata and, on request, its stored object."""
    delivery = await repository.get_by_id(delivery_id)
    if delete_from_s3 and delivery.s3_key and storage is not None:
        await storage.delete_object(delivery.s3_key)
    await repository.delete(delivery_id)
    logger.info("Delivery deleted: %s", delivery_id)
    return DeleteDeliveryResponse()
