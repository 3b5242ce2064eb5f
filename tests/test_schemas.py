"""Schema tests."""

from datetime import UTC, datetime

from fastapi_pod.memory import StoredDelivery
from fastapi_pod.schemas import (
    CreateDeliveryRequest,
    DeliveryResponse,
    PresignedUrlRequest,
)


def test_requests_accept_camel_case() -> None:
    body = CreateDeliveryRequest.model_validate(
        {
            "awb": "AWB12345",
            "filename": "f.jpg",
            "mediaType": "photo",
            "fileSize": 12,
            "s3Key": "pods/k",
        }
    )
    assert body.media_type == "photo"
    assert body.file_size == 12
    assert body.s3_key == "pods/k"


def test_requests_tolerate_missing_fields() -> None:
    body = PresignedUrlRequest.model_validate({})
    assert body.filename is None
    assert body.content_type is None


def test_delivery_response_from_delivery_dumps_camel_case() -> None:
    now = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
    delivery = StoredDelivery(
        id="d-1",
        awb="AWB12345",
        filename="f.jpg",
        media_type="video",
        timestamp=now,
        created_at=now,
        file_size=99,
        s3_key="pods/k",
        s3_url="https://bucket/pods/k",
    )

    data = DeliveryResponse.from_delivery(delivery).model_dump(
        by_alias=True
    )

    assert data["mediaType"] == "video"
    assert data["fileSize"] == 99
    assert data["s3Url"] == "https://bucket/pods/k"
    assert data["createdAt"] == now
    assert data["status"] == "completed"
