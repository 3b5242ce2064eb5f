"""Exception handler tests."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_pod.exceptions import (
    CommunicationError,
    DeliveryNotFoundError,
    InvalidAwbError,
    InvalidTransitionError,
    MediaEncodingError,
    MissingFieldsError,
    PersistenceError,
    RecordNotFoundError,
    StorageQuotaExceededError,
    ValidationError,
    register_exception_handlers,
)


def _create_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    return app


def _raise(exc: Exception):
    app = _create_app()

    @app.get("/boom")
    async def boom():
        raise exc

    client = TestClient(app, raise_server_exceptions=False)
    return client.get("/boom")


def test_invalid_awb_error_message() -> None:
    exc = InvalidAwbError("short1", 8)
    assert exc.awb == "short1"
    assert str(exc) == (
        "Please enter a valid AWB number (minimum 8 characters)"
    )
    assert isinstance(exc, ValidationError)


def test_missing_fields_error_lists_fields() -> None:
    exc = MissingFieldsError(["awb", "filename", "mediaType"])
    assert exc.fields == ["awb", "filename", "mediaType"]
    assert str(exc) == "Missing required fields: awb, filename, mediaType"


def test_delivery_not_found_error_has_key() -> None:
    exc = DeliveryNotFoundError("AWB12345")
    assert exc.key == "AWB12345"
    assert "AWB12345" in str(exc)


def test_quota_error_is_persistence_error() -> None:
    assert issubclass(StorageQuotaExceededError, PersistenceError)


@pytest.mark.parametrize(
    ("exc", "status_code", "code"),
    [
        (DeliveryNotFoundError("d-1"), 404, "delivery_not_found"),
        (RecordNotFoundError("r-1"), 404, "record_not_found"),
        (StorageQuotaExceededError("full"), 507, "storage_quota_exceeded"),
        (CommunicationError("provider timeout"), 502, "communication_error"),
        (InvalidTransitionError("cannot confirm"), 409, "invalid_transition"),
        (InvalidAwbError("x", 8), 400, "validation_error"),
        (MediaEncodingError("bad payload"), 400, "delivery_error"),
    ],
)
def test_handler_mapping(exc, status_code, code) -> None:
    resp = _raise(exc)

    assert resp.status_code == status_code
    body = resp.json()
    assert body["detail"] == str(exc)
    assert body["code"] == code
