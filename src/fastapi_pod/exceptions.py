"""Proof-of-delivery exceptions and their HTTP response mapping."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class PodException(Exception):
    """Base class for every proof-of-delivery error."""


class ValidationError(PodException):
    """Input rejected before any state transition or write."""


class InvalidAwbError(ValidationError):
    """AWB shorter than the accepted minimum."""

    def __init__(self, awb: str, min_length: int) -> None:
        self.awb = awb
        self.min_length = min_length
        super().__init__(
            "Please enter a valid AWB number "
            f"(minimum {min_length} characters)"
        )


class MissingFieldsError(ValidationError):
    """Required request fields were not supplied."""

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing required fields: {', '.join(fields)}")


class DeviceAccessError(PodException):
    """Camera or microphone denied or unavailable."""


class MediaEncodingError(PodException):
    """Captured payload could not be converted to its storable form."""


class MediaUnavailableError(PodException):
    """Record has no stored payload to preview."""


class PersistenceError(PodException):
    """Local store read or write failed."""


class StorageQuotaExceededError(PersistenceError):
    """Local storage medium rejected a write for lack of space."""


class InvalidTransitionError(PodException):
    """Operation not allowed from the current state."""


class RecordNotFoundError(PodException):
    """No local record with the given id."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Record {record_id} not found")


class DeliveryNotFoundError(PodException):
    """No remote delivery matching the lookup."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Delivery {key} not found")


class CommunicationError(PodException):
    """Remote service unreachable or failing."""


class RemoteRejectedError(PodException):
    """Remote service refused the request."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(message)


def _error_response(
    status_code: int, exc: Exception, code: str
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register proof-of-delivery exception handlers on a FastAPI app.

    More specific handlers must be registered first so FastAPI
    matches them before the generic PodException handler.

    Handler order (most specific first):
    1. DeliveryNotFoundError → 404
    2. RecordNotFoundError → 404
    3. StorageQuotaExceededError → 507
    4. CommunicationError → 502
    5. InvalidTransitionError → 409
    6. ValidationError → 400
    7. PodException → 400 (catch-all)
    """

    @app.exception_handler(DeliveryNotFoundError)
    async def _delivery_not_found(
        request: Request,
        exc: DeliveryNotFoundError,
    ) -> JSONResponse:
        return _error_response(404, exc, "delivery_not_found")

    @app.exception_handler(RecordNotFoundError)
    async def _record_not_found(
        request: Request,
        exc: RecordNotFoundError,
    ) -> JSONResponse:
        return _error_response(404, exc, "record_not_found")

    @app.exception_handler(StorageQuotaExceededError)
    async def _quota_exceeded(
        request: Request,
        exc: StorageQuotaExceededError,
    ) -> JSONResponse:
        return _error_response(507, exc, "storage_quota_exceeded")

    @app.exception_handler(CommunicationError)
    async def _communication_error(
        request: Request,
        exc: CommunicationError,
    ) -> JSONResponse:
        return _error_response(502, exc, "communication_error")

    @app.exception_handler(InvalidTransitionError)
    async def _invalid_transition(
        request: Request,
        exc: InvalidTransitionError,
    ) -> JSONResponse:
        return _error_response(409, exc, "invalid_transition")

    @app.exception_handler(ValidationError)
    async def _validation_error(
        request: Request,
        exc: ValidationError,
    ) -> JSONResponse:
        return _error_response(400, exc, "validation_error")

    @app.exception_handler(PodException)
    async def _pod_error(
        request: Request,
        exc: PodException,
    ) -> JSONResponse:
        return _error_response(400, exc, "delivery_error")
