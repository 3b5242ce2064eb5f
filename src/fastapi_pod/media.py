"""Captured media payloads, storable encoding and preview handles."""

from __future__ import annotations

import base64
import binascii
import logging
import uuid
from dataclasses import dataclass, field

from fastapi_pod.exceptions import MediaEncodingError
from fastapi_pod.models import MediaType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapturedMedia:
    """Raw capture output held in memory until the session persists it."""

    data: bytes
    media_type: MediaType
    content_type: str
    duration_seconds: float | None = None

    @property
    def size(self) -> int:
        return len(self.data)


def encode_media(data: bytes, content_type: str) -> str:
    """Encode raw media as a ``data:`` URL for text-only storage."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise MediaEncodingError(
            f"Cannot encode {type(data).__name__} as media payload"
        )
    try:
        encoded = base64.b64encode(bytes(data)).decode("ascii")
    except (TypeError, ValueError) as exc:
        raise MediaEncodingError(str(exc)) from exc
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(payload: str) -> tuple[str, bytes]:
    """Split a ``data:`` URL into its content type and raw bytes."""
    header, sep, body = payload.partition(",")
    if not sep or not header.startswith("data:") or ";base64" not in header:
        raise MediaEncodingError("Payload is not a base64 data URL")
    content_type = header[len("data:") :].split(";", 1)[0]
    try:
        return content_type, base64.b64decode(body, validate=True)
    except binascii.Error as exc:
        raise MediaEncodingError(f"Corrupt media payload: {exc}") from exc


@dataclass
class PreviewHandle:
    """Transient reference to in-memory media, valid until revoked."""

    data: bytes
    content_type: str
    url: str = field(default_factory=lambda: f"blob:pod/{uuid.uuid4()}")
    revoked: bool = False


class PreviewHandles:
    """Tracks every preview handle issued so none outlive their session."""

    def __init__(self) -> None:
        self._active: dict[str, PreviewHandle] = {}

    def create(self, data: bytes, content_type: str) -> PreviewHandle:
        handle = PreviewHandle(data=data, content_type=content_type)
        self._active[handle.url] = handle
        return handle

    def revoke(self, handle: PreviewHandle | None) -> None:
        if handle is None:
            return
        handle.revoked = True
        self._active.pop(handle.url, None)

    def revoke_all(self) -> int:
        count = len(self._active)
        for handle in list(self._active.values()):
            self.revoke(handle)
        if count:
            logger.debug("Revoked %d preview handle(s)", count)
        return count

    @property
    def active(self) -> list[PreviewHandle]:
        return list(self._active.values())
