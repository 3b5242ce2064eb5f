"""Capture session state machine: scan, capture, persist."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import (
    InvalidAwbError,
    InvalidTransitionError,
    MediaUnavailableError,
    PersistenceError,
)
from fastapi_pod.media import (
    CapturedMedia,
    PreviewHandle,
    PreviewHandles,
    decode_data_url,
    encode_media,
)
from fastapi_pod.models import (
    DeliveryRecord,
    DeliveryStatus,
    MediaType,
    normalize_awb,
)
from fastapi_pod.protocols import CaptureDevice, DeviceStream
from fastapi_pod.store import RecordStore

logger = logging.getLogger(__name__)

StateListener = Callable[["CaptureState", "CaptureState"], None]
MediaEncoder = Callable[[bytes, str], str]


class CaptureState(StrEnum):
    IDLE = "idle"
    SCANNING = "scanning"
    AWB_CONFIRMED = "awb_confirmed"
    CAPTURING = "capturing"
    MEDIA_READY = "media_ready"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_SESSION_EXITS = {
    CaptureState.IDLE,
    CaptureState.SCANNING,
}

TRANSITIONS: dict[CaptureState, frozenset[CaptureState]] = {
    CaptureState.IDLE: frozenset({CaptureState.SCANNING}),
    CaptureState.SCANNING: frozenset(
        {CaptureState.AWB_CONFIRMED, *_SESSION_EXITS}
    ),
    CaptureState.AWB_CONFIRMED: frozenset(
        {CaptureState.CAPTURING, *_SESSION_EXITS}
    ),
    CaptureState.CAPTURING: frozenset(
        {CaptureState.MEDIA_READY, *_SESSION_EXITS}
    ),
    CaptureState.MEDIA_READY: frozenset(
        {CaptureState.CAPTURING, CaptureState.UPLOADING, *_SESSION_EXITS}
    ),
    CaptureState.UPLOADING: frozenset(
        {CaptureState.SUCCEEDED, CaptureState.FAILED}
    ),
    CaptureState.SUCCEEDED: frozenset({CaptureState.IDLE}),
    CaptureState.FAILED: frozenset(
        {CaptureState.UPLOADING, CaptureState.IDLE}
    ),
}


class DeliveryLifecycleManager:
    """Drives one capture session at a time.

    The manager is the single source of truth for the session; UI code
    subscribes to state changes and calls the operations below. Device
    streams and preview handles are released on entry to a new session
    (``start_delivery``/``rescan``/``cancel``) so an abandoned session
    cannot leak camera or microphone access.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        device: CaptureDevice,
        config: PodConfig | None = None,
        encoder: MediaEncoder = encode_media,
    ) -> None:
        self.store = store
        self.device = device
        self.config = config or PodConfig()
        self.encoder = encoder
        self.previews = PreviewHandles()

        self._state = CaptureState.IDLE
        self._listeners: list[StateListener] = []
        self._stream: DeviceStream | None = None
        self._recording = False
        self._device_busy = False
        self._recording_started: float | None = None
        self._auto_stop: asyncio.Task | None = None

        self.awb: str | None = None
        self.media: CapturedMedia | None = None
        self.preview: PreviewHandle | None = None
        self.record: DeliveryRecord | None = None
        self.last_error: Exception | None = None

    # --- state plumbing ---

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def has_device_stream(self) -> bool:
        return self._stream is not None

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener(old, new)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _check(self, target: CaptureState) -> None:
        if target not in TRANSITIONS[self._state]:
            raise InvalidTransitionError(
                f"Cannot go from {self._state} to {target}"
            )

    def _require(self, *states: CaptureState, action: str) -> None:
        if self._state not in states:
            raise InvalidTransitionError(
                f"Cannot {action} while {self._state}"
            )

    def _set_state(self, target: CaptureState) -> None:
        self._check(target)
        old, self._state = self._state, target
        logger.debug("Capture session %s -> %s", old, target)
        for listener in list(self._listeners):
            listener(old, target)

    # --- resource cleanup ---

    def _release_device(self) -> None:
        if self._auto_stop is not None:
            if self._auto_stop is not asyncio.current_task():
                self._auto_stop.cancel()
            self._auto_stop = None
        self._recording = False
        self._device_busy = False
        self._recording_started = None
        if self._stream is not None:
            self._stream.release()
            self._stream = None

    def _release_session(self) -> None:
        self._release_device()
        self.previews.revoke_all()
        self.preview = None
        self.media = None

    def _reset(self, target: CaptureState) -> None:
        if self._state is CaptureState.UPLOADING:
            raise InvalidTransitionError(
                "Cannot leave the session while an upload is in flight"
            )
        if self._state is not target:
            self._check(target)
        self._release_session()
        self.awb = None
        self.record = None
        self.last_error = None
        if self._state is not target:
            self._set_state(target)

    # --- session operations ---

    async def start_delivery(self) -> None:
        """Begin a new delivery, releasing everything from the last one."""
        if self._state is CaptureState.SCANNING:
            self._reset(CaptureState.SCANNING)
        else:
            self._reset(CaptureState.IDLE)
            self._set_state(CaptureState.SCANNING)
        logger.info("Started new delivery capture session")

    async def rescan(self) -> None:
        """Drop the confirmed AWB and any capture, back to scanning."""
        self._require(
            CaptureState.AWB_CONFIRMED,
            CaptureState.CAPTURING,
            CaptureState.MEDIA_READY,
            action="return to scanning",
        )
        self._reset(CaptureState.SCANNING)

    async def cancel(self) -> None:
        self._reset(CaptureState.IDLE)

    def accept_barcode(self, code: str | None) -> bool:
        """Accept a decoded barcode; short reads are ignored."""
        self._require(CaptureState.SCANNING, action="accept a barcode")
        try:
            awb = normalize_awb(code or "", self.config.awb_min_length)
        except InvalidAwbError:
            logger.debug("Ignoring short barcode read %r", code)
            return False
        self._confirm_awb(awb)
        return True

    def enter_awb(self, text: str) -> str:
        """Accept a manually typed AWB or raise InvalidAwbError."""
        self._require(CaptureState.SCANNING, action="enter an AWB")
        awb = normalize_awb(text, self.config.awb_min_length)
        self._confirm_awb(awb)
        return awb

    def _confirm_awb(self, awb: str) -> None:
        self.awb = awb
        self._set_state(CaptureState.AWB_CONFIRMED)
        logger.info("AWB %s confirmed", awb)

    async def start_capture(self) -> None:
        """Open the camera; DeviceAccessError leaves the AWB confirmed."""
        self._require(CaptureState.AWB_CONFIRMED, action="start capture")
        stream = await self.device.open_stream(audio=True)
        if self._state is not CaptureState.AWB_CONFIRMED:
            stream.release()
            raise InvalidTransitionError(
                "Session changed while the camera was opening"
            )
        self._stream = stream
        self._set_state(CaptureState.CAPTURING)

    def _claim_stream(self, action: str) -> DeviceStream:
        """Mark the stream busy for one device call."""
        self._require(CaptureState.CAPTURING, action=action)
        if self._recording:
            raise InvalidTransitionError(f"Cannot {action} while recording")
        if self._device_busy:
            raise InvalidTransitionError(
                f"Cannot {action} while the camera is busy"
            )
        self._device_busy = True
        return self._stream

    def _still_capturing(self, stream: DeviceStream) -> bool:
        return (
            self._state is CaptureState.CAPTURING and self._stream is stream
        )

    async def capture_photo(self) -> CapturedMedia:
        stream = self._claim_stream("capture a photo")
        try:
            data = await stream.snapshot()
        finally:
            if self._stream is stream:
                self._device_busy = False
        if not self._still_capturing(stream):
            raise InvalidTransitionError(
                "Session changed while the photo was being taken"
            )
        media = CapturedMedia(
            data=data,
            media_type=MediaType.PHOTO,
            content_type=MediaType.PHOTO.default_content_type,
        )
        self._attach(media)
        return media

    async def start_recording(self) -> None:
        """Start video; stops itself after ``video_max_seconds``."""
        stream = self._claim_stream("start recording")
        self._recording = True
        try:
            await stream.start_recording()
        except BaseException:
            if self._stream is stream:
                self._recording = False
            raise
        finally:
            if self._stream is stream:
                self._device_busy = False
        if not self._still_capturing(stream):
            raise InvalidTransitionError(
                "Session changed while the recorder was starting"
            )
        self._recording_started = asyncio.get_running_loop().time()
        self._auto_stop = asyncio.create_task(
            self._stop_after(self.config.video_max_seconds)
        )

    async def _stop_after(self, seconds: float) -> None:
        try:
            await asyncio.sleep(seconds)
            if self._recording:
                logger.info("Video reached %.0fs ceiling, stopping", seconds)
                await self._finish_recording()
        except Exception as exc:
            self.last_error = exc
            logger.error("Automatic video stop failed: %s", exc)
        finally:
            if self._auto_stop is asyncio.current_task():
                self._auto_stop = None

    async def stop_recording(self) -> CapturedMedia:
        if not self._recording or self._device_busy:
            raise InvalidTransitionError("No recording in progress")
        if self._auto_stop is not None:
            self._auto_stop.cancel()
            self._auto_stop = None
        return await self._finish_recording()

    async def _finish_recording(self) -> CapturedMedia:
        loop = asyncio.get_running_loop()
        elapsed = loop.time() - (self._recording_started or loop.time())
        self._recording = False
        self._recording_started = None
        stream = self._stream
        data = await stream.stop_recording()
        media = CapturedMedia(
            data=data,
            media_type=MediaType.VIDEO,
            content_type=MediaType.VIDEO.default_content_type,
            duration_seconds=min(elapsed, self.config.video_max_seconds),
        )
        if self._still_capturing(stream):
            self._attach(media)
        return media

    def _attach(self, media: CapturedMedia) -> None:
        self._check(CaptureState.MEDIA_READY)
        self.media = media
        self.preview = self.previews.create(media.data, media.content_type)
        self._set_state(CaptureState.MEDIA_READY)

    def discard_media(self) -> None:
        """Throw away the pending capture and go back to the camera."""
        self._require(CaptureState.MEDIA_READY, action="discard media")
        self.previews.revoke(self.preview)
        self.preview = None
        self.media = None
        self._set_state(CaptureState.CAPTURING)

    async def confirm_media(self) -> DeliveryRecord:
        """Release the camera and persist the captured media."""
        self._require(CaptureState.MEDIA_READY, action="confirm media")
        self._release_device()
        self._set_state(CaptureState.UPLOADING)
        return await self._persist(offline=False)

    async def retry_upload(self) -> DeliveryRecord:
        self._require(CaptureState.FAILED, action="retry the upload")
        self._set_state(CaptureState.UPLOADING)
        return await self._persist(offline=False)

    async def save_offline(self) -> DeliveryRecord:
        """Force-persist the capture as ``pending`` for later sync."""
        self._require(CaptureState.FAILED, action="save offline")
        self._set_state(CaptureState.UPLOADING)
        return await self._persist(offline=True)

    def _build_record(self, *, offline: bool) -> DeliveryRecord:
        media = self.media
        payload: str | None
        try:
            payload = self.encoder(media.data, media.content_type)
        except Exception as exc:
            logger.warning(
                "Could not encode %s for AWB %s, storing without preview: %s",
                media.media_type,
                self.awb,
                exc,
            )
            payload = None

        if offline:
            status = DeliveryStatus.PENDING
        elif payload is None:
            status = DeliveryStatus.MEDIA_ERROR
        else:
            status = DeliveryStatus.COMPLETED

        return DeliveryRecord.create(
            awb=self.awb,
            media_type=media.media_type,
            content_type=media.content_type,
            file_size=media.size,
            media_payload=payload,
            status=status,
        )

    async def _persist(self, *, offline: bool) -> DeliveryRecord:
        record = self._build_record(offline=offline)
        try:
            await self.store.insert(record)
        except PersistenceError as exc:
            self.last_error = exc
            logger.error(
                "Saving delivery for AWB %s failed: %s", self.awb, exc
            )
            self._set_state(CaptureState.FAILED)
            raise

        self.record = record
        self.last_error = None
        self.previews.revoke_all()
        self.preview = None
        self.media = None
        self._set_state(CaptureState.SUCCEEDED)
        return record

    # --- stored records ---

    def open_preview(self, record: DeliveryRecord) -> PreviewHandle:
        """Issue a preview handle for a stored record's media."""
        if record.media_payload is None:
            raise MediaUnavailableError(
                f"Delivery {record.awb} has no stored media ({record.status})"
            )
        content_type, data = decode_data_url(record.media_payload)
        return self.previews.create(data, content_type)
