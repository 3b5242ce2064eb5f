"""Shared fixtures for fastapi-pod tests."""

from __future__ import annotations

import pytest

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import DeviceAccessError
from fastapi_pod.lifecycle import DeliveryLifecycleManager
from fastapi_pod.memory import (
    InMemoryDeliveryRepository,
    InMemoryKeyValueBackend,
)
from fastapi_pod.models import DeliveryRecord, DeliveryStatus, MediaType
from fastapi_pod.storage import InMemoryObjectStorage
from fastapi_pod.store import RecordStore

PHOTO_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"
VIDEO_BYTES = b"\x1aE\xdf\xa3fake-webm"


class FakeStream:
    def __init__(self, *, photo: bytes = PHOTO_BYTES) -> None:
        self.photo = photo
        self.recording = False
        self.released = False
        self.recordings = 0

    async def snapshot(self) -> bytes:
        assert not self.released, "snapshot on released stream"
        return self.photo

    async def start_recording(self) -> None:
        assert not self.released, "recording on released stream"
        self.recording = True

    async def stop_recording(self) -> bytes:
        self.recording = False
        self.recordings += 1
        return VIDEO_BYTES

    def release(self) -> None:
        self.released = True


class FakeDevice:
    """Capture device handing out FakeStreams and remembering them."""

    def __init__(self) -> None:
        self.streams: list[FakeStream] = []

    async def open_stream(self, *, audio: bool = True) -> FakeStream:
        stream = FakeStream()
        self.streams.append(stream)
        return stream

    @property
    def open_streams(self) -> list[FakeStream]:
        return [s for s in self.streams if not s.released]


class DeniedDevice:
    async def open_stream(self, *, audio: bool = True) -> FakeStream:
        raise DeviceAccessError("Camera access is required")


def make_record(
    awb: str,
    status: DeliveryStatus = DeliveryStatus.COMPLETED,
    *,
    payload: str | None = "data:image/jpeg;base64,AAAA",
) -> DeliveryRecord:
    return DeliveryRecord.create(
        awb=awb,
        media_type=MediaType.PHOTO,
        file_size=3,
        status=status,
        media_payload=payload,
    )


@pytest.fixture()
def config() -> PodConfig:
    return PodConfig(video_max_seconds=0.2, sync_backoff_seconds=60)


@pytest.fixture()
def backend() -> InMemoryKeyValueBackend:
    return InMemoryKeyValueBackend()


@pytest.fixture()
def store(backend) -> RecordStore:
    return RecordStore(backend)


@pytest.fixture()
def device() -> FakeDevice:
    return FakeDevice()


@pytest.fixture()
def manager(store, device, config) -> DeliveryLifecycleManager:
    return DeliveryLifecycleManager(store=store, device=device, config=config)


@pytest.fixture()
def repository() -> InMemoryDeliveryRepository:
    return InMemoryDeliveryRepository()


@pytest.fixture()
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage(
        bucket_name="test-pod-bucket",
        region="us-east-1",
        signing_secret="secret",
    )


@pytest.fixture()
async def async_engine():
    """Create an in-memory aiosqlite async engine."""
    sa = pytest.importorskip("sqlalchemy")  # noqa: F841
    from sqlalchemy.ext.asyncio import create_async_engine

    from fastapi_pod.contrib.sqlalchemy.models import Base

    engine = create_async_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def async_session_factory(async_engine):
    """Create an async session factory bound to the in-memory engine."""
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    yield factory
