"""Record store persisted through the SQLAlchemy key-value backend."""

from conftest import make_record
from fastapi_pod.contrib.sqlalchemy.record_backend import (
    SQLAlchemyKeyValueBackend,
)
from fastapi_pod.protocols import KeyValueBackend
from fastapi_pod.store import RecordStore


async def test_backend_satisfies_protocol(async_session_factory) -> None:
    backend = SQLAlchemyKeyValueBackend(async_session_factory)
    assert isinstance(backend, KeyValueBackend)


async def test_get_missing_key_returns_none(async_session_factory) -> None:
    backend = SQLAlchemyKeyValueBackend(async_session_factory)
    assert await backend.get("pod_deliveries") is None


async def test_set_overwrites(async_session_factory) -> None:
    backend = SQLAlchemyKeyValueBackend(async_session_factory)

    await backend.set("k", "one")
    await backend.set("k", "two")

    assert await backend.get("k") == "two"


async def test_record_store_survives_new_backend(
    async_session_factory,
) -> None:
    store = RecordStore(SQLAlchemyKeyValueBackend(async_session_factory))
    record = make_record("AWB12345")
    await store.insert(record)

    reopened = RecordStore(SQLAlchemyKeyValueBackend(async_session_factory))
    loaded = await reopened.find_by_awb("AWB12345")

    assert loaded.id == record.id
    assert loaded.media_payload == record.media_payload
