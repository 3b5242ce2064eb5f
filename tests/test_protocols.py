"""Protocol conformance tests."""

from conftest import FakeDevice, FakeStream
from fastapi_pod.client import MetadataApiClient
from fastapi_pod.memory import (
    InMemoryAssetCache,
    InMemoryCacheStorage,
    InMemoryDeliveryRepository,
    InMemoryKeyValueBackend,
)
from fastapi_pod.protocols import (
    AssetCache,
    CacheStorage,
    CaptureDevice,
    DeliveryRepository,
    DeviceStream,
    KeyValueBackend,
    MetadataClient,
)


class _IncompleteRepository:
    """Missing methods; should NOT satisfy the protocol."""

    async def create(self, **fields):
        return fields


def test_in_memory_collaborators_satisfy_protocols() -> None:
    assert isinstance(InMemoryKeyValueBackend(), KeyValueBackend)
    assert isinstance(InMemoryDeliveryRepository(), DeliveryRepository)
    assert isinstance(InMemoryAssetCache(), AssetCache)
    assert isinstance(InMemoryCacheStorage(), CacheStorage)


def test_fake_device_satisfies_protocols() -> None:
    assert isinstance(FakeDevice(), CaptureDevice)
    assert isinstance(FakeStream(), DeviceStream)


def test_api_client_satisfies_metadata_client() -> None:
    assert isinstance(MetadataApiClient("http://pod.test"), MetadataClient)


def test_incomplete_repository_does_not_satisfy_protocol() -> None:
    assert not isinstance(_IncompleteRepository(), DeliveryRepository)
