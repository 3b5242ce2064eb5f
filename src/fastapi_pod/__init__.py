"""Proof-of-delivery capture, local store and metadata API."""

from typing import TYPE_CHECKING

__version__ = "0.1.0"

__all__ = [
    "BackgroundSync",
    "CaptureState",
    "DeliveryLifecycleManager",
    "DeliveryNotFoundError",
    "DeliveryRecord",
    "MetadataApiClient",
    "PodConfig",
    "RecordStore",
    "SyncCacheGateway",
    "__version__",
    "create_pod_router",
    "register_exception_handlers",
]

if TYPE_CHECKING:
    from fastapi_pod.client import MetadataApiClient
    from fastapi_pod.config import PodConfig
    from fastapi_pod.exceptions import (
        DeliveryNotFoundError,
        register_exception_handlers,
    )
    from fastapi_pod.gateway import SyncCacheGateway
    from fastapi_pod.lifecycle import CaptureState, DeliveryLifecycleManager
    from fastapi_pod.models import DeliveryRecord
    from fastapi_pod.router import create_pod_router
    from fastapi_pod.store import RecordStore
    from fastapi_pod.sync import BackgroundSync


_LAZY = {
    "BackgroundSync": "fastapi_pod.sync",
    "CaptureState": "fastapi_pod.lifecycle",
    "DeliveryLifecycleManager": "fastapi_pod.lifecycle",
    "DeliveryNotFoundError": "fastapi_pod.exceptions",
    "DeliveryRecord": "fastapi_pod.models",
    "MetadataApiClient": "fastapi_pod.client",
    "PodConfig": "fastapi_pod.config",
    "RecordStore": "fastapi_pod.store",
    "SyncCacheGateway": "fastapi_pod.gateway",
    "create_pod_router": "fastapi_pod.router",
    "register_exception_handlers": "fastapi_pod.exceptions",
}


def __getattr__(name: str):
    # Lazy imports to avoid loading all submodules on package import.
    module_name = _LAZY.get(name)
    if module_name is None:
        raise AttributeError(
            f"module 'fastapi_pod' has no attribute {name!r}"
        )
    from importlib import import_module

    return getattr(import_module(module_name), name)
