"""Package metadata tests."""

import re
from pathlib import Path

import pytest

import fastapi_pod


def test_version_is_available() -> None:
    assert fastapi_pod.__version__ == "0.1.0"
    assert re.match(r"^\d+\.\d+\.\d+", fastapi_pod.__version__)


def test_py_typed_marker_exists() -> None:
    marker = (
        Path(__file__).resolve().parents[1]
        / "src"
        / "fastapi_pod"
        / "py.typed"
    )
    assert marker.exists(), "py.typed marker file must exist"


def test_all_exports_importable() -> None:
    expected = {
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
    }
    assert set(fastapi_pod.__all__) == expected

    for name in expected:
        obj = getattr(fastapi_pod, name)
        assert obj is not None, f"{name} resolved to None"


def test_getattr_raises_for_unknown_attribute() -> None:
    with pytest.raises(AttributeError, match="no_such_thing"):
        fastapi_pod.no_such_thing  # noqa: B018
