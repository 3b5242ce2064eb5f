"""Dependency injection tests."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

from fastapi_pod.config import PodConfig
from fastapi_pod.dependencies import (
    get_config,
    get_object_storage,
    get_repository,
)


def _make_request(**state_attrs):
    """Create a mock request with app.state attributes."""
    request = MagicMock()
    request.app.state = SimpleNamespace(**state_attrs)
    return request


class TestDependencies:
    def test_get_config_from_app_state(self) -> None:
        config = PodConfig()
        request = _make_request(pod_config=config)
        assert get_config(request) is config

    def test_get_repository_from_app_state(self) -> None:
        repo = MagicMock()
        request = _make_request(pod_repository=repo)
        assert get_repository(request) is repo

    def test_get_object_storage_returns_none_when_not_set(self) -> None:
        assert get_object_storage(_make_request()) is None

    def test_get_object_storage_from_app_state(self) -> None:
        storage = MagicMock()
        request = _make_request(pod_object_storage=storage)
        assert get_object_storage(request) is storage
