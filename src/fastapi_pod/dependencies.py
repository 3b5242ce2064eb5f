"""Dependency providers for request handlers."""

from __future__ import annotations

from fastapi import Request

from fastapi_pod.config import PodConfig
from fastapi_pod.protocols import DeliveryRepository, ObjectStorage


def get_config(request: Request) -> PodConfig:
    """Read config from FastAPI app state."""
    return request.app.state.pod_config


def get_repository(request: Request) -> DeliveryRepository:
    """Read delivery repository from FastAPI app state."""
    return request.app.state.pod_repository


def get_object_storage(request: Request) -> ObjectStorage | None:
    """Read object storage from FastAPI app state."""
    return getattr(request.app.state, "pod_object_storage", None)
