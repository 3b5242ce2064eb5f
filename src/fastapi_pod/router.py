"""Router factory for fastapi-pod."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import register_exception_handlers
from fastapi_pod.protocols import DeliveryRepository, ObjectStorage
from fastapi_pod.routes.deliveries import router as deliveries_router


def create_pod_router(
    *,
    config: PodConfig,
    repository: DeliveryRepository,
    object_storage: ObjectStorage | None = None,
) -> APIRouter:
    """Create a configured metadata API router."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.pod_config = config
        app.state.pod_repository = repository
        app.state.pod_object_storage = object_storage
        register_exception_handlers(app)
        yield

    router = APIRouter(lifespan=lifespan)
    router.include_router(deliveries_router)
    return router
