"""Router tests."""

from fastapi import APIRouter, FastAPI

from fastapi_pod.config import PodConfig
from fastapi_pod.exceptions import CommunicationError
from fastapi_pod.memory import InMemoryDeliveryRepository
from fastapi_pod.router import create_pod_router


def test_create_pod_router_returns_apirouter() -> None:
    router = create_pod_router(
        config=PodConfig(),
        repository=InMemoryDeliveryRepository(),
    )

    assert isinstance(router, APIRouter)
    paths = {route.path for route in router.routes}
    assert {"/health", "/presigned-url", "/delivery", "/deliveries"} <= paths


async def test_lifespan_populates_state_and_handlers() -> None:
    app = FastAPI()
    config = PodConfig()
    repository = InMemoryDeliveryRepository()
    app.include_router(
        create_pod_router(config=config, repository=repository)
    )

    async with app.router.lifespan_context(app) as _:
        assert app.state.pod_config is config
        assert app.state.pod_repository is repository
        assert app.state.pod_object_storage is None
        assert CommunicationError in app.exception_handlers
