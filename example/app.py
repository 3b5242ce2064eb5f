"""FastAPI example app serving the proof-of-delivery metadata API."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from fastapi_pod import (
    PodConfig,
    create_pod_router,
    register_exception_handlers,
)
from fastapi_pod.contrib.sqlalchemy.models import Base
from fastapi_pod.contrib.sqlalchemy.repository import (
    SQLAlchemyDeliveryRepository,
)
from fastapi_pod.routes.deliveries import health
from fastapi_pod.schemas import HealthResponse
from fastapi_pod.storage import InMemoryObjectStorage

logger = logging.getLogger(__name__)

# --- Database setup ---

DATABASE_URL = "sqlite+aiosqlite:///./example.db"
engine = create_async_engine(DATABASE_URL, echo=False)
async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# --- Library integration ---

config = PodConfig()
repository = SQLAlchemyDeliveryRepository(async_session)
object_storage = InMemoryObjectStorage(
    bucket_name=config.bucket_name,
    region=config.region,
    signing_secret=config.signing_secret,
)

pod_router = create_pod_router(
    config=config,
    repository=repository,
    object_storage=object_storage,
)

# --- FastAPI app ---


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    mode = (
        "TEST MODE"
        if config.bucket_name == "test-pod-bucket"
        else "PRODUCTION"
    )
    logger.info(
        "POD metadata API ready, bucket %s (%s)", config.bucket_name, mode
    )
    yield
    await engine.dispose()


app = FastAPI(
    title="fastapi-pod demo",
    lifespan=lifespan,
)
register_exception_handlers(app)
app.include_router(pod_router, prefix="/api")
# Root-level health check alongside /api/health.
app.add_api_route("/health", health, response_model=HealthResponse)
