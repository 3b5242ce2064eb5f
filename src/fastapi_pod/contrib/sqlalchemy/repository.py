"""SQLAlchemy delivery repository implementation."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fastapi_pod.contrib.sqlalchemy.models import DeliveryModel
from fastapi_pod.exceptions import DeliveryNotFoundError


class SQLAlchemyDeliveryRepository:
    """Delivery repository backed by SQLAlchemy async sessions."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def create(self, **kwargs) -> DeliveryModel:
        now = datetime.now(tz=UTC)
        delivery = DeliveryModel(
            id=kwargs.get("id") or str(uuid.uuid4()),
            awb=kwargs["awb"],
            filename=kwargs["filename"],
            media_type=str(kwargs["media_type"]),
            timestamp=kwargs.get("timestamp") or now,
            file_size=kwargs.get("file_size"),
            s3_key=kwargs.get("s3_key"),
            s3_url=kwargs.get("s3_url"),
            status=str(kwargs.get("status", "completed")),
            created_at=now,
        )
        async with self.session_factory() as session:
            session.add(delivery)
            await session.commit()
            await session.refresh(delivery)
        return delivery

    async def list(
        self, *, awb: str | None = None, limit: int = 50
    ) -> tuple[list[DeliveryModel], int]:
        """Most-recent-first page plus the total number of matches."""
        conditions = []
        if awb:
            conditions.append(
                func.lower(DeliveryModel.awb).contains(awb.lower())
            )
        async with self.session_factory() as session:
            total = await session.scalar(
                select(func.count()).select_from(DeliveryModel).where(
                    *conditions
                )
            )
            result = await session.execute(
                select(DeliveryModel)
                .where(*conditions)
                .order_by(DeliveryModel.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all()), total or 0

    async def get_by_awb(self, awb: str) -> DeliveryModel:
        async with self.session_factory() as session:
            result = await session.execute(
                select(DeliveryModel)
                .where(DeliveryModel.awb == awb)
                .order_by(DeliveryModel.created_at)
                .limit(1)
            )
            try:
                return result.scalar_one()
            except NoResultFound as e:
                raise DeliveryNotFoundError(awb) from e

    async def get_by_id(self, delivery_id: str) -> DeliveryModel:
        async with self.session_factory() as session:
            delivery = await session.get(DeliveryModel, delivery_id)
            if delivery is None:
                raise DeliveryNotFoundError(delivery_id)
            return delivery

    async def delete(self, delivery_id: str) -> None:
        async with self.session_factory() as session:
            result = await session.execute(
                delete(DeliveryModel).where(DeliveryModel.id == delivery_id)
            )
            if result.rowcount == 0:
                raise DeliveryNotFoundError(delivery_id)
            await session.commit()
