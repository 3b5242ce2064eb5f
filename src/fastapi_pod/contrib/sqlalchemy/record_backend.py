"""SQLAlchemy key-value backend for the local record store."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fastapi_pod.contrib.sqlalchemy.models import LocalStateModel
from fastapi_pod.exceptions import PersistenceError


class SQLAlchemyKeyValueBackend:
    """Persist record store collections in a SQLAlchemy table."""

    def __init__(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        self.session_factory = session_factory

    async def get(self, key: str) -> str | None:
        try:
            async with self.session_factory() as session:
                row = await session.get(LocalStateModel, key)
                return row.value if row is not None else None
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to read {key}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            async with self.session_factory() as session:
                await session.merge(LocalStateModel(key=key, value=value))
                await session.commit()
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Failed to write {key}: {exc}") from exc
