"""SQLAlchemy delivery/local-state models."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base."""


class DeliveryModel(Base):
    """Delivery metadata stored by the metadata API."""

    __tablename__ = "pod_deliveries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    awb: Mapped[str] = mapped_column(String(64), index=True)
    filename: Mapped[str] = mapped_column(String(255))
    media_type: Mapped[str] = mapped_column(String(16))
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    s3_key: Mapped[str | None] = mapped_column(String(512), nullable=True)
    s3_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(String(32), default="completed")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, index=True
    )


class LocalStateModel(Base):
    """Key-value row backing the client-side record store."""

    __tablename__ = "pod_local_state"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
