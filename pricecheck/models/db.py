"""
SQLAlchemy ORM models for persistent storage.

Caches are snapshotted here so they survive process restarts.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CacheSnapshotDB(Base):
    """
    Serialized contents of one in-memory cache.

    One row per cache ("results", "price_groups"). Entries are stored as a
    JSON list of [key, {"value": ..., "timestamp": ...}] pairs in insertion
    order, which is also eviction order.
    """

    __tablename__ = "cache_snapshots"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    entries: Mapped[list[Any]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CacheSnapshotDB(name={self.name}, entries={len(self.entries)})>"
