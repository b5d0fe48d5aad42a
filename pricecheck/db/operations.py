"""
Cache snapshot persistence operations.

One row per named cache. Rows are replaced wholesale on every save.
"""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricecheck.models.db import CacheSnapshotDB


async def get_snapshot(session: AsyncSession, name: str) -> CacheSnapshotDB | None:
    """Get a cache snapshot row by cache name."""
    result = await session.execute(select(CacheSnapshotDB).where(CacheSnapshotDB.name == name))
    return result.scalar_one_or_none()


async def load_snapshot(session: AsyncSession, name: str) -> list[Any]:
    """
    Load the serialized entries of a cache.

    Returns an empty list if the cache was never saved.
    """
    snapshot = await get_snapshot(session, name)
    if snapshot is None or not isinstance(snapshot.entries, list):
        return []
    return snapshot.entries


async def save_snapshot(session: AsyncSession, name: str, entries: list[Any]) -> CacheSnapshotDB:
    """
    Insert or replace the serialized entries of a cache.

    The caller commits.
    """
    snapshot = await get_snapshot(session, name)
    if snapshot is not None:
        snapshot.entries = entries
        await session.flush()
        return snapshot

    snapshot = CacheSnapshotDB(name=name, entries=entries)
    session.add(snapshot)
    await session.flush()
    return snapshot
