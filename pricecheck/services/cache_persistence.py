"""
Durable snapshots of the in-memory caches.

Each cache is stored as one row of ``cache_snapshots``. Snapshots are
written on a timer, and only for caches changed since the last write.
Loading drops entries that expired while the process was down.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pricecheck.db.operations import load_snapshot, save_snapshot
from pricecheck.services.cache import TTLCache

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PersistedCache:
    """A cache plus the codec for its values."""

    cache: TTLCache[Any]
    encode: Callable[[Any], Any]
    decode: Callable[[Any], Any]


class CachePersistence:
    """Loads and saves named caches through an async session factory."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        caches: dict[str, PersistedCache],
    ) -> None:
        self._session_factory = session_factory
        self._caches = caches

    async def load_all(self) -> dict[str, int]:
        """
        Restore every cache from its snapshot.

        Returns:
            Entries loaded per cache name
        """
        loaded: dict[str, int] = {}
        try:
            async with self._session_factory() as session:
                for name, persisted in self._caches.items():
                    entries = await load_snapshot(session, name)
                    loaded[name] = persisted.cache.load(entries, persisted.decode)
        except SQLAlchemyError as e:
            logger.warning("Cache load failed: %s", e)
            return loaded

        logger.info("Loaded cached entries from storage: %s", loaded)
        return loaded

    async def flush(self) -> list[str]:
        """
        Write every dirty cache.

        Returns:
            Names of the caches written
        """
        dirty = {name: p for name, p in self._caches.items() if p.cache.dirty}
        if not dirty:
            return []

        snapshots = {name: p.cache.snapshot(p.encode) for name, p in dirty.items()}
        # Marked before the write so puts made during it stay dirty
        for persisted in dirty.values():
            persisted.cache.mark_clean()

        try:
            async with self._session_factory() as session:
                for name, entries in snapshots.items():
                    await save_snapshot(session, name, entries)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Cache persist failed: %s", e)
            for persisted in dirty.values():
                persisted.cache.dirty = True
            return []

        logger.debug("Persisted caches: %s", ", ".join(snapshots))
        return list(snapshots)

    async def run_forever(self, interval: float) -> None:
        """Flush dirty caches every `interval` seconds until cancelled."""
        while True:
            await asyncio.sleep(interval)
            await self.flush()
