"""
TCGCSV client.

Fetches the group listing and per-group product/price tables from the
secondary provider. Group tables go through the price-group cache; the group
listing is held in memory for the same TTL.

Any network or parse failure degrades to "no data": an empty group list or a
None table. Nothing here raises to the caller.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

import httpx

from pricecheck.models.price_group import Group, GroupTable
from pricecheck.parsers.tcgcsv import parse_groups, parse_prices, parse_products
from pricecheck.services.cache import TTLCache

logger = logging.getLogger(__name__)


class TcgCsvClient:
    """
    Secondary provider client backed by the price-group cache.

    Args:
        client: Shared HTTP client
        base_url: Category root, e.g. https://tcgcsv.com/tcgplayer/1
        group_cache: Cache of GroupTable keyed by group id
        groups_ttl: Seconds the group listing is kept
        max_retries: Additional attempts on 429/5xx/network errors
        retry_delay: Linear backoff unit in seconds
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        group_cache: TTLCache[GroupTable],
        *,
        groups_ttl: float = 4 * 60 * 60,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.group_cache = group_cache
        self.groups_ttl = groups_ttl
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._clock = clock

        self._groups: list[Group] = []
        self._groups_fetched_at: float | None = None
        self._loading: dict[int, asyncio.Task[GroupTable | None]] = {}

    async def _get_json(self, path: str) -> Any | None:
        url = f"{self._base_url}{path}"
        attempts = self.max_retries + 1

        for attempt in range(1, attempts + 1):
            try:
                response = await self._client.get(url)
            except httpx.HTTPError as e:
                logger.debug("TCGCSV request error (attempt %d/%d) %s: %s", attempt, attempts, url, e)
            else:
                if response.is_success:
                    try:
                        return response.json()
                    except ValueError:
                        logger.warning("Invalid JSON from %s", url)
                        return None
                if response.status_code != 429 and response.status_code < 500:
                    logger.info("TCGCSV %d %s", response.status_code, url)
                    return None
                logger.debug("TCGCSV %d (attempt %d/%d) %s", response.status_code, attempt, attempts, url)

            if attempt < attempts:
                await asyncio.sleep(self.retry_delay * attempt)

        logger.warning("TCGCSV unavailable after %d attempts: %s", attempts, url)
        return None

    async def get_groups(self) -> list[Group]:
        """
        Return every Magic group, refreshing the listing after its TTL.

        A failed refresh keeps the previous listing and is retried on the
        next call.
        """
        now = self._clock()
        if self._groups_fetched_at is not None and now - self._groups_fetched_at < self.groups_ttl:
            return self._groups

        payload = await self._get_json("/groups")
        if payload is None:
            return self._groups
        try:
            groups = parse_groups(payload)
        except (TypeError, ValueError) as e:
            logger.warning("Unparseable TCGCSV group listing: %s", e)
            return self._groups

        self._groups = groups
        self._groups_fetched_at = now
        logger.info("Loaded %d TCGCSV groups", len(groups))
        return self._groups

    async def get_group_table(self, group_id: int) -> GroupTable | None:
        """
        Products and prices for one group.

        Concurrent requests for the same group share one fetch.
        """
        cached = self.group_cache.get(str(group_id))
        if cached is not None:
            return cached

        task = self._loading.get(group_id)
        if task is None:
            task = asyncio.ensure_future(self._load_group(group_id))
            self._loading[group_id] = task
            task.add_done_callback(lambda _, group_id=group_id: self._loading.pop(group_id, None))
        return await asyncio.shield(task)

    async def _load_group(self, group_id: int) -> GroupTable | None:
        products_payload = await self._get_json(f"/{group_id}/products")
        if products_payload is None:
            return None
        prices_payload = await self._get_json(f"/{group_id}/prices")
        if not isinstance(prices_payload, dict) or not prices_payload.get("success", False):
            logger.info("No prices for group %d; not caching", group_id)
            return None
        try:
            products = parse_products(products_payload)
            prices = parse_prices(prices_payload)
        except (TypeError, ValueError) as e:
            logger.warning("Unparseable TCGCSV data for group %d: %s", group_id, e)
            return None
        if not products:
            return None

        table = GroupTable(
            group_id=group_id,
            group_name=self._group_name(group_id),
            products=products,
            prices=prices,
        )
        self.group_cache.put(str(group_id), table)
        logger.debug("Cached group %d (%d products, %d priced)", group_id, len(products), len(prices))
        return table

    def _group_name(self, group_id: int) -> str:
        for group in self._groups:
            if group.group_id == group_id:
                return group.name
        return ""
