"""
USD exchange rates for price display.

Rates come from a public USD-based feed and are held in memory for a day.
When the feed is unreachable a built-in table of approximate rates is used
(and not cached, so the next request tries the feed again).
"""

import logging
import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel

from pricecheck.config import EXCHANGE_RATE_TTL_SECONDS, FALLBACK_EXCHANGE_RATES

logger = logging.getLogger(__name__)


class ExchangeRate(BaseModel):
    """Rate of one currency against USD (null when unknown)."""

    currency: str
    rate: float | None


def _parse_rates(data: Any) -> dict[str, float] | None:
    if not isinstance(data, dict) or data.get("result") != "success":
        return None
    rates = data.get("rates")
    if not isinstance(rates, dict):
        return None
    return {
        str(code).upper(): float(rate)
        for code, rate in rates.items()
        if isinstance(rate, int | float) and not isinstance(rate, bool)
    }


class ExchangeRateService:
    """Cached USD exchange rate lookups."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        ttl: float = EXCHANGE_RATE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._url = url
        self.ttl = ttl
        self._clock = clock
        self._rates: dict[str, float] | None = None
        self._fetched_at = 0.0

    async def get_rates(self) -> dict[str, float]:
        """All known rates, refreshed after the TTL."""
        now = self._clock()
        if self._rates is not None and now - self._fetched_at < self.ttl:
            return self._rates

        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
            rates = _parse_rates(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Exchange rate fetch failed: %s", e)
            rates = None

        if not rates:
            logger.info("Using fallback exchange rates")
            return dict(FALLBACK_EXCHANGE_RATES)

        self._rates = rates
        self._fetched_at = now
        logger.info("Exchange rates loaded: %d currencies", len(rates))
        return rates

    async def get_rate(self, currency: str) -> ExchangeRate:
        """
        Rate for one currency code (case-insensitive).

        Unknown currencies return rate None rather than an error.
        """
        code = currency.strip().upper()
        rates = await self.get_rates()
        return ExchangeRate(currency=code, rate=rates.get(code))
