"""
Price service facade.

Owns the process-wide singletons (request queue, caches, generation
counter) and wires the lookup pipeline:

    message -> decode -> dispatcher -> enrichment -> outcome

Also serves the printing browser, name autocomplete and exchange rates.
"""

import logging
import time
from collections.abc import Callable
from urllib.parse import quote

import httpx
from pydantic import BaseModel

from pricecheck.config import Settings, settings
from pricecheck.models.canonical_card import CanonicalCard, LookupResult, PriceBlock, PrintingSummary
from pricecheck.models.failure import StaleLookupError
from pricecheck.models.lookup_request import LookupMessage, decode_lookup_request
from pricecheck.models.price_group import GroupTable
from pricecheck.parsers.scryfall import summarize_printing
from pricecheck.services.cache import TTLCache
from pricecheck.services.cache_persistence import PersistedCache
from pricecheck.services.exchange_rates import ExchangeRate, ExchangeRateService
from pricecheck.services.generation import GenerationController
from pricecheck.services.lookup_dispatcher import LookupDispatcher
from pricecheck.services.price_enrichment import PriceEnricher
from pricecheck.services.printing_resolver import PrintingResolver
from pricecheck.services.request_queue import RequestQueue
from pricecheck.services.tcgcsv import TcgCsvClient

logger = logging.getLogger(__name__)

MIN_AUTOCOMPLETE_LENGTH = 2

RESULTS_CACHE_NAME = "results"
GROUPS_CACHE_NAME = "price_groups"


class LookupOutcome(BaseModel):
    """Response of a lookup: a priced card, a not-found error, or stale."""

    success: bool
    card: CanonicalCard | None = None
    prices: PriceBlock | None = None
    error: str | None = None
    stale: bool = False

    @classmethod
    def superseded(cls) -> "LookupOutcome":
        return cls(success=False, stale=True, error="stale")


class PriceService:
    """
    Entry point for every card price operation.

    Args:
        client: Shared HTTP client for all providers
        config: Settings (defaults to the module settings)
        clock: Wall clock for cache timestamps
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        config: Settings = settings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.queue = RequestQueue(
            client,
            min_interval=config.request_interval_seconds,
            max_retries=config.max_retries,
            retry_backoff=config.retry_backoff_seconds,
            report_failures=config.report_provider_failures,
        )
        self.result_cache: TTLCache[LookupResult] = TTLCache(
            config.result_cache_ttl_seconds, config.result_cache_max_entries, clock=clock
        )
        self.group_cache: TTLCache[GroupTable] = TTLCache(
            config.group_cache_ttl_seconds, config.group_cache_max_entries, clock=clock
        )
        self.printings_cache: TTLCache[list[PrintingSummary]] = TTLCache(
            config.result_cache_ttl_seconds, config.result_cache_max_entries, clock=clock
        )

        self.generations = GenerationController(self.queue)
        self.resolver = PrintingResolver(
            self.queue, config.scryfall_base_url, max_pages=config.printings_max_pages
        )
        self.dispatcher = LookupDispatcher(
            self.queue,
            self.result_cache,
            self.resolver,
            self.generations,
            config.scryfall_base_url,
        )
        self.tcgcsv = TcgCsvClient(
            client,
            config.tcgcsv_base_url,
            self.group_cache,
            groups_ttl=config.group_cache_ttl_seconds,
            max_retries=config.max_retries,
            retry_delay=config.retry_backoff_seconds,
            clock=clock,
        )
        self.enricher = PriceEnricher(self.tcgcsv)
        self.exchange_rates = ExchangeRateService(client, config.exchange_rate_url, clock=clock)

    def persisted_caches(self) -> dict[str, PersistedCache]:
        """Caches that survive restarts, with their value codecs."""
        return {
            RESULTS_CACHE_NAME: PersistedCache(
                cache=self.result_cache,
                encode=lambda value: value.model_dump(mode="json"),
                decode=LookupResult.model_validate,
            ),
            GROUPS_CACHE_NAME: PersistedCache(
                cache=self.group_cache,
                encode=lambda value: value.model_dump(mode="json"),
                decode=GroupTable.model_validate,
            ),
        }

    async def lookup(self, message: LookupMessage) -> LookupOutcome:
        """
        Resolve and price one card reference.

        A non-refinement lookup supersedes every lookup still running; those
        return the stale outcome instead of a card.

        Raises:
            InvalidLookupError: If the message carries nothing to look up
        """
        request = decode_lookup_request(message)
        generation = self.generations.begin(refinement=message.refinement)
        logger.debug("Lookup %d: %s", generation, request)

        try:
            resolution = await self.dispatcher.resolve(request, generation)
            result = resolution.result
            if not result.success or result.card is None:
                return LookupOutcome(success=False, error=result.error or "Card not found")

            card, prices = await self.enricher.enrich(
                result.card,
                result.prices,
                override_product_id=resolution.override_product_id,
                set_hints=resolution.set_hints,
            )
            self.generations.check(generation)
        except StaleLookupError as e:
            logger.debug("Dropping lookup: %s", e)
            return LookupOutcome.superseded()

        logger.info(
            "Resolved %s | %s (%s) USD: %s / EUR: %s [%s]",
            card.name,
            card.set_name,
            card.set_code,
            prices.usd,
            prices.eur,
            prices.source.value,
        )
        return LookupOutcome(success=True, card=card, prices=prices)

    async def list_printings(self, card_name: str) -> list[PrintingSummary]:
        """Every paper printing of a card, newest first."""
        name = card_name.strip()
        if not name:
            return []

        key = f"prints:{name.lower()}"
        cached = self.printings_cache.get(key)
        if cached is not None:
            return cached

        printings = await self.resolver.fetch_printings(name, order="released")
        if printings is None:
            return []
        summaries = [summarize_printing(p) for p in printings if not p.get("digital")]
        if summaries:
            self.printings_cache.put(key, summaries)
        return summaries

    async def autocomplete(self, query: str) -> list[str]:
        """Card name suggestions for a partial name."""
        query = query.strip()
        if len(query) < MIN_AUTOCOMPLETE_LENGTH:
            return []

        data = await self.queue.enqueue(
            f"{self.config.scryfall_base_url.rstrip('/')}/cards/autocomplete?q={quote(query, safe='')}"
        )
        if not isinstance(data, dict):
            return []
        return [str(name) for name in data.get("data") or []]

    async def get_exchange_rate(self, currency: str) -> ExchangeRate:
        return await self.exchange_rates.get_rate(currency)

    async def close(self) -> None:
        await self.queue.close()
