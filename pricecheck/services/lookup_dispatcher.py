"""
Lookup Dispatcher.

Routes a decoded LookupRequest to its strategy. Each strategy consults the
result cache under its own key before touching the network, and stores its
outcome (success or not-found) afterwards.

Strategies and cache keys:
- ScryfallIdLookup  -> /cards/{id}                       sf:{id}
- ProductIdLookup   -> /cards/tcgplayer/{id}             tcg:{id}
- CollectorLookup   -> /cards/{set}/{number}             col:{set}:{number}
- SetNameLookup     -> fuzzy+set, two searches, fuzzy    set:{set}:{name}
- NameLookup        -> /cards/cardmarket/{id}            cm:{id}
                       fuzzy, then printing resolver     name:{name}:{hint}:{variant}

Nothing is cached once the lookup has gone stale: a None seen by a
superseded lookup may be a flushed request rather than a real miss.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from pricecheck.models.canonical_card import LookupResult
from pricecheck.models.lookup_request import (
    CollectorLookup,
    LookupRequest,
    NameLookup,
    ProductIdLookup,
    ScryfallIdLookup,
    SetNameLookup,
)
from pricecheck.parsers.scryfall import format_card, parse_primary_prices, simplify_card_name
from pricecheck.services.cache import TTLCache
from pricecheck.services.generation import GenerationController
from pricecheck.services.printing_resolver import PrintingResolver
from pricecheck.services.request_queue import RequestQueue

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    """
    Dispatcher output handed to price enrichment.

    Attributes:
        result: Cached or freshly fetched lookup result
        override_product_id: Product id the caller asked for when it differs
            from the one the resolved card carries
        set_hints: Free-text set names to try when matching price groups
    """

    result: LookupResult
    override_product_id: int | None = None
    set_hints: tuple[str, ...] = ()


def _enc(value: str) -> str:
    return quote(value, safe="")


def _hints(*values: str | None) -> tuple[str, ...]:
    return tuple(value for value in values if value)


def _to_result(card: Any, error: str) -> LookupResult:
    if isinstance(card, dict) and card.get("object", "card") == "card" and card.get("name"):
        return LookupResult.found(format_card(card), parse_primary_prices(card))
    return LookupResult.not_found(error)


class LookupDispatcher:
    """Selects and runs the lookup strategy for a request."""

    def __init__(
        self,
        queue: RequestQueue,
        cache: TTLCache[LookupResult],
        resolver: PrintingResolver,
        generations: GenerationController,
        base_url: str,
    ) -> None:
        self._queue = queue
        self._cache = cache
        self._resolver = resolver
        self._generations = generations
        self._base_url = base_url.rstrip("/")

    async def resolve(self, request: LookupRequest, generation: int) -> Resolution:
        """
        Resolve a request to a card.

        Raises:
            StaleLookupError: If a newer lookup started while this one ran
        """
        if isinstance(request, ScryfallIdLookup):
            result = await self._cached(
                f"sf:{request.scryfall_id}",
                generation,
                lambda: self._fetch_card(
                    f"/cards/{_enc(request.scryfall_id)}",
                    f"Scryfall ID {request.scryfall_id} not found",
                ),
            )
            return Resolution(result)

        if isinstance(request, ProductIdLookup):
            return await self._by_product_id(request, generation)

        if isinstance(request, CollectorLookup):
            result = await self._cached(
                f"col:{request.set_code}:{request.collector_number}",
                generation,
                lambda: self._fetch_card(
                    f"/cards/{_enc(request.set_code)}/{_enc(request.collector_number)}",
                    f"{request.set_code}/{request.collector_number} not found",
                ),
            )
            return Resolution(result)

        if isinstance(request, SetNameLookup):
            result = await self._cached(
                f"set:{request.set_code}:{request.card_name}",
                generation,
                lambda: self._by_name_and_set(request.card_name, request.set_code, generation),
            )
            return Resolution(result)

        result = await self._by_name(request, generation)
        return Resolution(result, set_hints=_hints(request.set_hint))

    async def _cached(
        self,
        key: str,
        generation: int,
        strategy: Callable[[], Awaitable[LookupResult]],
    ) -> LookupResult:
        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return cached

        logger.debug("Cache miss for %s", key)
        result = await strategy()
        # A superseded lookup may have seen flushed requests as misses
        if self._generations.is_current(generation):
            self._cache.put(key, result)
        self._generations.check(generation)
        return result

    async def _get(self, path: str) -> Any | None:
        return await self._queue.enqueue(f"{self._base_url}{path}")

    async def _fetch_card(self, path: str, error: str) -> LookupResult:
        return _to_result(await self._get(path), error)

    async def _first_search_hit(self, query: str) -> dict[str, Any] | None:
        data = await self._get(f"/cards/search?q={_enc(query)}&order=released&dir=desc")
        if isinstance(data, dict) and data.get("data"):
            first = data["data"][0]
            return first if isinstance(first, dict) else None
        return None

    async def _by_product_id(self, request: ProductIdLookup, generation: int) -> Resolution:
        product_id = request.tcgplayer_id
        result = await self._cached(
            f"tcg:{product_id}",
            generation,
            lambda: self._fetch_card(
                f"/cards/tcgplayer/{product_id}", f"TCG ID {product_id} not found"
            ),
        )
        hints = _hints(request.set_hint)

        if result.success:
            card = result.card
            # The etched product id resolves to the same Scryfall printing
            override = product_id if card and card.tcgplayer_etched_id == product_id else None
            return Resolution(result, override_product_id=override, set_hints=hints)

        if not request.card_name:
            return Resolution(result)

        logger.info("TCG ID %d unknown to Scryfall, falling back to %r", product_id, request.card_name)
        fallback = await self._by_name(
            NameLookup(
                card_name=request.card_name,
                set_hint=request.set_hint,
                variant=request.variant,
            ),
            generation,
        )
        return Resolution(fallback, override_product_id=product_id, set_hints=hints)

    async def _by_name_and_set(self, name: str, set_code: str, generation: int) -> LookupResult:
        card = await self._get(f"/cards/named?fuzzy={_enc(name)}&set={_enc(set_code)}")
        if not isinstance(card, dict):
            self._generations.check(generation)
            card = await self._first_search_hit(f'!"{name}" e:{set_code}')
        if not isinstance(card, dict):
            self._generations.check(generation)
            card = await self._first_search_hit(f"{name} e:{set_code}")
        if not isinstance(card, dict):
            self._generations.check(generation)
            card = await self._get(f"/cards/named?fuzzy={_enc(name)}")
        return _to_result(card, f'"{name}" not found in {set_code}')

    async def _by_name(self, request: NameLookup, generation: int) -> LookupResult:
        if request.cardmarket_id:
            result = await self._cached(
                f"cm:{request.cardmarket_id}",
                generation,
                lambda: self._fetch_card(
                    f"/cards/cardmarket/{request.cardmarket_id}",
                    f"Cardmarket ID {request.cardmarket_id} not found",
                ),
            )
            if result.success:
                return result

        cleaned = simplify_card_name(request.card_name) or request.card_name.strip()
        key = f"name:{cleaned}:{request.set_hint or ''}:{request.variant or ''}"
        return await self._cached(
            key,
            generation,
            lambda: self._fuzzy_with_printing(cleaned, request, generation),
        )

    async def _fuzzy_with_printing(
        self, cleaned: str, request: NameLookup, generation: int
    ) -> LookupResult:
        card = await self._get(f"/cards/named?fuzzy={_enc(cleaned)}")
        if not isinstance(card, dict):
            return LookupResult.not_found(f'"{cleaned}" not found')

        logger.debug(
            "Fuzzy found: %s %s #%s",
            card.get("name"),
            card.get("set_name"),
            card.get("collector_number"),
        )
        match = card
        if request.set_hint:
            self._generations.check(generation)
            printing = await self._resolver.resolve_printing(
                str(card.get("name", cleaned)), request.set_hint, request.variant
            )
            # A flushed printings search looks like no match
            self._generations.check(generation)
            if printing is not None:
                logger.debug(
                    "Resolved printing %s #%s", printing.get("set_name"), printing.get("collector_number")
                )
                match = printing
            else:
                logger.debug("No printing matched %r, using fuzzy result", request.set_hint)

        return _to_result(match, f'"{cleaned}" not found')
