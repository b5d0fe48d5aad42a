"""
Price Enrichment.

Merges secondary provider (TCGCSV) prices onto a resolved card.

ALGORITHM:
1. Override product id: search every matched group for that id. When found,
   the product's display metadata replaces the card's (new CanonicalCard)
2. Card product id: best group first, then the other matched groups, then
   a name match inside the best group
3. No product id: name match inside the best group, narrowed by variant
   words derived from the card's frame effects, border and finishes

Source tagging:
- Product found with prices      -> secondary
- Product found, all prices null -> secondary-no-listings
- Nothing found                  -> primary

Secondary failures never fail a lookup; the primary prices stand.
"""

import logging
import re

from pricecheck.models.canonical_card import CanonicalCard, PriceBlock, PrimaryPrices
from pricecheck.models.price_group import GroupTable, Product, ProductPrices
from pricecheck.services.set_matcher import SetMatcher, normalize_set_name
from pricecheck.services.tcgcsv import TcgCsvClient

logger = logging.getLogger(__name__)

# Frame effect / border / finish -> word TCGplayer puts in the product suffix
VARIANT_WORDS: dict[str, str] = {
    "extendedart": "extended art",
    "showcase": "showcase",
    "borderless": "borderless",
    "inverted": "inverted",
    "textured": "textured",
    "etched": "etched",
}

_SUFFIX = re.compile(r"\(([^()]*)\)\s*$")


def variant_suffix(product_name: str) -> str | None:
    """Parenthesised suffix of a product name ("Sol Ring (Borderless)" -> "Borderless")."""
    match = _SUFFIX.search(product_name)
    return match.group(1).strip() or None if match else None


def base_product_name(product_name: str) -> str:
    """Product name without any parenthesised suffixes."""
    return re.sub(r"\s*\([^()]*\)", "", product_name).strip()


def variant_words(card: CanonicalCard) -> list[str]:
    """Variant words expected in the product name of this printing."""
    words = [VARIANT_WORDS[effect] for effect in card.frame_effects if effect in VARIANT_WORDS]
    if card.border_color == "borderless" and "borderless" not in words:
        words.append("borderless")
    if card.etched_only and "etched" not in words:
        words.append("etched")
    return words


def find_by_name(table: GroupTable, card: CanonicalCard) -> Product | None:
    """
    Find the card's product inside a group by name.

    Among same-name products the collector number wins, then the product
    whose suffix holds the card's variant words; a printing without variant
    words prefers the product without a suffix.
    """
    target = normalize_set_name(card.name)
    candidates = [p for p in table.products if normalize_set_name(base_product_name(p.name)) == target]
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    if card.collector_number:
        by_number = [p for p in candidates if p.collector_number == card.collector_number]
        if by_number:
            return by_number[0]

    words = variant_words(card)
    if not words:
        plain = [p for p in candidates if variant_suffix(p.name) is None]
        return plain[0] if plain else candidates[0]

    def overlap(product: Product) -> int:
        suffix = (variant_suffix(product.name) or "").lower()
        return sum(1 for word in words if word in suffix)

    return max(candidates, key=overlap)


class PriceEnricher:
    """Adds secondary provider prices to resolved cards."""

    def __init__(self, tcgcsv: TcgCsvClient) -> None:
        self._tcgcsv = tcgcsv

    async def enrich(
        self,
        card: CanonicalCard,
        prices: PrimaryPrices,
        *,
        override_product_id: int | None = None,
        set_hints: tuple[str, ...] = (),
    ) -> tuple[CanonicalCard, PriceBlock]:
        """
        Build the response price block for a card.

        Args:
            card: Resolved card
            prices: Primary provider prices of that card
            override_product_id: Product the caller asked for, if it differs
                from the card's own
            set_hints: Free-text set names to match groups with, before the
                card's own set name

        Returns:
            (card, prices). The card is a new instance when override metadata
            applied; otherwise the same object.
        """
        block = PriceBlock.from_primary(prices)

        groups = await self._tcgcsv.get_groups()
        if not groups:
            logger.debug("No secondary groups available; primary prices only")
            return card, block

        matcher = SetMatcher(groups)
        group_ids = self._matched_groups(matcher, [*set_hints, card.set_name])
        logger.debug("Matched groups for %s: %s", card.set_name, group_ids)

        if override_product_id is not None:
            found = await self._find_by_id(group_ids, override_product_id)
            if found is not None:
                table, product = found
                card = card.with_product_metadata(
                    product_id=product.id,
                    name=product.name,
                    set_name=table.group_name,
                    collector_number=product.collector_number,
                    image_url=product.image_url,
                    url=product.url,
                    variant_name=variant_suffix(product.name),
                )
                self._apply(block, table, product.id)
                return card, block
            logger.info("Product %d not in matched groups", override_product_id)

        if not group_ids:
            return card, block

        product_id = card.product_id
        if product_id is not None:
            found = await self._find_by_id(group_ids, product_id)
            if found is not None:
                table, product = found
                self._apply(block, table, product.id)
                return card, block

        table = await self._tcgcsv.get_group_table(group_ids[0])
        if table is not None:
            product = find_by_name(table, card)
            if product is not None:
                self._apply(block, table, product.id)

        return card, block

    @staticmethod
    def _matched_groups(matcher: SetMatcher, hints: list[str]) -> list[int]:
        ordered: list[int] = []
        for hint in hints:
            for group_id in matcher.match_all(hint):
                if group_id not in ordered:
                    ordered.append(group_id)
        return ordered

    async def _find_by_id(
        self, group_ids: list[int], product_id: int
    ) -> tuple[GroupTable, Product] | None:
        for group_id in group_ids:
            table = await self._tcgcsv.get_group_table(group_id)
            if table is None:
                continue
            product = table.product(product_id)
            if product is not None:
                return table, product
        return None

    @staticmethod
    def _apply(block: PriceBlock, table: GroupTable, product_id: int) -> None:
        prices = table.prices_for(product_id) or ProductPrices()
        block.apply_secondary(product_id, prices.nonfoil, prices.foil)
        logger.debug("Priced product %d from group %d (%s)", product_id, table.group_id, block.source.value)
