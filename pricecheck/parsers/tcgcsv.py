"""
TCGCSV response parsing.

TCGCSV mirrors TCGplayer's catalog as static JSON:

- /groups               -> set groups
- /{groupId}/products   -> products with extendedData (Number, Rarity)
- /{groupId}/prices     -> one row per product and sub type (Normal, Foil)

Every endpoint wraps its rows as {"success": bool, "errors": [], "results": []}.
"""

import logging
from typing import Any

from pricecheck.models.canonical_card import PriceQuad
from pricecheck.models.price_group import Group, Product, ProductPrices

logger = logging.getLogger(__name__)


def _results(payload: Any) -> list[dict[str, Any]]:
    """Unwrap the TCGCSV envelope, returning [] when unsuccessful."""
    if not isinstance(payload, dict) or not payload.get("success", False):
        return []
    results = payload.get("results", [])
    return results if isinstance(results, list) else []


def _price(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_groups(payload: Any) -> list[Group]:
    """Parse the group listing."""
    groups: list[Group] = []
    for row in _results(payload):
        group_id = row.get("groupId")
        name = row.get("name")
        if not group_id or not name:
            continue
        groups.append(
            Group(group_id=int(group_id), name=str(name), abbreviation=str(row.get("abbreviation") or ""))
        )
    return groups


def parse_products(payload: Any) -> list[Product]:
    """Parse a group's products, pulling collector number and rarity from extendedData."""
    products: list[Product] = []
    for row in _results(payload):
        product_id = row.get("productId")
        if not product_id:
            continue

        collector_number = None
        rarity = None
        for item in row.get("extendedData") or []:
            if item.get("name") == "Number":
                collector_number = item.get("value")
            elif item.get("name") == "Rarity":
                rarity = item.get("value")

        products.append(
            Product(
                id=int(product_id),
                name=str(row.get("name") or ""),
                clean_name=str(row.get("cleanName") or ""),
                image_url=str(row.get("imageUrl") or ""),
                url=str(row.get("url") or ""),
                collector_number=collector_number,
                rarity=rarity,
            )
        )
    return products


def parse_prices(payload: Any) -> dict[str, ProductPrices]:
    """
    Parse a group's price rows into per-product finish quads.

    Sub types containing "foil" (including "Foil Etched") fill the foil
    quad; everything else fills the non-foil quad.
    """
    prices: dict[str, ProductPrices] = {}
    for row in _results(payload):
        product_id = row.get("productId")
        if not product_id:
            continue

        quad = PriceQuad(
            low=_price(row.get("lowPrice")),
            mid=_price(row.get("midPrice")),
            high=_price(row.get("highPrice")),
            market=_price(row.get("marketPrice")),
        )
        key = str(product_id)
        current = prices.get(key, ProductPrices())
        if "foil" in str(row.get("subTypeName", "")).lower():
            prices[key] = current.model_copy(update={"foil": quad})
        else:
            prices[key] = current.model_copy(update={"nonfoil": quad})

    logger.debug("Parsed prices for %d products", len(prices))
    return prices
