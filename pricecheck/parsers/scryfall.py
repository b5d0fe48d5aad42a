"""
Scryfall response parsing.

Converts raw Scryfall card objects into CanonicalCard / PrimaryPrices and
cleans scraped card names before fuzzy lookup.

Card objects: https://scryfall.com/docs/api/cards
"""

import re
from typing import Any
from urllib.parse import quote

from pricecheck.models.canonical_card import (
    CanonicalCard,
    CardLinks,
    PrimaryPrices,
    PrintingSummary,
)

EBAY_SEARCH_URL = "https://www.ebay.com/sch/i.html"
EBAY_MTG_CATEGORY = "38292"

# Trailing "- Foil", "- Extended Art", "- V.2" style suffixes added by shops
_VARIANT_SUFFIX = re.compile(
    r"\s*[-–]\s*(Foil|Etched|Extended|Borderless|Showcase|Full Art|Retro|Surge|Promo|V\.\d+).*$",
    re.IGNORECASE,
)


def simplify_card_name(name: str) -> str:
    """
    Clean a scraped card name for fuzzy lookup.

    Removes parenthesised and bracketed set info, finish/variant suffixes
    and redundant whitespace.

    Example:
        "Sol Ring (Commander Legends) - Foil" -> "Sol Ring"
    """
    name = re.sub(r"\s*\(.*?\)", "", name)
    name = re.sub(r"\s*\[.*?\]", "", name)
    name = _VARIANT_SUFFIX.sub("", name)
    return re.sub(r"\s+", " ", name).strip()


def _parse_price(value: Any) -> float | None:
    """Scryfall reports prices as strings; empty or missing means no price."""
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_primary_prices(card: dict[str, Any]) -> PrimaryPrices:
    """Extract baseline prices from a Scryfall card object."""
    prices = card.get("prices") or {}
    return PrimaryPrices(
        usd=_parse_price(prices.get("usd")),
        usd_foil=_parse_price(prices.get("usd_foil")),
        usd_etched=_parse_price(prices.get("usd_etched")),
        eur=_parse_price(prices.get("eur")),
        eur_foil=_parse_price(prices.get("eur_foil")),
    )


def build_ebay_link(name: str, set_name: str) -> str:
    """Generate an eBay auction search URL for a card."""
    query = quote(f'mtg "{name}" "{set_name}"', safe="")
    return f"{EBAY_SEARCH_URL}?_nkw={query}&_sacat={EBAY_MTG_CATEGORY}&LH_Auction=1"


def _image_url(card: dict[str, Any]) -> str:
    faces = card.get("card_faces") or []
    images = card.get("image_uris") or (faces[0].get("image_uris") if faces else None) or {}
    return str(images.get("small") or images.get("normal") or "")


def _oracle_text(card: dict[str, Any]) -> str:
    text = card.get("oracle_text") or ""
    faces = card.get("card_faces") or []
    if not text and faces:
        # Multi-face cards keep their text on each face
        text = "\n// \n".join(face.get("oracle_text", "") for face in faces if face.get("oracle_text"))
    return str(text)


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def format_card(card: dict[str, Any]) -> CanonicalCard:
    """
    Convert a Scryfall card object into a CanonicalCard.

    Args:
        card: Raw card object from any Scryfall card endpoint

    Returns:
        Immutable CanonicalCard
    """
    purchase = card.get("purchase_uris") or {}
    name = str(card.get("name", ""))
    set_name = str(card.get("set_name", ""))

    return CanonicalCard(
        scryfall_id=str(card.get("id", "")),
        name=name,
        set_name=set_name,
        set_code=str(card.get("set", "")).upper(),
        collector_number=str(card.get("collector_number", "")),
        rarity=str(card.get("rarity", "")),
        type_line=str(card.get("type_line", "")),
        oracle_text=_oracle_text(card),
        color_identity=tuple(card.get("color_identity") or ()),
        image_url=_image_url(card),
        finishes=tuple(card.get("finishes") or ()),
        frame_effects=tuple(card.get("frame_effects") or ()),
        border_color=str(card.get("border_color", "")),
        promo=bool(card.get("promo", False)),
        tcgplayer_id=_optional_int(card.get("tcgplayer_id")),
        tcgplayer_etched_id=_optional_int(card.get("tcgplayer_etched_id")),
        cardmarket_id=_optional_int(card.get("cardmarket_id")),
        links=CardLinks(
            scryfall=str(card.get("scryfall_uri", "")),
            tcgplayer=str(purchase.get("tcgplayer", "")),
            cardmarket=str(purchase.get("cardmarket", "")),
            ebay=build_ebay_link(name, set_name),
        ),
    )


def summarize_printing(card: dict[str, Any]) -> PrintingSummary:
    """Compact record for the printing browser."""
    return PrintingSummary(
        set_code=str(card.get("set", "")).upper(),
        set_name=str(card.get("set_name", "")),
        collector_number=str(card.get("collector_number", "")),
        rarity=str(card.get("rarity", "")),
        image_url=_image_url(card),
    )
