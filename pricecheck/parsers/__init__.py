from pricecheck.parsers.scryfall import (
    build_ebay_link,
    format_card,
    parse_primary_prices,
    simplify_card_name,
    summarize_printing,
)
from pricecheck.parsers.tcgcsv import parse_groups, parse_prices, parse_products

__all__ = [
    "build_ebay_link",
    "format_card",
    "parse_groups",
    "parse_prices",
    "parse_primary_prices",
    "parse_products",
    "simplify_card_name",
    "summarize_printing",
]
