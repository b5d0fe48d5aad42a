from pricecheck.models.canonical_card import (
    CanonicalCard,
    CardLinks,
    LookupResult,
    PriceBlock,
    PriceQuad,
    PriceSource,
    PrimaryPrices,
    PrintingSummary,
)
from pricecheck.models.failure import (
    FailureDetail,
    FailureKind,
    InvalidLookupError,
    KnownError,
    StaleLookupError,
)
from pricecheck.models.lookup_request import (
    CollectorLookup,
    LookupMessage,
    LookupRequest,
    NameLookup,
    ProductIdLookup,
    ScryfallIdLookup,
    SetNameLookup,
    decode_lookup_request,
)
from pricecheck.models.price_group import Group, GroupTable, Product, ProductPrices

__all__ = [
    "CanonicalCard",
    "CardLinks",
    "CollectorLookup",
    "FailureDetail",
    "FailureKind",
    "Group",
    "GroupTable",
    "InvalidLookupError",
    "KnownError",
    "LookupMessage",
    "LookupRequest",
    "LookupResult",
    "NameLookup",
    "PriceBlock",
    "PriceQuad",
    "PriceSource",
    "PrimaryPrices",
    "PrintingSummary",
    "Product",
    "ProductIdLookup",
    "ProductPrices",
    "ScryfallIdLookup",
    "SetNameLookup",
    "StaleLookupError",
    "decode_lookup_request",
]
