"""
Lookup Request Models.

The inbound message is loosely shaped: any combination of ids, names and
hints may be present. It is decoded exactly once, at the dispatcher
boundary, into one of five request shapes. Precedence is fixed:

1. Scryfall id
2. TCGplayer product id
3. Set code + collector number
4. Set code + card name
5. Card name (optional set hint, variant index, Cardmarket id)
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from pricecheck.models.failure import InvalidLookupError


@dataclass(frozen=True, slots=True)
class ScryfallIdLookup:
    """Exact lookup by Scryfall printing id."""

    scryfall_id: str


@dataclass(frozen=True, slots=True)
class ProductIdLookup:
    """
    Lookup by TCGplayer product id.

    card_name, set_hint and variant are only used when Scryfall does not know
    the id.
    """

    tcgplayer_id: int
    card_name: str | None = None
    set_hint: str | None = None
    variant: int | None = None


@dataclass(frozen=True, slots=True)
class CollectorLookup:
    """Direct lookup of a set slot."""

    set_code: str
    collector_number: str


@dataclass(frozen=True, slots=True)
class SetNameLookup:
    """Fuzzy name lookup constrained to one set."""

    set_code: str
    card_name: str


@dataclass(frozen=True, slots=True)
class NameLookup:
    """
    Fuzzy name lookup, optionally narrowed to a printing.

    Attributes:
        card_name: Raw name as scraped
        set_hint: Free-text set/product name believed to hold the printing
        variant: 1-based variant index within the hinted set
        cardmarket_id: Cardmarket product id, tried before the name
    """

    card_name: str
    set_hint: str | None = None
    variant: int | None = None
    cardmarket_id: int | None = None


LookupRequest = ScryfallIdLookup | ProductIdLookup | CollectorLookup | SetNameLookup | NameLookup


class LookupMessage(BaseModel):
    """Inbound lookup message from the page scraper or search popup."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    card_name: str | None = None
    scryfall_id: str | None = None
    tcgplayer_id: int | None = None
    set_code: str | None = None
    collector_number: str | None = None
    set_hint: str | None = None
    variant: int | None = None
    cardmarket_product_id: int | None = None
    refinement: bool = Field(
        default=False,
        description="Follow-up lookup that refines an earlier one without superseding it",
    )

    @field_validator(
        "card_name", "scryfall_id", "set_code", "collector_number", "set_hint", mode="before"
    )
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value


def decode_lookup_request(message: LookupMessage) -> LookupRequest:
    """
    Decode an inbound message into exactly one request shape.

    Raises:
        InvalidLookupError: If the message carries nothing to look up
    """
    variant = message.variant if message.variant and message.variant >= 1 else None

    if message.scryfall_id:
        return ScryfallIdLookup(scryfall_id=message.scryfall_id)
    if message.tcgplayer_id:
        return ProductIdLookup(
            tcgplayer_id=message.tcgplayer_id,
            card_name=message.card_name,
            set_hint=message.set_hint,
            variant=variant,
        )
    if message.set_code and message.collector_number:
        return CollectorLookup(
            set_code=message.set_code.lower(),
            collector_number=message.collector_number,
        )
    if message.set_code and message.card_name:
        return SetNameLookup(set_code=message.set_code.lower(), card_name=message.card_name)
    if message.card_name:
        return NameLookup(
            card_name=message.card_name,
            set_hint=message.set_hint,
            variant=variant,
            cardmarket_id=message.cardmarket_product_id,
        )
    raise InvalidLookupError(detail="No card name, set code or product id in message")
