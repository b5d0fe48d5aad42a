"""
Card and Price Models.

INVARIANTS:
- CanonicalCard is only built from a complete Scryfall payload (or copied
  from one with secondary product metadata applied). Never partially built.
- CanonicalCard and PrimaryPrices are frozen and safe to share through caches.
- PriceBlock is created fresh for every response; it is the only mutable
  piece and is filled in by price enrichment.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CardLinks(BaseModel):
    """Outbound links for a card."""

    model_config = ConfigDict(frozen=True)

    scryfall: str = ""
    tcgplayer: str = ""
    cardmarket: str = ""
    ebay: str = ""


class CanonicalCard(BaseModel):
    """
    A single printing resolved from the primary provider.

    Attributes:
        scryfall_id: Scryfall printing id
        name: Display name (may carry a variant suffix after enrichment)
        set_name: Full set name
        set_code: Upper-case set code
        collector_number: Collector number as printed ("12", "12a", "★")
        finishes: Subset of nonfoil/foil/etched
        tcgplayer_id: TCGplayer product id for the non-etched finishes
        tcgplayer_etched_id: TCGplayer product id for the etched finish
        cardmarket_id: Cardmarket product id
        variant_name: Parenthesised variant label from the secondary provider
    """

    model_config = ConfigDict(frozen=True)

    scryfall_id: str = ""
    name: str
    set_name: str = ""
    set_code: str = ""
    collector_number: str = ""
    rarity: str = ""
    type_line: str = ""
    oracle_text: str = ""
    color_identity: tuple[str, ...] = ()
    image_url: str = ""
    finishes: tuple[str, ...] = ()
    frame_effects: tuple[str, ...] = ()
    border_color: str = ""
    promo: bool = False
    tcgplayer_id: int | None = None
    tcgplayer_etched_id: int | None = None
    cardmarket_id: int | None = None
    variant_name: str | None = None
    links: CardLinks = Field(default_factory=CardLinks)

    @property
    def etched_only(self) -> bool:
        """True if the only finish of this printing is etched."""
        return self.finishes == ("etched",)

    @property
    def product_id(self) -> int | None:
        """TCGplayer product id matching this printing's finish."""
        if self.etched_only and self.tcgplayer_etched_id is not None:
            return self.tcgplayer_etched_id
        return self.tcgplayer_id

    def with_product_metadata(
        self,
        *,
        product_id: int,
        name: str,
        set_name: str = "",
        collector_number: str | None = None,
        image_url: str = "",
        url: str = "",
        variant_name: str | None = None,
    ) -> "CanonicalCard":
        """
        Return a copy showing a secondary provider product instead.

        Empty values keep the primary provider's data.
        """
        return self.model_copy(
            update={
                "name": name or self.name,
                "set_name": set_name or self.set_name,
                "collector_number": collector_number or self.collector_number,
                "image_url": image_url or self.image_url,
                "tcgplayer_id": product_id,
                "variant_name": variant_name,
                "links": self.links.model_copy(update={"tcgplayer": url or self.links.tcgplayer}),
            }
        )


class PrimaryPrices(BaseModel):
    """Baseline prices reported by Scryfall (native currency)."""

    model_config = ConfigDict(frozen=True)

    usd: float | None = None
    usd_foil: float | None = None
    usd_etched: float | None = None
    eur: float | None = None
    eur_foil: float | None = None


class PriceSource(str, Enum):
    """Which provider the displayed prices come from."""

    PRIMARY = "primary"
    SECONDARY = "secondary"
    SECONDARY_NO_LISTINGS = "secondary-no-listings"


class PriceQuad(BaseModel):
    """Secondary provider price points for one finish."""

    model_config = ConfigDict(frozen=True)

    low: float | None = None
    mid: float | None = None
    high: float | None = None
    market: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.low is None and self.mid is None and self.high is None and self.market is None


class PriceBlock(BaseModel):
    """
    Mutable price record attached to a response.

    Primary values are copied in at creation. Secondary values start null
    and are filled by price enrichment. When any secondary value is set the
    secondary provider takes display precedence.
    """

    usd: float | None = None
    usd_foil: float | None = None
    usd_etched: float | None = None
    eur: float | None = None
    eur_foil: float | None = None

    low: float | None = None
    mid: float | None = None
    high: float | None = None
    market: float | None = None
    low_foil: float | None = None
    mid_foil: float | None = None
    high_foil: float | None = None
    market_foil: float | None = None

    source: PriceSource = PriceSource.PRIMARY
    product_id: int | None = None

    @classmethod
    def from_primary(cls, prices: PrimaryPrices) -> "PriceBlock":
        """Start a price block from Scryfall's baseline prices."""
        return cls(**prices.model_dump())

    @property
    def has_secondary_prices(self) -> bool:
        return any(
            value is not None
            for value in (
                self.low,
                self.mid,
                self.high,
                self.market,
                self.low_foil,
                self.mid_foil,
                self.high_foil,
                self.market_foil,
            )
        )

    def apply_secondary(self, product_id: int, nonfoil: PriceQuad, foil: PriceQuad) -> None:
        """Merge secondary provider prices and tag the source."""
        self.product_id = product_id
        self.low, self.mid, self.high, self.market = (
            nonfoil.low,
            nonfoil.mid,
            nonfoil.high,
            nonfoil.market,
        )
        self.low_foil, self.mid_foil, self.high_foil, self.market_foil = (
            foil.low,
            foil.mid,
            foil.high,
            foil.market,
        )
        self.source = (
            PriceSource.SECONDARY if self.has_secondary_prices else PriceSource.SECONDARY_NO_LISTINGS
        )


class LookupResult(BaseModel):
    """
    Outcome of one lookup strategy, success or failure.

    This is the value stored in the result cache.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    card: CanonicalCard | None = None
    prices: PrimaryPrices = Field(default_factory=PrimaryPrices)
    error: str | None = None

    @classmethod
    def found(cls, card: CanonicalCard, prices: PrimaryPrices) -> "LookupResult":
        return cls(success=True, card=card, prices=prices)

    @classmethod
    def not_found(cls, error: str) -> "LookupResult":
        return cls(success=False, error=error)


class PrintingSummary(BaseModel):
    """Compact printing record for the printing browser."""

    set_code: str
    set_name: str
    collector_number: str
    rarity: str = ""
    image_url: str = ""
