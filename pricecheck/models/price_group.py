"""Secondary provider (TCGCSV) catalog models."""

from pydantic import BaseModel, Field

from pricecheck.models.canonical_card import PriceQuad


class Group(BaseModel):
    """A TCGplayer set group (roughly one set or product release)."""

    group_id: int
    name: str
    abbreviation: str = ""


class Product(BaseModel):
    """A TCGplayer product inside a group."""

    id: int
    name: str
    clean_name: str = ""
    image_url: str = ""
    url: str = ""
    collector_number: str | None = None
    rarity: str | None = None


class ProductPrices(BaseModel):
    """Price points per finish for one product."""

    nonfoil: PriceQuad = Field(default_factory=PriceQuad)
    foil: PriceQuad = Field(default_factory=PriceQuad)


class GroupTable(BaseModel):
    """
    Everything fetched for one group: products and their prices.

    Keyed in the price-group cache by group_id. Price keys are product ids
    as strings so the table round-trips through JSON unchanged.
    """

    group_id: int
    group_name: str = ""
    products: list[Product] = Field(default_factory=list)
    prices: dict[str, ProductPrices] = Field(default_factory=dict)

    def product(self, product_id: int) -> Product | None:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def prices_for(self, product_id: int) -> ProductPrices | None:
        return self.prices.get(str(product_id))
