from typing import Any

import httpx
import pytest

from pricecheck.config import Settings

SCRYFALL = "https://api.scryfall.com"
TCGCSV = "https://tcgcsv.com/tcgplayer/1"
RATES = "https://open.er-api.com/v6/latest/USD"


class FakeClock:
    """Monotonic clock that only advances when something sleeps."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_card(**overrides: Any) -> dict[str, Any]:
    """Minimal Scryfall card object."""
    card: dict[str, Any] = {
        "object": "card",
        "id": "f2b9983e-20d4-4d12-9e2c-ec6d9a345787",
        "name": "Sol Ring",
        "set": "cmr",
        "set_name": "Commander Legends",
        "collector_number": "334",
        "rarity": "uncommon",
        "type_line": "Artifact",
        "oracle_text": "{T}: Add {C}{C}.",
        "color_identity": [],
        "finishes": ["nonfoil", "foil"],
        "frame_effects": [],
        "border_color": "black",
        "promo": False,
        "digital": False,
        "tcgplayer_id": 221123,
        "cardmarket_id": 502211,
        "image_uris": {
            "small": "https://cards.scryfall.io/small/front/f/2/f2b9983e.jpg",
            "normal": "https://cards.scryfall.io/normal/front/f/2/f2b9983e.jpg",
        },
        "scryfall_uri": "https://scryfall.com/card/cmr/334/sol-ring",
        "purchase_uris": {
            "tcgplayer": "https://www.tcgplayer.com/product/221123?page=1",
            "cardmarket": "https://www.cardmarket.com/en/Magic/Products/Search?searchString=Sol+Ring",
        },
        "prices": {"usd": "1.25", "usd_foil": "3.50", "usd_etched": None, "eur": "0.95", "eur_foil": None},
    }
    card.update(overrides)
    return card


def card_list(*cards: dict[str, Any], next_page: str | None = None) -> dict[str, Any]:
    """Scryfall list envelope."""
    return {
        "object": "list",
        "total_cards": len(cards),
        "has_more": next_page is not None,
        "next_page": next_page,
        "data": list(cards),
    }


def tcgcsv(*rows: dict[str, Any]) -> dict[str, Any]:
    """TCGCSV response envelope."""
    return {"success": True, "errors": [], "totalItems": len(rows), "results": list(rows)}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no rate-limit delay or retry backoff."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        request_interval_seconds=0.0,
        retry_backoff_seconds=0.0,
    )


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client
