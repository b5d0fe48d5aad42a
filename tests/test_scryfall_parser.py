"""Tests for Scryfall response parsing."""

import pytest
from conftest import make_card

from pricecheck.parsers.scryfall import (
    build_ebay_link,
    format_card,
    parse_primary_prices,
    simplify_card_name,
    summarize_printing,
)


class TestSimplifyCardName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Sol Ring (Commander Legends) - Foil", "Sol Ring"),
            ("Lightning Bolt [M10]", "Lightning Bolt"),
            ("Ragavan, Nimble Pilferer - Extended Art", "Ragavan, Nimble Pilferer"),
            ("  Counterspell   ", "Counterspell"),
            ("Fire // Ice", "Fire // Ice"),
            ("Swords to Plowshares - V.2", "Swords to Plowshares"),
        ],
    )
    def test_strips_shop_noise(self, raw: str, expected: str) -> None:
        """Set info and finish suffixes are removed."""
        assert simplify_card_name(raw) == expected


class TestFormatCard:
    def test_basic_fields(self) -> None:
        """Ids, set code and links are copied across."""
        card = format_card(make_card())

        assert card.name == "Sol Ring"
        assert card.set_code == "CMR"
        assert card.collector_number == "334"
        assert card.tcgplayer_id == 221123
        assert card.cardmarket_id == 502211
        assert card.finishes == ("nonfoil", "foil")
        assert card.image_url.startswith("https://cards.scryfall.io/small/")
        assert card.links.tcgplayer.startswith("https://www.tcgplayer.com/product/221123")
        assert card.links.scryfall == "https://scryfall.com/card/cmr/334/sol-ring"

    def test_multi_face_card(self) -> None:
        """Oracle text and image come from the faces when the card has none."""
        raw = make_card(
            name="Delver of Secrets // Insectile Aberration",
            oracle_text=None,
            image_uris=None,
            card_faces=[
                {"oracle_text": "At the beginning of your upkeep, look at the top card.", "image_uris": {"small": "front.jpg"}},
                {"oracle_text": "Flying", "image_uris": {"small": "back.jpg"}},
            ],
        )

        card = format_card(raw)

        assert card.oracle_text == "At the beginning of your upkeep, look at the top card.\n// \nFlying"
        assert card.image_url == "front.jpg"

    def test_missing_optional_ids(self) -> None:
        """Absent product ids stay None."""
        card = format_card(make_card(tcgplayer_id=None, cardmarket_id=None, purchase_uris=None))

        assert card.tcgplayer_id is None
        assert card.cardmarket_id is None
        assert card.links.tcgplayer == ""


class TestPrices:
    def test_string_prices_parsed(self) -> None:
        """Scryfall's string prices become floats; null stays None."""
        prices = parse_primary_prices(make_card())

        assert prices.usd == 1.25
        assert prices.usd_foil == 3.5
        assert prices.usd_etched is None
        assert prices.eur == 0.95

    def test_missing_prices(self) -> None:
        prices = parse_primary_prices(make_card(prices=None))

        assert prices.usd is None
        assert prices.eur_foil is None


class TestLinks:
    def test_ebay_link(self) -> None:
        """The eBay link searches auctions in the MTG category."""
        link = build_ebay_link("Sol Ring", "Commander Legends")

        assert link.startswith("https://www.ebay.com/sch/i.html?_nkw=mtg%20%22Sol%20Ring%22%20%22Commander%20Legends%22")
        assert "_sacat=38292" in link
        assert link.endswith("LH_Auction=1")


class TestSummarizePrinting:
    def test_summary(self) -> None:
        summary = summarize_printing(make_card())

        assert summary.set_code == "CMR"
        assert summary.set_name == "Commander Legends"
        assert summary.collector_number == "334"
        assert summary.rarity == "uncommon"
