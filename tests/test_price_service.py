"""End-to-end tests for the price service with mocked providers."""

import asyncio

import httpx
import pytest
import respx
from conftest import SCRYFALL, TCGCSV, card_list, make_card, tcgcsv

from pricecheck.config import Settings
from pricecheck.models.canonical_card import PriceSource
from pricecheck.models.failure import InvalidLookupError
from pricecheck.models.lookup_request import LookupMessage
from pricecheck.services.price_service import PriceService

GROUP_ROWS = [
    {"groupId": 2799, "name": "Commander Legends", "abbreviation": "CMR"},
    {"groupId": 2800, "name": "Commander Legends: Extras"},
]


@pytest.fixture
async def service(http_client: httpx.AsyncClient, test_settings: Settings):
    service = PriceService(http_client, test_settings)
    yield service
    await service.close()


def mock_empty_tcgcsv() -> None:
    respx.get(f"{TCGCSV}/groups").mock(return_value=httpx.Response(200, json=tcgcsv()))


def mock_commander_legends() -> None:
    respx.get(f"{TCGCSV}/groups").mock(return_value=httpx.Response(200, json=tcgcsv(*GROUP_ROWS)))
    respx.get(f"{TCGCSV}/2799/products").mock(
        return_value=httpx.Response(
            200,
            json=tcgcsv(
                {"productId": 221123, "name": "Sol Ring", "extendedData": [{"name": "Number", "value": "334"}]}
            ),
        )
    )
    respx.get(f"{TCGCSV}/2799/prices").mock(
        return_value=httpx.Response(
            200, json=tcgcsv({"productId": 221123, "lowPrice": 0.9, "marketPrice": 1.1, "subTypeName": "Normal"})
        )
    )
    respx.get(f"{TCGCSV}/2800/products").mock(
        return_value=httpx.Response(
            200,
            json=tcgcsv(
                {
                    "productId": 999001,
                    "name": "Sol Ring (Showcase)",
                    "imageUrl": "https://tcgplayer-cdn.tcgplayer.com/product/999001_200w.jpg",
                    "url": "https://www.tcgplayer.com/product/999001",
                }
            ),
        )
    )
    respx.get(f"{TCGCSV}/2800/prices").mock(
        return_value=httpx.Response(
            200, json=tcgcsv({"productId": 999001, "lowPrice": 10.0, "marketPrice": 12.34, "subTypeName": "Normal"})
        )
    )


class TestLookup:
    @respx.mock(assert_all_called=False)
    async def test_scryfall_id_with_secondary_prices(self, service: PriceService) -> None:
        """A resolved card is priced from its TCGplayer product."""
        respx.get(f"{SCRYFALL}/cards/abc").mock(return_value=httpx.Response(200, json=make_card()))
        mock_commander_legends()

        outcome = await service.lookup(LookupMessage(scryfall_id="abc"))

        assert outcome.success
        assert outcome.card.name == "Sol Ring"
        assert outcome.prices.source == PriceSource.SECONDARY
        assert outcome.prices.market == 1.1
        assert outcome.prices.usd == 1.25

    @respx.mock
    async def test_repeat_lookup_uses_cache(self, service: PriceService) -> None:
        """The second identical lookup makes no Scryfall request."""
        route = respx.get(f"{SCRYFALL}/cards/abc").mock(return_value=httpx.Response(200, json=make_card()))
        mock_empty_tcgcsv()

        first = await service.lookup(LookupMessage(scryfall_id="abc"))
        dispatches = service.queue.dispatch_count
        second = await service.lookup(LookupMessage(scryfall_id="abc"))

        assert route.call_count == 1
        assert service.queue.dispatch_count == dispatches
        assert first == second
        assert second.prices.source == PriceSource.PRIMARY

    @respx.mock
    async def test_unknown_product_falls_back_to_name(self, service: PriceService) -> None:
        """A product id Scryfall lacks is found by name and shown as the TCGplayer product."""
        respx.get(f"{SCRYFALL}/cards/tcgplayer/999001").mock(return_value=httpx.Response(404, json={}))
        respx.get(f"{SCRYFALL}/cards/named").mock(return_value=httpx.Response(200, json=make_card()))
        respx.get(f"{SCRYFALL}/cards/search").mock(
            return_value=httpx.Response(200, json=card_list(make_card()))
        )
        mock_commander_legends()

        outcome = await service.lookup(
            LookupMessage(tcgplayer_id=999001, card_name="Sol Ring", set_hint="Commander Legends")
        )

        assert outcome.success
        assert outcome.card.name == "Sol Ring (Showcase)"
        assert outcome.card.variant_name == "Showcase"
        assert outcome.card.image_url == "https://tcgplayer-cdn.tcgplayer.com/product/999001_200w.jpg"
        assert outcome.prices.source == PriceSource.SECONDARY
        assert outcome.prices.product_id == 999001
        assert outcome.prices.market == 12.34

    @respx.mock
    async def test_not_found(self, service: PriceService) -> None:
        respx.get(f"{SCRYFALL}/cards/named").mock(return_value=httpx.Response(404, json={}))

        outcome = await service.lookup(LookupMessage(card_name="Sol Rnig Typo Nonsense"))

        assert not outcome.success
        assert not outcome.stale
        assert outcome.error == '"Sol Rnig Typo Nonsense" not found'

    async def test_invalid_message(self, service: PriceService) -> None:
        with pytest.raises(InvalidLookupError):
            await service.lookup(LookupMessage())

    @respx.mock
    async def test_newer_lookup_supersedes(self, service: PriceService) -> None:
        """A lookup started while another runs makes the first one stale."""
        respx.get(f"{SCRYFALL}/cards/first").mock(return_value=httpx.Response(200, json=make_card()))
        respx.get(f"{SCRYFALL}/cards/second").mock(
            return_value=httpx.Response(200, json=make_card(id="second", name="Arcane Signet"))
        )
        mock_empty_tcgcsv()

        first_task = asyncio.create_task(service.lookup(LookupMessage(scryfall_id="first")))
        await asyncio.sleep(0)
        second = await service.lookup(LookupMessage(scryfall_id="second"))
        first = await first_task

        assert first.stale
        assert not first.success
        assert first.card is None
        assert second.success
        assert second.card.name == "Arcane Signet"

    @respx.mock
    async def test_refinement_does_not_supersede(self, service: PriceService) -> None:
        """A refinement shares the generation of the lookup it refines."""
        respx.get(f"{SCRYFALL}/cards/first").mock(return_value=httpx.Response(200, json=make_card()))
        respx.get(f"{SCRYFALL}/cards/second").mock(
            return_value=httpx.Response(200, json=make_card(id="second", name="Arcane Signet"))
        )
        mock_empty_tcgcsv()

        first_task = asyncio.create_task(service.lookup(LookupMessage(scryfall_id="first")))
        await asyncio.sleep(0)
        second = await service.lookup(LookupMessage(scryfall_id="second", refinement=True))
        first = await first_task

        assert first.success
        assert second.success


class TestBrowsing:
    @respx.mock
    async def test_printings_listed_and_cached(self, service: PriceService) -> None:
        """Paper printings are summarised; digital ones are skipped."""
        route = respx.get(f"{SCRYFALL}/cards/search").mock(
            return_value=httpx.Response(
                200,
                json=card_list(
                    make_card(set="cmr", set_name="Commander Legends"),
                    make_card(set="prm", set_name="Magic Online Promos", digital=True),
                    make_card(set="c21", set_name="Commander 2021", collector_number="263"),
                ),
            )
        )

        printings = await service.list_printings("Sol Ring")
        again = await service.list_printings("sol ring")

        assert [p.set_code for p in printings] == ["CMR", "C21"]
        assert again == printings
        assert route.call_count == 1

    @respx.mock
    async def test_incomplete_printings_not_cached(self, service: PriceService) -> None:
        """A listing cut short by a failed page is empty and fetched again."""
        page_two = f"{SCRYFALL}/cards/search?page=2&q=%21%22Sol+Ring%22&unique=prints"
        route = respx.get(f"{SCRYFALL}/cards/search").mock(
            side_effect=[
                httpx.Response(200, json=card_list(make_card(), next_page=page_two)),
                httpx.Response(404, json={}),
                httpx.Response(200, json=card_list(make_card(), next_page=page_two)),
                httpx.Response(
                    200,
                    json=card_list(make_card(set="c21", set_name="Commander 2021", collector_number="263")),
                ),
            ]
        )

        assert await service.list_printings("Sol Ring") == []

        printings = await service.list_printings("Sol Ring")

        assert [p.set_code for p in printings] == ["CMR", "C21"]
        assert route.call_count == 4

    async def test_blank_printings_name(self, service: PriceService) -> None:
        assert await service.list_printings("   ") == []

    @respx.mock
    async def test_autocomplete(self, service: PriceService) -> None:
        respx.get(f"{SCRYFALL}/cards/autocomplete").mock(
            return_value=httpx.Response(200, json={"object": "catalog", "data": ["Sol Ring", "Solemn Simulacrum"]})
        )

        assert await service.autocomplete("sol") == ["Sol Ring", "Solemn Simulacrum"]

    async def test_autocomplete_short_query(self, service: PriceService) -> None:
        """Single characters are not sent upstream."""
        assert await service.autocomplete("s") == []
