"""
One-shot card price lookup.

Resolves a card reference exactly like POST /lookup and prints the result as
JSON. Uses the same persisted caches as the API server.

Usage:
    python -m pricecheck.jobs.lookup_card "Sol Ring" --set-hint "Commander Legends"
    python -m pricecheck.jobs.lookup_card "Sol Ring" --tcgplayer-id 12345
"""

import argparse
import asyncio
import logging
import sys

import httpx

from pricecheck.config import settings
from pricecheck.db.database import async_session_factory, init_db
from pricecheck.models.failure import KnownError
from pricecheck.models.lookup_request import LookupMessage
from pricecheck.services.cache_persistence import CachePersistence
from pricecheck.services.price_service import LookupOutcome, PriceService

logger = logging.getLogger(__name__)


def build_message(args: argparse.Namespace) -> LookupMessage:
    """Translate CLI arguments into a lookup message."""
    return LookupMessage(
        card_name=args.name,
        scryfall_id=args.scryfall_id,
        tcgplayer_id=args.tcgplayer_id,
        set_code=args.set_code,
        collector_number=args.collector_number,
        set_hint=args.set_hint,
        variant=args.variant,
        cardmarket_product_id=args.cardmarket_id,
    )


async def run_lookup(message: LookupMessage, persist: bool = True) -> LookupOutcome:
    """Run one lookup with a fresh service, loading and saving caches."""
    if persist:
        await init_db()

    async with httpx.AsyncClient(
        timeout=settings.request_timeout_seconds,
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
    ) as client:
        service = PriceService(client, settings)
        persistence = CachePersistence(async_session_factory, service.persisted_caches())
        if persist:
            await persistence.load_all()
        try:
            outcome = await service.lookup(message)
        finally:
            if persist:
                await persistence.flush()
            await service.close()

    return outcome


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Look up a Magic card and its prices.")
    parser.add_argument("name", nargs="?", help="Card name as written on the listing")
    parser.add_argument("--set-hint", help="Free-text set or product name")
    parser.add_argument("--variant", type=int, help="1-based variant within the hinted set")
    parser.add_argument("--set-code", help="Scryfall set code")
    parser.add_argument("--collector-number", help="Collector number (with --set-code)")
    parser.add_argument("--scryfall-id", help="Scryfall printing id")
    parser.add_argument("--tcgplayer-id", type=int, help="TCGplayer product id")
    parser.add_argument("--cardmarket-id", type=int, help="Cardmarket product id")
    parser.add_argument("--no-persist", action="store_true", help="Skip the cache database")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for a single lookup."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = parse_args(argv)

    try:
        outcome = asyncio.run(run_lookup(build_message(args), persist=not args.no_persist))
    except KnownError as e:
        logger.error("%s", e.message)
        return 2

    print(outcome.model_dump_json(indent=2))
    return 0 if outcome.success else 1


if __name__ == "__main__":
    sys.exit(main())
