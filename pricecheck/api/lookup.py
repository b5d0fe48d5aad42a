"""
Lookup API endpoint.

Resolves a scraped card reference to a priced card.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from pricecheck.api.dependencies import get_price_service
from pricecheck.models.lookup_request import LookupMessage
from pricecheck.services.price_service import LookupOutcome, PriceService

router = APIRouter(tags=["lookup"])


@router.post("/lookup", response_model=LookupOutcome)
async def lookup(
    message: LookupMessage,
    service: Annotated[PriceService, Depends(get_price_service)],
) -> LookupOutcome:
    """
    Look up a card and its prices.

    Accepts camelCase or snake_case fields. Not-found cards return
    success=false with an error; a lookup superseded by a newer one returns
    stale=true.
    """
    return await service.lookup(message)
