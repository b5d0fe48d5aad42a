"""
Card browsing endpoints.

Printing list for the printing browser and name autocomplete for search.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from pricecheck.api.dependencies import get_price_service
from pricecheck.models.canonical_card import PrintingSummary
from pricecheck.services.price_service import MIN_AUTOCOMPLETE_LENGTH, PriceService

router = APIRouter(tags=["cards"])


class PrintingsResponse(BaseModel):
    """Printings of one card, newest first."""

    success: bool
    data: list[PrintingSummary] = Field(default_factory=list)


class SearchResponse(BaseModel):
    """Autocomplete suggestions."""

    success: bool
    data: list[str] = Field(default_factory=list)


@router.get("/printings", response_model=PrintingsResponse)
async def list_printings(
    name: Annotated[str, Query(min_length=1, description="Exact card name")],
    service: Annotated[PriceService, Depends(get_price_service)],
) -> PrintingsResponse:
    """List every paper printing of a card."""
    printings = await service.list_printings(name)
    return PrintingsResponse(success=bool(printings), data=printings)


@router.get("/search", response_model=SearchResponse)
async def search(
    service: Annotated[PriceService, Depends(get_price_service)],
    q: Annotated[str, Query(description="Partial card name")] = "",
) -> SearchResponse:
    """Card name autocomplete. Queries under two characters return nothing."""
    if len(q.strip()) < MIN_AUTOCOMPLETE_LENGTH:
        return SearchResponse(success=False)
    return SearchResponse(success=True, data=await service.autocomplete(q))
