"""Exchange rate endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from pricecheck.api.dependencies import get_price_service
from pricecheck.services.exchange_rates import ExchangeRate
from pricecheck.services.price_service import PriceService

router = APIRouter(tags=["rates"])


@router.get("/exchange-rate/{currency}", response_model=ExchangeRate)
async def get_exchange_rate(
    currency: str,
    service: Annotated[PriceService, Depends(get_price_service)],
) -> ExchangeRate:
    """
    USD exchange rate for a currency code.

    Unknown currencies return rate null.
    """
    return await service.get_exchange_rate(currency)
