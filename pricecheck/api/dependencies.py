"""Shared FastAPI dependencies."""

from fastapi import Request

from pricecheck.services.price_service import PriceService


def get_price_service(request: Request) -> PriceService:
    """
    The process-wide PriceService created in the application lifespan.

    Usage in FastAPI:
        @router.post("/lookup")
        async def lookup(service: Annotated[PriceService, Depends(get_price_service)]):
            ...
    """
    service: PriceService = request.app.state.price_service
    return service
