from pricecheck.api.cards import router as cards_router
from pricecheck.api.health import router as health_router
from pricecheck.api.lookup import router as lookup_router
from pricecheck.api.rates import router as rates_router

__all__ = [
    "cards_router",
    "health_router",
    "lookup_router",
    "rates_router",
]
