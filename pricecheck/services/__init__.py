"""
PriceCheck services.

Card resolution, secondary pricing and cache management.
"""

from pricecheck.services.cache import CacheEntry, TTLCache
from pricecheck.services.cache_persistence import CachePersistence, PersistedCache
from pricecheck.services.exchange_rates import ExchangeRate, ExchangeRateService
from pricecheck.services.generation import GenerationController
from pricecheck.services.lookup_dispatcher import LookupDispatcher, Resolution
from pricecheck.services.price_enrichment import PriceEnricher
from pricecheck.services.price_service import LookupOutcome, PriceService
from pricecheck.services.printing_resolver import MatchCandidate, PrintingResolver
from pricecheck.services.request_queue import RequestQueue
from pricecheck.services.set_matcher import SetMatcher
from pricecheck.services.tcgcsv import TcgCsvClient

__all__ = [
    "CacheEntry",
    "CachePersistence",
    "ExchangeRate",
    "ExchangeRateService",
    "GenerationController",
    "LookupDispatcher",
    "LookupOutcome",
    "MatchCandidate",
    "PersistedCache",
    "PriceEnricher",
    "PriceService",
    "PrintingResolver",
    "RequestQueue",
    "Resolution",
    "SetMatcher",
    "TTLCache",
    "TcgCsvClient",
]
