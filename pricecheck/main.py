import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricecheck.api import cards_router, health_router, lookup_router, rates_router
from pricecheck.config import settings
from pricecheck.db.database import async_session_factory, init_db
from pricecheck.models.failure import KnownError
from pricecheck.services.cache_persistence import CachePersistence
from pricecheck.services.price_service import PriceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()

    async with httpx.AsyncClient(
        timeout=settings.request_timeout_seconds,
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
    ) as client:
        service = PriceService(client, settings)
        persistence = CachePersistence(async_session_factory, service.persisted_caches())
        await persistence.load_all()

        app.state.price_service = service
        persist_task = asyncio.create_task(persistence.run_forever(settings.persist_interval_seconds))
        try:
            yield
        finally:
            persist_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await persist_task
            await persistence.flush()
            await service.close()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("mtg-pricecheck"),
    lifespan=lifespan,
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Known failures keep the lookup envelope shape."""
    logger.info("Rejected request: %s (%s)", exc.message, exc.kind.value)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "failure": exc.to_detail().model_dump(mode="json")},
    )


app.include_router(cards_router)
app.include_router(health_router)
app.include_router(lookup_router)
app.include_router(rates_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Browser extension origins vary per install
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
