"""
Health check endpoints.

Provides liveness and readiness probes with database connectivity checks.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pricecheck.api.dependencies import get_price_service
from pricecheck.db.database import get_session
from pricecheck.services.price_service import PriceService

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    dispatches: int | None = None
    pending_requests: int | None = None
    cached_results: int | None = None


@router.get("/health", response_model=HealthResponse)
async def health(
    service: Annotated[PriceService, Depends(get_price_service)],
) -> HealthResponse:
    """
    Liveness probe.

    Reports request queue and cache counters. Does not check dependencies.
    """
    return HealthResponse(
        status="healthy",
        dispatches=service.queue.dispatch_count,
        pending_requests=service.queue.pending_count,
        cached_results=len(service.result_cache),
    )


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Checks database connectivity. Returns 503 if the database is unavailable.
    """
    try:
        await session.execute(text("SELECT 1"))
        return HealthResponse(status="ready", database="connected")
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
