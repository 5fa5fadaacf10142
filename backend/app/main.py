from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Iterator

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ingestion.client import PolymarketClient
from ingestion.errors import PolymarketServiceError

from . import schemas
from .core.config import settings
from .services.cache import MarketCache
from .services.market_service import MarketService

app = FastAPI(title="Opportunity Screener API", version="0.1.0", debug=settings.debug)


@lru_cache
def _shared_cache() -> MarketCache:
    """Process-wide payload cache shared by every request."""

    return MarketCache(ttl_seconds=settings.cache_ttl_seconds)


def _market_service() -> Iterator[MarketService]:
    """Provide a scan service wired with a fresh feed client and the shared cache."""

    client = PolymarketClient(settings=settings)
    try:
        yield MarketService(client, cache=_shared_cache(), settings=settings)
    finally:
        client.close()


@app.exception_handler(PolymarketServiceError)
async def _polymarket_error_handler(request: Request, exc: PolymarketServiceError) -> JSONResponse:
    logger.warning(
        "{} upstream failure: {} (status {})", request.url.path, exc.message, exc.status_code
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=schemas.ErrorResponse(error=exc.message, retryable=exc.retryable).model_dump(),
    )


@app.exception_handler(Exception)
async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("{} unexpected failure", request.url.path)
    return JSONResponse(
        status_code=500,
        content=schemas.ErrorResponse(
            error=f"Unexpected error while serving {request.url.path}", retryable=False
        ).model_dump(),
    )


WindowHours = Annotated[
    float | None,
    Query(gt=0, le=720, description="Only consider markets closing within this many hours"),
]


@app.get("/healthz", response_model=schemas.HealthStatus, tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


@app.get("/events/opportunities", response_model=schemas.ScanPayload, tags=["events"])
def list_opportunities(
    window_hours: WindowHours = None,
    service: MarketService = Depends(_market_service),
):
    """Markets closing soon with a cheap outcome, grouped by price band."""

    return service.get_opportunities(window_hours)


@app.get("/events/flipped", response_model=schemas.ScanPayload, tags=["events"])
def list_flipped(
    window_hours: WindowHours = None,
    service: MarketService = Depends(_market_service),
):
    """Markets with a large one-day price swing, grouped by swing size."""

    return service.get_flipped(window_hours)


@app.get("/events/velocity", response_model=schemas.ScanPayload, tags=["events"])
def list_velocity(
    window_hours: WindowHours = None,
    service: MarketService = Depends(_market_service),
):
    """Markets with sustained daily momentum, grouped by move speed."""

    return service.get_velocity(window_hours)
