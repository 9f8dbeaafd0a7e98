"""Service and cache health endpoint."""

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shelfscan.internal.resolution import ResolutionContext
from shelfscan.util.context import get_context

router = APIRouter(prefix="/health", tags=["Health"])


class CacheMetricsResponse(BaseModel):
    hits: int
    misses: int
    writes: int
    backend_errors: int
    hit_rate: float


class HealthResponse(BaseModel):
    status: Literal["ok"]
    timestamp: datetime
    cache: Literal["connected", "disconnected"]
    rating_store: Literal["connected", "disconnected", "disabled"]
    cache_metrics: CacheMetricsResponse


@router.get("", response_model=HealthResponse)
async def health(
    context: Annotated[ResolutionContext, Depends(get_context)],
):
    """
    Reports whether the cache and the rating store are reachable.

    Both are optional for resolving books, so the service itself is always "ok".
    """
    if context.rating_store is None:
        rating_store = "disabled"
    elif context.rating_store.available:
        rating_store = "connected"
    else:
        rating_store = "disconnected"

    metrics = context.cache.metrics
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(),
        cache="connected" if await context.cache.ping() else "disconnected",
        rating_store=rating_store,
        cache_metrics=CacheMetricsResponse(
            hits=metrics.hits,
            misses=metrics.misses,
            writes=metrics.writes,
            backend_errors=metrics.backend_errors,
            hit_rate=metrics.hit_rate,
        ),
    )
