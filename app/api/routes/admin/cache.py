"""
Admin routes for the response cache and the ESPN circuit breaker.

Provides endpoints for:
- Invalidating cached ESPN responses (all, or by endpoint prefix)
- Checking and resetting the ESPN circuit breaker
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from app.core.logging import get_logger
from app.services.core.circuit_breaker import espn_api_breaker, get_breaker_state, reset_breaker
from app.services.core.espn_service import ESPNApiService, get_espn_service

logger = get_logger(__name__)

router = APIRouter(tags=["admin"])


class CacheInvalidationResponse(BaseModel):
    removed: int
    prefix: Optional[str] = None
    remaining: int


class BreakerStatusResponse(BaseModel):
    name: str
    state: str
    fail_counter: int


@router.post("/cache/invalidate", response_model=CacheInvalidationResponse)
async def invalidate_cache(
    prefix: Optional[str] = Query(
        None,
        description="Endpoint prefix (scoreboard, team, advanced, schedule, injuries); omit to clear all",
    ),
    espn: ESPNApiService = Depends(get_espn_service),
) -> CacheInvalidationResponse:
    """Drop cached ESPN responses."""
    removed = espn.cache.invalidate(prefix)
    return CacheInvalidationResponse(removed=removed, prefix=prefix, remaining=len(espn.cache))


@router.get("/circuit-breaker", response_model=BreakerStatusResponse)
async def circuit_breaker_status() -> BreakerStatusResponse:
    return BreakerStatusResponse(
        name=espn_api_breaker.name,
        state=get_breaker_state(),
        fail_counter=espn_api_breaker.fail_counter,
    )


@router.post("/circuit-breaker/reset", response_model=BreakerStatusResponse)
async def circuit_breaker_reset() -> BreakerStatusResponse:
    """Force the ESPN breaker closed."""
    reset_breaker()
    return await circuit_breaker_status()
