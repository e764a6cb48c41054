"""
Parlay recommendation API routes.

Provides endpoints for:
- Getting the day's recommended parlays (optionally one category)
- Building a custom N-leg parlay

Base path: /api/v1/parlays
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.dependencies import get_projection_service, load_analyzed_slate
from app.api.schemas import CustomParlayRequest, ParlayResponse
from app.core.logging import get_logger
from app.core.rate_limit import ANALYSIS_LIMIT, limiter
from app.services.core.espn_service import ESPNApiService, get_espn_service
from app.services.core.parlay_service import build_custom_parlay, generate_parlays
from app.services.core.projection_service import ProjectionService

logger = get_logger(__name__)

router = APIRouter(prefix="/parlays", tags=["parlays"])


@router.get("", response_model=List[ParlayResponse])
@limiter.limit(ANALYSIS_LIMIT)
async def get_parlays(
    request: Request,
    date: Optional[str] = Query(None, description="Slate date (YYYY-MM-DD, default: today)"),
    sport: str = Query("all", description="League filter"),
    category: Optional[str] = Query(None, description="lock, value, sport, longshot or mega"),
    espn: ESPNApiService = Depends(get_espn_service),
    projection: ProjectionService = Depends(get_projection_service),
) -> List[ParlayResponse]:
    """
    Get recommended parlays for a slate.

    **Rules**:
    - Fewer than 2 analyzed games returns an empty list
    - Sport specials need 15+ games, longshot 5+, mega 12+
    """
    try:
        games, result = await load_analyzed_slate(espn, projection, date, sport)
        parlays = generate_parlays(games, result.analyses)
        if category:
            parlays = [p for p in parlays if p.category == category]
        return [ParlayResponse.from_recommendation(p) for p in parlays]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting parlays: {e}")
        raise HTTPException(status_code=500, detail=f"Error generating parlays: {str(e)}")


@router.post("/custom", response_model=ParlayResponse)
@limiter.limit(ANALYSIS_LIMIT)
async def create_custom_parlay(
    request: Request,
    body: CustomParlayRequest,
    espn: ESPNApiService = Depends(get_espn_service),
    projection: ProjectionService = Depends(get_projection_service),
) -> ParlayResponse:
    """Build a parlay with exactly ``num_legs`` legs from the slate."""
    try:
        games, result = await load_analyzed_slate(espn, projection, body.date, body.sport)
        parlay = build_custom_parlay(games, result.analyses, body.num_legs, body.sport_filter)
        if parlay is None:
            raise HTTPException(
                status_code=404,
                detail=f"Not enough analyzed games for a {body.num_legs}-leg parlay",
            )
        return ParlayResponse.from_recommendation(parlay)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building custom parlay: {e}")
        raise HTTPException(status_code=500, detail=f"Error building custom parlay: {str(e)}")
