"""
Games API routes.

Provides endpoints for:
- Listing supported leagues
- Listing a slate's games (no analysis)

Base path: /api/v1/games
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.dependencies import parse_date, validate_sport
from app.api.schemas import GameResponse, SportResponse
from app.core.logging import get_logger
from app.core.rate_limit import GENERAL_LIMIT, limiter
from app.services.core.espn_service import LEAGUES, ESPNApiService, get_espn_service

logger = get_logger(__name__)

router = APIRouter(prefix="/games", tags=["games"])


@router.get("/sports", response_model=List[SportResponse])
async def get_sports() -> List[SportResponse]:
    """Supported leagues and their filter keys."""
    return [
        SportResponse(key=key, name=config["name"], sport=config["sport"], league=config["league"])
        for key, config in LEAGUES.items()
    ]


@router.get("", response_model=List[GameResponse])
@limiter.limit(GENERAL_LIMIT)
async def get_games(
    request: Request,
    date: Optional[str] = Query(None, description="Slate date (YYYY-MM-DD, default: today)"),
    sport: str = Query("all", description="League filter"),
    espn: ESPNApiService = Depends(get_espn_service),
) -> List[GameResponse]:
    """Games on the scoreboard, sorted by start time."""
    try:
        games = await espn.get_games(validate_sport(sport), parse_date(date))
        return [GameResponse.from_game(g) for g in games]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting games: {e}")
        raise HTTPException(status_code=500, detail=f"Error fetching games: {str(e)}")
