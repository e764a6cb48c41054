"""
Picks API routes.

Provides endpoints for:
- Getting the day's games with their projection-engine analysis

Base path: /api/v1/picks
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.dependencies import get_projection_service, load_analyzed_slate
from app.api.schemas import GamePickResponse, GameResponse, PickResponse, PicksResponse
from app.core.logging import get_logger
from app.core.rate_limit import ANALYSIS_LIMIT, limiter
from app.services.core.espn_service import ESPNApiService, get_espn_service
from app.services.core.projection_service import ProjectionService, format_projected_score, to_pick

logger = get_logger(__name__)

router = APIRouter(prefix="/picks", tags=["picks"])


@router.get("", response_model=PicksResponse)
@limiter.limit(ANALYSIS_LIMIT)
async def get_picks(
    request: Request,
    date: Optional[str] = Query(None, description="Slate date (YYYY-MM-DD, default: today)"),
    sport: str = Query("all", description="League filter (all, nba, nfl, ncaam, mlb, nhl, soccer)"),
    espn: ESPNApiService = Depends(get_espn_service),
    projection: ProjectionService = Depends(get_projection_service),
) -> PicksResponse:
    """
    Get the slate with a pick per game.

    Games whose analysis failed are still listed, with ``pick: null``
    and the failure reason in ``error``.
    """
    try:
        games, result = await load_analyzed_slate(espn, projection, date, sport)

        entries = []
        for game in games:
            analysis = result.analyses.get(game.id)
            if analysis is None:
                entries.append(GamePickResponse(
                    game=GameResponse.from_game(game),
                    error=result.failures.get(game.id),
                ))
                continue
            entries.append(GamePickResponse(
                game=GameResponse.from_game(game),
                pick=PickResponse.from_pick(to_pick(game, analysis)),
                projected_score=format_projected_score(game, analysis),
            ))

        return PicksResponse(
            date=date,
            sport=sport,
            total_games=len(games),
            analyzed=len(result.analyses),
            failed=len(result.failures),
            games=entries,
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting picks: {e}")
        raise HTTPException(status_code=500, detail=f"Error generating picks: {str(e)}")
