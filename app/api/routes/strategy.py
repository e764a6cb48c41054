"""
Daily strategy API routes.

Provides endpoints for:
- Building a bankroll-sized betting plan for a slate

Base path: /api/v1/strategy
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.dependencies import get_projection_service, load_analyzed_slate
from app.api.schemas import StrategyRequest, StrategyResponse
from app.core.logging import get_logger
from app.core.rate_limit import ANALYSIS_LIMIT, limiter
from app.services.core.espn_service import ESPNApiService, get_espn_service
from app.services.core.projection_service import ProjectionService, to_pick
from app.services.core.strategy_service import generate_strategy

logger = get_logger(__name__)

router = APIRouter(prefix="/strategy", tags=["strategy"])

NO_STRATEGY_DETAIL = "No strategy could be built for this date"


@router.post("", response_model=StrategyResponse)
@limiter.limit(ANALYSIS_LIMIT)
async def create_strategy(
    request: Request,
    body: StrategyRequest,
    espn: ESPNApiService = Depends(get_espn_service),
    projection: ProjectionService = Depends(get_projection_service),
) -> StrategyResponse:
    """
    Build the day's strategy.

    **Budget rules**:
    - Daily budget is 15/25/40% of bankroll (conservative/balanced/aggressive)
    - Wagers add up to the daily budget exactly
    - Every bet is at least the minimum bet (5% of budget, $2 floor)
    """
    try:
        games, result = await load_analyzed_slate(espn, projection, body.date, body.sport)
        picks = [to_pick(game, result.analyses[game.id]) for game in games if game.id in result.analyses]

        strategy = generate_strategy(picks, body.bankroll, body.risk_mode)
        if strategy.is_empty:
            raise HTTPException(status_code=404, detail=NO_STRATEGY_DETAIL)
        return StrategyResponse.from_strategy(strategy)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error building strategy: {e}")
        raise HTTPException(status_code=500, detail=f"Error building strategy: {str(e)}")
