"""
FastAPI dependencies and request helpers shared by the routes.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import Depends, HTTPException

from app.core.logging import get_logger
from app.models import Game
from app.services.core.espn_service import LEAGUES, ESPNApiService, get_espn_service
from app.services.core.projection_service import BatchAnalysis, ProjectionService

logger = get_logger(__name__)


def get_projection_service(espn: ESPNApiService = Depends(get_espn_service)) -> ProjectionService:
    return ProjectionService(espn)


def parse_date(value: Optional[str]) -> Optional[str]:
    """
    Validate a date query value and convert it to ESPN's YYYYMMDD.

    Raises:
        HTTPException: 400 for anything other than YYYY-MM-DD or YYYYMMDD
    """
    if not value:
        return None
    for fmt in ("%Y-%m-%d", "%Y%m%d"):
        try:
            return datetime.strptime(value, fmt).strftime("%Y%m%d")
        except ValueError:
            continue
    raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM-DD.")


def validate_sport(sport: str) -> str:
    if sport != "all" and sport not in LEAGUES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported sport '{sport}'. Use one of: all, {', '.join(LEAGUES)}",
        )
    return sport


async def load_analyzed_slate(
    espn: ESPNApiService,
    projection: ProjectionService,
    date: Optional[str],
    sport: str,
) -> Tuple[List[Game], BatchAnalysis]:
    """Fetch a day's games and run the projection engine over them."""
    games = await espn.get_games(validate_sport(sport), parse_date(date))
    result = await projection.analyze_games(games)
    return games, result
