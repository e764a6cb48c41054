"""
Core services for the picks and strategy engine.

This module contains the sport-agnostic business logic:
- espn_service: ESPN site API client (scoreboards, team data, injuries)
- factors: 0-100 factor scores and composite score
- reasoning: human-readable pick justifications
- projection_service: per-game analysis and batched slate analysis
- parlay_service: parlay recommendations
- strategy_service: bankroll allocation into a daily strategy
- odds: American odds math
- circuit_breaker: outbound protection for the ESPN API

Sport differences (league averages, home advantage, spread units) are
table-driven inside these modules rather than split into per-sport
packages.
"""
from app.services.core.espn_service import ESPNApiService, get_espn_service
from app.services.core.parlay_service import build_custom_parlay, generate_parlays
from app.services.core.projection_service import (
    BatchAnalysis,
    GameAnalysisError,
    GameInputs,
    ProjectionService,
    build_analysis,
)
from app.services.core.strategy_service import generate_strategy

__all__ = [
    "ESPNApiService",
    "get_espn_service",
    "build_custom_parlay",
    "generate_parlays",
    "BatchAnalysis",
    "GameAnalysisError",
    "GameInputs",
    "ProjectionService",
    "build_analysis",
    "generate_strategy",
]
