"""
Domain models for the picks and strategy engine.

Usage:
    from app.models import Game, TeamStats, PickAnalysis, DailyStrategy
"""
from app.models.sports import (
    SOCCER,
    STRAIGHT_ML,
    STRAIGHT_SPREAD,
    UNDERDOG_FLYER,
    AdvancedStats,
    Confidence,
    DailyStrategy,
    FactorResult,
    Game,
    GameOdds,
    GameProjection,
    HeadToHead,
    InjuredPlayer,
    InjuryReport,
    ParlayRecommendation,
    Pick,
    PickAnalysis,
    PickType,
    ReturnRange,
    RiskMode,
    ScheduleContext,
    ScheduleGame,
    StrategyBet,
    StrategyParlay,
    StrategyParlayLeg,
    TeamStats,
)

__all__ = [
    "SOCCER",
    "STRAIGHT_ML",
    "STRAIGHT_SPREAD",
    "UNDERDOG_FLYER",
    "AdvancedStats",
    "Confidence",
    "DailyStrategy",
    "FactorResult",
    "Game",
    "GameOdds",
    "GameProjection",
    "HeadToHead",
    "InjuredPlayer",
    "InjuryReport",
    "ParlayRecommendation",
    "Pick",
    "PickAnalysis",
    "PickType",
    "ReturnRange",
    "RiskMode",
    "ScheduleContext",
    "ScheduleGame",
    "StrategyBet",
    "StrategyParlay",
    "StrategyParlayLeg",
    "TeamStats",
]
