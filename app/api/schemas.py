"""
Pydantic response and request models shared by the API routes.

Domain objects are frozen dataclasses; the ``from_*`` classmethods here
are the only place they are converted to wire format.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models import (
    DailyStrategy,
    FactorResult,
    Game,
    GameOdds,
    GameProjection,
    ParlayRecommendation,
    Pick,
    PickAnalysis,
    RiskMode,
    StrategyBet,
    StrategyParlay,
)
from app.core.config import settings


# ==================== GAMES ====================

class OddsResponse(BaseModel):
    spread: Optional[float] = None
    over_under: Optional[float] = None
    home_moneyline: Optional[int] = None
    away_moneyline: Optional[int] = None
    draw_moneyline: Optional[int] = None
    provider: str

    @classmethod
    def from_odds(cls, odds: GameOdds) -> "OddsResponse":
        return cls(
            spread=odds.spread,
            over_under=odds.over_under,
            home_moneyline=odds.home_moneyline,
            away_moneyline=odds.away_moneyline,
            draw_moneyline=odds.draw_moneyline,
            provider=odds.provider,
        )


class GameResponse(BaseModel):
    """Game response model."""
    id: str
    home_team: str
    away_team: str
    start_time: Optional[datetime] = None
    league: str
    league_abbr: str
    sport: str = Field(..., description="ESPN sport slug (basketball, football, ...)")
    home_record: Optional[str] = None
    away_record: Optional[str] = None
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    odds: Optional[OddsResponse] = None

    @classmethod
    def from_game(cls, game: Game) -> "GameResponse":
        return cls(
            id=game.id,
            home_team=game.home_team,
            away_team=game.away_team,
            start_time=game.start_time,
            league=game.league,
            league_abbr=game.league_abbr,
            sport=game.sport,
            home_record=game.home_record,
            away_record=game.away_record,
            home_logo=game.home_logo,
            away_logo=game.away_logo,
            odds=OddsResponse.from_odds(game.odds) if game.odds else None,
        )


class SportResponse(BaseModel):
    key: str = Field(..., description="Filter key used by the sport query parameter")
    name: str
    sport: str
    league: str


# ==================== ANALYSIS ====================

class FactorResponse(BaseModel):
    name: str
    score: float
    defaulted: bool

    @classmethod
    def from_factor(cls, factor: FactorResult) -> "FactorResponse":
        return cls(name=factor.name, score=round(factor.score, 1), defaulted=factor.defaulted)


class ProjectionResponse(BaseModel):
    home_points: float
    away_points: float
    total_points: float
    projected_winner: str
    projected_margin: float
    confidence: str

    @classmethod
    def from_projection(cls, p: GameProjection) -> "ProjectionResponse":
        return cls(
            home_points=p.home_points,
            away_points=p.away_points,
            total_points=p.total_points,
            projected_winner=p.projected_winner,
            projected_margin=p.projected_margin,
            confidence=p.confidence.value,
        )


class AnalysisResponse(BaseModel):
    """PickAnalysis response model."""
    pick_type: str
    confidence: str
    reasoning: List[str]
    home_score: float = Field(..., description="Home composite score (0-100)")
    away_score: float = Field(..., description="Away composite score (0-100)")
    differential: float
    projection: ProjectionResponse
    spread_pick: Optional[str] = None
    spread_confidence: Optional[str] = None
    spread_reasoning: List[str] = []
    home_factors: List[FactorResponse] = []
    away_factors: List[FactorResponse] = []

    @classmethod
    def from_analysis(cls, a: PickAnalysis) -> "AnalysisResponse":
        return cls(
            pick_type=a.pick_type.value,
            confidence=a.confidence.value,
            reasoning=list(a.reasoning),
            home_score=round(a.home_score, 1),
            away_score=round(a.away_score, 1),
            differential=round(a.differential, 1),
            projection=ProjectionResponse.from_projection(a.projection),
            spread_pick=a.spread_pick,
            spread_confidence=a.spread_confidence.value if a.spread_confidence else None,
            spread_reasoning=list(a.spread_reasoning),
            home_factors=[FactorResponse.from_factor(f) for f in a.home_factors],
            away_factors=[FactorResponse.from_factor(f) for f in a.away_factors],
        )


class PickResponse(BaseModel):
    game: GameResponse
    pick_type: str
    label: str
    analysis: Optional[AnalysisResponse] = None

    @classmethod
    def from_pick(cls, pick: Pick) -> "PickResponse":
        return cls(
            game=GameResponse.from_game(pick.game),
            pick_type=pick.pick_type.value,
            label=pick.label,
            analysis=AnalysisResponse.from_analysis(pick.analysis) if pick.analysis else None,
        )


class GamePickResponse(BaseModel):
    """One game of the slate and its pick (null when analysis failed)."""
    game: GameResponse
    pick: Optional[PickResponse] = None
    projected_score: Optional[str] = None
    error: Optional[str] = None


class PicksResponse(BaseModel):
    date: Optional[str] = None
    sport: str
    total_games: int
    analyzed: int
    failed: int
    games: List[GamePickResponse]


# ==================== PARLAYS ====================

class ParlayResponse(BaseModel):
    id: str
    category: str
    title: str
    subtitle: str
    icon: str
    picks: List[PickResponse]

    @classmethod
    def from_recommendation(cls, parlay: ParlayRecommendation) -> "ParlayResponse":
        return cls(
            id=parlay.id,
            category=parlay.category,
            title=parlay.title,
            subtitle=parlay.subtitle,
            icon=parlay.icon,
            picks=[PickResponse.from_pick(p) for p in parlay.picks],
        )


class CustomParlayRequest(BaseModel):
    date: Optional[str] = Field(None, description="Slate date (YYYY-MM-DD, default: today)")
    sport: str = Field("all", description="League filter used to fetch the slate")
    num_legs: int = Field(..., ge=2, le=12)
    sport_filter: Optional[str] = Field(None, description="Only use games of this sport slug")


# ==================== STRATEGY ====================

class StrategyRequest(BaseModel):
    date: Optional[str] = Field(None, description="Slate date (YYYY-MM-DD, default: today)")
    sport: str = Field("all", description="League filter (all, nba, nfl, ncaam, mlb, nhl, soccer)")
    bankroll: float = Field(default_factory=lambda: settings.DEFAULT_BANKROLL, gt=0)
    risk_mode: RiskMode = Field(default_factory=lambda: RiskMode(settings.DEFAULT_RISK_MODE))


class StrategyBetResponse(BaseModel):
    type: str
    wager: int
    bet_label: str
    reason: str
    odds: int
    potential_return: float
    expected_value: float
    pick: PickResponse

    @classmethod
    def from_bet(cls, bet: StrategyBet) -> "StrategyBetResponse":
        return cls(
            type=bet.type,
            wager=bet.wager,
            bet_label=bet.bet_label,
            reason=bet.reason,
            odds=bet.odds,
            potential_return=round(bet.potential_return, 2),
            expected_value=round(bet.expected_value, 2),
            pick=PickResponse.from_pick(bet.pick),
        )


class StrategyLegResponse(BaseModel):
    game_id: str
    bet_type: str
    odds: int
    label: str


class StrategyParlayResponse(BaseModel):
    title: str
    icon: str
    wager: int
    potential_return: float
    expected_value: float
    legs: List[StrategyLegResponse]

    @classmethod
    def from_parlay(cls, parlay: StrategyParlay) -> "StrategyParlayResponse":
        return cls(
            title=parlay.title,
            icon=parlay.icon,
            wager=parlay.wager,
            potential_return=round(parlay.potential_return, 2),
            expected_value=round(parlay.expected_value, 2),
            legs=[
                StrategyLegResponse(game_id=leg.pick.game.id, bet_type=leg.bet_type, odds=leg.odds, label=leg.label)
                for leg in parlay.legs
            ],
        )


class ReturnRangeResponse(BaseModel):
    low: float
    expected: float
    high: float


class StrategyResponse(BaseModel):
    """DailyStrategy response model."""
    bankroll: float
    daily_budget: int
    risk_mode: str
    min_bet: int
    total_wagered: int
    straight_bets: List[StrategyBetResponse]
    parlays: List[StrategyParlayResponse]
    underdog_flyers: List[StrategyBetResponse]
    potential_return_range: ReturnRangeResponse

    @classmethod
    def from_strategy(cls, s: DailyStrategy) -> "StrategyResponse":
        r = s.potential_return_range
        return cls(
            bankroll=s.bankroll,
            daily_budget=s.daily_budget,
            risk_mode=s.risk_mode.value,
            min_bet=s.min_bet,
            total_wagered=s.total_wagered,
            straight_bets=[StrategyBetResponse.from_bet(b) for b in s.straight_bets],
            parlays=[StrategyParlayResponse.from_parlay(p) for p in s.parlays],
            underdog_flyers=[StrategyBetResponse.from_bet(b) for b in s.underdog_flyers],
            potential_return_range=ReturnRangeResponse(
                low=round(r.low, 2), expected=round(r.expected, 2), high=round(r.high, 2),
            ),
        )
