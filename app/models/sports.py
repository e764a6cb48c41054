"""
Domain types for games, projections, picks and daily strategies.

Everything the projection engine reads is a frozen dataclass: once a
TeamStats or PickAnalysis is built it is never mutated. Strategy output
types are plain dataclasses assembled in one pass by the allocator.

Sport identifiers follow the ESPN site API slugs: 'basketball',
'football', 'hockey', 'baseball', 'soccer'.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

SOCCER = "soccer"


class Confidence(str, Enum):
    """Confidence tier derived from the composite score differential."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {Confidence.LOW: 1, Confidence.MEDIUM: 2, Confidence.HIGH: 3}


class PickType(str, Enum):
    """What a pick is on."""
    HOME = "home"
    AWAY = "away"
    DRAW = "draw"
    HOME_COVER = "home_cover"
    AWAY_COVER = "away_cover"
    OVER = "over"
    UNDER = "under"

    @property
    def side(self) -> Optional[str]:
        """'home', 'away', 'draw', or None for totals."""
        if self in (PickType.HOME, PickType.HOME_COVER):
            return "home"
        if self in (PickType.AWAY, PickType.AWAY_COVER):
            return "away"
        if self is PickType.DRAW:
            return "draw"
        return None


class RiskMode(str, Enum):
    """Bankroll risk profile for a daily strategy."""
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


# ==================== RAW GAME DATA ====================

@dataclass(frozen=True)
class GameOdds:
    """Single odds snapshot for a game. Spread is from the home team's side."""
    spread: Optional[float] = None
    over_under: Optional[float] = None
    home_moneyline: Optional[int] = None
    away_moneyline: Optional[int] = None
    draw_moneyline: Optional[int] = None
    provider: str = "ESPN"


@dataclass(frozen=True)
class Game:
    """A scheduled game as listed on a league scoreboard."""
    id: str
    home_team: str
    away_team: str
    start_time: Optional[datetime]
    league: str
    league_abbr: str
    sport: str
    home_team_id: Optional[str] = None
    away_team_id: Optional[str] = None
    home_record: Optional[str] = None
    away_record: Optional[str] = None
    home_logo: Optional[str] = None
    away_logo: Optional[str] = None
    odds: Optional[GameOdds] = None

    @property
    def is_soccer(self) -> bool:
        return self.sport == SOCCER


@dataclass(frozen=True)
class TeamStats:
    """Won-loss record snapshot for one team. Points are season totals."""
    team_id: str
    team_name: str
    wins: int
    losses: int
    win_pct: float
    home_wins: int
    home_losses: int
    away_wins: int
    away_losses: int
    points_for: float
    points_against: float
    streak: int
    streak_type: str  # 'W' or 'L'

    @property
    def games_played(self) -> int:
        return self.wins + self.losses

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}"


@dataclass(frozen=True)
class AdvancedStats:
    """Per-game efficiency metrics. Zero means the provider did not report it."""
    points_per_game: float = 0.0
    field_goal_pct: float = 0.0
    three_point_pct: float = 0.0
    free_throw_pct: float = 0.0
    assists_per_game: float = 0.0
    turnovers_per_game: float = 0.0
    assist_to_turnover_ratio: float = 0.0
    offensive_rebounds_per_game: float = 0.0
    defensive_rebounds_per_game: float = 0.0
    blocks_per_game: float = 0.0
    steals_per_game: float = 0.0


@dataclass(frozen=True)
class ScheduleGame:
    """One entry of a team's season schedule, from that team's side."""
    game_id: str
    date: datetime
    opponent_id: str
    opponent_name: str
    is_home: bool
    team_score: Optional[int] = None
    opponent_score: Optional[int] = None
    completed: bool = False


@dataclass(frozen=True)
class ScheduleContext:
    """Rest situation of a team going into a game."""
    last_game_date: Optional[datetime]
    days_since_last_game: int
    is_back_to_back: bool
    games_in_last_7_days: int


@dataclass(frozen=True)
class HeadToHead:
    """Recent meetings between two teams, from the first team's side."""
    recent_meetings: int
    wins: int
    losses: int
    avg_point_diff: float
    draws: int = 0

    @property
    def win_rate(self) -> float:
        decided = self.wins + self.losses
        return self.wins / decided if decided else 0.5

    def mirrored(self) -> "HeadToHead":
        """The same meetings seen from the opponent's side."""
        return HeadToHead(
            recent_meetings=self.recent_meetings,
            wins=self.losses,
            losses=self.wins,
            avg_point_diff=-self.avg_point_diff,
            draws=self.draws,
        )


@dataclass(frozen=True)
class InjuredPlayer:
    name: str
    position: str
    status: str  # 'out' or 'day-to-day'


@dataclass(frozen=True)
class InjuryReport:
    """Team health snapshot. impact_score is 0-100, higher is healthier."""
    players_out: Tuple[InjuredPlayer, ...] = ()
    players_questionable: Tuple[InjuredPlayer, ...] = ()
    impact_score: float = 100.0


# ==================== ENGINE OUTPUT ====================

@dataclass(frozen=True)
class FactorResult:
    """
    One 0-100 factor score for a team.

    ``defaulted`` is True when the underlying data was missing and the
    neutral score was used instead.
    """
    name: str
    score: float
    defaulted: bool = False


@dataclass(frozen=True)
class GameProjection:
    """Projected score line for a game."""
    home_points: float
    away_points: float
    total_points: float
    projected_winner: str  # 'home' or 'away'
    projected_margin: float  # home - away
    confidence: Confidence


@dataclass(frozen=True)
class PickAnalysis:
    """Everything the projection engine concluded about one game."""
    pick_type: PickType
    confidence: Confidence
    reasoning: Tuple[str, ...]
    home_score: float
    away_score: float
    differential: float
    projection: GameProjection
    spread_pick: Optional[str] = None  # 'home' or 'away'
    spread_confidence: Optional[Confidence] = None
    spread_reasoning: Tuple[str, ...] = ()
    home_factors: Tuple[FactorResult, ...] = ()
    away_factors: Tuple[FactorResult, ...] = ()


@dataclass(frozen=True)
class Pick:
    """A game plus the bet chosen on it; the unit the allocator works with."""
    game: Game
    pick_type: PickType
    label: str
    analysis: Optional[PickAnalysis] = None


@dataclass(frozen=True)
class ParlayRecommendation:
    """A suggested parlay built from the day's analyzed games."""
    id: str
    category: str
    title: str
    subtitle: str
    picks: Tuple[Pick, ...]
    icon: str


# ==================== STRATEGY OUTPUT ====================

STRAIGHT_ML = "straight_ml"
STRAIGHT_SPREAD = "straight_spread"
UNDERDOG_FLYER = "underdog_flyer"


@dataclass
class StrategyBet:
    """A straight bet or underdog flyer with its wager."""
    type: str  # STRAIGHT_ML, STRAIGHT_SPREAD or UNDERDOG_FLYER
    wager: int
    pick: Pick
    bet_label: str
    reason: str
    odds: int
    potential_return: float
    expected_value: float = 0.0


@dataclass
class StrategyParlayLeg:
    pick: Pick
    bet_type: str  # 'ml' or 'spread'
    odds: int
    label: str


@dataclass
class StrategyParlay:
    title: str
    icon: str
    legs: List[StrategyParlayLeg]
    wager: int = 0
    potential_return: float = 0.0
    expected_value: float = 0.0


@dataclass
class ReturnRange:
    low: float
    expected: float
    high: float


@dataclass
class DailyStrategy:
    """A day's betting plan; wagers add up to daily_budget unless empty."""
    bankroll: float
    daily_budget: int
    risk_mode: RiskMode
    min_bet: int
    straight_bets: List[StrategyBet] = field(default_factory=list)
    parlays: List[StrategyParlay] = field(default_factory=list)
    underdog_flyers: List[StrategyBet] = field(default_factory=list)
    total_wagered: int = 0
    potential_return_range: ReturnRange = field(default_factory=lambda: ReturnRange(0.0, 0.0, 0.0))

    @property
    def is_empty(self) -> bool:
        return not (self.straight_bets or self.parlays or self.underdog_flyers)
