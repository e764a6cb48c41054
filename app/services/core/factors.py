"""
Factor scoring for the projection engine.

Each team gets eight independent factor scores on a 0-100 scale. A
factor whose input is missing resolves to the neutral score (50) and is
tagged ``defaulted=True``; missing data never raises.

Factor weights (sum to 1.0):
- win_pct          0.15  wins / games
- home_away        0.15  win rate in the relevant venue split
- recent_form      0.15  50 +/- 5 per streak game
- scoring_margin   0.10  50 + 2.5 x average margin
- advanced_stats   0.20  offense (0.6) / defense (0.4) vs league baselines
- rest             0.10  days of rest, +/-10 vs opponent rest
- head_to_head     0.10  recent meetings win rate and point differential
- injuries         0.05  health score gap
"""
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple, TypeVar

from app.models import (
    AdvancedStats,
    Confidence,
    FactorResult,
    HeadToHead,
    InjuryReport,
    ScheduleContext,
    TeamStats,
)

T = TypeVar("T")

NEUTRAL_SCORE = 50.0

FACTOR_WEIGHTS: Dict[str, float] = {
    "win_pct": 0.15,
    "home_away": 0.15,
    "recent_form": 0.15,
    "scoring_margin": 0.10,
    "advanced_stats": 0.20,
    "rest": 0.10,
    "head_to_head": 0.10,
    "injuries": 0.05,
}

# Average points (goals, runs) per team per game
LEAGUE_AVERAGES: Dict[str, float] = {
    "basketball": 110.0,
    "football": 22.0,
    "hockey": 3.0,
    "baseball": 4.5,
    "soccer": 1.3,
}
DEFAULT_LEAGUE_AVERAGE = 100.0

# Home advantage in points
HOME_ADVANTAGE: Dict[str, float] = {
    "basketball": 3.0,
    "football": 2.5,
    "hockey": 0.2,
    "baseball": 0.3,
    "soccer": 0.3,
}
DEFAULT_HOME_ADVANTAGE = 2.0

# League-average baselines for advanced stats. A sport only gets the
# metrics the provider actually reports for it.
LEAGUE_BASELINES: Dict[str, Dict[str, float]] = {
    "basketball": {
        "points_per_game": 114.0,
        "field_goal_pct": 47.0,
        "three_point_pct": 36.0,
        "free_throw_pct": 78.0,
        "assist_to_turnover_ratio": 1.85,
        "offensive_rebounds_per_game": 10.5,
        "turnovers_per_game": 13.8,
        "defensive_rebounds_per_game": 33.5,
        "blocks_per_game": 5.0,
        "steals_per_game": 7.5,
    },
    "football": {"points_per_game": 22.0},
    "hockey": {"points_per_game": 3.0},
    "baseball": {"points_per_game": 4.5},
    "soccer": {"points_per_game": 1.3},
}

# (metric, lower_is_better)
OFFENSE_METRICS: Tuple[Tuple[str, bool], ...] = (
    ("points_per_game", False),
    ("field_goal_pct", False),
    ("three_point_pct", False),
    ("free_throw_pct", False),
    ("assist_to_turnover_ratio", False),
    ("offensive_rebounds_per_game", False),
    ("turnovers_per_game", True),
)
DEFENSE_METRICS: Tuple[Tuple[str, bool], ...] = (
    ("defensive_rebounds_per_game", False),
    ("blocks_per_game", False),
    ("steals_per_game", False),
)
OFFENSE_WEIGHT = 0.6
DEFENSE_WEIGHT = 0.4
RATIO_FLOOR = 0.5
RATIO_CEILING = 1.5

REST_SCORES = {0: 30.0, 1: 30.0, 2: 60.0, 3: 75.0}
WELL_RESTED_SCORE = 85.0
REST_GAP_DAYS = 2
REST_GAP_ADJUSTMENT = 10.0

H2H_MIN_MEETINGS = 2

LOW_CONFIDENCE_BELOW = 5.0
MEDIUM_CONFIDENCE_BELOW = 15.0


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def resolve_factor(
    name: str,
    data: Optional[T],
    compute: Callable[[T], float],
) -> FactorResult:
    """
    Score one factor, or fall back to neutral when its input is absent.

    Args:
        name: Factor name (key of FACTOR_WEIGHTS)
        data: The factor's input; None means missing
        compute: Maps the input to a raw score

    Returns:
        FactorResult clamped to [0, 100], tagged with whether the
        neutral default was used
    """
    if data is None:
        return FactorResult(name, NEUTRAL_SCORE, defaulted=True)
    return FactorResult(name, clamp(compute(data), 0.0, 100.0), defaulted=False)


def confidence_for(differential: float) -> Confidence:
    """Confidence tier for a composite score differential."""
    differential = abs(differential)
    if differential < LOW_CONFIDENCE_BELOW:
        return Confidence.LOW
    if differential < MEDIUM_CONFIDENCE_BELOW:
        return Confidence.MEDIUM
    return Confidence.HIGH


# ==================== RECORD FACTORS ====================

def win_pct_score(stats: TeamStats) -> FactorResult:
    data = stats if stats.games_played > 0 else None
    return resolve_factor("win_pct", data, lambda s: s.wins / s.games_played * 100)


def home_away_score(stats: TeamStats, is_home: bool) -> FactorResult:
    wins, losses = (
        (stats.home_wins, stats.home_losses) if is_home else (stats.away_wins, stats.away_losses)
    )
    data = (wins, losses) if wins + losses > 0 else None
    return resolve_factor("home_away", data, lambda wl: wl[0] / (wl[0] + wl[1]) * 100)


def recent_form_score(stats: TeamStats) -> FactorResult:
    def compute(s: TeamStats) -> float:
        impact = s.streak * 5
        return NEUTRAL_SCORE + (impact if s.streak_type == "W" else -impact)

    return resolve_factor("recent_form", stats, compute)


def scoring_margin_score(stats: TeamStats) -> FactorResult:
    has_data = stats.games_played > 0 and (stats.points_for > 0 or stats.points_against > 0)

    def compute(s: TeamStats) -> float:
        margin = (s.points_for - s.points_against) / s.games_played
        return NEUTRAL_SCORE + margin * 2.5

    return resolve_factor("scoring_margin", stats if has_data else None, compute)


# ==================== ADVANCED STATS ====================

def _normalized_metric(value: float, baseline: float, lower_is_better: bool) -> float:
    """Ratio to the league baseline, clamped to [0.5, 1.5], rescaled to [0, 1]."""
    ratio = baseline / value if lower_is_better else value / baseline
    return clamp(ratio, RATIO_FLOOR, RATIO_CEILING) - RATIO_FLOOR


def _unit_score(
    stats: AdvancedStats,
    baselines: Dict[str, float],
    metrics: Iterable[Tuple[str, bool]],
) -> Optional[float]:
    values = []
    for metric, lower_is_better in metrics:
        value = getattr(stats, metric)
        baseline = baselines.get(metric)
        if value > 0 and baseline:
            values.append(_normalized_metric(value, baseline, lower_is_better))
    if not values:
        return None
    return sum(values) / len(values)


def advanced_stats_score(stats: Optional[AdvancedStats], sport: str) -> FactorResult:
    """Blend of offense and defense efficiency relative to league average."""
    baselines = LEAGUE_BASELINES.get(sport, {})

    def compute(s: AdvancedStats) -> Optional[float]:
        offense = _unit_score(s, baselines, OFFENSE_METRICS)
        defense = _unit_score(s, baselines, DEFENSE_METRICS)
        if offense is None and defense is None:
            return None
        offense = 0.5 if offense is None else offense
        defense = 0.5 if defense is None else defense
        return (offense * OFFENSE_WEIGHT + defense * DEFENSE_WEIGHT) * 100

    score = compute(stats) if stats is not None else None
    return resolve_factor("advanced_stats", score, lambda value: value)


# ==================== CONTEXT FACTORS ====================

def rest_score(own: Optional[ScheduleContext], opponent: Optional[ScheduleContext]) -> FactorResult:
    def compute(ctx: ScheduleContext) -> float:
        if ctx.is_back_to_back:
            base = REST_SCORES[1]
        else:
            base = REST_SCORES.get(ctx.days_since_last_game, WELL_RESTED_SCORE)
        if opponent is not None:
            gap = ctx.days_since_last_game - opponent.days_since_last_game
            if gap >= REST_GAP_DAYS:
                base += REST_GAP_ADJUSTMENT
            elif gap <= -REST_GAP_DAYS:
                base -= REST_GAP_ADJUSTMENT
        return base

    return resolve_factor("rest", own, compute)


def head_to_head_score(h2h: Optional[HeadToHead]) -> FactorResult:
    """Needs at least two recent meetings to mean anything."""
    data = h2h if h2h is not None and h2h.recent_meetings >= H2H_MIN_MEETINGS else None

    def compute(h: HeadToHead) -> float:
        diff = clamp(h.avg_point_diff, -10.0, 10.0)
        return NEUTRAL_SCORE + (h.win_rate - 0.5) * 60 + diff / 10 * 20

    return resolve_factor("head_to_head", data, compute)


def injury_score(own: Optional[InjuryReport], opponent: Optional[InjuryReport]) -> FactorResult:
    data = (own, opponent) if own is not None and opponent is not None else None
    return resolve_factor(
        "injuries",
        data,
        lambda pair: NEUTRAL_SCORE + (pair[0].impact_score - pair[1].impact_score) / 2,
    )


# ==================== COMPOSITE ====================

def team_factors(
    stats: TeamStats,
    is_home: bool,
    sport: str,
    advanced: Optional[AdvancedStats] = None,
    schedule: Optional[ScheduleContext] = None,
    opponent_schedule: Optional[ScheduleContext] = None,
    head_to_head: Optional[HeadToHead] = None,
    injuries: Optional[InjuryReport] = None,
    opponent_injuries: Optional[InjuryReport] = None,
) -> Tuple[FactorResult, ...]:
    """All eight factor scores for one team, in FACTOR_WEIGHTS order."""
    return (
        win_pct_score(stats),
        home_away_score(stats, is_home),
        recent_form_score(stats),
        scoring_margin_score(stats),
        advanced_stats_score(advanced, sport),
        rest_score(schedule, opponent_schedule),
        head_to_head_score(head_to_head),
        injury_score(injuries, opponent_injuries),
    )


def composite_score(factors: Sequence[FactorResult]) -> float:
    """Weighted sum of factor scores (0-100)."""
    return sum(FACTOR_WEIGHTS[f.name] * f.score for f in factors)
