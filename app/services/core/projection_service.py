"""
Projection engine: turns one game's raw data into a PickAnalysis.

Two layers:
- Pure functions (project_points, project_game, select_pick_type,
  optimize_spread, build_analysis) that are deterministic given a Game
  and its GameInputs.
- ProjectionService, which gathers GameInputs from a data provider in
  fixed-size concurrent batches and degrades any failed fetch to None.

The data provider is anything with these coroutine methods (the
ESPNApiService in production, a fake in tests):
    get_team_stats(sport, league, team_id) -> Optional[TeamStats]
    get_advanced_stats(sport, league, team_id) -> Optional[AdvancedStats]
    get_team_schedule(sport, league, team_id) -> Optional[List[ScheduleGame]]
    get_league_injuries(sport, league) -> Optional[Dict[str, InjuryReport]]
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from app.core.config import settings
from app.core.logging import get_logger
from app.models import (
    AdvancedStats,
    Confidence,
    Game,
    GameProjection,
    HeadToHead,
    InjuryReport,
    Pick,
    PickAnalysis,
    PickType,
    ScheduleContext,
    TeamStats,
)
from app.services.core.espn_service import (
    calculate_head_to_head,
    calculate_schedule_context,
    create_basic_stats,
    league_slug,
)
from app.services.core.factors import (
    DEFAULT_HOME_ADVANTAGE,
    DEFAULT_LEAGUE_AVERAGE,
    HOME_ADVANTAGE,
    LEAGUE_AVERAGES,
    composite_score,
    confidence_for,
    team_factors,
)
from app.services.core.odds import round1
from app.services.core.reasoning import (
    generate_cover_reasoning,
    generate_draw_reasoning,
    generate_reasoning,
)

logger = get_logger(__name__)

DRAW_MARGIN = 0.5

# One "unit" of cover edge per sport for spread confidence
SPREAD_UNITS: Dict[str, float] = {
    "basketball": 3.0,
    "football": 3.0,
    "hockey": 0.5,
    "baseball": 0.5,
}
DEFAULT_SPREAD_UNIT = 1.0


class GameAnalysisError(ValueError):
    """A game lacks the inputs required to analyze it at all."""

    def __init__(self, game_id: str, reason: str):
        self.game_id = game_id
        self.reason = reason
        super().__init__(f"Cannot analyze game {game_id}: {reason}")


@dataclass(frozen=True)
class GameInputs:
    """Raw inputs for one game. Everything but the two TeamStats is optional."""
    home_stats: TeamStats
    away_stats: TeamStats
    home_advanced: Optional[AdvancedStats] = None
    away_advanced: Optional[AdvancedStats] = None
    home_schedule: Optional[ScheduleContext] = None
    away_schedule: Optional[ScheduleContext] = None
    head_to_head: Optional[HeadToHead] = None  # from the home team's side
    home_injuries: Optional[InjuryReport] = None
    away_injuries: Optional[InjuryReport] = None


@dataclass
class BatchAnalysis:
    """Result of analyzing a slate: analyses and failures keyed by game id."""
    analyses: Dict[str, PickAnalysis] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)


# ==================== SCORE PROJECTION ====================

def project_points(team: TeamStats, opponent: TeamStats, is_home: bool, sport: str) -> float:
    """
    Projected points for one team in this matchup.

    With scoring history on both sides the team's scoring average is
    blended with the opponent's allowed average, then adjusted for venue,
    streak and win percentage. Otherwise the league average is scaled by
    win percentage.
    """
    league_avg = LEAGUE_AVERAGES.get(sport, DEFAULT_LEAGUE_AVERAGE)
    home_bonus = HOME_ADVANTAGE.get(sport, DEFAULT_HOME_ADVANTAGE)

    if (
        team.points_for > 0 and team.games_played > 0
        and opponent.points_against > 0 and opponent.games_played > 0
    ):
        team_avg_for = team.points_for / team.games_played
        opp_avg_against = opponent.points_against / opponent.games_played
        projected = (team_avg_for + opp_avg_against) / 2

        projected += home_bonus if is_home else -home_bonus * 0.5
        projected += team.streak * 0.5 if team.streak_type == "W" else -team.streak * 0.5
        projected += (team.win_pct - 0.5) * league_avg * 0.1
        return max(0.0, round1(projected))

    base = league_avg * (0.85 + team.win_pct * 0.3)
    if is_home:
        base += home_bonus
    return round1(base)


def project_game(
    home: TeamStats,
    away: TeamStats,
    home_composite: float,
    away_composite: float,
    sport: str,
) -> GameProjection:
    """Score line for the game; confidence comes from the composite gap."""
    home_points = project_points(home, away, True, sport)
    away_points = project_points(away, home, False, sport)
    return GameProjection(
        home_points=home_points,
        away_points=away_points,
        total_points=round1(home_points + away_points),
        projected_winner="home" if home_points >= away_points else "away",
        projected_margin=round1(home_points - away_points),
        confidence=confidence_for(home_composite - away_composite),
    )


def select_pick_type(projection: GameProjection, sport: str) -> PickType:
    """Side favored by the projection; near-even soccer games become draws."""
    if sport == "soccer" and abs(projection.projected_margin) < DRAW_MARGIN:
        return PickType.DRAW
    return PickType.HOME if projection.projected_winner == "home" else PickType.AWAY


def optimize_spread(
    game: Game,
    projection: GameProjection,
    home: TeamStats,
    away: TeamStats,
) -> Optional[Tuple[str, Confidence, List[str]]]:
    """
    Independent spread pick.

    The home side covers when projected margin + spread > 0. Confidence is
    the size of that edge in sport units: under 1 unit low, under 2 medium.

    Returns:
        (side, confidence, reasons), or None for soccer or without a line
    """
    if game.is_soccer or game.odds is None or game.odds.spread is None:
        return None

    edge = projection.projected_margin + game.odds.spread
    side = "home" if edge > 0 else "away"
    units = abs(edge) / SPREAD_UNITS.get(game.sport, DEFAULT_SPREAD_UNIT)
    if units < 1:
        confidence = Confidence.LOW
    elif units < 2:
        confidence = Confidence.MEDIUM
    else:
        confidence = Confidence.HIGH

    cover, opponent = (home, away) if side == "home" else (away, home)
    return side, confidence, generate_cover_reasoning(cover, opponent, side == "home")


def build_analysis(game: Game, inputs: GameInputs) -> PickAnalysis:
    """Analyze one game from already-gathered inputs. Pure and deterministic."""
    home_factors = team_factors(
        inputs.home_stats,
        is_home=True,
        sport=game.sport,
        advanced=inputs.home_advanced,
        schedule=inputs.home_schedule,
        opponent_schedule=inputs.away_schedule,
        head_to_head=inputs.head_to_head,
        injuries=inputs.home_injuries,
        opponent_injuries=inputs.away_injuries,
    )
    away_factors = team_factors(
        inputs.away_stats,
        is_home=False,
        sport=game.sport,
        advanced=inputs.away_advanced,
        schedule=inputs.away_schedule,
        opponent_schedule=inputs.home_schedule,
        head_to_head=inputs.head_to_head.mirrored() if inputs.head_to_head else None,
        injuries=inputs.away_injuries,
        opponent_injuries=inputs.home_injuries,
    )
    home_score = composite_score(home_factors)
    away_score = composite_score(away_factors)
    differential = abs(home_score - away_score)

    projection = project_game(inputs.home_stats, inputs.away_stats, home_score, away_score, game.sport)
    pick_type = select_pick_type(projection, game.sport)

    if pick_type is PickType.DRAW:
        reasoning = generate_draw_reasoning(
            inputs.home_stats, inputs.away_stats, projection, inputs.head_to_head,
        )
    else:
        reasoning = generate_reasoning(
            inputs.home_stats,
            inputs.away_stats,
            projection,
            differential,
            home_advanced=inputs.home_advanced,
            away_advanced=inputs.away_advanced,
            home_rest=inputs.home_schedule,
            away_rest=inputs.away_schedule,
            head_to_head=inputs.head_to_head,
            home_injuries=inputs.home_injuries,
            away_injuries=inputs.away_injuries,
        )

    spread = optimize_spread(game, projection, inputs.home_stats, inputs.away_stats)
    spread_pick, spread_confidence, spread_reasoning = spread if spread else (None, None, [])

    return PickAnalysis(
        pick_type=pick_type,
        confidence=projection.confidence,
        reasoning=tuple(reasoning),
        home_score=home_score,
        away_score=away_score,
        differential=differential,
        projection=projection,
        spread_pick=spread_pick,
        spread_confidence=spread_confidence,
        spread_reasoning=tuple(spread_reasoning),
        home_factors=home_factors,
        away_factors=away_factors,
    )


# ==================== PRESENTATION ====================

def analyzed_pick_label(game: Game, analysis: PickAnalysis) -> str:
    """'Celtics by 4.5', or 'Draw'."""
    if analysis.pick_type is PickType.DRAW:
        return "Draw"
    p = analysis.projection
    winner = game.home_team if p.projected_winner == "home" else game.away_team
    return f"{winner} by {abs(p.projected_margin):g}"


def format_projected_score(game: Game, analysis: PickAnalysis) -> str:
    """'Lakers 108.5 - Celtics 112', away team first."""
    p = analysis.projection
    return f"{game.away_team} {p.away_points:g} - {game.home_team} {p.home_points:g}"


def to_pick(game: Game, analysis: PickAnalysis) -> Pick:
    return Pick(game=game, pick_type=analysis.pick_type, label=analyzed_pick_label(game, analysis), analysis=analysis)


# ==================== DATA GATHERING ====================

class ProjectionService:
    """
    Fetches inputs for games and runs the projection engine over them.

    Usage:
        service = ProjectionService(espn_service)
        result = await service.analyze_games(games)
        result.analyses["401585123"].pick_type
    """

    def __init__(self, provider: Any, batch_size: Optional[int] = None):
        """
        Args:
            provider: Sports-data provider (see module docstring)
            batch_size: Games analyzed concurrently per batch
                        (default: settings.ANALYSIS_BATCH_SIZE)
        """
        self.provider = provider
        self.batch_size = batch_size or settings.ANALYSIS_BATCH_SIZE

    async def _guard(self, what: str, game_id: str, call: Optional[Awaitable[Any]]) -> Any:
        """Await a provider call; any failure degrades to None."""
        if call is None:
            return None
        try:
            return await call
        except Exception as e:
            logger.warning(f"Fetching {what} failed for game {game_id}, using neutral default: {e}")
            return None

    async def gather_inputs(self, game: Game) -> GameInputs:
        """Fetch every input for a game concurrently."""
        if not game.home_team or not game.away_team:
            raise GameAnalysisError(game.id, "missing team identity")
        if game.start_time is None:
            raise GameAnalysisError(game.id, "missing start time")

        sport, league = game.sport, league_slug(game)
        home_id, away_id = game.home_team_id, game.away_team_id
        p = self.provider

        def per_team(method, team_id):
            return method(sport, league, team_id) if team_id else None

        (
            home_stats, away_stats,
            home_adv, away_adv,
            home_sched, away_sched,
            injuries,
        ) = await asyncio.gather(
            self._guard("team stats", game.id, per_team(p.get_team_stats, home_id)),
            self._guard("team stats", game.id, per_team(p.get_team_stats, away_id)),
            self._guard("advanced stats", game.id, per_team(p.get_advanced_stats, home_id)),
            self._guard("advanced stats", game.id, per_team(p.get_advanced_stats, away_id)),
            self._guard("schedule", game.id, per_team(p.get_team_schedule, home_id)),
            self._guard("schedule", game.id, per_team(p.get_team_schedule, away_id)),
            self._guard("injuries", game.id, p.get_league_injuries(sport, league)),
        )

        home_stats = home_stats or create_basic_stats(game.home_team, home_id or "home", game.home_record)
        away_stats = away_stats or create_basic_stats(game.away_team, away_id or "away", game.away_record)

        head_to_head = None
        if home_sched is not None and away_id:
            head_to_head = calculate_head_to_head(home_sched, away_id)
        elif away_sched is not None and home_id:
            head_to_head = calculate_head_to_head(away_sched, home_id).mirrored()

        home_injuries = away_injuries = None
        if injuries is not None:
            home_injuries = injuries.get(str(home_id), InjuryReport())
            away_injuries = injuries.get(str(away_id), InjuryReport())

        return GameInputs(
            home_stats=home_stats,
            away_stats=away_stats,
            home_advanced=home_adv,
            away_advanced=away_adv,
            home_schedule=calculate_schedule_context(home_sched, game.start_time) if home_sched is not None else None,
            away_schedule=calculate_schedule_context(away_sched, game.start_time) if away_sched is not None else None,
            head_to_head=head_to_head,
            home_injuries=home_injuries,
            away_injuries=away_injuries,
        )

    async def analyze_game(self, game: Game) -> PickAnalysis:
        """
        Analyze a single game.

        Raises:
            GameAnalysisError: If the game lacks team identity or start time
        """
        inputs = await self.gather_inputs(game)
        return build_analysis(game, inputs)

    async def analyze_games(self, games: List[Game]) -> BatchAnalysis:
        """
        Analyze a slate in sequential batches of ``batch_size`` games.

        A failing game is recorded in ``failures`` and never affects the
        rest of its batch.
        """
        result = BatchAnalysis()
        for start in range(0, len(games), self.batch_size):
            batch = games[start:start + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.analyze_game(game) for game in batch),
                return_exceptions=True,
            )
            for game, outcome in zip(batch, outcomes):
                if isinstance(outcome, PickAnalysis):
                    result.analyses[game.id] = outcome
                elif isinstance(outcome, Exception):
                    logger.error(f"Analysis failed for game {game.id}: {outcome}")
                    result.failures[game.id] = str(outcome)
                else:
                    raise outcome

        logger.info(
            f"Analyzed {len(result.analyses)} games ({len(result.failures)} failed)",
            extra={"analyzed": len(result.analyses), "failed": len(result.failures)},
        )
        return result
