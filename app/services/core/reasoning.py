"""
Human-readable justifications for picks.

Reasons are produced in priority order (injuries, rest, head-to-head,
shooting, record, venue record, streaks), deduplicated and capped at
MAX_REASONS. Every generator always returns at least one reason.
"""
from typing import List, Optional

from app.models import (
    AdvancedStats,
    GameProjection,
    HeadToHead,
    InjuryReport,
    ScheduleContext,
    TeamStats,
)

MAX_REASONS = 5
MAX_COVER_REASONS = 3

INJURY_GAP_THRESHOLD = 15
REST_GAP_THRESHOLD = 2
H2H_MIN_MEETINGS = 3
H2H_DOMINANCE_RATE = 0.7
SHOOTING_EDGE_THRESHOLD = 3.0
VENUE_MIN_GAMES = 5
STREAK_THRESHOLD = 3

EVENLY_MATCHED_WIN_PCT = 0.1
LOW_SCORING_TOTAL = 2.5


def _dedupe(reasons: List[str], limit: int) -> List[str]:
    seen = set()
    unique = []
    for reason in reasons:
        if reason not in seen:
            seen.add(reason)
            unique.append(reason)
    return unique[:limit]


def _injury_reason(
    loser: TeamStats,
    loser_injuries: Optional[InjuryReport],
    winner_injuries: Optional[InjuryReport],
) -> Optional[str]:
    if loser_injuries is None or not loser_injuries.players_out:
        return None
    winner_health = winner_injuries.impact_score if winner_injuries is not None else 100
    if winner_health - loser_injuries.impact_score < INJURY_GAP_THRESHOLD:
        return None
    names = ", ".join(p.name for p in loser_injuries.players_out[:2])
    extra = len(loser_injuries.players_out) - 2
    if extra > 0:
        names += f" +{extra} more"
    return f"{loser.team_name} without {names}"


def _rest_reason(
    winner: TeamStats,
    loser: TeamStats,
    winner_rest: Optional[ScheduleContext],
    loser_rest: Optional[ScheduleContext],
) -> Optional[str]:
    if winner_rest is None or loser_rest is None:
        return None
    gap = winner_rest.days_since_last_game - loser_rest.days_since_last_game
    if gap >= REST_GAP_THRESHOLD:
        return (
            f"{winner.team_name} rested ({winner_rest.days_since_last_game} days "
            f"vs {loser_rest.days_since_last_game})"
        )
    if loser_rest.is_back_to_back and not winner_rest.is_back_to_back:
        return f"{loser.team_name} on a back-to-back"
    return None


def _head_to_head_reason(winner: TeamStats, h2h: Optional[HeadToHead]) -> Optional[str]:
    """h2h is from the winner's side."""
    if h2h is None or h2h.recent_meetings < H2H_MIN_MEETINGS:
        return None
    if h2h.wins / h2h.recent_meetings < H2H_DOMINANCE_RATE:
        return None
    return f"{winner.team_name} won {h2h.wins} of last {h2h.recent_meetings} meetings"


def _shooting_reason(
    winner: TeamStats,
    winner_adv: Optional[AdvancedStats],
    loser_adv: Optional[AdvancedStats],
) -> Optional[str]:
    if winner_adv is None or loser_adv is None:
        return None
    if winner_adv.field_goal_pct > 0 and loser_adv.field_goal_pct > 0:
        if winner_adv.field_goal_pct - loser_adv.field_goal_pct >= SHOOTING_EDGE_THRESHOLD:
            return (
                f"{winner.team_name} shooting {winner_adv.field_goal_pct:.1f}% "
                f"vs {loser_adv.field_goal_pct:.1f}%"
            )
    if winner_adv.three_point_pct > 0 and loser_adv.three_point_pct > 0:
        if winner_adv.three_point_pct - loser_adv.three_point_pct >= SHOOTING_EDGE_THRESHOLD:
            return (
                f"{winner.team_name} hitting {winner_adv.three_point_pct:.1f}% from three "
                f"vs {loser_adv.three_point_pct:.1f}%"
            )
    return None


def _record(stats: TeamStats) -> str:
    return f"{stats.team_name} {stats.wins}-{stats.losses} ({stats.win_pct * 100:.0f}%)"


def generate_reasoning(
    home: TeamStats,
    away: TeamStats,
    projection: GameProjection,
    differential: float,
    home_advanced: Optional[AdvancedStats] = None,
    away_advanced: Optional[AdvancedStats] = None,
    home_rest: Optional[ScheduleContext] = None,
    away_rest: Optional[ScheduleContext] = None,
    head_to_head: Optional[HeadToHead] = None,
    home_injuries: Optional[InjuryReport] = None,
    away_injuries: Optional[InjuryReport] = None,
) -> List[str]:
    """
    Reasons backing the projected winner.

    Args:
        home, away: Team records
        projection: Score projection (decides who the winner is)
        differential: Composite score gap, used by the fallback sentence
        head_to_head: Recent meetings from the home team's side

    Returns:
        Up to five distinct reasons, most important first
    """
    home_wins = projection.projected_winner == "home"
    winner, loser = (home, away) if home_wins else (away, home)
    winner_adv, loser_adv = (home_advanced, away_advanced) if home_wins else (away_advanced, home_advanced)
    winner_rest, loser_rest = (home_rest, away_rest) if home_wins else (away_rest, home_rest)
    winner_inj, loser_inj = (home_injuries, away_injuries) if home_wins else (away_injuries, home_injuries)
    h2h = head_to_head if home_wins or head_to_head is None else head_to_head.mirrored()

    candidates = [
        _injury_reason(loser, loser_inj, winner_inj),
        _rest_reason(winner, loser, winner_rest, loser_rest),
        _head_to_head_reason(winner, h2h),
        _shooting_reason(winner, winner_adv, loser_adv),
    ]

    # Overall record
    if winner.games_played > 0 and winner.win_pct > loser.win_pct:
        candidates.append(_record(winner))
        if loser.games_played > 0:
            candidates.append(_record(loser))

    # Venue record
    if home_wins:
        if home.home_wins + home.home_losses >= VENUE_MIN_GAMES and home.home_wins > home.home_losses:
            candidates.append(f"{home.team_name} {home.home_wins}-{home.home_losses} at home")
    elif away.away_wins + away.away_losses >= VENUE_MIN_GAMES and away.away_wins > away.away_losses:
        candidates.append(f"{away.team_name} {away.away_wins}-{away.away_losses} on road")

    # Streaks
    if winner.streak >= STREAK_THRESHOLD and winner.streak_type == "W":
        candidates.append(f"{winner.team_name} on {winner.streak}-game win streak")
    if loser.streak >= STREAK_THRESHOLD and loser.streak_type == "L":
        candidates.append(f"{loser.team_name} on {loser.streak}-game losing streak")

    reasons = _dedupe([c for c in candidates if c], MAX_REASONS)
    if not reasons:
        reasons = [f"Analysis score: {winner.team_name} +{abs(differential):.1f}"]
    return reasons


def generate_draw_reasoning(
    home: TeamStats,
    away: TeamStats,
    projection: GameProjection,
    head_to_head: Optional[HeadToHead] = None,
) -> List[str]:
    """Reasons backing a soccer draw pick."""
    reasons = []
    if abs(home.win_pct - away.win_pct) < EVENLY_MATCHED_WIN_PCT:
        reasons.append(f"Evenly matched: {home.team_name} {home.record} vs {away.team_name} {away.record}")
    if head_to_head is not None and head_to_head.draws > 0:
        reasons.append(f"{head_to_head.draws} draws in last {head_to_head.recent_meetings} meetings")
    if projection.total_points < LOW_SCORING_TOTAL:
        reasons.append(f"Low-scoring projection ({projection.total_points:.1f} goals)")

    reasons = _dedupe(reasons, MAX_REASONS)
    if not reasons:
        reasons = ["Projected margin under half a goal"]
    return reasons


def generate_cover_reasoning(cover: TeamStats, opponent: TeamStats, cover_is_home: bool) -> List[str]:
    """Reasons backing the side picked to cover the spread."""
    reasons = []
    if cover.games_played > 0:
        reasons.append(f"{cover.team_name} {cover.wins}-{cover.losses} overall")

    if cover_is_home:
        if cover.home_wins + cover.home_losses >= 3:
            reasons.append(f"{cover.team_name} {cover.home_wins}-{cover.home_losses} at home")
    else:
        if cover.away_wins + cover.away_losses >= 3 and cover.away_wins > 0:
            reasons.append(f"{cover.team_name} {cover.away_wins}-{cover.away_losses} on road")
        # Opponent is at home here; look at how it handles its own building
        if opponent.home_wins + opponent.home_losses >= 3 and opponent.home_losses > opponent.home_wins * 0.5:
            reasons.append(f"{opponent.team_name} {opponent.home_wins}-{opponent.home_losses} at home")

    if cover.streak >= 2 and cover.streak_type == "W":
        reasons.append(f"{cover.team_name} on {cover.streak}-game win streak")
    if opponent.streak >= 2 and opponent.streak_type == "L":
        reasons.append(f"{opponent.team_name} on {opponent.streak}-game skid")

    reasons = _dedupe(reasons, MAX_COVER_REASONS)
    if not reasons:
        reasons = ["Value on the points"]
    return reasons
