"""
Parlay recommendation service.

Builds the day's suggested parlays from analyzed games. These are
independent suggestions (legs may repeat across recommendations); the
strategy allocator builds its own non-overlapping parlays.

Recommendation tiers:
- Lock of the Day: 2-3 high-confidence legs
- Best Value: 3-4 medium/high legs with the biggest edge
- Sport Specials: one per sport with 3+ qualifying games (15+ game slates)
- Longshot: 5-6 legs across sports (5+ game slates)
- Mega Parlay: 12 legs (12+ game slates)
"""
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.logging import get_logger
from app.models import Confidence, Game, ParlayRecommendation, PickAnalysis
from app.services.core.projection_service import to_pick

logger = get_logger(__name__)

AnalyzedGame = Tuple[Game, PickAnalysis]

SPORT_SPECIALS_MIN_GAMES = 15
LONGSHOT_MIN_GAMES = 5
MEGA_MIN_GAMES = 12

LONGSHOT_LEGS = 6
LONGSHOT_MIN_LEGS = 5
MEGA_LEGS = 12

SPORT_INFO: Dict[str, Tuple[str, str]] = {
    "basketball": ("NBA", "\U0001F3C0"),
    "football": ("NFL", "\U0001F3C8"),
    "hockey": ("NHL", "\U0001F3D2"),
    "baseball": ("MLB", "⚾"),
    "soccer": ("Soccer", "⚽"),
}
DEFAULT_SPORT_ICON = "\U0001F3AF"


def _analyzed(games: Sequence[Game], analyses: Dict[str, PickAnalysis]) -> List[AnalyzedGame]:
    return [(g, analyses[g.id]) for g in games if g.id in analyses]


def _by_edge(games: Sequence[AnalyzedGame], include_low: bool = False) -> List[AnalyzedGame]:
    """Biggest differential first; low confidence dropped unless asked for."""
    qualified = [
        ag for ag in games
        if include_low or ag[1].confidence is not Confidence.LOW
    ]
    return sorted(qualified, key=lambda ag: ag[1].differential, reverse=True)


def _spread_sports(candidates: Sequence[AnalyzedGame], legs: int) -> List[AnalyzedGame]:
    """One game per sport first, then fill by edge."""
    selected: List[AnalyzedGame] = []
    used_sports = set()
    for ag in candidates:
        if len(selected) >= legs:
            break
        if ag[0].sport not in used_sports:
            selected.append(ag)
            used_sports.add(ag[0].sport)
    for ag in candidates:
        if len(selected) >= legs:
            break
        if ag not in selected:
            selected.append(ag)
    return selected


def _recommendation(
    id: str,
    category: str,
    title: str,
    subtitle: str,
    icon: str,
    selected: Sequence[AnalyzedGame],
) -> ParlayRecommendation:
    picks = tuple(to_pick(game, analysis) for game, analysis in selected)
    return ParlayRecommendation(
        id=id,
        category=category,
        title=title,
        subtitle=f"{len(picks)} legs • {subtitle}",
        picks=picks,
        icon=icon,
    )


def build_lock_parlay(games: Sequence[AnalyzedGame]) -> Optional[ParlayRecommendation]:
    high = sorted(
        (ag for ag in games if ag[1].confidence is Confidence.HIGH),
        key=lambda ag: ag[1].differential,
        reverse=True,
    )
    if len(high) < 2:
        return None
    return _recommendation("lock", "lock", "Lock of the Day", "High confidence", "\U0001F512", high[:3])


def build_value_parlay(games: Sequence[AnalyzedGame]) -> Optional[ParlayRecommendation]:
    qualified = _by_edge(games)
    if len(qualified) < 3:
        return None
    return _recommendation("value", "value", "Best Value", "Strong edge", "\U0001F48E", qualified[:4])


def build_sport_parlays(games: Sequence[AnalyzedGame]) -> List[ParlayRecommendation]:
    by_sport: Dict[str, List[AnalyzedGame]] = {}
    for ag in games:
        by_sport.setdefault(ag[0].sport, []).append(ag)

    parlays = []
    for sport, sport_games in by_sport.items():
        qualified = _by_edge(sport_games)
        if len(qualified) < 3:
            continue
        name, icon = SPORT_INFO.get(sport, (sport, DEFAULT_SPORT_ICON))
        parlays.append(_recommendation(
            f"sport-{sport}", "sport", f"{name} Special", f"All {name.lower()}", icon, qualified[:5],
        ))
    return parlays


def build_longshot_parlay(games: Sequence[AnalyzedGame]) -> Optional[ParlayRecommendation]:
    qualified = _by_edge(games)
    if len(qualified) < LONGSHOT_MIN_LEGS:
        return None
    selected = _spread_sports(qualified, LONGSHOT_LEGS)
    return _recommendation("longshot", "longshot", "Longshot", "High risk/reward", "\U0001F3B0", selected)


def build_mega_parlay(games: Sequence[AnalyzedGame]) -> Optional[ParlayRecommendation]:
    qualified = _by_edge(games)
    if len(qualified) < MEGA_LEGS:
        return None
    selected = _spread_sports(qualified, MEGA_LEGS)
    return _recommendation("mega", "mega", "Mega Parlay", "Jackpot mode", "\U0001F680", selected)


def generate_parlays(games: Sequence[Game], analyses: Dict[str, PickAnalysis]) -> List[ParlayRecommendation]:
    """
    Every recommendation the slate supports.

    Args:
        games: The day's games
        analyses: PickAnalysis per game id (unanalyzed games are skipped)

    Returns:
        Recommendations in display order; empty with fewer than 2
        analyzed games
    """
    analyzed = _analyzed(games, analyses)
    if len(analyzed) < 2:
        return []

    parlays: List[ParlayRecommendation] = []
    for builder in (build_lock_parlay, build_value_parlay):
        parlay = builder(analyzed)
        if parlay:
            parlays.append(parlay)

    if len(analyzed) >= SPORT_SPECIALS_MIN_GAMES:
        parlays.extend(build_sport_parlays(analyzed))
    if len(analyzed) >= LONGSHOT_MIN_GAMES:
        parlay = build_longshot_parlay(analyzed)
        if parlay:
            parlays.append(parlay)
    if len(analyzed) >= MEGA_MIN_GAMES:
        parlay = build_mega_parlay(analyzed)
        if parlay:
            parlays.append(parlay)

    logger.info(f"Generated {len(parlays)} parlay recommendations from {len(analyzed)} games")
    return parlays


def build_custom_parlay(
    games: Sequence[Game],
    analyses: Dict[str, PickAnalysis],
    num_legs: int,
    sport_filter: Optional[str] = None,
) -> Optional[ParlayRecommendation]:
    """
    A parlay with exactly num_legs legs.

    Medium/high confidence games are preferred, spread across sports; low
    confidence games are only used when there are not enough of those.

    Args:
        sport_filter: 'all', None, or a sport slug such as 'basketball'

    Returns:
        The parlay, or None if the slate has fewer than num_legs analyzed games
    """
    if sport_filter and sport_filter != "all":
        games = [g for g in games if g.sport == sport_filter]
    analyzed = _analyzed(games, analyses)

    qualified = _by_edge(analyzed)
    if len(qualified) >= num_legs:
        selected = _spread_sports(qualified, num_legs)
    else:
        everything = _by_edge(analyzed, include_low=True)
        if len(everything) < num_legs:
            return None
        selected = everything[:num_legs]

    return _recommendation(
        f"custom-{num_legs}", "custom", f"Custom {num_legs}-Leg", "Your pick", "✨", selected,
    )
