"""
ESPN API Service: the read-only sports-data collaborator.

Provides everything the projection engine consumes:
- League scoreboards (games, team records, odds snapshot)
- Team records (overall/home/road, points for/against, streak)
- Team season statistics (advanced efficiency metrics)
- Team schedules (rest days and head-to-head history)
- League-wide injury reports

ESPN API Endpoints:
- Base URL: https://site.api.espn.com/apis/site/v2/sports/
- Documentation: Unofficial, community-maintained

Every public fetch method returns None (or an empty list for
scoreboards) on failure and logs a warning; callers treat that as
"data absent" and fall back to neutral defaults.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import asyncio

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from app.core.cache import ResponseCache
from app.core.config import settings
from app.core.logging import get_logger
from app.models import (
    AdvancedStats,
    Game,
    GameOdds,
    HeadToHead,
    InjuredPlayer,
    InjuryReport,
    ScheduleContext,
    ScheduleGame,
    TeamStats,
)
from app.services.core.circuit_breaker import espn_api_breaker, CircuitBreakerError

logger = get_logger(__name__)

ESPN_BASE_URL = "https://site.api.espn.com/apis/site/v2/sports"

# Filter key -> ESPN sport/league path and display name
LEAGUES: Dict[str, Dict[str, str]] = {
    "nfl": {"sport": "football", "league": "nfl", "name": "NFL"},
    "nba": {"sport": "basketball", "league": "nba", "name": "NBA"},
    "ncaam": {"sport": "basketball", "league": "mens-college-basketball", "name": "NCAAM"},
    "mlb": {"sport": "baseball", "league": "mlb", "name": "MLB"},
    "nhl": {"sport": "hockey", "league": "nhl", "name": "NHL"},
    "soccer": {"sport": "soccer", "league": "eng.1", "name": "Premier League"},
}

H2H_RECENT_WINDOW = 5
DEFAULT_REST_DAYS = 7

# Injury impact: first five listed players treated as starters
STARTER_SLOTS = 5
STARTER_OUT_PENALTY = 15
ROLE_PLAYER_OUT_PENALTY = 5
QUESTIONABLE_PENALTY = 3


class ESPNApiService:
    """
    Async client for the ESPN site API with caching, retries and a
    circuit breaker.

    Usage:
        service = ESPNApiService(cache=ResponseCache())
        games = await service.get_games("nba")
        stats = await service.get_team_stats("basketball", "nba", "13")
        await service.close()
    """

    def __init__(
        self,
        cache: Optional[ResponseCache] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            cache: Response cache collaborator (a private one is created if None)
            client: Preconfigured HTTP client (tests pass one with a mock transport)
            timeout: Request timeout in seconds (default: settings.ESPN_TIMEOUT)
        """
        self.cache = cache or ResponseCache(default_ttl=settings.ESPN_CACHE_TTL)
        self._client = client
        self._timeout = timeout or settings.ESPN_TIMEOUT

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _request(self, url: str) -> Dict[str, Any]:
        """GET a URL through the circuit breaker; retried on transport errors."""
        client = await self._get_client()
        with espn_api_breaker.calling():
            response = await client.get(url)
            response.raise_for_status()
        return response.json()

    async def _fetch(
        self,
        endpoint: str,
        url: str,
        params: Dict[str, Any],
        ttl: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch JSON with caching.

        Args:
            endpoint: Cache namespace ('scoreboard', 'team', ...)
            url: Full API URL
            params: Values identifying the request within the namespace
            ttl: Cache TTL override in seconds

        Returns:
            Parsed JSON, or None if the request failed
        """
        cached = self.cache.get(endpoint, params)
        if cached is not None:
            return cached

        try:
            data = await self._request(url)
        except CircuitBreakerError:
            logger.warning(f"ESPN API circuit breaker is OPEN - skipping {url}")
            return None
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"ESPN request failed for {url}: {e}")
            return None

        self.cache.set(endpoint, params, data, ttl)
        return data

    # ==================== SCOREBOARD ====================

    async def get_games(self, sport_filter: str = "all", date: Optional[str] = None) -> List[Game]:
        """
        Get games for one league or for every league.

        Args:
            sport_filter: 'all' or a LEAGUES key
            date: Date in YYYYMMDD format (default: the scoreboard's current slate)

        Returns:
            Games sorted by start time
        """
        if sport_filter == "all":
            results = await asyncio.gather(
                *(self.get_league_games(key, date) for key in LEAGUES)
            )
            games = [game for league_games in results for game in league_games]
            return sorted(games, key=lambda g: g.start_time or datetime.max.replace(tzinfo=timezone.utc))

        if sport_filter not in LEAGUES:
            logger.warning(f"Unsupported sport filter: {sport_filter}")
            return []
        return await self.get_league_games(sport_filter, date)

    async def get_league_games(self, league_key: str, date: Optional[str] = None) -> List[Game]:
        """Get scoreboard games for a single league."""
        config = LEAGUES[league_key]
        url = f"{ESPN_BASE_URL}/{config['sport']}/{config['league']}/scoreboard"
        if date:
            url += f"?dates={date}"

        data = await self._fetch("scoreboard", url, {"league": league_key, "date": date or ""})
        if data is None:
            return []

        games = [
            parse_scoreboard_event(event, config["sport"], config["league"], config["name"])
            for event in data.get("events", [])
        ]

        if not date:
            horizon = datetime.now(timezone.utc) + timedelta(days=settings.SCOREBOARD_LOOKAHEAD_DAYS)
            games = [g for g in games if g.start_time is None or g.start_time <= horizon]

        logger.info(f"Fetched {len(games)} {config['name']} games")
        return games

    # ==================== TEAM DATA ====================

    async def get_team_stats(self, sport: str, league: str, team_id: str) -> Optional[TeamStats]:
        """Get record, scoring totals and streak for a team."""
        url = f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}"
        data = await self._fetch("team", url, {"sport": sport, "league": league, "team": team_id})
        if not data or not data.get("team"):
            return None
        return parse_team_stats(team_id, data["team"])

    async def get_advanced_stats(self, sport: str, league: str, team_id: str) -> Optional[AdvancedStats]:
        """Get season efficiency statistics for a team."""
        url = f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}/statistics"
        params = {"sport": sport, "league": league, "team": team_id}
        data = await self._fetch("advanced", url, params, ttl=settings.ADVANCED_STATS_CACHE_TTL)
        if data is None:
            return None

        advanced = parse_advanced_stats(data)
        if advanced.points_per_game <= 0:
            # Nothing usable; don't keep an empty payload around for 6 hours
            self.cache.discard("advanced", params)
            return None
        return advanced

    async def get_team_schedule(self, sport: str, league: str, team_id: str) -> Optional[List[ScheduleGame]]:
        """Get a team's season schedule (completed and upcoming games)."""
        url = f"{ESPN_BASE_URL}/{sport}/{league}/teams/{team_id}/schedule"
        data = await self._fetch(
            "schedule", url, {"sport": sport, "league": league, "team": team_id},
            ttl=settings.SCHEDULE_CACHE_TTL,
        )
        if data is None:
            return None
        return parse_schedule(team_id, data)

    async def get_league_injuries(self, sport: str, league: str) -> Optional[Dict[str, InjuryReport]]:
        """Get injury reports for every team in a league, keyed by team id."""
        url = f"{ESPN_BASE_URL}/{sport}/{league}/injuries"
        data = await self._fetch(
            "injuries", url, {"sport": sport, "league": league},
            ttl=settings.INJURIES_CACHE_TTL,
        )
        if data is None:
            return None
        return parse_injuries(data)


# ==================== PARSERS ====================

def parse_record(record: Optional[str]) -> tuple:
    """Parse '10-5' or '10-5-2' into (wins, losses)."""
    if not record:
        return 0, 0
    parts = []
    for chunk in record.split("-")[:2]:
        try:
            parts.append(int(chunk.strip()))
        except ValueError:
            parts.append(0)
    while len(parts) < 2:
        parts.append(0)
    return parts[0], parts[1]


def _parse_espn_date(date_str: Optional[str]) -> Optional[datetime]:
    """Parse an ESPN ISO date ('2025-01-28T19:00Z') to an aware UTC datetime."""
    if not date_str:
        return None
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        return None


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _abbreviation(competition: Dict[str, Any], side: str) -> Optional[str]:
    for competitor in competition.get("competitors") or []:
        if competitor.get("homeAway") == side:
            abbr = (competitor.get("team") or {}).get("abbreviation")
            return str(abbr).upper() if abbr else None
    return None


def _spread_from_details(details: str, competition: Dict[str, Any]) -> Optional[float]:
    """
    Home-quoted spread from a line like "LAL -5.5".

    The line is quoted for the favorite, so it is flipped when the
    abbreviation is the away team's. An unrecognized abbreviation is
    read as the home side.
    """
    tokens = str(details).split()
    for index, token in enumerate(tokens):
        line = _to_float(token)
        if line is None:
            continue
        quoted_for = tokens[index - 1].upper() if index else None
        if quoted_for and quoted_for == _abbreviation(competition, "away"):
            return -line
        return line
    return None


def parse_odds(competition: Dict[str, Any]) -> Optional[GameOdds]:
    """
    Parse the first odds provider on a scoreboard competition.

    Spread is taken from the home team's side; 'details' strings such as
    "LAL -5.5" are only used when no explicit spread is present and are
    converted to the home team's point of view.
    """
    odds_list = competition.get("odds") or []
    if not odds_list:
        return None
    odds = odds_list[0]

    spread = _to_float(odds.get("spread"))
    if spread is None and odds.get("details"):
        spread = _spread_from_details(odds["details"], competition)

    home_odds = odds.get("homeTeamOdds") or {}
    away_odds = odds.get("awayTeamOdds") or {}
    if spread is None:
        spread = _to_float(home_odds.get("spreadOdds"))
    if spread is None:
        away_spread = _to_float(away_odds.get("spreadOdds"))
        spread = -away_spread if away_spread is not None else None

    over_under = _to_float(odds.get("overUnder"))
    home_ml = _to_int(home_odds.get("moneyLine"))
    away_ml = _to_int(away_odds.get("moneyLine"))
    draw_ml = _to_int((odds.get("drawOdds") or {}).get("moneyLine"))

    if spread is None and over_under is None and home_ml is None and away_ml is None:
        return None

    return GameOdds(
        spread=spread,
        over_under=over_under,
        home_moneyline=home_ml,
        away_moneyline=away_ml,
        draw_moneyline=draw_ml,
        provider=(odds.get("provider") or {}).get("name") or "ESPN",
    )


def parse_scoreboard_event(event: Dict[str, Any], sport: str, league: str, league_name: str) -> Game:
    """Build a Game from one scoreboard event."""
    competition = (event.get("competitions") or [{}])[0]
    competitors = competition.get("competitors") or []
    home = next((c for c in competitors if c.get("homeAway") == "home"), {})
    away = next((c for c in competitors if c.get("homeAway") == "away"), {})

    def record_of(competitor: Dict[str, Any]) -> Optional[str]:
        records = competitor.get("records") or []
        return records[0].get("summary") if records else None

    return Game(
        id=str(event.get("id")),
        home_team=(home.get("team") or {}).get("displayName") or "TBD",
        away_team=(away.get("team") or {}).get("displayName") or "TBD",
        start_time=_parse_espn_date(event.get("date")),
        league=league_name,
        league_abbr=league.upper(),
        sport=sport,
        home_team_id=(home.get("team") or {}).get("id"),
        away_team_id=(away.get("team") or {}).get("id"),
        home_record=record_of(home),
        away_record=record_of(away),
        home_logo=(home.get("team") or {}).get("logo"),
        away_logo=(away.get("team") or {}).get("logo"),
        odds=parse_odds(competition),
    )


def _stat_values(record_item: Optional[Dict[str, Any]]) -> Dict[str, float]:
    values = {}
    for stat in (record_item or {}).get("stats", []):
        value = _to_float(stat.get("value"))
        if stat.get("name") and value is not None:
            values[stat["name"]] = value
    return values


def parse_team_stats(team_id: str, team: Dict[str, Any]) -> TeamStats:
    """Build TeamStats from the 'team' object of the teams/{id} endpoint."""
    items = (team.get("record") or {}).get("items") or []
    overall = next((r for r in items if r.get("type") == "total"), items[0] if items else None)
    home = next((r for r in items if r.get("type") == "home"), None)
    road = next((r for r in items if r.get("type") in ("road", "away")), None)

    stats = _stat_values(overall)
    home_stats = _stat_values(home)
    road_stats = _stat_values(road)

    wins = int(stats.get("wins", 0))
    losses = int(stats.get("losses", 0))
    games = wins + losses
    streak = int(stats.get("streak", 0))

    points_for = stats.get("pointsFor") or stats.get("avgPointsFor", 0) * games
    points_against = stats.get("pointsAgainst") or stats.get("avgPointsAgainst", 0) * games

    return TeamStats(
        team_id=team_id,
        team_name=team.get("displayName") or team.get("name") or team_id,
        wins=wins,
        losses=losses,
        win_pct=wins / games if games else 0.5,
        home_wins=int(home_stats.get("wins", 0)),
        home_losses=int(home_stats.get("losses", 0)),
        away_wins=int(road_stats.get("wins", 0)),
        away_losses=int(road_stats.get("losses", 0)),
        points_for=points_for,
        points_against=points_against,
        streak=abs(streak),
        streak_type="W" if streak >= 0 else "L",
    )


def parse_advanced_stats(data: Dict[str, Any]) -> AdvancedStats:
    """Pull efficiency metrics out of the team statistics payload."""
    categories = (data.get("results") or {}).get("stats") or (data.get("splits") or {}).get("categories") or []
    if isinstance(categories, dict):
        categories = categories.get("categories", [])

    def find(*names: str) -> float:
        for name in names:
            lowered = name.lower()
            for category in categories:
                for stat in category.get("stats", []):
                    if (stat.get("name") or "").lower() == lowered:
                        value = _to_float(stat.get("value"))
                        if value:
                            return value
        return 0.0

    return AdvancedStats(
        points_per_game=find("avgPoints", "pointsPerGame", "avgGoals", "avgRuns"),
        field_goal_pct=find("fieldGoalPct", "fgPct"),
        three_point_pct=find("threePointFieldGoalPct", "threePointPct"),
        free_throw_pct=find("freeThrowPct", "ftPct"),
        assists_per_game=find("avgAssists", "assistsPerGame"),
        turnovers_per_game=find("avgTurnovers", "turnoversPerGame"),
        assist_to_turnover_ratio=find("assistTurnoverRatio"),
        offensive_rebounds_per_game=find("avgOffensiveRebounds"),
        defensive_rebounds_per_game=find("avgDefensiveRebounds"),
        blocks_per_game=find("avgBlocks", "blocksPerGame"),
        steals_per_game=find("avgSteals", "stealsPerGame"),
    )


def _score_value(score: Any) -> Optional[int]:
    """Schedule scores come either as strings or as {'value': ..} objects."""
    if isinstance(score, dict):
        score = score.get("value", score.get("displayValue"))
    return _to_int(score)


def parse_schedule(team_id: str, data: Dict[str, Any]) -> List[ScheduleGame]:
    """Build a team's schedule from the teams/{id}/schedule payload."""
    schedule = []
    for event in data.get("events", []):
        date = _parse_espn_date(event.get("date"))
        if date is None:
            continue
        competition = (event.get("competitions") or [{}])[0]
        competitors = competition.get("competitors") or []
        team = next((c for c in competitors if str(c.get("id")) == str(team_id)), {})
        opponent = next((c for c in competitors if str(c.get("id")) != str(team_id)), {})

        schedule.append(ScheduleGame(
            game_id=str(event.get("id")),
            date=date,
            opponent_id=str(opponent.get("id") or ""),
            opponent_name=(opponent.get("team") or {}).get("displayName") or "Unknown",
            is_home=team.get("homeAway") == "home",
            team_score=_score_value(team.get("score")),
            opponent_score=_score_value(opponent.get("score")),
            completed=bool(((competition.get("status") or {}).get("type") or {}).get("completed")),
        ))
    return schedule


def parse_injuries(data: Dict[str, Any]) -> Dict[str, InjuryReport]:
    """Build per-team injury reports from the league injuries payload."""
    reports: Dict[str, InjuryReport] = {}
    for entry in data.get("teams") or data.get("injuries") or []:
        team_id = (entry.get("team") or {}).get("id") or entry.get("id")
        if not team_id:
            continue

        out, questionable = [], []
        for injury in entry.get("injuries", []):
            athlete = injury.get("athlete") or {}
            is_out = injury.get("status") == "Out"
            player = InjuredPlayer(
                name=athlete.get("displayName") or "Unknown",
                position=(athlete.get("position") or {}).get("abbreviation") or "",
                status="out" if is_out else "day-to-day",
            )
            (out if is_out else questionable).append(player)

        starters_out = len(out[:STARTER_SLOTS])
        role_players_out = len(out[STARTER_SLOTS:])
        impact = (
            100
            - starters_out * STARTER_OUT_PENALTY
            - role_players_out * ROLE_PLAYER_OUT_PENALTY
            - len(questionable) * QUESTIONABLE_PENALTY
        )
        reports[str(team_id)] = InjuryReport(
            players_out=tuple(out),
            players_questionable=tuple(questionable),
            impact_score=max(0, impact),
        )
    return reports


# ==================== DERIVED CONTEXT ====================

def create_basic_stats(team_name: str, team_id: str, record: Optional[str]) -> TeamStats:
    """
    Minimal TeamStats from a scoreboard record string, for when the team
    endpoint is unavailable. No record at all gives a .500 team with no
    scoring history.
    """
    wins, losses = parse_record(record)
    games = wins + losses
    return TeamStats(
        team_id=team_id,
        team_name=team_name,
        wins=wins,
        losses=losses,
        win_pct=wins / games if games else 0.5,
        home_wins=wins // 2,
        home_losses=losses // 2,
        away_wins=wins - wins // 2,
        away_losses=losses - losses // 2,
        points_for=0,
        points_against=0,
        streak=0,
        streak_type="W",
    )


def calculate_schedule_context(schedule: List[ScheduleGame], game_date: datetime) -> ScheduleContext:
    """Rest situation of a team going into the game starting at game_date."""
    completed = sorted(
        (g for g in schedule if g.completed and g.date < game_date),
        key=lambda g: g.date,
        reverse=True,
    )
    last_game_date = completed[0].date if completed else None

    days = DEFAULT_REST_DAYS
    if last_game_date is not None:
        days = (game_date - last_game_date).days

    week_ago = game_date - timedelta(days=7)
    return ScheduleContext(
        last_game_date=last_game_date,
        days_since_last_game=days,
        is_back_to_back=days <= 1,
        games_in_last_7_days=sum(1 for g in completed if g.date >= week_ago),
    )


def calculate_head_to_head(
    schedule: List[ScheduleGame],
    opponent_id: str,
    window: int = H2H_RECENT_WINDOW,
) -> HeadToHead:
    """
    Head-to-head record against one opponent over the most recent
    completed meetings, from the schedule owner's side.
    """
    meetings = sorted(
        (g for g in schedule if g.completed and g.opponent_id == str(opponent_id)),
        key=lambda g: g.date,
        reverse=True,
    )[:window]

    wins = losses = draws = 0
    total_diff = 0
    for game in meetings:
        if game.team_score is None or game.opponent_score is None:
            continue
        diff = game.team_score - game.opponent_score
        total_diff += diff
        if diff > 0:
            wins += 1
        elif diff < 0:
            losses += 1
        else:
            draws += 1

    return HeadToHead(
        recent_meetings=len(meetings),
        wins=wins,
        losses=losses,
        draws=draws,
        avg_point_diff=total_diff / len(meetings) if meetings else 0.0,
    )


def league_slug(game: Game) -> str:
    """ESPN league path segment for a game ('nba', 'eng.1', ...)."""
    return game.league_abbr.lower()


_espn_service: Optional[ESPNApiService] = None


def get_espn_service() -> ESPNApiService:
    """FastAPI dependency: the process-wide ESPN service."""
    global _espn_service
    if _espn_service is None:
        _espn_service = ESPNApiService()
    return _espn_service
