"""
Tests for the ESPN API service.

HTTP is served by httpx.MockTransport; no network access.
"""
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from app.core.cache import ResponseCache
from app.models import ScheduleGame
from app.services.core.circuit_breaker import reset_breaker
from app.services.core.espn_service import (
    ESPNApiService,
    calculate_head_to_head,
    calculate_schedule_context,
    create_basic_stats,
    parse_injuries,
    parse_odds,
    parse_record,
    parse_schedule,
    parse_team_stats,
)

NBA_SCOREBOARD = {
    "events": [
        {
            "id": "401585123",
            "date": "2025-01-15T00:30Z",
            "competitions": [{
                "competitors": [
                    {
                        "homeAway": "home",
                        "team": {"id": "2", "displayName": "Boston Celtics", "logo": "bos.png"},
                        "records": [{"summary": "30-10"}],
                    },
                    {
                        "homeAway": "away",
                        "team": {"id": "13", "displayName": "Los Angeles Lakers"},
                        "records": [{"summary": "22-18"}],
                    },
                ],
                "odds": [{
                    "provider": {"name": "DraftKings"},
                    "details": "BOS -6.5",
                    "overUnder": 228.5,
                    "homeTeamOdds": {"moneyLine": -250},
                    "awayTeamOdds": {"moneyLine": 205},
                }],
            }],
        },
        {
            "id": "401585100",
            "date": "2025-01-14T23:00Z",
            "competitions": [{
                "competitors": [
                    {"homeAway": "home", "team": {"id": "5", "displayName": "Cleveland Cavaliers"}},
                    {"homeAway": "away", "team": {"id": "9", "displayName": "Golden State Warriors"}},
                ],
            }],
        },
    ]
}

TEAM_PAYLOAD = {
    "team": {
        "displayName": "Boston Celtics",
        "record": {"items": [
            {"type": "total", "stats": [
                {"name": "wins", "value": 30},
                {"name": "losses", "value": 10},
                {"name": "avgPointsFor", "value": 118.5},
                {"name": "avgPointsAgainst", "value": 108.0},
                {"name": "streak", "value": -2},
            ]},
            {"type": "home", "stats": [{"name": "wins", "value": 18}, {"name": "losses", "value": 3}]},
            {"type": "road", "stats": [{"name": "wins", "value": 12}, {"name": "losses", "value": 7}]},
        ]},
    }
}


class Router:
    """Serves canned JSON by URL path suffix and counts requests."""

    def __init__(self, routes=None, status=200):
        self.routes = routes or {}
        self.status = status
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.status != 200:
            return httpx.Response(self.status, json={"error": "boom"})
        for suffix, payload in self.routes.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(200, json={"events": []})


@pytest.fixture(autouse=True)
def closed_breaker():
    reset_breaker()
    yield
    reset_breaker()


def service_for(router: Router) -> ESPNApiService:
    client = httpx.AsyncClient(transport=httpx.MockTransport(router))
    return ESPNApiService(cache=ResponseCache(), client=client)


# =============================================================================
# FETCHING
# =============================================================================

class TestScoreboard:
    """Game listing."""

    @pytest.mark.asyncio
    async def test_parses_league_games(self):
        router = Router({"/basketball/nba/scoreboard": NBA_SCOREBOARD})
        service = service_for(router)

        games = await service.get_games("nba", "20250115")

        assert [g.id for g in games] == ["401585123", "401585100"]
        game = games[0]
        assert (game.home_team, game.away_team) == ("Boston Celtics", "Los Angeles Lakers")
        assert (game.home_team_id, game.away_team_id) == ("2", "13")
        assert (game.home_record, game.away_record) == ("30-10", "22-18")
        assert game.sport == "basketball"
        assert game.league_abbr == "NBA"
        assert game.start_time == datetime(2025, 1, 15, 0, 30, tzinfo=timezone.utc)
        assert game.odds.spread == -6.5
        assert game.odds.home_moneyline == -250
        assert game.odds.provider == "DraftKings"
        assert games[1].odds is None
        assert router.requests[0].url.params["dates"] == "20250115"
        await service.close()

    @pytest.mark.asyncio
    async def test_all_sports_sorted_by_start(self):
        router = Router({"/basketball/nba/scoreboard": NBA_SCOREBOARD})
        service = service_for(router)

        games = await service.get_games("all", "20250115")

        assert [g.id for g in games] == ["401585100", "401585123"]
        assert len(router.requests) == 6
        await service.close()

    @pytest.mark.asyncio
    async def test_unknown_filter_is_empty(self):
        router = Router()
        service = service_for(router)
        assert await service.get_games("cricket") == []
        assert router.requests == []
        await service.close()

    @pytest.mark.asyncio
    async def test_http_error_gives_empty_slate(self):
        service = service_for(Router(status=500))
        assert await service.get_games("nba", "20250115") == []
        await service.close()

    @pytest.mark.asyncio
    async def test_scoreboard_is_cached(self):
        router = Router({"/basketball/nba/scoreboard": NBA_SCOREBOARD})
        service = service_for(router)

        await service.get_games("nba", "20250115")
        await service.get_games("nba", "20250115")

        assert len(router.requests) == 1
        await service.close()


class TestTeamData:
    """Per-team endpoints."""

    @pytest.mark.asyncio
    async def test_team_stats(self):
        service = service_for(Router({"/teams/2": TEAM_PAYLOAD}))

        stats = await service.get_team_stats("basketball", "nba", "2")

        assert (stats.wins, stats.losses) == (30, 10)
        assert stats.win_pct == pytest.approx(0.75)
        assert (stats.home_wins, stats.home_losses, stats.away_wins, stats.away_losses) == (18, 3, 12, 7)
        assert stats.points_for == pytest.approx(118.5 * 40)
        assert (stats.streak, stats.streak_type) == (2, "L")
        await service.close()

    @pytest.mark.asyncio
    async def test_failed_request_is_none(self):
        service = service_for(Router(status=503))
        assert await service.get_team_stats("basketball", "nba", "2") is None
        assert await service.get_team_schedule("basketball", "nba", "2") is None
        assert await service.get_league_injuries("basketball", "nba") is None
        await service.close()

    @pytest.mark.asyncio
    async def test_advanced_stats(self):
        payload = {"results": {"stats": {"categories": [
            {"name": "offensive", "stats": [
                {"name": "avgPoints", "value": 118.5},
                {"name": "fieldGoalPct", "value": 48.9},
                {"name": "threePointFieldGoalPct", "value": 38.1},
            ]},
            {"name": "general", "stats": [{"name": "avgTurnovers", "value": 12.2}]},
        ]}}}
        service = service_for(Router({"/teams/2/statistics": payload}))

        advanced = await service.get_advanced_stats("basketball", "nba", "2")

        assert advanced.points_per_game == pytest.approx(118.5)
        assert advanced.field_goal_pct == pytest.approx(48.9)
        assert advanced.three_point_pct == pytest.approx(38.1)
        assert advanced.turnovers_per_game == pytest.approx(12.2)
        await service.close()

    @pytest.mark.asyncio
    async def test_empty_advanced_stats_are_not_cached(self):
        router = Router({"/teams/2/statistics": {"results": {}}})
        service = service_for(router)

        assert await service.get_advanced_stats("basketball", "nba", "2") is None
        assert await service.get_advanced_stats("basketball", "nba", "2") is None

        assert len(router.requests) == 2
        await service.close()

    @pytest.mark.asyncio
    async def test_open_breaker_short_circuits(self):
        """After five failures no further requests reach ESPN."""
        router = Router(status=500)
        service = service_for(router)

        for team_id in range(5):
            await service.get_team_stats("basketball", "nba", str(team_id))
        assert len(router.requests) == 5

        assert await service.get_team_stats("basketball", "nba", "99") is None
        assert len(router.requests) == 5
        await service.close()


# =============================================================================
# PARSERS AND DERIVED CONTEXT
# =============================================================================

class TestParsers:
    """Pure payload parsing."""

    @pytest.mark.parametrize("record,expected", [
        ("10-5", (10, 5)),
        ("10-5-2", (10, 5)),
        ("", (0, 0)),
        (None, (0, 0)),
        ("x-3", (0, 3)),
    ])
    def test_parse_record(self, record, expected):
        assert parse_record(record) == expected

    def test_odds_prefers_explicit_spread(self):
        odds = parse_odds({"odds": [{"spread": -3.0, "details": "BOS -6.5"}]})
        assert odds.spread == -3.0

    @staticmethod
    def _matchup(details):
        return {
            "competitors": [
                {"homeAway": "home", "team": {"id": "2", "abbreviation": "BOS"}},
                {"homeAway": "away", "team": {"id": "13", "abbreviation": "LAL"}},
            ],
            "odds": [{"details": details}],
        }

    def test_details_home_favorite(self):
        assert parse_odds(self._matchup("BOS -6.5")).spread == -6.5

    def test_details_away_favorite_is_home_quoted(self):
        assert parse_odds(self._matchup("LAL -5.5")).spread == 5.5

    def test_details_without_team_abbreviations(self):
        assert parse_odds({"odds": [{"details": "LAL -5.5"}]}).spread == -5.5

    def test_odds_from_away_spread(self):
        odds = parse_odds({"odds": [{"awayTeamOdds": {"spreadOdds": -2.5}}]})
        assert odds.spread == 2.5

    def test_soccer_draw_line(self):
        odds = parse_odds({"odds": [{
            "homeTeamOdds": {"moneyLine": 120},
            "awayTeamOdds": {"moneyLine": 240},
            "drawOdds": {"moneyLine": 230},
        }]})
        assert odds.draw_moneyline == 230

    def test_no_odds(self):
        assert parse_odds({}) is None
        assert parse_odds({"odds": [{"provider": {"name": "ESPN BET"}}]}) is None

    def test_team_stats_with_season_totals(self):
        team = {"displayName": "Utah Jazz", "record": {"items": [{"type": "total", "stats": [
            {"name": "wins", "value": 5},
            {"name": "losses", "value": 15},
            {"name": "pointsFor", "value": 2200},
            {"name": "pointsAgainst", "value": 2400},
            {"name": "streak", "value": 3},
        ]}]}}
        stats = parse_team_stats("26", team)
        assert (stats.points_for, stats.points_against) == (2200, 2400)
        assert (stats.streak, stats.streak_type) == (3, "W")
        assert stats.home_wins == 0

    def test_schedule(self):
        data = {"events": [{
            "id": "1",
            "date": "2025-01-10T00:00Z",
            "competitions": [{
                "status": {"type": {"completed": True}},
                "competitors": [
                    {"id": "2", "homeAway": "home", "score": {"value": 112.0}},
                    {"id": "13", "homeAway": "away", "score": "104",
                     "team": {"displayName": "Los Angeles Lakers"}},
                ],
            }],
        }]}
        [game] = parse_schedule("2", data)
        assert (game.opponent_id, game.opponent_name) == ("13", "Los Angeles Lakers")
        assert game.is_home
        assert (game.team_score, game.opponent_score) == (112, 104)
        assert game.completed

    def test_injury_impact(self):
        def player(name, status):
            return {"status": status, "athlete": {"displayName": name, "position": {"abbreviation": "G"}}}

        data = {"injuries": [{
            "id": "13",
            "injuries": [player(f"Out {i}", "Out") for i in range(6)] + [player("Q", "Day-To-Day")],
        }]}
        report = parse_injuries(data)["13"]

        # 5 starters * 15 + 1 role player * 5 + 1 questionable * 3
        assert report.impact_score == 100 - 75 - 5 - 3
        assert len(report.players_out) == 6
        assert report.players_questionable[0].status == "day-to-day"

    def test_injury_impact_floor(self):
        data = {"teams": [{"team": {"id": "2"}, "injuries": [
            {"status": "Out", "athlete": {"displayName": f"P{i}"}} for i in range(20)
        ]}]}
        assert parse_injuries(data)["2"].impact_score == 0


class TestDerivedContext:
    """Basic stats, rest and head-to-head from raw data."""

    def test_basic_stats_split_record(self):
        stats = create_basic_stats("Boston Celtics", "2", "7-4")
        assert (stats.home_wins, stats.home_losses) == (3, 2)
        assert (stats.away_wins, stats.away_losses) == (4, 2)
        assert stats.win_pct == pytest.approx(7 / 11)
        assert stats.points_for == 0

    def test_basic_stats_without_record(self):
        stats = create_basic_stats("Boston Celtics", "2", None)
        assert stats.games_played == 0
        assert stats.win_pct == 0.5

    def test_schedule_context(self, game_time):
        schedule = [
            ScheduleGame("a", game_time - timedelta(days=1), "5", "Cavs", True, 100, 99, True),
            ScheduleGame("b", game_time - timedelta(days=3), "9", "Warriors", False, 90, 99, True),
            ScheduleGame("c", game_time - timedelta(days=9), "7", "Nuggets", True, 90, 99, True),
            ScheduleGame("d", game_time + timedelta(days=2), "4", "Bulls", True),
        ]
        context = calculate_schedule_context(schedule, game_time)
        assert context.days_since_last_game == 1
        assert context.is_back_to_back
        assert context.games_in_last_7_days == 2

    def test_schedule_context_without_games(self, game_time):
        context = calculate_schedule_context([], game_time)
        assert context.last_game_date is None
        assert context.days_since_last_game == 7
        assert not context.is_back_to_back

    def test_head_to_head_uses_recent_window(self, game_time):
        def meeting(days_ago, ours, theirs):
            return ScheduleGame(f"m{days_ago}", game_time - timedelta(days=days_ago), "13", "Lakers",
                                True, ours, theirs, True)

        schedule = [
            meeting(10, 110, 100),
            meeting(40, 100, 104),
            meeting(80, 99, 99),
            meeting(120, 120, 100),
            meeting(160, 101, 100),
            meeting(400, 80, 120),  # outside the five most recent
            ScheduleGame("other", game_time - timedelta(days=5), "9", "Warriors", True, 100, 90, True),
        ]
        h2h = calculate_head_to_head(schedule, "13")

        assert h2h.recent_meetings == 5
        assert (h2h.wins, h2h.losses, h2h.draws) == (3, 1, 1)
        assert h2h.avg_point_diff == pytest.approx((10 - 4 + 0 + 20 + 1) / 5)
