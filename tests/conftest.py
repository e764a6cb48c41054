"""Shared pytest fixtures for rtp-strategy-engine tests."""
import os
import sys
from pathlib import Path
from datetime import datetime, timezone
from typing import Dict, List, Optional

os.environ.setdefault("ENVIRONMENT", "test")

import pytest

# Add project root to Python path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from app.models import (  # noqa: E402
    Confidence,
    Game,
    GameOdds,
    GameProjection,
    InjuryReport,
    Pick,
    PickAnalysis,
    PickType,
    ScheduleGame,
    TeamStats,
)

GAME_TIME = datetime(2025, 1, 15, 0, 30, tzinfo=timezone.utc)


@pytest.fixture
def game_time() -> datetime:
    return GAME_TIME


@pytest.fixture
def make_stats():
    """Factory for TeamStats with sensible defaults (no scoring history)."""
    def _make(
        team_name: str = "Boston Celtics",
        team_id: str = "2",
        wins: int = 0,
        losses: int = 0,
        home: tuple = (0, 0),
        away: tuple = (0, 0),
        points_for: float = 0,
        points_against: float = 0,
        streak: int = 0,
        streak_type: str = "W",
    ) -> TeamStats:
        games = wins + losses
        return TeamStats(
            team_id=team_id,
            team_name=team_name,
            wins=wins,
            losses=losses,
            win_pct=wins / games if games else 0.5,
            home_wins=home[0],
            home_losses=home[1],
            away_wins=away[0],
            away_losses=away[1],
            points_for=points_for,
            points_against=points_against,
            streak=streak,
            streak_type=streak_type,
        )
    return _make


@pytest.fixture
def make_game():
    """Factory for Game (NBA by default)."""
    def _make(
        id: str = "401",
        home_team: str = "Boston Celtics",
        away_team: str = "Los Angeles Lakers",
        sport: str = "basketball",
        league: str = "NBA",
        league_abbr: str = "NBA",
        odds: Optional[GameOdds] = None,
        home_team_id: Optional[str] = "2",
        away_team_id: Optional[str] = "13",
        start_time: Optional[datetime] = GAME_TIME,
        home_record: Optional[str] = None,
        away_record: Optional[str] = None,
    ) -> Game:
        return Game(
            id=id,
            home_team=home_team,
            away_team=away_team,
            start_time=start_time,
            league=league,
            league_abbr=league_abbr,
            sport=sport,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            home_record=home_record,
            away_record=away_record,
            odds=odds,
        )
    return _make


@pytest.fixture
def make_analysis():
    """Factory for a PickAnalysis with a matching projection."""
    def _make(
        confidence: Confidence = Confidence.MEDIUM,
        differential: float = 10.0,
        pick_type: PickType = PickType.HOME,
        spread_pick: Optional[str] = None,
        reasoning: tuple = ("Boston Celtics 30-10 (75%)",),
    ) -> PickAnalysis:
        home_wins = pick_type is not PickType.AWAY
        projection = GameProjection(
            home_points=112.0 if home_wins else 104.0,
            away_points=104.0 if home_wins else 112.0,
            total_points=216.0,
            projected_winner="home" if home_wins else "away",
            projected_margin=8.0 if home_wins else -8.0,
            confidence=confidence,
        )
        return PickAnalysis(
            pick_type=pick_type,
            confidence=confidence,
            reasoning=reasoning,
            home_score=50 + differential / 2,
            away_score=50 - differential / 2,
            differential=differential,
            projection=projection,
            spread_pick=spread_pick,
        )
    return _make


@pytest.fixture
def make_pick(make_game, make_analysis):
    """Factory for an analyzed Pick on its own game."""
    def _make(
        game_id: str,
        confidence: Confidence = Confidence.MEDIUM,
        differential: float = 10.0,
        pick_type: PickType = PickType.HOME,
        odds: Optional[GameOdds] = None,
        sport: str = "basketball",
        spread_pick: Optional[str] = None,
    ) -> Pick:
        game = make_game(id=game_id, sport=sport, odds=odds)
        analysis = make_analysis(confidence, differential, pick_type, spread_pick)
        return Pick(game=game, pick_type=pick_type, label="pick", analysis=analysis)
    return _make


class FakeProvider:
    """
    In-memory sports-data provider.

    Any method listed in ``failing`` raises instead of returning data.
    """

    def __init__(
        self,
        stats: Optional[Dict[str, TeamStats]] = None,
        schedules: Optional[Dict[str, List[ScheduleGame]]] = None,
        injuries: Optional[Dict[str, InjuryReport]] = None,
        failing: tuple = (),
    ):
        self.stats = stats or {}
        self.schedules = schedules or {}
        self.injuries = injuries
        self.failing = set(failing)
        self.calls: List[str] = []

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.failing:
            raise RuntimeError(f"{name} unavailable")

    async def get_team_stats(self, sport, league, team_id):
        self._check("get_team_stats")
        return self.stats.get(team_id)

    async def get_advanced_stats(self, sport, league, team_id):
        self._check("get_advanced_stats")
        return None

    async def get_team_schedule(self, sport, league, team_id):
        self._check("get_team_schedule")
        return self.schedules.get(team_id)

    async def get_league_injuries(self, sport, league):
        self._check("get_league_injuries")
        return self.injuries


@pytest.fixture
def fake_provider_cls():
    return FakeProvider
