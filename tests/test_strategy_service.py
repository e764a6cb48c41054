"""
Unit tests for the strategy allocator.

Test Strategy:
1. Sizing helpers (budget, min bet, distribution)
2. Pick classification (flyers, value underdogs, bet types, parlay legs)
3. Full strategies: exact budget conservation, no game reused across
   parlays, determinism
"""
import pytest

from app.models import (
    STRAIGHT_ML,
    STRAIGHT_SPREAD,
    UNDERDOG_FLYER,
    Confidence,
    GameOdds,
    PickType,
    RiskMode,
)
from app.services.core.strategy_service import (
    build_parlays,
    daily_budget_for,
    decide_bet_type,
    decide_parlay_leg,
    distribute_budget,
    generate_strategy,
    get_pick_odds,
    is_underdog_flyer,
    is_value_underdog,
    max_straight_bets_for,
    min_bet_for,
    select_straight_bets,
    select_underdog_flyers,
)


@pytest.fixture
def slate(make_pick):
    """A mixed day: favorites, a value dog, a flyer, a soccer draw."""
    return [
        make_pick("g1", Confidence.HIGH, 25, PickType.HOME,
                  odds=GameOdds(spread=-7.5, home_moneyline=-300, away_moneyline=240)),
        make_pick("g2", Confidence.HIGH, 18, PickType.AWAY,
                  odds=GameOdds(spread=3.5, home_moneyline=150, away_moneyline=-170)),
        make_pick("g3", Confidence.MEDIUM, 12, PickType.HOME,
                  odds=GameOdds(home_moneyline=-120, away_moneyline=100)),
        make_pick("g4", Confidence.MEDIUM, 8, PickType.AWAY,
                  odds=GameOdds(home_moneyline=-200, away_moneyline=180)),
        make_pick("g5", Confidence.LOW, 3, PickType.AWAY,
                  odds=GameOdds(home_moneyline=-280, away_moneyline=250)),
        make_pick("g6", Confidence.LOW, 2, PickType.HOME),
        make_pick("g7", Confidence.MEDIUM, 6, PickType.DRAW, sport="soccer",
                  odds=GameOdds(home_moneyline=140, away_moneyline=200, draw_moneyline=230)),
    ]


def all_wagers(strategy):
    return (
        [b.wager for b in strategy.straight_bets]
        + [p.wager for p in strategy.parlays]
        + [b.wager for b in strategy.underdog_flyers]
    )


# =============================================================================
# SIZING
# =============================================================================

class TestSizing:
    """Daily budget, minimum bet and bet count caps."""

    def test_balanced_100(self):
        budget = daily_budget_for(100, RiskMode.BALANCED)
        assert budget == 25
        assert min_bet_for(budget) == 2
        assert max_straight_bets_for(budget, 2) == 8

    @pytest.mark.parametrize("mode,expected", [
        (RiskMode.CONSERVATIVE, 15),
        (RiskMode.BALANCED, 25),
        (RiskMode.AGGRESSIVE, 40),
    ])
    def test_budget_by_mode(self, mode, expected):
        assert daily_budget_for(100, mode) == expected

    def test_budget_rounds_half_up(self):
        assert daily_budget_for(10, RiskMode.BALANCED) == 3

    def test_non_positive_bankroll(self):
        assert daily_budget_for(0, RiskMode.AGGRESSIVE) == 0
        assert daily_budget_for(-50, RiskMode.BALANCED) == 0

    def test_min_bet_scales_with_budget(self):
        assert min_bet_for(400) == 20

    def test_straight_bet_count_floor(self):
        assert max_straight_bets_for(4, 2) == 3


class TestDistributeBudget:
    """Weighted split of a category budget."""

    def test_weighted_split_sums_exactly(self):
        amounts = distribute_budget(5, 16, [25, 18, 12, 8, 6], 2)
        assert amounts == [5, 4, 3, 2, 2]

    def test_zero_weights_split_equally(self):
        assert distribute_budget(3, 10, [0, 0, 0], 2) == [4, 3, 3]

    def test_truncates_to_affordable_count(self):
        assert distribute_budget(5, 7, [1, 1, 1, 1, 1], 2) == [3, 2, 2]

    def test_budget_below_min_bet_goes_to_one_item(self):
        assert distribute_budget(3, 1, [1, 1, 1], 2) == [1]

    def test_nothing_to_distribute(self):
        assert distribute_budget(0, 10, [], 2) == []
        assert distribute_budget(3, 0, [1, 1, 1], 2) == []


# =============================================================================
# CLASSIFICATION
# =============================================================================

class TestClassification:
    """Flyers, value underdogs and odds lookup."""

    def test_low_confidence_long_odds_is_flyer(self, slate):
        flyer = slate[4]
        assert get_pick_odds(flyer) == 250
        assert is_underdog_flyer(flyer)
        assert not is_value_underdog(flyer)

    def test_high_confidence_plus_money_is_value_not_flyer(self, make_pick):
        pick = make_pick("v", Confidence.HIGH, 10, PickType.AWAY,
                         odds=GameOdds(home_moneyline=-220, away_moneyline=180))
        assert is_value_underdog(pick)
        assert not is_underdog_flyer(pick)

    def test_missing_odds_default(self, make_pick):
        assert get_pick_odds(make_pick("x")) == -110
        assert get_pick_odds(make_pick("d", pick_type=PickType.DRAW, sport="soccer", odds=GameOdds())) == 250

    def test_value_underdog_ranks_ahead(self, make_pick):
        """Differential 10 boosted 1.5x beats a favorite at 14."""
        favorite = make_pick("fav", Confidence.MEDIUM, 14, PickType.HOME,
                             odds=GameOdds(home_moneyline=-160, away_moneyline=140))
        dog = make_pick("dog", Confidence.MEDIUM, 10, PickType.AWAY,
                        odds=GameOdds(home_moneyline=-200, away_moneyline=170))
        ranked = select_straight_bets([favorite, dog], RiskMode.BALANCED, 8)
        assert [p.game.id for p in ranked] == ["dog", "fav"]

    def test_flyers_never_straight_bets(self, slate):
        ranked = select_straight_bets(slate, RiskMode.AGGRESSIVE, 8)
        ids = [p.game.id for p in ranked]
        assert "g5" not in ids
        # aggressive lets other low picks in
        assert "g6" in ids

    def test_balanced_requires_medium(self, slate):
        ids = [p.game.id for p in select_straight_bets(slate, RiskMode.BALANCED, 8)]
        assert ids == ["g1", "g2", "g3", "g4", "g7"]


class TestBetTypes:
    """Straight bet and parlay leg labels."""

    def test_soccer_is_three_way_moneyline(self, slate):
        assert decide_bet_type(slate[6]) == (STRAIGHT_ML, "Draw +230")

    def test_spread_pick_with_line(self, make_pick):
        pick = make_pick("s", spread_pick="away", odds=GameOdds(spread=-4.5, home_moneyline=-190))
        assert decide_bet_type(pick) == (STRAIGHT_SPREAD, "Spread +4.5")

    def test_moneyline_otherwise(self, slate):
        assert decide_bet_type(slate[0]) == (STRAIGHT_ML, "ML -300")

    def test_moneyline_without_odds(self, make_pick):
        assert decide_bet_type(make_pick("n")) == (STRAIGHT_ML, "ML")

    def test_heavy_favorite_leg_switches_to_spread(self, slate):
        leg = decide_parlay_leg(slate[0])
        assert leg.bet_type == "spread"
        assert leg.odds == -110
        assert leg.label == "Boston Celtics -7.5"

    def test_away_favorite_spread_is_seen_from_away(self, slate):
        assert decide_parlay_leg(slate[1]).label == "Los Angeles Lakers -3.5"

    def test_short_favorite_stays_moneyline(self, slate):
        leg = decide_parlay_leg(slate[2])
        assert (leg.bet_type, leg.odds, leg.label) == ("ml", -120, "Boston Celtics -120")

    def test_soccer_leg_is_moneyline(self, slate):
        leg = decide_parlay_leg(slate[6])
        assert (leg.bet_type, leg.odds, leg.label) == ("ml", 230, "Draw +230")


class TestBuildParlays:
    """Parlay construction."""

    def test_needs_two_picks(self, slate):
        assert build_parlays(slate[:1], RiskMode.AGGRESSIVE) == []

    def test_balanced_lock_only_when_value_short(self, slate):
        parlays = build_parlays(slate, RiskMode.BALANCED)
        assert [p.title for p in parlays] == ["Lock of the Day"]
        assert [leg.pick.game.id for leg in parlays[0].legs] == ["g1", "g2", "g3"]

    def test_conservative_has_no_best_value(self, make_pick):
        picks = [make_pick(f"m{i}", Confidence.MEDIUM, 10 - i) for i in range(8)]
        assert [p.title for p in build_parlays(picks, RiskMode.CONSERVATIVE)] == ["Lock of the Day"]
        assert [p.title for p in build_parlays(picks, RiskMode.BALANCED)] == ["Lock of the Day", "Best Value"]

    def test_aggressive_longshot_takes_low_confidence(self, slate):
        parlays = build_parlays(slate, RiskMode.AGGRESSIVE)
        longshot = parlays[-1]
        assert longshot.title == "Longshot"
        assert {leg.pick.game.id for leg in longshot.legs} >= {"g5", "g6"}

    def test_no_game_in_two_parlays(self, slate, make_pick):
        picks = slate + [make_pick(f"x{i}", Confidence.MEDIUM, 9) for i in range(6)]
        parlays = build_parlays(picks, RiskMode.AGGRESSIVE)
        ids = [leg.pick.game.id for p in parlays for leg in p.legs]
        assert len(parlays) == 3
        assert len(ids) == len(set(ids))


# =============================================================================
# STRATEGY
# =============================================================================

class TestTiedRanking:
    """Equal edges keep the order the picks came in."""

    IDS = ["t3", "t1", "t2"]

    def test_straight_bets(self, make_pick):
        picks = [make_pick(i, Confidence.MEDIUM, 10) for i in self.IDS]
        ranked = select_straight_bets(picks, RiskMode.BALANCED, 8)
        assert [p.game.id for p in ranked] == self.IDS

    def test_underdog_flyers(self, make_pick):
        picks = [
            make_pick(i, Confidence.LOW, 3, PickType.AWAY,
                      odds=GameOdds(home_moneyline=-280, away_moneyline=250))
            for i in self.IDS
        ]
        assert [p.game.id for p in select_underdog_flyers(picks)] == self.IDS

    def test_parlay_legs(self, make_pick):
        picks = [make_pick(i, Confidence.HIGH, 20) for i in self.IDS]
        lock = build_parlays(picks, RiskMode.CONSERVATIVE)[0]
        assert [leg.pick.game.id for leg in lock.legs] == self.IDS


class TestGenerateStrategy:
    """End-to-end daily plans."""

    def test_balanced_100_layout(self, slate):
        strategy = generate_strategy(slate, 100, RiskMode.BALANCED)

        assert strategy.daily_budget == 25
        assert strategy.min_bet == 2
        assert [b.pick.game.id for b in strategy.straight_bets] == ["g1", "g2", "g3", "g4", "g7"]
        assert [b.wager for b in strategy.straight_bets] == [5, 4, 3, 2, 2]
        assert [p.wager for p in strategy.parlays] == [6]
        assert [(b.pick.game.id, b.wager, b.type) for b in strategy.underdog_flyers] == [("g5", 3, UNDERDOG_FLYER)]
        assert strategy.total_wagered == 25

    @pytest.mark.parametrize("mode", list(RiskMode))
    @pytest.mark.parametrize("bankroll", [8, 37, 100, 250, 1000])
    def test_wagers_sum_to_daily_budget(self, slate, mode, bankroll):
        strategy = generate_strategy(slate, bankroll, mode)
        assert sum(all_wagers(strategy)) == strategy.daily_budget
        assert strategy.total_wagered == strategy.daily_budget

    @pytest.mark.parametrize("mode", list(RiskMode))
    @pytest.mark.parametrize("bankroll", [37, 100, 1000])
    def test_wagers_meet_min_bet(self, slate, mode, bankroll):
        """Only a category funding a single bet may go under min_bet."""
        strategy = generate_strategy(slate, bankroll, mode)
        for bets in (strategy.straight_bets, strategy.parlays, strategy.underdog_flyers):
            if len(bets) > 1:
                assert all(b.wager >= strategy.min_bet for b in bets)

    def test_conservative_flyer_gets_its_whole_category(self, slate):
        """15 budget: 13 / 2 / 1 split, remainder -1 on straight, flyer keeps its 1."""
        strategy = generate_strategy(slate, 100, RiskMode.CONSERVATIVE)
        assert strategy.daily_budget == 15
        assert [b.wager for b in strategy.underdog_flyers] == [1]
        assert sum(b.wager for b in strategy.straight_bets) == 12
        assert [p.wager for p in strategy.parlays] == [2]

    def test_only_flyers_takes_whole_budget(self, slate):
        strategy = generate_strategy([slate[4]], 100, RiskMode.BALANCED)
        assert not strategy.straight_bets
        assert not strategy.parlays
        assert [b.wager for b in strategy.underdog_flyers] == [25]

    @pytest.mark.parametrize("bankroll,budget", [(10, 2), (50, 8), (60, 9)])
    def test_lone_flyer_with_unfunded_split_takes_budget(self, slate, bankroll, budget):
        """The 5% flyer split rounds to 0 here; the flyer still gets the whole day."""
        strategy = generate_strategy([slate[4]], bankroll, RiskMode.CONSERVATIVE)
        assert strategy.daily_budget == budget
        assert not strategy.is_empty
        assert [b.wager for b in strategy.underdog_flyers] == [budget]
        assert strategy.total_wagered == budget

    def test_no_flyers_folds_into_straight(self, slate):
        picks = [p for p in slate if p.game.id != "g5"]
        strategy = generate_strategy(picks, 100, RiskMode.BALANCED)
        assert not strategy.underdog_flyers
        assert sum(all_wagers(strategy)) == 25

    def test_no_game_reused_across_parlays(self, slate, make_pick):
        picks = slate + [make_pick(f"x{i}", Confidence.HIGH, 20) for i in range(5)]
        strategy = generate_strategy(picks, 500, RiskMode.AGGRESSIVE)
        ids = [leg.pick.game.id for p in strategy.parlays for leg in p.legs]
        assert len(ids) == len(set(ids))

    def test_deterministic(self, slate):
        first = generate_strategy(slate, 250, RiskMode.AGGRESSIVE)
        second = generate_strategy(slate, 250, RiskMode.AGGRESSIVE)
        assert first == second

    def test_return_range(self, slate):
        strategy = generate_strategy(slate, 100, RiskMode.BALANCED)
        rng = strategy.potential_return_range
        assert rng.low == pytest.approx(max(0.0, rng.expected * 0.5))
        assert rng.high > 0
        assert rng.high >= rng.expected

    def test_parlay_has_return_and_ev(self, slate):
        parlay = generate_strategy(slate, 100, RiskMode.BALANCED).parlays[0]
        assert parlay.potential_return > parlay.wager
        assert parlay.expected_value != 0

    def test_non_positive_bankroll_is_empty(self, slate):
        strategy = generate_strategy(slate, 0, RiskMode.BALANCED)
        assert strategy.is_empty
        assert strategy.daily_budget == 0

    def test_no_picks_is_empty(self):
        strategy = generate_strategy([], 100, RiskMode.BALANCED)
        assert strategy.is_empty
        assert strategy.total_wagered == 0

    def test_accepts_mode_string(self, slate):
        assert generate_strategy(slate, 100, "aggressive").risk_mode is RiskMode.AGGRESSIVE
