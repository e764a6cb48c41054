"""
Strategy allocator: turns a day's analyzed picks into a betting plan.

generate_strategy() is pure and synchronous. Given the same picks,
bankroll and risk mode it always returns the same DailyStrategy, and
whenever the strategy is not empty its wagers add up to daily_budget
exactly.

Budget flow:
    bankroll -> daily_budget (risk-mode %) -> category budgets (splits)
    -> fold empty categories -> per-bet wagers (weighted, >= min_bet)
"""
from typing import Dict, List, Optional, Sequence, Tuple

from app.core.logging import get_logger
from app.models import (
    STRAIGHT_ML,
    STRAIGHT_SPREAD,
    UNDERDOG_FLYER,
    Confidence,
    DailyStrategy,
    Pick,
    PickType,
    ReturnRange,
    RiskMode,
    StrategyBet,
    StrategyParlay,
    StrategyParlayLeg,
)
from app.services.core.odds import (
    expected_value,
    format_american,
    format_line,
    parlay_return,
    potential_return,
    round_half_up,
)

logger = get_logger(__name__)

DAILY_BUDGET_PCT: Dict[RiskMode, float] = {
    RiskMode.CONSERVATIVE: 0.15,
    RiskMode.BALANCED: 0.25,
    RiskMode.AGGRESSIVE: 0.40,
}

# (straight, parlays, underdogs)
ALLOCATION_SPLITS: Dict[RiskMode, Tuple[float, float, float]] = {
    RiskMode.CONSERVATIVE: (0.85, 0.10, 0.05),
    RiskMode.BALANCED: (0.65, 0.25, 0.10),
    RiskMode.AGGRESSIVE: (0.45, 0.35, 0.20),
}

# Assumed win probability per confidence tier
WIN_RATES: Dict[Confidence, float] = {
    Confidence.HIGH: 0.60,
    Confidence.MEDIUM: 0.52,
    Confidence.LOW: 0.45,
}

DEFAULT_ODDS = -110
DEFAULT_DRAW_ODDS = 250
SPREAD_ODDS = -110

# Parlay legs priced shorter than this switch to the spread
ML_JUICE_THRESHOLD = -150

MIN_BET_FLOOR = 2
MIN_BET_PCT = 0.05
MIN_STRAIGHT_BETS = 3
MAX_STRAIGHT_BETS = 8
MAX_UNDERDOG_FLYERS = 3
VALUE_UNDERDOG_BOOST = 1.5
FLYER_MIN_ODDS = 200
VALUE_UNDERDOG_MIN_ODDS = 150


# ==================== SIZING ====================

def daily_budget_for(bankroll: float, risk_mode: RiskMode) -> int:
    """Portion of the bankroll put at risk today."""
    if bankroll <= 0:
        return 0
    return round_half_up(bankroll * DAILY_BUDGET_PCT[risk_mode])


def min_bet_for(daily_budget: int) -> int:
    return max(MIN_BET_FLOOR, int(daily_budget * MIN_BET_PCT))


def max_straight_bets_for(daily_budget: int, min_bet: int) -> int:
    return min(MAX_STRAIGHT_BETS, max(MIN_STRAIGHT_BETS, daily_budget // min_bet))


def distribute_budget(count: int, budget: int, weights: Sequence[float], min_bet: int) -> List[int]:
    """
    Split a category budget across its items.

    Items are truncated to as many min_bet wagers as the budget affords;
    if it cannot afford even one, a single item gets the whole budget.
    Amounts are proportional to weights (equal when all weights are zero)
    with a min_bet floor, and the rounding remainder goes to the first item.

    Returns:
        One amount per funded item (may be shorter than count), summing
        to budget exactly
    """
    if count == 0 or budget <= 0:
        return []

    n = min(count, budget // min_bet)
    if n == 0:
        return [budget]

    def equal_split() -> List[int]:
        per_bet = budget // n
        amounts = [per_bet] * n
        amounts[0] += budget - per_bet * n
        return amounts

    sliced = list(weights[:n])
    total_weight = sum(sliced)
    if total_weight == 0:
        return equal_split()

    amounts = [max(min_bet, round_half_up(w / total_weight * budget)) for w in sliced]
    amounts[0] += budget - sum(amounts)
    if amounts[0] < min_bet:
        return equal_split()
    return amounts


# ==================== CLASSIFICATION ====================

def _is_soccer(pick: Pick) -> bool:
    return pick.game.is_soccer


def get_pick_odds(pick: Pick) -> int:
    """Moneyline odds for the picked outcome, with book-standard defaults."""
    odds = pick.game.odds
    if odds is None:
        return DEFAULT_ODDS
    if pick.pick_type is PickType.DRAW:
        return odds.draw_moneyline if odds.draw_moneyline is not None else DEFAULT_DRAW_ODDS
    if pick.pick_type is PickType.HOME:
        return odds.home_moneyline if odds.home_moneyline is not None else DEFAULT_ODDS
    if pick.pick_type is PickType.AWAY:
        return odds.away_moneyline if odds.away_moneyline is not None else DEFAULT_ODDS
    return DEFAULT_ODDS


def _confidence(pick: Pick, default: Confidence) -> Confidence:
    return pick.analysis.confidence if pick.analysis is not None else default


def is_underdog_flyer(pick: Pick) -> bool:
    """Low confidence at better than +200: a small speculative stab."""
    return (
        pick.analysis is not None
        and pick.analysis.confidence is Confidence.LOW
        and get_pick_odds(pick) > FLYER_MIN_ODDS
    )


def is_value_underdog(pick: Pick) -> bool:
    """Plus money (> +150) the model still likes at medium or high confidence."""
    return (
        pick.analysis is not None
        and pick.analysis.confidence in (Confidence.MEDIUM, Confidence.HIGH)
        and get_pick_odds(pick) > VALUE_UNDERDOG_MIN_ODDS
    )


def _team_for_side(pick: Pick, side: Optional[str]) -> str:
    return pick.game.home_team if side == "home" else pick.game.away_team


def _side_line(spread: float, side: str) -> float:
    """Home-quoted spread seen from the given side."""
    return spread if side == "home" else -spread


def _moneyline_label(pick: Pick, odds: int) -> str:
    if pick.pick_type is PickType.DRAW:
        return f"Draw {format_american(odds)}"
    return f"{_team_for_side(pick, pick.pick_type.side)} {format_american(odds)}"


def decide_bet_type(pick: Pick) -> Tuple[str, str]:
    """
    Straight bet type and label for a pick.

    Soccer is always a 3-way moneyline. Elsewhere the optimized spread
    side wins when the game has a line; otherwise the picked side's ML.

    Returns:
        (STRAIGHT_ML or STRAIGHT_SPREAD, label)
    """
    odds = pick.game.odds
    if _is_soccer(pick):
        return STRAIGHT_ML, _moneyline_label(pick, get_pick_odds(pick))

    analysis = pick.analysis
    if analysis is not None and analysis.spread_pick and odds is not None and odds.spread is not None:
        return STRAIGHT_SPREAD, f"Spread {format_line(_side_line(odds.spread, analysis.spread_pick))}"

    ml = None
    if odds is not None:
        ml = odds.home_moneyline if pick.pick_type.side == "home" else odds.away_moneyline
    return STRAIGHT_ML, f"ML {format_american(ml)}".strip()


def decide_parlay_leg(pick: Pick) -> StrategyParlayLeg:
    """
    Moneyline or spread for one parlay leg.

    Heavy favorites (ML shorter than -150) become a -110 spread leg when a
    line exists, so the parlay multiplier does not collapse toward 1.0.
    """
    ml_odds = get_pick_odds(pick)
    odds = pick.game.odds

    if _is_soccer(pick):
        return StrategyParlayLeg(pick=pick, bet_type="ml", odds=ml_odds, label=_moneyline_label(pick, ml_odds))

    if ml_odds < ML_JUICE_THRESHOLD and odds is not None and odds.spread is not None:
        side = (pick.analysis.spread_pick if pick.analysis else None) or pick.pick_type.side
        return StrategyParlayLeg(
            pick=pick,
            bet_type="spread",
            odds=SPREAD_ODDS,
            label=f"{_team_for_side(pick, side)} {format_line(_side_line(odds.spread, side))}",
        )

    return StrategyParlayLeg(pick=pick, bet_type="ml", odds=ml_odds, label=_moneyline_label(pick, ml_odds))


# ==================== SELECTION ====================

def select_straight_bets(picks: Sequence[Pick], risk_mode: RiskMode, max_bets: int) -> List[Pick]:
    """Confident non-flyer picks ranked by differential, value dogs boosted."""
    floor = Confidence.LOW if risk_mode is RiskMode.AGGRESSIVE else Confidence.MEDIUM
    candidates = [
        p for p in picks
        if p.analysis is not None
        and not is_underdog_flyer(p)
        and p.analysis.confidence.rank >= floor.rank
    ]

    def rank(p: Pick) -> float:
        boost = VALUE_UNDERDOG_BOOST if is_value_underdog(p) else 1.0
        return abs(p.analysis.differential) * boost

    return sorted(candidates, key=rank, reverse=True)[:max_bets]


def select_underdog_flyers(picks: Sequence[Pick]) -> List[Pick]:
    flyers = [p for p in picks if is_underdog_flyer(p)]
    return sorted(flyers, key=lambda p: abs(p.analysis.differential), reverse=True)[:MAX_UNDERDOG_FLYERS]


def build_parlays(picks: Sequence[Pick], risk_mode: RiskMode) -> List[StrategyParlay]:
    """
    Lock, Best Value and Longshot parlays with no game used twice.

    A parlay that cannot reach its minimum leg count is left out.
    """
    eligible = sorted(
        (p for p in picks if p.analysis is not None),
        key=lambda p: (p.analysis.confidence.rank, abs(p.analysis.differential)),
        reverse=True,
    )
    if len(eligible) < 2:
        return []

    parlays: List[StrategyParlay] = []
    used_game_ids = set()

    def take(title: str, icon: str, limit: int, minimum: int, allow_low: bool) -> None:
        chosen = [
            p for p in eligible
            if p.game.id not in used_game_ids
            and (allow_low or p.analysis.confidence is not Confidence.LOW)
        ][:limit]
        if len(chosen) < minimum:
            return
        used_game_ids.update(p.game.id for p in chosen)
        parlays.append(StrategyParlay(title=title, icon=icon, legs=[decide_parlay_leg(p) for p in chosen]))

    take("Lock of the Day", "\U0001F512", limit=3, minimum=2, allow_low=False)
    if risk_mode is not RiskMode.CONSERVATIVE:
        take("Best Value", "\U0001F48E", limit=4, minimum=3, allow_low=False)
    if risk_mode is RiskMode.AGGRESSIVE:
        take("Longshot", "\U0001F3AF", limit=4, minimum=2, allow_low=True)

    return parlays


# ==================== EXPECTED VALUE ====================

def parlay_expected_value(legs: Sequence[StrategyParlayLeg], wager: float) -> float:
    """EV with the legs' tier win rates multiplied together."""
    win_prob = 1.0
    for leg in legs:
        win_prob *= WIN_RATES[_confidence(leg.pick, Confidence.MEDIUM)]
    return expected_value(win_prob, parlay_return((leg.odds for leg in legs), wager), wager)


def _straight_bet(pick: Pick, wager: int) -> StrategyBet:
    bet_type, label = decide_bet_type(pick)
    odds = SPREAD_ODDS if bet_type == STRAIGHT_SPREAD else get_pick_odds(pick)
    profit = potential_return(odds, wager)
    return StrategyBet(
        type=bet_type,
        wager=wager,
        pick=pick,
        bet_label=label,
        reason=pick.analysis.reasoning[0] if pick.analysis.reasoning else "",
        odds=odds,
        potential_return=profit,
        expected_value=expected_value(WIN_RATES[_confidence(pick, Confidence.MEDIUM)], profit, wager),
    )


def _underdog_bet(pick: Pick, wager: int) -> StrategyBet:
    odds = get_pick_odds(pick)
    profit = potential_return(odds, wager)
    return StrategyBet(
        type=UNDERDOG_FLYER,
        wager=wager,
        pick=pick,
        bet_label=f"ML {format_american(odds)}",
        reason=pick.analysis.reasoning[0] if pick.analysis.reasoning else "",
        odds=odds,
        potential_return=profit,
        expected_value=expected_value(WIN_RATES[_confidence(pick, Confidence.LOW)], profit, wager),
    )


# ==================== STRATEGY ====================

def generate_strategy(picks: Sequence[Pick], bankroll: float, risk_mode: RiskMode) -> DailyStrategy:
    """
    Build the day's plan.

    Args:
        picks: Analyzed picks (picks without an analysis are ignored)
        bankroll: Total bankroll in whole currency units
        risk_mode: Risk profile driving budget %, splits and parlay types

    Returns:
        DailyStrategy whose wagers sum to daily_budget, or an empty
        strategy when nothing qualifies or the bankroll is not positive
    """
    risk_mode = RiskMode(risk_mode)
    daily_budget = daily_budget_for(bankroll, risk_mode)
    min_bet = min_bet_for(daily_budget)
    if daily_budget <= 0:
        return DailyStrategy(bankroll=bankroll, daily_budget=0, risk_mode=risk_mode, min_bet=min_bet)

    straight_picks = select_straight_bets(picks, risk_mode, max_straight_bets_for(daily_budget, min_bet))
    underdog_picks = select_underdog_flyers(picks)
    parlays = build_parlays(picks, risk_mode)

    split_straight, split_parlays, split_underdogs = ALLOCATION_SPLITS[risk_mode]
    straight_budget = round_half_up(daily_budget * split_straight)
    parlay_budget = round_half_up(daily_budget * split_parlays)
    underdog_budget = round_half_up(daily_budget * split_underdogs)

    # Fold empty categories
    if not underdog_picks:
        straight_budget += underdog_budget
        underdog_budget = 0
    if not parlays:
        straight_budget += parlay_budget
        parlay_budget = 0
    if not straight_picks:
        parlay_budget += straight_budget
        straight_budget = 0

    straight_budget += daily_budget - (straight_budget + parlay_budget + underdog_budget)

    # Budget still parked on an empty category goes to the first non-empty one
    budgets = [straight_budget, parlay_budget, underdog_budget]
    filled = [bool(straight_picks), bool(parlays), bool(underdog_picks)]
    if not any(filled):
        logger.info(f"No bets qualified for {risk_mode.value} strategy ({len(picks)} picks)")
        return DailyStrategy(bankroll=bankroll, daily_budget=daily_budget, risk_mode=risk_mode, min_bet=min_bet)
    target = filled.index(True)
    for i in range(3):
        if not filled[i] and budgets[i]:
            budgets[target] += budgets[i]
            budgets[i] = 0
    straight_budget, parlay_budget, underdog_budget = budgets
    # A flyer split that rounded to nothing funds no flyers once another category has the budget
    if underdog_budget == 0:
        underdog_picks = []

    # Every funded bet gets at least min_bet
    straight_picks = straight_picks[:max(1, straight_budget // min_bet)]
    underdog_picks = underdog_picks[:max(1, underdog_budget // min_bet)]

    straight_amounts = distribute_budget(
        len(straight_picks), straight_budget,
        [abs(p.analysis.differential) for p in straight_picks], min_bet,
    )
    parlay_amounts = distribute_budget(len(parlays), parlay_budget, [1.0] * len(parlays), min_bet)
    underdog_amounts = distribute_budget(
        len(underdog_picks), underdog_budget,
        [abs(p.analysis.differential) for p in underdog_picks], min_bet,
    )

    straight_bets = [_straight_bet(p, w) for p, w in zip(straight_picks, straight_amounts)]
    underdog_flyers = [_underdog_bet(p, w) for p, w in zip(underdog_picks, underdog_amounts)]

    funded_parlays = []
    for parlay, wager in zip(parlays, parlay_amounts):
        parlay.wager = wager
        parlay.potential_return = parlay_return((leg.odds for leg in parlay.legs), wager)
        parlay.expected_value = parlay_expected_value(parlay.legs, wager)
        funded_parlays.append(parlay)

    all_bets = straight_bets + underdog_flyers
    expected_total = sum(b.expected_value for b in all_bets) + sum(p.expected_value for p in funded_parlays)
    high = sum(b.potential_return for b in all_bets) + sum(p.potential_return for p in funded_parlays)
    total_wagered = sum(b.wager for b in all_bets) + sum(p.wager for p in funded_parlays)

    strategy = DailyStrategy(
        bankroll=bankroll,
        daily_budget=daily_budget,
        risk_mode=risk_mode,
        min_bet=min_bet,
        straight_bets=straight_bets,
        parlays=funded_parlays,
        underdog_flyers=underdog_flyers,
        total_wagered=total_wagered,
        potential_return_range=ReturnRange(
            low=max(0.0, expected_total * 0.5),
            expected=expected_total,
            high=high,
        ),
    )
    logger.info(
        f"Built {risk_mode.value} strategy: {len(straight_bets)} straight, "
        f"{len(funded_parlays)} parlays, {len(underdog_flyers)} flyers, "
        f"${total_wagered} of ${daily_budget}",
        extra={"daily_budget": daily_budget, "total_wagered": total_wagered},
    )
    return strategy
