"""
American odds helpers shared by the strategy and parlay services.

Conventions:
- American odds: -110 means risk 110 to win 100, +150 means risk 100 to win 150
- "Return" is profit only (stake not included)
- Spread lines are quoted from the home team's side (-5.5 = home favored)
"""
import math
from typing import Iterable, Optional


def american_to_decimal(american: int) -> float:
    """Convert American odds to decimal."""
    if american > 0:
        return (american / 100) + 1
    return (100 / abs(american)) + 1


def implied_probability(american: int) -> float:
    """Bookmaker implied probability (vig included)."""
    if american > 0:
        return 100 / (american + 100)
    return abs(american) / (abs(american) + 100)


def potential_return(american: int, wager: float) -> float:
    """Profit on a winning bet."""
    if american > 0:
        return wager * (american / 100)
    return wager * (100 / abs(american))


def parlay_return(leg_odds: Iterable[int], wager: float) -> float:
    """Profit on a winning parlay: decimal odds multiply across legs."""
    combined = 1.0
    for odds in leg_odds:
        combined *= american_to_decimal(odds)
    return wager * (combined - 1)


def expected_value(win_prob: float, profit: float, wager: float) -> float:
    """EV = win_prob * profit - lose_prob * stake."""
    return (win_prob * profit) - ((1 - win_prob) * wager)


def format_american(odds: Optional[int]) -> str:
    """'+150', '-110', or '' when unknown."""
    if odds is None:
        return ""
    return f"+{odds}" if odds > 0 else f"{odds}"


def format_line(line: float) -> str:
    """Spread line with explicit sign: '+3.5', '-7', 'PK' for zero."""
    if line == 0:
        return "PK"
    text = f"{line:g}"
    return f"+{text}" if line > 0 else text


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (no banker's rounding)."""
    return int(math.floor(value + 0.5))


def round1(value: float) -> float:
    """Round to one decimal place, half up."""
    return math.floor(value * 10 + 0.5) / 10
