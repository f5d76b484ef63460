"""
Shared arithmetic for the pattern detectors.

Rates round to 2 decimals, averages of points and ranks to 1 decimal.
A rate whose sample is below its minimum is None, never zero.
"""

from typing import Iterable, Optional


def rate(hits: int, sample: int, minimum: int = 1) -> Optional[float]:
    """hits / sample rounded to 2 decimals, or None below the minimum sample."""
    if sample < max(minimum, 1):
        return None
    return round(hits / sample, 2)


def mean(values: Iterable[float], digits: int = 1) -> Optional[float]:
    """Arithmetic mean rounded to `digits`, or None for an empty sample."""
    values = list(values)
    if not values:
        return None
    return round(sum(values) / len(values), digits)


def pct_label(value: float) -> str:
    """0.62 -> '62%'"""
    return f"{round(value * 100)}%"


def is_reach(pick_number: int, board_rank: Optional[int]) -> Optional[bool]:
    """A pick is a reach when it was taken earlier than the player's board rank."""
    if board_rank is None:
        return None
    return pick_number < board_rank
