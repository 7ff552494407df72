"""Trend classification over chronological metric series."""
from enum import Enum
from typing import Sequence

from ecocoach.services.errors import UndefinedTrend

TREND_THRESHOLD_PCT = 5.0


class Trend(str, Enum):
    IMPROVING = "improving"
    DECLINING = "declining"
    STABLE = "stable"


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def percent_change(baseline: float, current: float) -> float:
    if baseline == 0:
        raise UndefinedTrend("Percent change is undefined for a zero baseline")
    return (current - baseline) / baseline * 100


def calculate_trend(values: Sequence[float], higher_is_better: bool = True) -> Trend:
    """
    Compare the mean of the second half of a series (oldest first) with the
    mean of the first half.

    A zero first-half mean makes the percent change undefined; the direction
    of the second-half mean then decides (both zero is stable).
    """
    if len(values) < 2:
        return Trend.STABLE

    mid = len(values) // 2
    first_avg = _mean(values[:mid])
    second_avg = _mean(values[mid:])

    try:
        change = percent_change(first_avg, second_avg)
    except UndefinedTrend:
        if second_avg == 0:
            return Trend.STABLE
        change = TREND_THRESHOLD_PCT + 1 if second_avg > 0 else -(TREND_THRESHOLD_PCT + 1)

    if not higher_is_better:
        change = -change

    if change > TREND_THRESHOLD_PCT:
        return Trend.IMPROVING
    if change < -TREND_THRESHOLD_PCT:
        return Trend.DECLINING
    return Trend.STABLE
