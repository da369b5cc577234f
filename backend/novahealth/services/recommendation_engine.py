"""
Pure parts of the recommendation engine: reference range evaluation, the
1..10 priority and the reason text. No database access.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

BASE_PRIORITY = 5
MIN_PRIORITY = 1
MAX_PRIORITY = 10

# Отклонение, которое считаем для нулевой границы (делить не на что).
ZERO_BOUND_DEVIATION = 100.0

Number = float | int | Decimal


@dataclass(frozen=True)
class RangeEvaluation:
    below_range: bool = False
    above_range: bool = False
    percent_deviation: float = 0.0

    @property
    def out_of_range(self) -> bool:
        return self.below_range or self.above_range


def _percent_of(delta: float, bound: float) -> float:
    if bound == 0:
        return ZERO_BOUND_DEVIATION
    return delta / abs(bound) * 100


def evaluate_range(value: Number, low: Number | None = None, high: Number | None = None) -> RangeEvaluation:
    """
    The low bound is checked first; a value below it is never compared with high.
    Does not set the abnormal flag.
    """
    v = float(value)
    if low is not None and v < float(low):
        lo = float(low)
        return RangeEvaluation(below_range=True, percent_deviation=_percent_of(lo - v, lo))
    if high is not None and v > float(high):
        hi = float(high)
        return RangeEvaluation(above_range=True, percent_deviation=_percent_of(v - hi, hi))
    return RangeEvaluation()


def score_priority(evaluation: RangeEvaluation) -> int:
    priority = BASE_PRIORITY
    if evaluation.out_of_range:
        deviation = evaluation.percent_deviation
        if deviation > 50:
            priority += 4
        elif deviation > 25:
            priority += 3
        elif deviation > 10:
            priority += 2
        else:
            priority += 1
    return max(MIN_PRIORITY, min(MAX_PRIORITY, priority))


def build_reason(name: str, evaluation: RangeEvaluation) -> str:
    if evaluation.below_range:
        return (
            f"Your {name} level is below the reference range. "
            "This supplement may help increase your levels."
        )
    if evaluation.above_range:
        return (
            f"Your {name} level is above the reference range. "
            "This supplement may help regulate your levels."
        )
    return f"This supplement may help optimize your {name} levels."
