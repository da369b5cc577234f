from __future__ import annotations

from decimal import Decimal

from .recommendation_engine import evaluate_range


def to_decimal(value: float | int | Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def compute_deviation(value: Decimal, ref_min: Decimal | None, ref_max: Decimal | None) -> str:
    evaluation = evaluate_range(value, ref_min, ref_max)
    if evaluation.below_range:
        return "low"
    if evaluation.above_range:
        return "high"
    return "normal"


def resolve_abnormal(
    is_abnormal: bool | None, value: Decimal, ref_min: Decimal | None, ref_max: Decimal | None
) -> bool:
    # Явный флаг от клиента сохраняем как есть, иначе считаем по референсам.
    if is_abnormal is not None:
        return is_abnormal
    return compute_deviation(value, ref_min, ref_max) != "normal"
