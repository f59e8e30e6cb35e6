"""Body weight log and trend."""

from collections.abc import Sequence

from calorie_bank.domain.calories import TrendDirection, WeightEntry, WeightTrend
from calorie_bank.domain.errors import InvalidEntryError

MIN_WEIGHT_KG = 20.0
MAX_WEIGHT_KG = 500.0
TREND_WINDOW = 7
STABLE_CHANGE_KG = 0.5

Weights = tuple[WeightEntry, ...]


def validate_weight(weight_kg: float) -> None:
    if isinstance(weight_kg, bool) or not isinstance(weight_kg, int | float):
        raise InvalidEntryError("weight_kg must be a number")
    if not MIN_WEIGHT_KG <= weight_kg <= MAX_WEIGHT_KG:
        raise InvalidEntryError(
            f"weight_kg must be between {MIN_WEIGHT_KG:g} and {MAX_WEIGHT_KG:g}"
        )


def record_weight(weights: Sequence[WeightEntry], entry: WeightEntry) -> Weights:
    """Return the log with the entry replacing any reading from the same day."""
    kept = [existing for existing in weights if existing.day != entry.day]
    return tuple(sorted((*kept, entry), key=lambda item: item.day))


def latest_weight(weights: Sequence[WeightEntry]) -> float | None:
    if not weights:
        return None
    return max(weights, key=lambda item: item.day).weight_kg


def weight_trend(weights: Sequence[WeightEntry]) -> WeightTrend | None:
    """Compare the latest reading with the seventh most recent one.

    With fewer than seven readings the oldest one is used instead.
    """
    if not weights:
        return None
    recent = sorted(weights, key=lambda item: item.day, reverse=True)[:TREND_WINDOW]
    current = recent[0].weight_kg
    change = current - recent[-1].weight_kg if len(recent) > 1 else 0.0
    if change > STABLE_CHANGE_KG:
        direction = TrendDirection.UP
    elif change < -STABLE_CHANGE_KG:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE
    average = sum(item.weight_kg for item in recent) / len(recent)
    return WeightTrend(
        current_kg=current,
        seven_day_average_kg=round(average, 2),
        weekly_change_kg=round(change, 2),
        direction=direction,
    )
