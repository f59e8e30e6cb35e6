"""Per-day calorie record store."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from uuid import UUID

from calorie_bank.domain.calories import (
    DailyCalorieData,
    MealEntry,
    MealUpdate,
    NewMeal,
    NewWorkout,
    WorkoutEntry,
)
from calorie_bank.domain.errors import InvalidEntryError, NotFoundError

MAX_ENTRY_CALORIES = 20000
MAX_SYNCED_BURNED = 15000


@dataclass(frozen=True)
class DailyRecordStore:
    """Immutable mapping of calendar day to its record.

    Every write returns a new store; records are created lazily on the first
    write for a day and never removed.
    """

    days: dict[date, DailyCalorieData] = field(default_factory=dict)

    def get(self, day: date) -> DailyCalorieData | None:
        return self.days.get(day)

    def between(self, start: date, end: date) -> list[DailyCalorieData]:
        """Return records in the inclusive range, ordered by day."""
        return [self.days[d] for d in sorted(self.days) if start <= d <= end]

    def put(self, record: DailyCalorieData) -> "DailyRecordStore":
        days = dict(self.days)
        days[record.day] = record
        return DailyRecordStore(days=days)

    def ensure(self, day: date, default_target: int) -> DailyCalorieData:
        """Return the day's record or a fresh one using the default target."""
        return self.days.get(day) or DailyCalorieData(day=day, target=default_target)

    def add_meal(
        self, day: date, meal: MealEntry, default_target: int
    ) -> "DailyRecordStore":
        record = self.ensure(day, default_target)
        return self.put(replace(record, meals=(*record.meals, meal)))

    def update_meal(
        self, day: date, meal_id: UUID, update: MealUpdate
    ) -> tuple["DailyRecordStore", MealEntry]:
        record = self._require(day)
        updated: MealEntry | None = None
        meals = []
        for meal in record.meals:
            if meal.id == meal_id:
                updated = _apply_update(meal, update)
                meals.append(updated)
            else:
                meals.append(meal)
        if updated is None:
            raise NotFoundError(f"meal {meal_id} not found on {day}")
        return self.put(replace(record, meals=tuple(meals))), updated

    def remove_meal(self, day: date, meal_id: UUID) -> "DailyRecordStore":
        record = self._require(day)
        meals = tuple(meal for meal in record.meals if meal.id != meal_id)
        if len(meals) == len(record.meals):
            raise NotFoundError(f"meal {meal_id} not found on {day}")
        return self.put(replace(record, meals=meals))

    def add_workout(
        self, day: date, workout: WorkoutEntry, default_target: int
    ) -> "DailyRecordStore":
        record = self.ensure(day, default_target)
        return self.put(replace(record, workouts=(*record.workouts, workout)))

    def set_synced_burned(
        self, day: date, calories: int, default_target: int
    ) -> "DailyRecordStore":
        record = self.ensure(day, default_target)
        return self.put(replace(record, synced_burned=calories))

    def lock(
        self, day: date, target: int, locked_at: datetime
    ) -> "DailyRecordStore":
        """Freeze the day's target. Already locked days are left untouched."""
        record = self.ensure(day, target)
        if record.is_locked:
            return self
        return self.put(replace(record, locked_target=target, locked_at=locked_at))

    def _require(self, day: date) -> DailyCalorieData:
        record = self.days.get(day)
        if record is None:
            raise NotFoundError(f"no record for {day}")
        return record


def validate_meal(meal: NewMeal) -> None:
    """Reject meals that must never enter the store."""
    if not meal.name.strip():
        raise InvalidEntryError("meal name must not be empty")
    _require_calories(meal.calories, "calories", MAX_ENTRY_CALORIES)


def validate_meal_update(update: MealUpdate) -> None:
    if update.name is not None and not update.name.strip():
        raise InvalidEntryError("meal name must not be empty")
    if update.calories is not None:
        _require_calories(update.calories, "calories", MAX_ENTRY_CALORIES)


def validate_workout(workout: NewWorkout) -> None:
    if not workout.name.strip():
        raise InvalidEntryError("workout name must not be empty")
    _require_calories(workout.calories_burned, "calories_burned", MAX_ENTRY_CALORIES)
    if workout.duration_minutes < 0:
        raise InvalidEntryError("duration_minutes must not be negative")


def validate_synced_burned(calories: int) -> None:
    _require_calories(calories, "burned calories", MAX_SYNCED_BURNED)


def _require_calories(value: int, label: str, maximum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidEntryError(f"{label} must be an integer")
    if value < 0:
        raise InvalidEntryError(f"{label} must not be negative")
    if value > maximum:
        raise InvalidEntryError(f"{label} must not exceed {maximum}")


def _apply_update(meal: MealEntry, update: MealUpdate) -> MealEntry:
    return replace(
        meal,
        name=update.name if update.name is not None else meal.name,
        calories=update.calories if update.calories is not None else meal.calories,
        category=update.category if update.category is not None else meal.category,
        macros=update.macros if update.macros is not None else meal.macros,
    )
