"""Domain models for weekly goals and daily calorie records."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from uuid import UUID

DAYS_PER_WEEK = 7


class GoalMode(StrEnum):
    """Direction of the user's weight goal."""

    CUT = "cut"
    MAINTENANCE = "maintenance"
    BULK = "bulk"


class MealCategory(StrEnum):
    """Meal slot a logged entry belongs to."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    PRE_WORKOUT = "pre-workout"
    POST_WORKOUT = "post-workout"


class TrendDirection(StrEnum):
    """Direction of the recent weight change."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


@dataclass(frozen=True)
class Macros:
    """Macro breakdown of a meal in grams."""

    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0


@dataclass(frozen=True)
class MealEntry:
    """A logged meal."""

    id: UUID
    name: str
    calories: int
    category: MealCategory
    logged_at: datetime
    macros: Macros | None = None


@dataclass(frozen=True)
class WorkoutEntry:
    """A logged workout."""

    id: UUID
    name: str
    calories_burned: int
    duration_minutes: int
    logged_at: datetime
    sport: str | None = None


@dataclass(frozen=True)
class GoalConfig:
    """Inputs the daily baseline was derived from."""

    mode: GoalMode
    tdee: int
    current_weight_kg: float | None = None
    estimated_weeks_to_goal: int | None = None


@dataclass(frozen=True)
class WeeklyCalorieGoal:
    """Calorie allowance for one Monday-anchored week."""

    week_start_date: date
    daily_baseline: int
    weekly_allowance: int
    current_week_allowance: int
    deficit_target: int
    allowance_start_date: date
    goal_config: GoalConfig

    @property
    def total_target(self) -> int:
        return self.weekly_allowance

    @property
    def week_end_date(self) -> date:
        return self.week_start_date + timedelta(days=DAYS_PER_WEEK - 1)

    def in_week(self, day: date) -> bool:
        """Return True when the day falls in this goal's calendar week."""
        return self.week_start_date <= day <= self.week_end_date

    def in_scope(self, day: date) -> bool:
        """Return True when the day is covered by the current allowance."""
        return self.allowance_start_date <= day <= self.week_end_date

    def scope_days(self) -> list[date]:
        """Return the days covered by the current allowance, in order."""
        count = (self.week_end_date - self.allowance_start_date).days + 1
        return [self.allowance_start_date + timedelta(days=i) for i in range(count)]


@dataclass(frozen=True)
class WeightEntry:
    """A body weight reading; one per calendar day."""

    day: date
    weight_kg: float
    logged_at: datetime


@dataclass(frozen=True)
class DailyCalorieData:
    """Calories logged for a single calendar day."""

    day: date
    target: int
    locked_target: int | None = None
    locked_at: datetime | None = None
    meals: tuple[MealEntry, ...] = ()
    workouts: tuple[WorkoutEntry, ...] = ()
    synced_burned: int = 0

    @property
    def consumed(self) -> int:
        return sum(meal.calories for meal in self.meals)

    @property
    def burned(self) -> int:
        return sum(w.calories_burned for w in self.workouts) + self.synced_burned

    @property
    def is_locked(self) -> bool:
        return self.locked_target is not None


@dataclass(frozen=True)
class WeightTrend:
    """Latest weight against the last seven readings."""

    current_kg: float
    seven_day_average_kg: float
    weekly_change_kg: float
    direction: TrendDirection


@dataclass(frozen=True)
class NewMeal:
    """Meal input accepted at the logging boundary."""

    name: str
    calories: int
    category: MealCategory = MealCategory.SNACK
    day: date | None = None
    macros: Macros | None = None


@dataclass(frozen=True)
class NewWorkout:
    """Workout input accepted at the logging boundary."""

    name: str
    calories_burned: int
    duration_minutes: int = 0
    sport: str | None = None
    day: date | None = None


@dataclass(frozen=True)
class MealUpdate:
    """Partial update for an existing meal."""

    name: str | None = None
    calories: int | None = None
    category: MealCategory | None = None
    macros: Macros | None = None


@dataclass(frozen=True)
class MacroProgress:
    """Current vs target grams for one macro."""

    current: float
    target: float


@dataclass(frozen=True)
class DailyProgress:
    """Today's numbers for the daily logging view."""

    day: date
    consumed: int
    burned: int
    target: int
    remaining: int
    target_locked: bool
    protein: MacroProgress
    carbs: MacroProgress
    fat: MacroProgress
    meals: tuple[MealEntry, ...] = field(default_factory=tuple)
    workouts: tuple[WorkoutEntry, ...] = field(default_factory=tuple)


def week_start(day: date) -> date:
    """Return the Monday of the week containing the day."""
    return day - timedelta(days=day.weekday())


def days_remaining_in_week(day: date) -> int:
    """Return the days left in the week, today included."""
    return DAYS_PER_WEEK - day.weekday()
