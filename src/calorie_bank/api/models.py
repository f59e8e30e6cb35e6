"""Request payloads and response helpers for the HTTP API."""

from dataclasses import replace
from datetime import date
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, TypeAdapter

from calorie_bank.domain.banking import BankingPlan
from calorie_bank.domain.calories import (
    DailyCalorieData,
    GoalConfig,
    GoalMode,
    Macros,
    MealCategory,
    MealUpdate,
    NewMeal,
    NewWorkout,
)
from calorie_bank.domain.recovery import (
    RecoverySession,
    RecoverySettings,
    RecoveryStrategy,
)

_JSON = TypeAdapter(Any)


class MacrosModel(BaseModel):
    """Macro grams attached to a meal."""

    protein_g: float = Field(default=0.0, ge=0)
    carbs_g: float = Field(default=0.0, ge=0)
    fat_g: float = Field(default=0.0, ge=0)

    def to_domain(self) -> Macros:
        return Macros(protein_g=self.protein_g, carbs_g=self.carbs_g, fat_g=self.fat_g)


class GoalRequest(BaseModel):
    """Payload for configuring the weekly goal."""

    daily_baseline: int = Field(gt=0)
    tdee: int = Field(gt=0)
    mode: GoalMode = GoalMode.CUT
    current_weight_kg: float | None = Field(default=None, gt=0)
    estimated_weeks_to_goal: int | None = Field(default=None, ge=1)

    def to_config(self) -> GoalConfig:
        return GoalConfig(
            mode=self.mode,
            tdee=self.tdee,
            current_weight_kg=self.current_weight_kg,
            estimated_weeks_to_goal=self.estimated_weeks_to_goal,
        )


class MealRequest(BaseModel):
    """Payload for logging a meal."""

    name: str = Field(min_length=1)
    calories: int = Field(ge=0)
    category: MealCategory = MealCategory.SNACK
    day: date | None = None
    macros: MacrosModel | None = None

    def to_domain(self) -> NewMeal:
        return NewMeal(
            name=self.name,
            calories=self.calories,
            category=self.category,
            day=self.day,
            macros=self.macros.to_domain() if self.macros else None,
        )


class MealUpdateRequest(BaseModel):
    """Partial meal update."""

    name: str | None = Field(default=None, min_length=1)
    calories: int | None = Field(default=None, ge=0)
    category: MealCategory | None = None
    macros: MacrosModel | None = None

    def to_domain(self) -> MealUpdate:
        return MealUpdate(
            name=self.name,
            calories=self.calories,
            category=self.category,
            macros=self.macros.to_domain() if self.macros else None,
        )


class WorkoutRequest(BaseModel):
    """Payload for logging a workout."""

    name: str = Field(min_length=1)
    calories_burned: int = Field(ge=0)
    duration_minutes: int = Field(default=0, ge=0)
    sport: str | None = None
    day: date | None = None

    def to_domain(self) -> NewWorkout:
        return NewWorkout(
            name=self.name,
            calories_burned=self.calories_burned,
            duration_minutes=self.duration_minutes,
            sport=self.sport,
            day=self.day,
        )


class BurnedCaloriesRequest(BaseModel):
    """Device-synced active calories for a day."""

    calories: int = Field(ge=0)


class WeightRequest(BaseModel):
    """A body weight reading."""

    weight_kg: float = Field(gt=0)
    day: date | None = None


class RecoverySettingsRequest(BaseModel):
    """Partial update of the recovery settings."""

    enable_recovery_mode: bool | None = None
    preferred_strategy: RecoveryStrategy | None = None
    max_daily_reduction: int | None = Field(default=None, gt=0)

    def apply(self, current: RecoverySettings) -> RecoverySettings:
        changes = self.model_dump(exclude_unset=True)
        if changes.get("enable_recovery_mode") is None:
            changes.pop("enable_recovery_mode", None)
        if changes.get("max_daily_reduction") is None:
            changes.pop("max_daily_reduction", None)
        return replace(current, **changes)


class BankingPlanRequest(BaseModel):
    """Target date and daily reduction for a banking plan."""

    target_date: date
    daily_reduction: int = Field(gt=0)


class StartSessionRequest(BaseModel):
    """Choice of plan and strategy for a recovery session."""

    plan_id: UUID
    strategy: RecoveryStrategy | None = None


class CarryOverRequest(BaseModel):
    """Strategy used to pay back a carried-over shortfall."""

    strategy: RecoveryStrategy | None = None


def to_json(value: object) -> Any:
    """Convert domain dataclasses into JSON-compatible data."""
    return _JSON.dump_python(value, mode="json")


def day_to_json(record: DailyCalorieData) -> dict[str, object]:
    """Serialize a day record with its derived totals."""
    payload = to_json(record)
    payload["consumed"] = record.consumed
    payload["burned"] = record.burned
    return payload


def session_to_json(session: RecoverySession) -> dict[str, object]:
    """Serialize a session with its derived dates."""
    payload = to_json(session)
    payload["days_remaining"] = session.days_remaining
    payload["end_date"] = session.end_date.isoformat()
    return payload


def banking_to_json(plan: BankingPlan) -> dict[str, object]:
    """Serialize a banking plan with its banked total."""
    payload = to_json(plan)
    payload["total_banked"] = plan.total_banked
    payload["reduced_days"] = [day.isoformat() for day in plan.reduced_days]
    return payload
