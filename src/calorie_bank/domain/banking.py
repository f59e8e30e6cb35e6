"""Domain models for the weekly bank view."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from uuid import UUID


class ProjectedOutcome(StrEnum):
    """Pace of the week against its targets."""

    ON_TRACK = "on-track"
    OVER_BUDGET = "over-budget"
    UNDER_BUDGET = "under-budget"


@dataclass(frozen=True)
class Redistribution:
    """Live targets for the unlocked days of the current week."""

    effective_allowance: int
    locked_total: int
    live_targets: dict[date, int] = field(default_factory=dict)
    deferred_shortfall: int = 0

    @property
    def live_total(self) -> int:
        return sum(self.live_targets.values())


@dataclass(frozen=True)
class BankingStatus:
    """How much can safely be eaten today and where the week stands."""

    today_target: int
    safe_to_eat_today: int
    week_consumed_total: int
    week_burned_total: int
    week_remaining_allowance: int
    weekly_allowance: int
    current_week_allowance: int
    effective_allowance: int
    days_left: int
    daily_average_for_future: float
    projected_outcome: ProjectedOutcome
    today_target_locked: bool
    deferred_shortfall: int
    pending_carry_over: int
    recovery_adjusted: bool
    banking_adjustment: int = 0


@dataclass(frozen=True)
class BankingPlan:
    """Calories saved on the days before a target date and spent on it.

    Every day from start_date up to the day before target_date gives up
    daily_reduction kcal; the target date receives the total.
    """

    id: UUID
    week_start_date: date
    start_date: date
    target_date: date
    daily_reduction: int
    created_at: datetime

    @property
    def reduced_days(self) -> list[date]:
        count = max(0, (self.target_date - self.start_date).days)
        return [self.start_date + timedelta(days=i) for i in range(count)]

    @property
    def total_banked(self) -> int:
        return self.daily_reduction * len(self.reduced_days)

    def adjustment_for(self, day: date) -> int:
        """Return the change applied to the day's target."""
        if day == self.target_date:
            return self.total_banked
        if self.start_date <= day < self.target_date:
            return -self.daily_reduction
        return 0


@dataclass(frozen=True)
class BankedDay:
    """One day of a banking preview."""

    day: date
    adjustment: int
    new_target: int


@dataclass(frozen=True)
class BankingPreview:
    """Validation result and projected targets for a banking request."""

    target_date: date
    daily_reduction: int
    total_banked: int
    days: tuple[BankedDay, ...]
    min_daily_calories: int
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors
