"""Domain models for overeating events and recovery."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum
from uuid import UUID

from calorie_bank.domain.errors import NotFoundError


class TriggerType(StrEnum):
    """Severity of an overeating event."""

    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class ArchiveReason(StrEnum):
    """Why an overeating event is no longer open."""

    SUPERSEDED = "superseded"
    PLANNED = "planned"


class RecoveryStrategy(StrEnum):
    """Ways of spreading an excess over future days."""

    GENTLE = "gentle"
    MODERATE = "moderate"
    QUICK = "quick"
    MAINTENANCE = "maintenance"


class SessionStatus(StrEnum):
    """Lifecycle of a recovery session."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class OvereatingEvent:
    """A closed day whose consumption exceeded its locked target."""

    id: UUID
    day: date
    excess_calories: int
    trigger_type: TriggerType
    detected_at: datetime
    user_acknowledged: bool = False
    archived_reason: ArchiveReason | None = None

    @property
    def is_open(self) -> bool:
        return self.archived_reason is None


@dataclass(frozen=True)
class RebalancingOption:
    """One candidate schedule of adjusted daily targets."""

    strategy: RecoveryStrategy
    duration_days: int
    normal_daily_target: int
    daily_reductions: tuple[int, ...]
    daily_adjusted_targets: tuple[int, ...]
    extended: bool = False

    @property
    def total_reduction(self) -> int:
        return sum(self.daily_reductions)

    @property
    def per_day_reduction(self) -> int:
        if not self.daily_reductions:
            return 0
        return max(self.daily_reductions)


@dataclass(frozen=True)
class ImpactAnalysis:
    """How much an excess matters against the weekly and long-term goal."""

    weekly_budget_impact_pct: float
    timeline_delay_days: int
    equivalent_workouts: float


@dataclass(frozen=True)
class RecoveryPlan:
    """Immutable set of rebalancing options for one excess."""

    id: UUID
    event_id: UUID | None
    excess_calories: int
    trigger_type: TriggerType | None
    created_at: datetime
    earliest_start: date
    rebalancing_options: tuple[RebalancingOption, ...]
    recommended_strategy: RecoveryStrategy
    impact: ImpactAnalysis
    ai_activity_suggestions: tuple[str, ...] = ()

    def option(self, strategy: RecoveryStrategy) -> RebalancingOption:
        """Return the option for a strategy."""
        for option in self.rebalancing_options:
            if option.strategy is strategy:
                return option
        raise NotFoundError(f"plan {self.id} has no {strategy} option")


@dataclass(frozen=True)
class RecoverySession:
    """A chosen rebalancing option being applied day by day."""

    id: UUID
    plan_id: UUID
    event_id: UUID | None
    option: RebalancingOption
    start_date: date
    status: SessionStatus = SessionStatus.ACTIVE
    days_completed: int = 0
    adherent_days: int = 0
    ended_on: date | None = None

    @property
    def days_remaining(self) -> int:
        return max(0, self.option.duration_days - self.days_completed)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=self.option.duration_days - 1)

    @property
    def is_active(self) -> bool:
        return self.status is SessionStatus.ACTIVE

    def in_range(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def covers(self, day: date) -> bool:
        """Return True when the session's adjusted target applies to the day."""
        if not self.in_range(day):
            return False
        if self.status is SessionStatus.ABANDONED:
            return self.ended_on is not None and day < self.ended_on
        return True

    def adjusted_target_for(self, day: date) -> int | None:
        if not self.covers(day):
            return None
        return self.option.daily_adjusted_targets[(day - self.start_date).days]

    def reduction_for(self, day: date) -> int:
        if not self.covers(day):
            return 0
        return self.option.daily_reductions[(day - self.start_date).days]


@dataclass(frozen=True)
class SessionProgress:
    """Progress summary for the active session."""

    days_completed: int
    days_remaining: int
    adjusted_target: int | None
    adherence_rate: float


@dataclass(frozen=True)
class RecoverySettings:
    """User preferences for overeating detection and banking."""

    enable_recovery_mode: bool = True
    preferred_strategy: RecoveryStrategy | None = None
    max_daily_reduction: int = 500
