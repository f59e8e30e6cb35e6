"""Immutable snapshot of everything the calorie bank tracks."""

from dataclasses import dataclass, field
from datetime import date

from calorie_bank.domain.banking import BankingPlan
from calorie_bank.domain.calories import GoalConfig, WeeklyCalorieGoal, WeightEntry
from calorie_bank.domain.recovery import (
    OvereatingEvent,
    RecoveryPlan,
    RecoverySession,
    RecoverySettings,
)
from calorie_bank.services.records import DailyRecordStore


@dataclass(frozen=True)
class CalorieBankState:
    """Full persisted state. Mutations build a new instance."""

    goal: WeeklyCalorieGoal | None = None
    goal_config: GoalConfig | None = None
    records: DailyRecordStore = field(default_factory=DailyRecordStore)
    events: tuple[OvereatingEvent, ...] = ()
    plans: tuple[RecoveryPlan, ...] = ()
    active_session: RecoverySession | None = None
    session_history: tuple[RecoverySession, ...] = ()
    pending_carry_over: int = 0
    last_processed_date: date | None = None
    weights: tuple[WeightEntry, ...] = ()
    recovery_settings: RecoverySettings = field(default_factory=RecoverySettings)
    banking_plan: BankingPlan | None = None

    @property
    def sessions(self) -> tuple[RecoverySession, ...]:
        """All sessions whose adjusted targets may still apply."""
        if self.active_session is None:
            return self.session_history
        return (*self.session_history, self.active_session)
