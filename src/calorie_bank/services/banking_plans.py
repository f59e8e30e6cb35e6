"""Calorie banking: save calories on coming days to spend on a chosen day."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import uuid4

from calorie_bank.domain.banking import BankedDay, BankingPlan, BankingPreview
from calorie_bank.domain.calories import WeeklyCalorieGoal
from calorie_bank.domain.errors import InvalidEntryError
from calorie_bank.domain.recovery import RecoverySession
from calorie_bank.services.records import DailyRecordStore
from calorie_bank.services.weekly_goals import WeeklyGoalManager

logger = logging.getLogger(__name__)

LOW_TARGET_MARGIN = 200
LARGE_DAILY_REDUCTION = 300
MIN_BANKING_DAYS = 2


@dataclass
class BankingPlanner:
    """Validates and creates banking plans inside the current week.

    Banking starts tomorrow and stops the day before the target date. The
    target date must fall in the same week so the allowance stays balanced.
    """

    goals: WeeklyGoalManager

    def is_available(self, goal: WeeklyCalorieGoal, today: date) -> bool:
        """Return True when at least one day to bank from and a target remain."""
        return (goal.week_end_date - today).days >= MIN_BANKING_DAYS

    def preview(  # noqa: PLR0913
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        sessions: Iterable[RecoverySession],
        target_date: date,
        daily_reduction: int,
        max_daily_reduction: int,
        now: datetime,
    ) -> BankingPreview:
        """Check a banking request and project the targets it would set."""
        today = now.date()
        floor = self.goals.policy.safety_floor
        errors: list[str] = []
        warnings: list[str] = []
        if target_date <= today:
            errors.append("target date must be after today")
        elif target_date < today + timedelta(days=MIN_BANKING_DAYS):
            errors.append("target date must leave at least one day to bank from")
        if target_date > goal.week_end_date:
            errors.append("target date must fall within the current week")
        if isinstance(daily_reduction, bool) or not isinstance(daily_reduction, int):
            raise InvalidEntryError("daily reduction must be an integer")
        if daily_reduction <= 0:
            errors.append("daily reduction must be positive")
        elif daily_reduction > max_daily_reduction:
            errors.append(f"daily reduction cannot exceed {max_daily_reduction} kcal")

        plan = _candidate(goal, target_date, daily_reduction, now)
        days: tuple[BankedDay, ...] = ()
        min_target = goal.daily_baseline
        if not errors:
            live = self.goals.redistribute(goal, records, today, sessions).live_targets
            days = tuple(
                BankedDay(
                    day=day,
                    adjustment=plan.adjustment_for(day),
                    new_target=live[day] + plan.adjustment_for(day),
                )
                for day in (*plan.reduced_days, target_date)
            )
            min_target = min(item.new_target for item in days)
            if min_target < floor:
                errors.append(
                    f"banking would drop a daily target to {min_target} kcal, "
                    f"below the {floor} kcal floor"
                )
            elif min_target < floor + LOW_TARGET_MARGIN:
                warnings.append("banking leaves very low daily targets")
            if daily_reduction > LARGE_DAILY_REDUCTION:
                warnings.append("large daily reductions may be hard to keep up")
        return BankingPreview(
            target_date=target_date,
            daily_reduction=daily_reduction,
            total_banked=plan.total_banked if not errors else 0,
            days=days,
            min_daily_calories=min_target,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def create_plan(  # noqa: PLR0913
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        sessions: Iterable[RecoverySession],
        target_date: date,
        daily_reduction: int,
        max_daily_reduction: int,
        created_at: datetime,
    ) -> BankingPlan:
        """Create a plan, raising InvalidEntryError when the preview has errors."""
        preview = self.preview(
            goal,
            records,
            sessions,
            target_date,
            daily_reduction,
            max_daily_reduction,
            created_at,
        )
        if not preview.is_valid:
            raise InvalidEntryError("; ".join(preview.errors))
        plan = _candidate(goal, target_date, daily_reduction, created_at)
        logger.info(
            "Banking %s kcal/day from %s for %s (%s kcal)",
            daily_reduction,
            plan.start_date,
            target_date,
            plan.total_banked,
        )
        return plan


def _candidate(
    goal: WeeklyCalorieGoal,
    target_date: date,
    daily_reduction: int,
    created_at: datetime,
) -> BankingPlan:
    return BankingPlan(
        id=uuid4(),
        week_start_date=goal.week_start_date,
        start_date=created_at.date() + timedelta(days=1),
        target_date=target_date,
        daily_reduction=max(0, daily_reduction),
        created_at=created_at,
    )
