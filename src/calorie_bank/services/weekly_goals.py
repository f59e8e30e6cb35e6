"""Weekly allowance, daily targets and redistribution."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, datetime

from calorie_bank.domain.banking import BankingPlan, Redistribution
from calorie_bank.domain.calories import (
    DAYS_PER_WEEK,
    GoalConfig,
    WeeklyCalorieGoal,
    days_remaining_in_week,
    week_start,
)
from calorie_bank.domain.errors import InvalidEntryError
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import RecoverySession
from calorie_bank.services.records import DailyRecordStore

logger = logging.getLogger(__name__)


@dataclass
class WeeklyGoalManager:
    """Owns the week's allowance and computes each day's target.

    A locked day keeps its target forever. Every other day of the current
    week shares what is left of the allowance once locked days, recovery
    overrides and calories already eaten on unlocked past days are taken out.
    """

    policy: BankingPolicy

    def create_weekly_goal(
        self,
        daily_baseline: int,
        goal_config: GoalConfig,
        week_start_date: date,
        today: date | None = None,
    ) -> WeeklyCalorieGoal:
        """Create the goal for the week containing week_start_date.

        When today falls inside that week after Monday, only the remaining
        days (today included) are funded for the current week.
        """
        if daily_baseline <= 0:
            raise InvalidEntryError("daily baseline must be positive")
        if daily_baseline < self.policy.safety_floor:
            raise InvalidEntryError(
                f"daily baseline must be at least {self.policy.safety_floor} kcal"
            )
        monday = week_start(week_start_date)
        weekly_allowance = daily_baseline * DAYS_PER_WEEK
        allowance_start = monday
        current_allowance = weekly_allowance
        if today is not None and week_start(today) == monday:
            allowance_start = today
            current_allowance = daily_baseline * days_remaining_in_week(today)
        goal = WeeklyCalorieGoal(
            week_start_date=monday,
            daily_baseline=daily_baseline,
            weekly_allowance=weekly_allowance,
            current_week_allowance=current_allowance,
            deficit_target=(daily_baseline - goal_config.tdee) * DAYS_PER_WEEK,
            allowance_start_date=allowance_start,
            goal_config=goal_config,
        )
        logger.info(
            "Created weekly goal for %s: baseline=%s allowance=%s/%s",
            monday,
            daily_baseline,
            current_allowance,
            weekly_allowance,
        )
        return goal

    def start_week(self, goal: WeeklyCalorieGoal, day: date) -> WeeklyCalorieGoal:
        """Supersede the goal with a full-week goal for the week of day."""
        monday = week_start(day)
        return replace(
            goal,
            week_start_date=monday,
            allowance_start_date=monday,
            current_week_allowance=goal.weekly_allowance,
        )

    def redistribute(
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        today: date,
        sessions: Iterable[RecoverySession] = (),
        banking: BankingPlan | None = None,
    ) -> Redistribution:
        """Compute live targets for the unlocked days from today to week end.

        A banking plan moves calories between pool days without changing the
        pool. Reductions already locked in have freed calories into the pool,
        so they are taken back out before the even split.
        """
        sessions = tuple(sessions)
        scope = goal.scope_days()
        effective = goal.current_week_allowance - sum(
            session.reduction_for(day) for day in scope for session in sessions
        )
        locked_total = 0
        spent = 0
        overrides: dict[date, int] = {}
        pool_days: list[date] = []
        for day in scope:
            record = records.get(day)
            if record is not None and record.locked_target is not None:
                locked_total += record.locked_target
                continue
            if day < today:
                spent += record.consumed if record is not None else 0
                continue
            override = _override_for(day, sessions)
            if override is not None:
                overrides[day] = override
                spent += override
                continue
            pool_days.append(day)

        pool = effective - locked_total - spent
        adjustments = _banking_adjustments(banking, pool_days)
        shares = _split(pool - sum(adjustments.values()), len(pool_days))
        live: dict[date, int] = dict(overrides)
        shortfall = 0
        for day, share in zip(pool_days, shares, strict=True):
            share += adjustments.get(day, 0)
            if share < self.policy.safety_floor:
                shortfall += self.policy.safety_floor - share
                share = self.policy.safety_floor
            live[day] = share
        if shortfall:
            logger.warning(
                "Redistribution for week %s hit the safety floor, deferring %s kcal",
                goal.week_start_date,
                shortfall,
            )
        return Redistribution(
            effective_allowance=effective,
            locked_total=locked_total,
            live_targets=dict(sorted(live.items())),
            deferred_shortfall=shortfall,
        )

    def get_daily_target(
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        day: date,
        today: date,
        sessions: Iterable[RecoverySession] = (),
        banking: BankingPlan | None = None,
    ) -> int:
        """Return the locked target if present, otherwise the live target."""
        record = records.get(day)
        if record is not None and record.locked_target is not None:
            return record.locked_target
        sessions = tuple(sessions)
        if goal.in_scope(day) and day >= today:
            return self.redistribute(
                goal, records, today, sessions, banking
            ).live_targets[day]
        override = _override_for(day, sessions)
        if override is not None:
            return override
        if record is not None and goal.in_scope(day):
            return record.target
        return goal.daily_baseline

    def lock_day(
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        day: date,
        locked_at: datetime,
        sessions: Iterable[RecoverySession] = (),
        banking: BankingPlan | None = None,
    ) -> DailyRecordStore:
        """Freeze the target the day had as of that day."""
        record = records.get(day)
        if record is not None and record.is_locked:
            return records
        target = self.get_daily_target(
            goal, records, day, today=day, sessions=sessions, banking=banking
        )
        logger.info("Locked target for %s at %s kcal", day, target)
        return records.lock(day, target, locked_at)

    def closing_shortfall(
        self,
        goal: WeeklyCalorieGoal,
        records: DailyRecordStore,
        sessions: Iterable[RecoverySession] = (),
        banking: BankingPlan | None = None,
    ) -> int:
        """Return how far the locked week overshot its effective allowance."""
        redistribution = self.redistribute(
            goal, records, goal.week_end_date, sessions, banking
        )
        spent = redistribution.locked_total + redistribution.live_total
        return max(0, spent - redistribution.effective_allowance)


def _override_for(day: date, sessions: tuple[RecoverySession, ...]) -> int | None:
    for session in sessions:
        target = session.adjusted_target_for(day)
        if target is not None:
            return target
    return None


def _split(total: int, parts: int) -> list[int]:
    """Split total into parts that differ by at most one, larger ones first."""
    if parts <= 0:
        return []
    base, remainder = divmod(total, parts)
    return [base + 1 if index < remainder else base for index in range(parts)]


def _banking_adjustments(
    banking: BankingPlan | None, pool_days: list[date]
) -> dict[date, int]:
    if banking is None or banking.target_date not in pool_days:
        return {}
    return {day: banking.adjustment_for(day) for day in pool_days}
