"""Banking status calculator."""

from dataclasses import dataclass
from datetime import date

from calorie_bank.domain.banking import BankingStatus, ProjectedOutcome
from calorie_bank.domain.calories import DailyCalorieData, WeeklyCalorieGoal
from calorie_bank.services.state import CalorieBankState
from calorie_bank.services.weekly_goals import WeeklyGoalManager


@dataclass
class BankingStatusCalculator:
    """Computes the weekly bank view on demand."""

    goals: WeeklyGoalManager

    def get_status(self, state: CalorieBankState, today: date) -> BankingStatus | None:
        """Return where the week stands as of today, or None without a goal."""
        goal = state.goal
        if goal is None:
            return None
        sessions = state.sessions
        banking = state.banking_plan
        redistribution = self.goals.redistribute(
            goal, state.records, today, sessions, banking
        )
        today_target = self.goals.get_daily_target(
            goal, state.records, today, today, sessions, banking
        )
        scope = state.records.between(goal.allowance_start_date, goal.week_end_date)
        consumed = sum(record.consumed for record in scope)
        burned = sum(record.burned for record in scope)
        remaining = redistribution.effective_allowance - (consumed - burned)

        today_record = state.records.get(today)
        today_consumed = today_record.consumed if today_record else 0
        today_burned = today_record.burned if today_record else 0
        days_left = max(1, (goal.week_end_date - today).days + 1)
        future_days = days_left - 1
        future_average = (
            round((remaining - today_target) / future_days, 1) if future_days else 0.0
        )
        past = [record for record in scope if record.day < today]
        return BankingStatus(
            today_target=today_target,
            safe_to_eat_today=max(0, today_target - today_consumed + today_burned),
            week_consumed_total=consumed,
            week_burned_total=burned,
            week_remaining_allowance=remaining,
            weekly_allowance=goal.weekly_allowance,
            current_week_allowance=goal.current_week_allowance,
            effective_allowance=redistribution.effective_allowance,
            days_left=days_left,
            daily_average_for_future=future_average,
            projected_outcome=self._projected_outcome(goal, past),
            today_target_locked=bool(today_record and today_record.is_locked),
            deferred_shortfall=redistribution.deferred_shortfall,
            pending_carry_over=state.pending_carry_over,
            recovery_adjusted=any(session.covers(today) for session in sessions),
            banking_adjustment=banking.adjustment_for(today) if banking else 0,
        )

    def _projected_outcome(
        self, goal: WeeklyCalorieGoal, past: list[DailyCalorieData]
    ) -> ProjectedOutcome:
        """Compare the average daily deviation so far with the tolerance."""
        if not past:
            return ProjectedOutcome.ON_TRACK
        deviation = sum(
            record.consumed - record.burned - _target_of(record) for record in past
        )
        average = deviation / len(past)
        tolerance = goal.daily_baseline * self.goals.policy.pace_tolerance_ratio
        if average > tolerance:
            return ProjectedOutcome.OVER_BUDGET
        if average < -tolerance:
            return ProjectedOutcome.UNDER_BUDGET
        return ProjectedOutcome.ON_TRACK


def _target_of(record: DailyCalorieData) -> int:
    if record.locked_target is not None:
        return record.locked_target
    return record.target
