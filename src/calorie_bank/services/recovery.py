"""Recovery plan generation."""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from uuid import UUID, uuid4

from calorie_bank.domain.calories import DAYS_PER_WEEK, WeeklyCalorieGoal
from calorie_bank.domain.errors import (
    AlreadyPlannedError,
    InvalidEntryError,
    NotFoundError,
)
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import (
    ArchiveReason,
    ImpactAnalysis,
    OvereatingEvent,
    RebalancingOption,
    RecoveryPlan,
    RecoveryStrategy,
    TriggerType,
)
from calorie_bank.services.overeating import require

logger = logging.getLogger(__name__)

REDUCTION_STRATEGIES = (
    RecoveryStrategy.GENTLE,
    RecoveryStrategy.MODERATE,
    RecoveryStrategy.QUICK,
)
MODERATE_CORRECTION_MIN_EXCESS = 700
MAX_WEEKLY_IMPACT_PCT = 1000.0
MAX_TIMELINE_DELAY_DAYS = 365
MAX_EQUIVALENT_WORKOUTS = 50.0
WORKOUT_KCAL_PER_KG = 5


@dataclass
class RecoveryPlanner:
    """Builds rebalancing options that spread an excess over future days."""

    policy: BankingPolicy

    def create_recovery_plan(  # noqa: PLR0913
        self,
        events: Sequence[OvereatingEvent],
        plans: Sequence[RecoveryPlan],
        event_id: UUID,
        goal: WeeklyCalorieGoal,
        created_at: datetime,
        suggestions: Sequence[str] = (),
        weight_kg: float | None = None,
    ) -> RecoveryPlan:
        """Create the plan for an overeating event.

        Raises NotFoundError for unknown or superseded events and
        AlreadyPlannedError when the event already has a plan.
        """
        event = require(tuple(events), event_id)
        if event.archived_reason is ArchiveReason.SUPERSEDED:
            raise NotFoundError(f"overeating event {event_id} was superseded")
        if event.archived_reason is ArchiveReason.PLANNED or any(
            plan.event_id == event_id for plan in plans
        ):
            raise AlreadyPlannedError(f"overeating event {event_id} already planned")
        remaining = max(1, DAYS_PER_WEEK - 1 - event.day.weekday())
        plan = self._build_plan(
            excess=event.excess_calories,
            trigger=event.trigger_type,
            event_id=event.id,
            goal=goal,
            created_at=created_at,
            earliest_start=event.day + timedelta(days=1),
            maintenance_days=remaining,
            suggestions=suggestions,
            weight_kg=weight_kg,
        )
        logger.info(
            "Created recovery plan %s for %s kcal (%s recommended)",
            plan.id,
            plan.excess_calories,
            plan.recommended_strategy,
        )
        return plan

    def create_carry_over_plan(
        self,
        shortfall: int,
        goal: WeeklyCalorieGoal,
        created_at: datetime,
        today: date,
        weight_kg: float | None = None,
    ) -> RecoveryPlan:
        """Create a plan that pays back a shortfall deferred by the safety floor."""
        return self._build_plan(
            excess=shortfall,
            trigger=self.policy.classify(shortfall),
            event_id=None,
            goal=goal,
            created_at=created_at,
            earliest_start=today,
            maintenance_days=max(1, DAYS_PER_WEEK - today.weekday()),
            suggestions=(),
            weight_kg=weight_kg,
        )

    def build_options(
        self, excess: int, baseline: int, maintenance_days: int
    ) -> tuple[RebalancingOption, ...]:
        """Return every option that keeps adjusted targets at or above the floor.

        Maintenance absorbs the excess inside the remaining days of the week
        and is only offered when those days can take it without crossing the
        floor.
        """
        max_cut = baseline - self.policy.safety_floor
        if max_cut <= 0:
            raise InvalidEntryError(
                f"daily baseline {baseline} leaves no room above the "
                f"{self.policy.safety_floor} kcal safety floor"
            )
        options = [
            self._reduction_option(strategy, excess, baseline, max_cut)
            for strategy in REDUCTION_STRATEGIES
        ]
        if excess <= maintenance_days * max_cut:
            reductions = _spread(excess, maintenance_days)
            options.append(
                RebalancingOption(
                    strategy=RecoveryStrategy.MAINTENANCE,
                    duration_days=maintenance_days,
                    normal_daily_target=baseline,
                    daily_reductions=reductions,
                    daily_adjusted_targets=tuple(baseline - cut for cut in reductions),
                )
            )
        return tuple(options)

    def impact(
        self, excess: int, goal: WeeklyCalorieGoal, weight_kg: float | None = None
    ) -> ImpactAnalysis:
        """Put an excess in perspective against the week and the long-term goal.

        The latest logged weight wins over the weight stored with the goal.
        """
        weekly_pct = 0.0
        if goal.weekly_allowance > 0:
            weekly_pct = min(
                excess / goal.weekly_allowance * 100, MAX_WEEKLY_IMPACT_PCT
            )
        weekly_deficit = abs(goal.deficit_target)
        weeks_to_recover = math.ceil(excess / weekly_deficit) if weekly_deficit else 1
        weight = weight_kg or goal.goal_config.current_weight_kg
        workout_burn = (
            weight * WORKOUT_KCAL_PER_KG if weight else self.policy.average_workout_burn
        )
        workouts = min(excess / workout_burn, MAX_EQUIVALENT_WORKOUTS)
        return ImpactAnalysis(
            weekly_budget_impact_pct=round(weekly_pct, 1),
            timeline_delay_days=min(
                weeks_to_recover * DAYS_PER_WEEK, MAX_TIMELINE_DELAY_DAYS
            ),
            equivalent_workouts=round(workouts, 1),
        )

    def _build_plan(  # noqa: PLR0913
        self,
        *,
        excess: int,
        trigger: TriggerType | None,
        event_id: UUID | None,
        goal: WeeklyCalorieGoal,
        created_at: datetime,
        earliest_start: date,
        maintenance_days: int,
        suggestions: Sequence[str],
        weight_kg: float | None,
    ) -> RecoveryPlan:
        options = self.build_options(excess, goal.daily_baseline, maintenance_days)
        recommended = _recommend(trigger, excess)
        if recommended not in {option.strategy for option in options}:
            recommended = RecoveryStrategy.GENTLE
        return RecoveryPlan(
            id=uuid4(),
            event_id=event_id,
            excess_calories=excess,
            trigger_type=trigger,
            created_at=created_at,
            earliest_start=earliest_start,
            rebalancing_options=options,
            recommended_strategy=recommended,
            impact=self.impact(excess, goal, weight_kg),
            ai_activity_suggestions=tuple(suggestions),
        )

    def _reduction_option(
        self, strategy: RecoveryStrategy, excess: int, baseline: int, max_cut: int
    ) -> RebalancingOption:
        days = self.policy.horizon(strategy)
        extended = False
        if math.ceil(excess / days) > max_cut:
            days = math.ceil(excess / max_cut)
            extended = True
        reductions = _spread(excess, days)
        return RebalancingOption(
            strategy=strategy,
            duration_days=days,
            normal_daily_target=baseline,
            daily_reductions=reductions,
            daily_adjusted_targets=tuple(baseline - cut for cut in reductions),
            extended=extended,
        )


def _spread(excess: int, days: int) -> tuple[int, ...]:
    base, remainder = divmod(excess, days)
    return tuple(base + 1 if i < remainder else base for i in range(days))


def _recommend(trigger: TriggerType | None, excess: int) -> RecoveryStrategy:
    # Small excesses stay inside the week; large ones get the longest spread.
    if trigger is TriggerType.MILD:
        return RecoveryStrategy.MAINTENANCE
    if trigger is TriggerType.MODERATE and excess > MODERATE_CORRECTION_MIN_EXCESS:
        return RecoveryStrategy.MODERATE
    return RecoveryStrategy.GENTLE
