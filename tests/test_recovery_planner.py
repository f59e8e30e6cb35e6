"""Tests for recovery plan generation."""

from dataclasses import replace
from datetime import date, timedelta
from uuid import uuid4

import pytest

from calorie_bank.domain.errors import (
    AlreadyPlannedError,
    InvalidEntryError,
    NotFoundError,
)
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import (
    ArchiveReason,
    OvereatingEvent,
    RecoveryStrategy,
    TriggerType,
)
from calorie_bank.services.recovery import RecoveryPlanner
from tests.conftest import MONDAY, at, weekly_goal

SATURDAY = MONDAY + timedelta(days=5)


def _planner() -> RecoveryPlanner:
    return RecoveryPlanner(BankingPolicy())


def _event(excess: int, day: date = MONDAY) -> OvereatingEvent:
    return OvereatingEvent(
        id=uuid4(),
        day=day,
        excess_calories=excess,
        trigger_type=BankingPolicy().classify(excess) or TriggerType.MILD,
        detected_at=at(day + timedelta(days=1)),
    )


def test_severe_excess_options_are_extended_to_respect_floor() -> None:
    event = _event(4500)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY + timedelta(days=1))
    )

    quick = plan.option(RecoveryStrategy.QUICK)
    moderate = plan.option(RecoveryStrategy.MODERATE)
    gentle = plan.option(RecoveryStrategy.GENTLE)
    assert quick.duration_days == 6
    assert quick.extended
    assert moderate.duration_days == 6
    assert moderate.extended
    assert gentle.duration_days == 7
    assert not gentle.extended
    assert gentle.daily_reductions == (643,) * 6 + (642,)
    for option in plan.rebalancing_options:
        assert option.total_reduction == 4500
        assert min(option.daily_adjusted_targets) >= 1200
    assert plan.recommended_strategy is RecoveryStrategy.GENTLE
    assert plan.earliest_start == MONDAY + timedelta(days=1)


def test_quick_option_without_floor_pressure_keeps_horizon() -> None:
    event = _event(600)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY)
    )

    quick = plan.option(RecoveryStrategy.QUICK)
    assert quick.duration_days == 3
    assert quick.daily_reductions == (200, 200, 200)
    assert quick.daily_adjusted_targets == (1800, 1800, 1800)
    assert not quick.extended


def test_maintenance_not_offered_when_week_cannot_absorb_excess() -> None:
    event = _event(1000, day=SATURDAY)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(SATURDAY)
    )

    strategies = {option.strategy for option in plan.rebalancing_options}
    assert RecoveryStrategy.MAINTENANCE not in strategies
    assert plan.recommended_strategy is RecoveryStrategy.GENTLE


def test_maintenance_absorbs_excess_within_the_week() -> None:
    event = _event(4500)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY + timedelta(days=1))
    )

    maintenance = plan.option(RecoveryStrategy.MAINTENANCE)
    assert maintenance.duration_days == 6
    assert maintenance.daily_reductions == (750,) * 6
    assert maintenance.daily_adjusted_targets == (1250,) * 6
    assert not maintenance.extended


def test_mild_excess_late_in_week_recommends_maintenance() -> None:
    event = _event(400, day=SATURDAY)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(SATURDAY)
    )

    maintenance = plan.option(RecoveryStrategy.MAINTENANCE)
    assert plan.recommended_strategy is RecoveryStrategy.MAINTENANCE
    assert maintenance.daily_reductions == (400,)
    assert maintenance.daily_adjusted_targets == (1600,)


def test_baseline_at_floor_cannot_be_planned() -> None:
    event = _event(400)

    with pytest.raises(InvalidEntryError):
        _planner().create_recovery_plan(
            (event,), (), event.id, weekly_goal(baseline=1200), at(MONDAY)
        )


@pytest.mark.parametrize(
    ("excess", "expected"),
    [
        (350, RecoveryStrategy.MAINTENANCE),
        (600, RecoveryStrategy.GENTLE),
        (800, RecoveryStrategy.MODERATE),
        (1500, RecoveryStrategy.GENTLE),
    ],
)
def test_recommendation_follows_severity(
    excess: int, expected: RecoveryStrategy
) -> None:
    event = _event(excess)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY)
    )

    assert plan.recommended_strategy is expected


def test_unknown_event_raises() -> None:
    with pytest.raises(NotFoundError):
        _planner().create_recovery_plan((), (), uuid4(), weekly_goal(), at(MONDAY))


def test_superseded_event_raises() -> None:
    event = replace(_event(600), archived_reason=ArchiveReason.SUPERSEDED)

    with pytest.raises(NotFoundError):
        _planner().create_recovery_plan(
            (event,), (), event.id, weekly_goal(), at(MONDAY)
        )


def test_second_plan_for_event_raises() -> None:
    planner = _planner()
    event = _event(600)
    plan = planner.create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY)
    )

    with pytest.raises(AlreadyPlannedError):
        planner.create_recovery_plan(
            (event,), (plan,), event.id, weekly_goal(), at(MONDAY)
        )


def test_impact_analysis() -> None:
    impact = _planner().impact(1400, weekly_goal())

    assert impact.weekly_budget_impact_pct == 10.0
    assert impact.timeline_delay_days == 7
    assert impact.equivalent_workouts == 4.0


def test_suggestions_are_attached() -> None:
    event = _event(600)

    plan = _planner().create_recovery_plan(
        (event,), (), event.id, weekly_goal(), at(MONDAY), ["Go for a walk."]
    )

    assert plan.ai_activity_suggestions == ("Go for a walk.",)


def test_carry_over_plan_starts_today() -> None:
    plan = _planner().create_carry_over_plan(300, weekly_goal(), at(MONDAY), MONDAY)

    assert plan.event_id is None
    assert plan.earliest_start == MONDAY
    assert plan.trigger_type is TriggerType.MILD
    assert plan.option(RecoveryStrategy.GENTLE).total_reduction == 300


def test_impact_prefers_latest_logged_weight() -> None:
    impact = _planner().impact(1400, weekly_goal(), weight_kg=100.0)

    assert impact.equivalent_workouts == 2.8
