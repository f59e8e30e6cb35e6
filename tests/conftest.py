"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any
from uuid import uuid4

import pytest

from calorie_bank.adapters.device_sync_client import DeviceSyncClient
from calorie_bank.config import Settings
from calorie_bank.containers import AppContainer
from calorie_bank.domain.calories import (
    GoalConfig,
    GoalMode,
    MealCategory,
    MealEntry,
    WeeklyCalorieGoal,
)
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import (
    RebalancingOption,
    RecoverySession,
    RecoveryStrategy,
)
from calorie_bank.services.calorie_bank import CalorieBankService
from calorie_bank.services.records import DailyRecordStore
from calorie_bank.services.snapshot import SnapshotRepository
from calorie_bank.services.suggestions import SuggestionClient, SuggestionService
from calorie_bank.services.weekly_goals import WeeklyGoalManager

MONDAY = date(2026, 10, 19)


def at(day: date, hour: int = 12) -> datetime:
    return datetime(day.year, day.month, day.day, hour, tzinfo=UTC)


def goal_config(tdee: int = 2500, weight: float | None = 70.0) -> GoalConfig:
    return GoalConfig(mode=GoalMode.CUT, tdee=tdee, current_weight_kg=weight)


def weekly_goal(
    baseline: int = 2000, today: date | None = None, tdee: int = 2500
) -> WeeklyCalorieGoal:
    return WeeklyGoalManager(BankingPolicy()).create_weekly_goal(
        baseline, goal_config(tdee=tdee), MONDAY, today=today
    )


def meal(calories: int, name: str = "pasta") -> MealEntry:
    return MealEntry(
        id=uuid4(),
        name=name,
        calories=calories,
        category=MealCategory.DINNER,
        logged_at=at(MONDAY),
    )


def records_with(
    consumed: dict[date, int] | None = None,
    locked: dict[date, int] | None = None,
    default_target: int = 2000,
) -> DailyRecordStore:
    """Build a record store from per-day consumption and locked targets."""
    store = DailyRecordStore()
    for day, calories in (consumed or {}).items():
        store = store.add_meal(day, meal(calories), default_target)
    for day, target in (locked or {}).items():
        store = store.lock(day, target, at(day, 23))
    return store


def session_for(
    start: date,
    reductions: tuple[int, ...],
    baseline: int = 2000,
    strategy: RecoveryStrategy = RecoveryStrategy.GENTLE,
) -> RecoverySession:
    option = RebalancingOption(
        strategy=strategy,
        duration_days=len(reductions),
        normal_daily_target=baseline,
        daily_reductions=reductions,
        daily_adjusted_targets=tuple(baseline - cut for cut in reductions),
    )
    return RecoverySession(
        id=uuid4(),
        plan_id=uuid4(),
        event_id=None,
        option=option,
        start_date=start,
    )


@dataclass
class FakeClock:
    """Clock returning a settable instant."""

    now: datetime = field(default_factory=lambda: at(MONDAY))

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 1) -> None:
        self.now += timedelta(days=days)


@dataclass
class InMemorySnapshotRepository(SnapshotRepository):
    """In-memory snapshot repository for tests."""

    payload: dict[str, Any] | None = None
    saves: int = 0
    fail_saves: bool = False

    def load(self) -> dict[str, Any] | None:
        return self.payload

    def save(self, payload: dict[str, Any]) -> None:
        if self.fail_saves:
            raise RuntimeError("disk full")
        self.payload = json.loads(json.dumps(payload))
        self.saves += 1


@dataclass
class FakeDeviceSyncClient(DeviceSyncClient):
    """Fake device proxy with per-day burned calories."""

    burned: dict[date, int] = field(default_factory=dict)
    failing: set[date] = field(default_factory=set)

    async def get_burned_calories_for_date(self, day: date) -> int:
        if day in self.failing:
            raise RuntimeError("proxy unavailable")
        return self.burned.get(day, 0)


@dataclass
class FakeSuggestionClient(SuggestionClient):
    """Fake suggestion client returning a fixed payload."""

    payload: dict[str, object] = field(
        default_factory=lambda: {
            "suggestions": [
                "Take a 30 minute brisk walk after lunch.",
                "Do an easy 20 minute bike ride.",
            ]
        }
    )
    error: Exception | None = None
    prompts: list[str] = field(default_factory=list)

    async def suggest(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        if self.error is not None:
            raise self.error
        self.prompts.append(prompt)
        return self.payload


def suggestion_service(client: FakeSuggestionClient | None = None) -> SuggestionService:
    return SuggestionService(
        client=client or FakeSuggestionClient(),
        model="gpt-5.2",
        reasoning_effort="low",
        store=False,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:  # type: ignore[no-untyped-def]
    return Settings(
        api_token="api-token",
        admin_token="admin-token",
        snapshot_path=str(tmp_path / "state.json"),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repository() -> InMemorySnapshotRepository:
    return InMemorySnapshotRepository()


@pytest.fixture
def service(
    clock: FakeClock, repository: InMemorySnapshotRepository
) -> CalorieBankService:
    return CalorieBankService(repository=repository, clock=clock)


@pytest.fixture
def container(settings: Settings, service: CalorieBankService) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        calorie_bank_service=service,
        close_resources=close_resources,
    )
