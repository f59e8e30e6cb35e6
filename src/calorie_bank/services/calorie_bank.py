"""Calorie bank service: the single entry point over the banking engine."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

from calorie_bank.adapters.device_sync_client import DeviceSyncClient
from calorie_bank.domain.banking import BankingPlan, BankingPreview, BankingStatus
from calorie_bank.domain.calories import (
    DailyCalorieData,
    DailyProgress,
    GoalConfig,
    MacroProgress,
    MealEntry,
    MealUpdate,
    NewMeal,
    NewWorkout,
    WeeklyCalorieGoal,
    WeightEntry,
    WeightTrend,
    WorkoutEntry,
)
from calorie_bank.domain.errors import (
    ConfigurationMissingError,
    CorruptStateError,
    InvalidEntryError,
    NotFoundError,
    PersistenceError,
    SessionConflictError,
    SuggestionError,
)
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import (
    OvereatingEvent,
    RecoveryPlan,
    RecoverySession,
    RecoverySettings,
    RecoveryStrategy,
    SessionProgress,
)
from calorie_bank.services import overeating
from calorie_bank.services.banking import BankingStatusCalculator
from calorie_bank.services.banking_plans import BankingPlanner
from calorie_bank.services.overeating import OvereatingDetector
from calorie_bank.services.records import (
    validate_meal,
    validate_meal_update,
    validate_synced_burned,
    validate_workout,
)
from calorie_bank.services.recovery import RecoveryPlanner
from calorie_bank.services.recovery_sessions import RecoverySessionTracker
from calorie_bank.services.snapshot import (
    SnapshotRepository,
    decode_state,
    encode_state,
)
from calorie_bank.services.state import CalorieBankState
from calorie_bank.services.suggestions import SuggestionService
from calorie_bank.services.weekly_goals import WeeklyGoalManager
from calorie_bank.services.weights import (
    latest_weight,
    record_weight,
    validate_weight,
    weight_trend,
)

logger = logging.getLogger(__name__)

Listener = Callable[[CalorieBankState], None]

MAX_BACKFILL_DAYS = 35
DEFAULT_WEIGHT_KG = 70.0
PROTEIN_G_PER_KG = 2.2
CARB_CALORIE_SHARE = 0.45
FAT_CALORIE_SHARE = 0.25
KCAL_PER_G_CARB = 4
KCAL_PER_G_FAT = 9


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class CalorieBankService:
    """Owns the calorie bank state and exposes every banking operation.

    State is an immutable snapshot. Each mutation builds a new snapshot,
    swaps it in, notifies listeners and then saves it in full. Days that
    passed since the last call are closed lazily before any operation runs.
    """

    repository: SnapshotRepository
    policy: BankingPolicy = field(default_factory=BankingPolicy)
    clock: Callable[[], datetime] = _utc_now
    device_client: DeviceSyncClient | None = None
    suggestion_service: SuggestionService | None = None
    listeners: list[Listener] = field(default_factory=list)
    reset_required: bool = field(default=False, init=False)
    _state: CalorieBankState = field(default_factory=CalorieBankState, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.goals = WeeklyGoalManager(self.policy)
        self.banking = BankingStatusCalculator(self.goals)
        self.banking_plans = BankingPlanner(self.goals)
        self.detector = OvereatingDetector(self.policy)
        self.planner = RecoveryPlanner(self.policy)
        self.tracker = RecoverySessionTracker()

    @property
    def state(self) -> CalorieBankState:
        return self._state

    def load(self) -> CalorieBankState:
        """Load the persisted snapshot, starting empty when it is missing or corrupt."""
        try:
            payload = self.repository.load()
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError("failed to load calorie bank snapshot") from exc
        state = CalorieBankState()
        self.reset_required = False
        if payload is not None:
            try:
                state = decode_state(payload)
            except CorruptStateError:
                logger.warning(
                    "Stored calorie bank snapshot is corrupt; waiting for reset",
                    exc_info=True,
                )
                self.reset_required = True
        self._state = state
        self._loaded = True
        return state

    def reset_configuration(self) -> None:
        """Discard all state, including a corrupt snapshot."""
        self._loaded = True
        self.reset_required = False
        logger.info("Calorie bank configuration reset")
        self._commit(CalorieBankState())

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with every new state; returns an unsubscriber."""
        self.listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self.listeners:
                self.listeners.remove(listener)

        return unsubscribe

    def configure_goal(
        self, daily_baseline: int, goal_config: GoalConfig
    ) -> WeeklyCalorieGoal:
        """Start a goal for the current week, funding only the days left."""
        state, now = self._prepare()
        today = now.date()
        goal = self.goals.create_weekly_goal(
            daily_baseline, goal_config, today, today=today
        )
        self._commit(
            replace(
                state,
                goal=goal,
                goal_config=goal_config,
                last_processed_date=state.last_processed_date or today,
            )
        )
        return goal

    def get_daily_target(self, day: date | None = None) -> int | None:
        state, now = self._prepare()
        if state.goal is None:
            return None
        return self.goals.get_daily_target(
            state.goal,
            state.records,
            day or now.date(),
            now.date(),
            state.sessions,
            state.banking_plan,
        )

    def get_locked_daily_target(self, day: date | None = None) -> int | None:
        state, now = self._prepare()
        record = state.records.get(day or now.date())
        return record.locked_target if record is not None else None

    def lock_day(self, day: date | None = None) -> int:
        """Close a day explicitly, freezing its target."""
        state, now = self._prepare()
        goal = _require_goal(state)
        day = day or now.date()
        if day > now.date():
            raise InvalidEntryError("cannot lock a future day")
        records = self.goals.lock_day(
            goal, state.records, day, now, state.sessions, state.banking_plan
        )
        if records is not state.records:
            self._commit(replace(state, records=records))
        locked = records.get(day)
        if locked is None or locked.locked_target is None:
            return 0
        return locked.locked_target

    def get_todays_data(self) -> DailyCalorieData | None:
        state, now = self._prepare()
        if state.goal is None:
            return None
        target = self._target(state, now.date(), now)
        return replace(state.records.ensure(now.date(), target), target=target)

    def get_daily_progress(self) -> DailyProgress | None:
        """Return today's calories and macros against their targets."""
        state, now = self._prepare()
        if state.goal is None:
            return None
        today = now.date()
        target = self._target(state, today, now)
        record = state.records.ensure(today, target)
        macros = [meal.macros for meal in record.meals if meal.macros is not None]
        weight = (
            latest_weight(state.weights)
            or state.goal.goal_config.current_weight_kg
            or DEFAULT_WEIGHT_KG
        )
        return DailyProgress(
            day=today,
            consumed=record.consumed,
            burned=record.burned,
            target=target,
            remaining=target - record.consumed + record.burned,
            target_locked=record.is_locked,
            protein=MacroProgress(
                current=sum(m.protein_g for m in macros),
                target=round(weight * PROTEIN_G_PER_KG),
            ),
            carbs=MacroProgress(
                current=sum(m.carbs_g for m in macros),
                target=round(target * CARB_CALORIE_SHARE / KCAL_PER_G_CARB),
            ),
            fat=MacroProgress(
                current=sum(m.fat_g for m in macros),
                target=round(target * FAT_CALORIE_SHARE / KCAL_PER_G_FAT),
            ),
            meals=record.meals,
            workouts=record.workouts,
        )

    def get_calorie_bank_status(self) -> BankingStatus | None:
        state, now = self._prepare()
        return self.banking.get_status(state, now.date())

    def log_meal(self, meal: NewMeal) -> MealEntry:
        validate_meal(meal)
        state, now = self._prepare()
        day = self._entry_day(meal.day, now)
        entry = MealEntry(
            id=uuid4(),
            name=meal.name.strip(),
            calories=meal.calories,
            category=meal.category,
            logged_at=now,
            macros=meal.macros,
        )
        records = state.records.add_meal(day, entry, self._target(state, day, now))
        events = self.detector.refresh(state.events, records, day)
        self._commit(replace(state, records=records, events=events))
        logger.info("Logged meal %s on %s: %s kcal", entry.id, day, entry.calories)
        return entry

    def edit_meal(self, day: date, meal_id: UUID, update: MealUpdate) -> MealEntry:
        validate_meal_update(update)
        state, _ = self._prepare()
        records, entry = state.records.update_meal(day, meal_id, update)
        events = self.detector.refresh(state.events, records, day)
        self._commit(replace(state, records=records, events=events))
        return entry

    def delete_meal(self, day: date, meal_id: UUID) -> None:
        state, _ = self._prepare()
        records = state.records.remove_meal(day, meal_id)
        events = self.detector.refresh(state.events, records, day)
        self._commit(replace(state, records=records, events=events))

    def log_workout(self, workout: NewWorkout) -> WorkoutEntry:
        validate_workout(workout)
        state, now = self._prepare()
        day = self._entry_day(workout.day, now)
        entry = WorkoutEntry(
            id=uuid4(),
            name=workout.name.strip(),
            calories_burned=workout.calories_burned,
            duration_minutes=workout.duration_minutes,
            logged_at=now,
            sport=workout.sport,
        )
        records = state.records.add_workout(day, entry, self._target(state, day, now))
        self._commit(replace(state, records=records))
        return entry

    def update_burned_calories(self, day: date, calories: int) -> DailyCalorieData:
        """Store device-synced active calories for a day, replacing the old value."""
        validate_synced_burned(calories)
        state, now = self._prepare()
        day = self._entry_day(day, now)
        records = state.records.set_synced_burned(
            day, calories, self._target(state, day, now)
        )
        self._commit(replace(state, records=records))
        return records.days[day]

    def log_weight(self, weight_kg: float, day: date | None = None) -> WeightEntry:
        """Record a weight reading, replacing any earlier reading for that day."""
        validate_weight(weight_kg)
        state, now = self._prepare()
        entry = WeightEntry(
            day=self._entry_day(day, now), weight_kg=float(weight_kg), logged_at=now
        )
        self._commit(replace(state, weights=record_weight(state.weights, entry)))
        logger.info("Logged weight %.1f kg on %s", entry.weight_kg, entry.day)
        return entry

    def get_weight_trend(self) -> WeightTrend | None:
        state, _ = self._prepare()
        return weight_trend(state.weights)

    async def sync_burned_calories(self, day: date) -> int:
        """Fetch a day's active calories from the device proxy and store them."""
        if self.device_client is None:
            raise ConfigurationMissingError("device sync is not configured")
        calories = await self.device_client.get_burned_calories_for_date(day)
        self.update_burned_calories(day, calories)
        return calories

    async def sync_current_week(self) -> dict[date, int]:
        """Sync each elapsed day of the current week, skipping days that fail."""
        state, now = self._prepare()
        goal = _require_goal(state)
        days = [d for d in goal.scope_days() if d <= now.date()]
        results = await asyncio.gather(
            *(self.sync_burned_calories(d) for d in days), return_exceptions=True
        )
        synced: dict[date, int] = {}
        for day, result in zip(days, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning(
                    "Failed to sync burned calories for %s: %s", day, result
                )
                continue
            synced[day] = result
        logger.info("Synced burned calories for %s/%s days", len(synced), len(days))
        return synced

    def check_for_overeating_event(
        self, day: date | None = None
    ) -> OvereatingEvent | None:
        """Run detection for a closed day, yesterday by default.

        Nothing is detected while recovery mode is switched off.
        """
        state, now = self._prepare()
        if not state.recovery_settings.enable_recovery_mode:
            return None
        day = day or now.date() - timedelta(days=1)
        events, event = self.detector.check(state.events, state.records, day, now)
        if events is not state.events:
            self._commit(replace(state, events=events))
        return event

    def get_pending_overeating_event(self) -> OvereatingEvent | None:
        state, _ = self._prepare()
        return overeating.pending(state.events)

    def acknowledge_overeating_event(self, event_id: UUID) -> OvereatingEvent:
        state, _ = self._prepare()
        events, event = self.detector.acknowledge(state.events, event_id)
        self._commit(replace(state, events=events))
        return event

    async def create_recovery_plan(self, event_id: UUID) -> RecoveryPlan:
        """Create a recovery plan, with activity ideas when they are available."""
        state, _ = self._prepare()
        _require_goal(state)
        event = overeating.require(state.events, event_id)
        suggestions: tuple[str, ...] = ()
        if self.suggestion_service is not None and event.is_open:
            try:
                suggestions = await self.suggestion_service.suggest_activities(event)
            except SuggestionError:
                logger.warning(
                    "Activity suggestions unavailable for event %s",
                    event_id,
                    exc_info=True,
                )
        state, now = self._prepare()
        goal = _require_goal(state)
        plan = self.planner.create_recovery_plan(
            state.events,
            state.plans,
            event_id,
            goal,
            now,
            suggestions,
            weight_kg=latest_weight(state.weights),
        )
        events, _ = self.detector.acknowledge(state.events, event_id)
        events = self.detector.mark_planned(events, event_id)
        self._commit(replace(state, events=events, plans=(*state.plans, plan)))
        return plan

    def start_recovery_session(
        self, plan_id: UUID, strategy: RecoveryStrategy | None = None
    ) -> RecoverySession:
        """Apply one of a plan's options; the preferred strategy is the default."""
        state, now = self._prepare()
        plan = _require_plan(state, plan_id)
        _reject_banking(state)
        session = self.tracker.start_session(
            state.active_session,
            plan,
            strategy or _default_strategy(state, plan),
            state.records,
            now.date(),
        )
        self._commit(replace(state, active_session=session))
        return session

    def get_active_recovery_session(self) -> RecoverySession | None:
        state, _ = self._prepare()
        return state.active_session

    def get_recovery_progress(self) -> SessionProgress | None:
        state, now = self._prepare()
        if state.active_session is None:
            return None
        return self.tracker.progress(state.active_session, now.date())

    def abandon_recovery_session(self) -> RecoverySession:
        state, now = self._prepare()
        if state.active_session is None:
            raise NotFoundError("no active recovery session")
        session = self.tracker.abandon_session(state.active_session, now.date())
        self._commit(
            replace(
                state,
                active_session=None,
                session_history=(*state.session_history, session),
            )
        )
        return session

    def get_recovery_history(self) -> tuple[RecoveryPlan, ...]:
        state, _ = self._prepare()
        return state.plans

    def accept_carry_over(
        self, strategy: RecoveryStrategy | None = None
    ) -> RecoverySession:
        """Turn last week's deferred shortfall into a recovery session."""
        state, now = self._prepare()
        goal = _require_goal(state)
        if state.pending_carry_over <= 0:
            raise NotFoundError("no carry-over is pending")
        if state.active_session is not None:
            raise SessionConflictError(
                f"recovery session {state.active_session.id} is still active"
            )
        _reject_banking(state)
        plan = self.planner.create_carry_over_plan(
            state.pending_carry_over,
            goal,
            now,
            now.date(),
            weight_kg=latest_weight(state.weights),
        )
        session = self.tracker.start_session(
            None,
            plan,
            strategy or _default_strategy(state, plan),
            state.records,
            now.date(),
        )
        self._commit(
            replace(
                state,
                plans=(*state.plans, plan),
                active_session=session,
                pending_carry_over=0,
            )
        )
        return session

    def get_recovery_settings(self) -> RecoverySettings:
        state, _ = self._prepare()
        return state.recovery_settings

    def is_recovery_mode_enabled(self) -> bool:
        return self.get_recovery_settings().enable_recovery_mode

    def update_recovery_settings(self, settings: RecoverySettings) -> RecoverySettings:
        if (
            isinstance(settings.max_daily_reduction, bool)
            or not isinstance(settings.max_daily_reduction, int)
            or settings.max_daily_reduction <= 0
        ):
            raise InvalidEntryError("max_daily_reduction must be a positive integer")
        state, _ = self._prepare()
        self._commit(replace(state, recovery_settings=settings))
        logger.info(
            "Recovery settings updated: enabled=%s preferred=%s max_reduction=%s",
            settings.enable_recovery_mode,
            settings.preferred_strategy,
            settings.max_daily_reduction,
        )
        return settings

    def get_banking_plan(self) -> BankingPlan | None:
        state, _ = self._prepare()
        return state.banking_plan

    def is_banking_available(self) -> bool:
        """Return True when a banking plan could be created right now."""
        state, now = self._prepare()
        if state.goal is None or state.active_session is not None:
            return False
        return self.banking_plans.is_available(state.goal, now.date())

    def preview_banking_plan(
        self, target_date: date, daily_reduction: int
    ) -> BankingPreview:
        state, now = self._prepare()
        return self.banking_plans.preview(
            _require_goal(state),
            state.records,
            state.sessions,
            target_date,
            daily_reduction,
            state.recovery_settings.max_daily_reduction,
            now,
        )

    def create_banking_plan(
        self, target_date: date, daily_reduction: int
    ) -> BankingPlan:
        """Start banking calories for a target date, replacing any current plan."""
        state, now = self._prepare()
        goal = _require_goal(state)
        if state.active_session is not None:
            raise SessionConflictError(
                f"recovery session {state.active_session.id} is still active"
            )
        plan = self.banking_plans.create_plan(
            goal,
            state.records,
            state.sessions,
            target_date,
            daily_reduction,
            state.recovery_settings.max_daily_reduction,
            now,
        )
        if state.banking_plan is not None:
            logger.info("Replacing banking plan %s", state.banking_plan.id)
        self._commit(replace(state, banking_plan=plan))
        return plan

    def cancel_banking_plan(self) -> BankingPlan:
        """Drop the banking plan; days not yet locked return to even targets."""
        state, _ = self._prepare()
        if state.banking_plan is None:
            raise NotFoundError("no banking plan is active")
        self._commit(replace(state, banking_plan=None))
        logger.info("Cancelled banking plan %s", state.banking_plan.id)
        return state.banking_plan

    def _prepare(self) -> tuple[CalorieBankState, datetime]:
        if not self._loaded:
            self.load()
        now = self.clock()
        state = self._catch_up(self._state, now)
        if state is not self._state:
            self._commit(state)
        return state, now

    def _catch_up(self, state: CalorieBankState, now: datetime) -> CalorieBankState:
        """Close every day between the last processed day and today."""
        goal = state.goal
        today = now.date()
        if goal is None or (state.last_processed_date or today) >= today:
            return state
        day = state.last_processed_date or today
        earliest = today - timedelta(days=MAX_BACKFILL_DAYS)
        if day < earliest:
            logger.warning(
                "Skipping %s days older than %s", (earliest - day).days, earliest
            )
            day = earliest
        records = state.records
        active = state.active_session
        history = state.session_history
        carry_over = state.pending_carry_over
        banking = state.banking_plan
        while day <= today:
            sessions = history if active is None else (*history, active)
            if day > goal.week_end_date:
                shortfall = self.goals.closing_shortfall(
                    goal, records, sessions, banking
                )
                if shortfall:
                    logger.warning(
                        "Week of %s closed %s kcal over; carrying it over",
                        goal.week_start_date,
                        shortfall,
                    )
                carry_over += shortfall
                goal = self.goals.start_week(goal, day)
            if day < today:
                if goal.in_scope(day):
                    records = self.goals.lock_day(
                        goal, records, day, now, sessions, banking
                    )
                if active is not None:
                    active = self.tracker.advance_day(active, day, records.get(day))
                    if not active.is_active:
                        history = (*history, active)
                        active = None
            day += timedelta(days=1)
        if banking is not None and banking.target_date < today:
            logger.info(
                "Banking plan %s for %s finished", banking.id, banking.target_date
            )
            banking = None
        return replace(
            state,
            goal=goal,
            records=records,
            active_session=active,
            session_history=history,
            pending_carry_over=carry_over,
            last_processed_date=today,
            banking_plan=banking,
        )

    def _commit(self, state: CalorieBankState) -> None:
        if self.reset_required:
            raise CorruptStateError(
                "stored snapshot is corrupt; reset the configuration first"
            )
        self._state = state
        for listener in list(self.listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Calorie bank listener failed")
        try:
            self.repository.save(encode_state(state))
        except Exception as exc:
            raise PersistenceError("failed to save calorie bank snapshot") from exc

    def _target(self, state: CalorieBankState, day: date, now: datetime) -> int:
        goal = _require_goal(state)
        return self.goals.get_daily_target(
            goal, state.records, day, now.date(), state.sessions, state.banking_plan
        )

    def _entry_day(self, day: date | None, now: datetime) -> date:
        day = day or now.date()
        if day > now.date():
            raise InvalidEntryError("cannot log entries for a future day")
        return day


def _require_goal(state: CalorieBankState) -> WeeklyCalorieGoal:
    if state.goal is None:
        raise ConfigurationMissingError("no weekly goal is configured")
    return state.goal


def _require_plan(state: CalorieBankState, plan_id: UUID) -> RecoveryPlan:
    for plan in state.plans:
        if plan.id == plan_id:
            return plan
    raise NotFoundError(f"recovery plan {plan_id} not found")


def _reject_banking(state: CalorieBankState) -> None:
    if state.banking_plan is not None:
        raise SessionConflictError(
            f"banking plan {state.banking_plan.id} is active; cancel it first"
        )


def _default_strategy(state: CalorieBankState, plan: RecoveryPlan) -> RecoveryStrategy:
    preferred = state.recovery_settings.preferred_strategy
    offered = {option.strategy for option in plan.rebalancing_options}
    if preferred is not None and preferred in offered:
        return preferred
    return plan.recommended_strategy
