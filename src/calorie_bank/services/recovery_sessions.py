"""Recovery session lifecycle."""

import logging
from dataclasses import dataclass, replace
from datetime import date, timedelta
from uuid import uuid4

from calorie_bank.domain.calories import DailyCalorieData
from calorie_bank.domain.errors import SessionConflictError
from calorie_bank.domain.recovery import (
    RecoveryPlan,
    RecoverySession,
    RecoveryStrategy,
    SessionProgress,
    SessionStatus,
)
from calorie_bank.services.records import DailyRecordStore

logger = logging.getLogger(__name__)


@dataclass
class RecoverySessionTracker:
    """Moves sessions through Active -> Completed or Abandoned."""

    def start_session(
        self,
        active: RecoverySession | None,
        plan: RecoveryPlan,
        strategy: RecoveryStrategy,
        records: DailyRecordStore,
        today: date,
    ) -> RecoverySession:
        """Start applying one of the plan's options.

        The session begins on the first unlocked day on or after both today
        and the plan's earliest start.
        """
        if active is not None and active.is_active:
            raise SessionConflictError(f"recovery session {active.id} is still active")
        option = plan.option(strategy)
        start = max(today, plan.earliest_start)
        while (record := records.get(start)) is not None and record.is_locked:
            start += timedelta(days=1)
        session = RecoverySession(
            id=uuid4(),
            plan_id=plan.id,
            event_id=plan.event_id,
            option=option,
            start_date=start,
        )
        logger.info(
            "Started %s recovery session %s on %s for %s days",
            strategy,
            session.id,
            start,
            option.duration_days,
        )
        return session

    def advance_day(
        self,
        session: RecoverySession,
        day: date,
        record: DailyCalorieData | None,
    ) -> RecoverySession:
        """Count a finished day that the session covers."""
        if not session.is_active:
            return session
        target = session.adjusted_target_for(day)
        if target is None:
            return session
        net = (record.consumed - record.burned) if record is not None else 0
        adherent = session.adherent_days + (1 if net <= target else 0)
        advanced = replace(
            session,
            days_completed=session.days_completed + 1,
            adherent_days=adherent,
        )
        if advanced.days_remaining == 0:
            logger.info("Recovery session %s completed", session.id)
            advanced = replace(
                advanced, status=SessionStatus.COMPLETED, ended_on=day
            )
        return advanced

    def abandon_session(self, session: RecoverySession, today: date) -> RecoverySession:
        """Stop the session; days from today on go back to normal targets."""
        logger.info("Recovery session %s abandoned on %s", session.id, today)
        return replace(session, status=SessionStatus.ABANDONED, ended_on=today)

    def progress(self, session: RecoverySession, today: date) -> SessionProgress:
        adherence = (
            session.adherent_days / session.days_completed
            if session.days_completed
            else 1.0
        )
        return SessionProgress(
            days_completed=session.days_completed,
            days_remaining=session.days_remaining,
            adjusted_target=session.adjusted_target_for(today),
            adherence_rate=round(adherence, 2),
        )
