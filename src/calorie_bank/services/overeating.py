"""Overeating detection on locked days."""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime
from uuid import UUID, uuid4

from calorie_bank.domain.errors import NotFoundError
from calorie_bank.domain.policy import BankingPolicy
from calorie_bank.domain.recovery import ArchiveReason, OvereatingEvent
from calorie_bank.services.records import DailyRecordStore

logger = logging.getLogger(__name__)

Events = tuple[OvereatingEvent, ...]


@dataclass
class OvereatingDetector:
    """Turns a closed day's excess over its locked target into an event."""

    policy: BankingPolicy

    def check(
        self,
        events: Events,
        records: DailyRecordStore,
        day: date,
        detected_at: datetime,
    ) -> tuple[Events, OvereatingEvent | None]:
        """Return the day's event, creating it when the day qualifies.

        Only locked days are judged. A day that already has an event keeps it.
        A new event archives every earlier open event; if a later open event
        already exists the new one is archived straight away.
        """
        existing = find_for_day(events, day)
        if existing is not None:
            return events, existing
        record = records.get(day)
        if record is None or record.locked_target is None:
            return events, None
        excess = max(0, record.consumed - record.locked_target)
        trigger = self.policy.classify(excess)
        if trigger is None:
            return events, None

        newer_open = any(event.is_open and event.day > day for event in events)
        event = OvereatingEvent(
            id=uuid4(),
            day=day,
            excess_calories=excess,
            trigger_type=trigger,
            detected_at=detected_at,
            archived_reason=ArchiveReason.SUPERSEDED if newer_open else None,
        )
        updated = [
            _archive(existing_event, ArchiveReason.SUPERSEDED)
            if not newer_open and existing_event.is_open and existing_event.day < day
            else existing_event
            for existing_event in events
        ]
        updated.append(event)
        logger.info(
            "Detected %s overeating on %s: %s kcal over", trigger, day, excess
        )
        return tuple(sorted(updated, key=lambda item: item.day)), event

    def acknowledge(
        self, events: Events, event_id: UUID
    ) -> tuple[Events, OvereatingEvent]:
        """Mark an event as seen by the user."""
        event = require(events, event_id)
        acknowledged = replace(event, user_acknowledged=True)
        return _swap(events, acknowledged), acknowledged

    def mark_planned(self, events: Events, event_id: UUID) -> Events:
        """Archive an event once a recovery plan exists for it."""
        event = require(events, event_id)
        return _swap(events, _archive(event, ArchiveReason.PLANNED))

    def refresh(self, events: Events, records: DailyRecordStore, day: date) -> Events:
        """Re-evaluate an open, unacknowledged event after the day's log changed."""
        event = find_for_day(events, day)
        if event is None or not event.is_open or event.user_acknowledged:
            return events
        record = records.get(day)
        if record is None or record.locked_target is None:
            return events
        excess = max(0, record.consumed - record.locked_target)
        trigger = self.policy.classify(excess)
        if trigger is None:
            logger.info("Dropped stale overeating event for %s", day)
            return tuple(item for item in events if item.id != event.id)
        if abs(excess - event.excess_calories) > self.policy.stale_event_tolerance:
            logger.info(
                "Updated overeating event for %s: %s -> %s kcal",
                day,
                event.excess_calories,
                excess,
            )
            return _swap(
                events, replace(event, excess_calories=excess, trigger_type=trigger)
            )
        return events


def find_for_day(events: Events, day: date) -> OvereatingEvent | None:
    return next((event for event in events if event.day == day), None)


def require(events: Events, event_id: UUID) -> OvereatingEvent:
    """Return an event by id or raise NotFoundError."""
    for event in events:
        if event.id == event_id:
            return event
    raise NotFoundError(f"overeating event {event_id} not found")


def pending(events: Events) -> OvereatingEvent | None:
    """Return the latest open event the user has not acknowledged yet."""
    candidates = [e for e in events if e.is_open and not e.user_acknowledged]
    if not candidates:
        return None
    return max(candidates, key=lambda event: event.day)


def _archive(event: OvereatingEvent, reason: ArchiveReason) -> OvereatingEvent:
    return replace(event, archived_reason=reason)


def _swap(events: Events, updated: OvereatingEvent) -> Events:
    return tuple(updated if event.id == updated.id else event for event in events)
