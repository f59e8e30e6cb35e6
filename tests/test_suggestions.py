"""Tests for activity suggestions."""

import asyncio
from uuid import uuid4

import pytest

from calorie_bank.domain.errors import SuggestionError
from calorie_bank.domain.recovery import OvereatingEvent, TriggerType
from tests.conftest import MONDAY, FakeSuggestionClient, at, suggestion_service


def _event() -> OvereatingEvent:
    return OvereatingEvent(
        id=uuid4(),
        day=MONDAY,
        excess_calories=800,
        trigger_type=TriggerType.MODERATE,
        detected_at=at(MONDAY),
    )


def test_suggestions_are_trimmed_and_capped() -> None:
    client = FakeSuggestionClient(
        payload={"suggestions": ["  Walk 30 minutes. ", "", "Swim.", "Bike.", "Row."]}
    )

    suggestions = asyncio.run(
        suggestion_service(client).suggest_activities(_event(), sport="cycling")
    )

    assert suggestions == ("Walk 30 minutes.", "Swim.", "Bike.")
    assert "800 kcal" in client.prompts[0]
    assert "cycling" in client.prompts[0]


def test_invalid_payload_raises() -> None:
    client = FakeSuggestionClient(payload={"suggestions": "walk"})

    with pytest.raises(SuggestionError):
        asyncio.run(suggestion_service(client).suggest_activities(_event()))


def test_client_failure_raises() -> None:
    client = FakeSuggestionClient(error=RuntimeError("rate limited"))

    with pytest.raises(SuggestionError) as exc_info:
        asyncio.run(suggestion_service(client).suggest_activities(_event()))

    assert isinstance(exc_info.value.__cause__, RuntimeError)
