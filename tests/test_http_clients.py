"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from calorie_bank.adapters.device_sync_client import HttpxDeviceSyncClient
from calorie_bank.adapters.openai_suggestion_client import OpenAISuggestionClient
from tests.conftest import MONDAY


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return type("Resp", (), {"output_text": self.output_text})()


class _FakeOpenAI:
    def __init__(self, output_text: str) -> None:
        self.responses = _FakeResponses(output_text)


def _device_client(handler) -> HttpxDeviceSyncClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxDeviceSyncClient(
        base_url="https://proxy.test",
        session_id="session-1",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_openai_suggestion_client_parses_output() -> None:
    fake = _FakeOpenAI(json.dumps({"suggestions": ["Walk."]}))
    client = OpenAISuggestionClient(client=fake)

    result = asyncio.run(
        client.suggest(
            model="gpt-5.2",
            reasoning_effort="low",
            store=False,
            schema={"type": "object"},
            prompt="Suggest activities",
        )
    )

    assert result == {"suggestions": ["Walk."]}
    payload = fake.responses.last_payload
    assert payload is not None
    assert payload["reasoning"] == {"effort": "low"}
    assert payload["input"] == "Suggest activities"
    assert payload["instructions"]
    assert payload["text"]["format"]["name"] == "activity_suggestions"
    assert payload["text"]["format"]["strict"] is True


def test_openai_suggestion_client_omits_reasoning_when_unset() -> None:
    fake = _FakeOpenAI(json.dumps({"suggestions": []}))

    asyncio.run(
        OpenAISuggestionClient(client=fake).suggest(
            model="gpt-5.2",
            reasoning_effort=None,
            store=True,
            schema={"type": "object"},
            prompt="Suggest activities",
        )
    )

    payload = fake.responses.last_payload
    assert payload is not None
    assert "reasoning" not in payload
    assert payload["store"] is True


def test_openai_suggestion_client_rejects_non_object_output() -> None:
    client = OpenAISuggestionClient(client=_FakeOpenAI(json.dumps(["Walk."])))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.suggest(
                model="gpt-5.2",
                reasoning_effort=None,
                store=False,
                schema={"type": "object"},
                prompt="Suggest activities",
            )
        )


def test_openai_suggestion_client_rejects_empty_output() -> None:
    client = OpenAISuggestionClient(client=_FakeOpenAI(""))

    with pytest.raises(RuntimeError):
        asyncio.run(
            client.suggest(
                model="gpt-5.2",
                reasoning_effort=None,
                store=False,
                schema={"type": "object"},
                prompt="Suggest activities",
            )
        )


def test_device_client_reads_active_calories() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/garmin/daily-summary/session-1"
        assert request.url.params["date"] == "2026-10-19"
        return httpx.Response(200, json={"activeCalories": 412.6})

    burned = asyncio.run(_device_client(handler).get_burned_calories_for_date(MONDAY))

    assert burned == 413


def test_device_client_treats_missing_summary_as_zero() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "no data"})

    burned = asyncio.run(_device_client(handler).get_burned_calories_for_date(MONDAY))

    assert burned == 0


def test_device_client_ignores_non_numeric_values() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"activeCalories": "lots"})

    burned = asyncio.run(_device_client(handler).get_burned_calories_for_date(MONDAY))

    assert burned == 0


def test_device_client_raises_on_server_error() -> None:
    def handler(_request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(_device_client(handler).get_burned_calories_for_date(MONDAY))


def test_device_client_create_strips_trailing_slash() -> None:
    client = HttpxDeviceSyncClient.create("https://proxy.test/", "session-1")

    assert client.base_url == "https://proxy.test"
    asyncio.run(client.close())
