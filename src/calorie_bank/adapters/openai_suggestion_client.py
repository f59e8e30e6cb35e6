"""OpenAI Responses API client for activity suggestions."""

import json
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from calorie_bank.services.suggestions import SuggestionClient

SCHEMA_NAME = "activity_suggestions"
INSTRUCTIONS = (
    "You are a supportive fitness coach. Reply only with JSON matching the "
    "provided schema."
)
DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass
class OpenAISuggestionClient(SuggestionClient):
    """Asks the Responses API for suggestions as strict JSON."""

    client: AsyncOpenAI

    @classmethod
    def create(
        cls, api_key: str, timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> "OpenAISuggestionClient":
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout))

    async def suggest(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        extra: dict[str, Any] = {}
        if reasoning_effort:
            extra["reasoning"] = {"effort": reasoning_effort}
        response = await self.client.responses.create(
            model=model,
            instructions=INSTRUCTIONS,
            input=prompt,
            text={"format": _schema_format(schema)},
            store=store,
            **extra,
        )
        return _parse_object(response.output_text)

    async def close(self) -> None:
        await self.client.close()


def _schema_format(schema: dict[str, object]) -> dict[str, object]:
    return {
        "type": "json_schema",
        "name": SCHEMA_NAME,
        "strict": True,
        "schema": schema,
    }


def _parse_object(output_text: str | None) -> dict[str, object]:
    """Decode the model output, which must be a JSON object."""
    if not output_text:
        raise RuntimeError("OpenAI returned an empty response")
    data = json.loads(output_text)
    if not isinstance(data, dict):
        raise RuntimeError("OpenAI response is not a JSON object")
    return data
