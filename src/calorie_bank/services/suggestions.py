"""Activity suggestions for recovery plans using LLMs."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError

from calorie_bank.domain.errors import SuggestionError
from calorie_bank.domain.recovery import OvereatingEvent

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3

SUGGESTION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "suggestions": {
            "type": "array",
            "items": {"type": "string"},
            "maxItems": MAX_SUGGESTIONS,
        }
    },
    "required": ["suggestions"],
    "additionalProperties": False,
}


class SuggestionPayload(BaseModel):
    """Structured response returned by the model."""

    suggestions: list[str] = Field(default_factory=list)


class SuggestionClient(Protocol):
    """Interface for LLM activity suggestions."""

    async def suggest(
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured suggestion data."""


@dataclass
class SuggestionService:
    """Service that prepares suggestion prompts and validates results."""

    client: SuggestionClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def suggest_activities(
        self, event: OvereatingEvent, sport: str | None = None
    ) -> tuple[str, ...]:
        """Return up to three short activity ideas for burning off an excess."""
        prompt = (
            f"Someone ate {event.excess_calories} kcal over their target "
            f"({event.trigger_type} overeating). "
            "Suggest up to three short, encouraging physical activities that "
            "would help rebalance the week. One sentence each."
        )
        if sport:
            prompt += f" They usually train {sport}."
        try:
            raw = await self.client.suggest(
                model=self.model,
                reasoning_effort=self.reasoning_effort,
                store=self.store,
                schema=SUGGESTION_SCHEMA,
                prompt=prompt,
            )
            payload = SuggestionPayload.model_validate(raw)
        except ValidationError as exc:
            raise SuggestionError("suggestion response did not match schema") from exc
        except Exception as exc:
            raise SuggestionError(f"suggestion request failed: {exc}") from exc
        suggestions = [text.strip() for text in payload.suggestions if text.strip()]
        return tuple(suggestions[:MAX_SUGGESTIONS])
