"""Snapshot encoding and the repository interface."""

from typing import Any, Protocol

from pydantic import TypeAdapter, ValidationError

from calorie_bank.domain.errors import CorruptStateError
from calorie_bank.services.state import CalorieBankState

SNAPSHOT_VERSION = 1

_STATE_ADAPTER = TypeAdapter(CalorieBankState)


class SnapshotRepository(Protocol):
    """Persistence interface for the full calorie bank snapshot."""

    def load(self) -> dict[str, Any] | None:
        """Return the stored payload, or None when nothing was saved yet."""

    def save(self, payload: dict[str, Any]) -> None:
        """Replace the stored payload atomically."""


def encode_state(state: CalorieBankState) -> dict[str, Any]:
    """Return a JSON-compatible payload for the state."""
    return {
        "version": SNAPSHOT_VERSION,
        "state": _STATE_ADAPTER.dump_python(state, mode="json"),
    }


def decode_state(payload: object) -> CalorieBankState:
    """Rebuild state from a payload, raising CorruptStateError when invalid."""
    if not isinstance(payload, dict):
        raise CorruptStateError("snapshot payload is not an object")
    version = payload.get("version")
    if version != SNAPSHOT_VERSION:
        raise CorruptStateError(f"unsupported snapshot version: {version!r}")
    try:
        return _STATE_ADAPTER.validate_python(payload.get("state"))
    except ValidationError as exc:
        raise CorruptStateError("snapshot failed validation") from exc
