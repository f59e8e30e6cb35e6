"""Local JSON file repository for the calorie bank snapshot."""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from calorie_bank.services.snapshot import SnapshotRepository


@dataclass
class FileSnapshotRepository(SnapshotRepository):
    """Keeps the snapshot in a JSON file, replaced atomically on save."""

    path: Path

    @classmethod
    def create(cls, path: str) -> "FileSnapshotRepository":
        return cls(path=Path(path).resolve())

    def load(self) -> dict[str, Any] | None:
        """Return the stored payload, or None when the file does not exist."""
        if not self.path.exists():
            return None
        try:
            return json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            # Unreadable JSON decodes as an invalid snapshot downstream.
            return {"version": None}

    def save(self, payload: dict[str, Any]) -> None:
        """Write to a temp file next to the target, then swap it in."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
