"""Supabase repository for the calorie bank snapshot."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from supabase import Client

from calorie_bank.services.snapshot import SnapshotRepository


@dataclass
class SupabaseSnapshotRepository(SnapshotRepository):
    """Stores the whole snapshot as one JSON row keyed by snapshot_key."""

    client: Client
    table: str = "calorie_bank_snapshots"
    snapshot_key: str = "default"

    def load(self) -> dict[str, Any] | None:
        """Return the stored payload, if any."""
        response = (
            self.client.table(self.table)
            .select("payload")
            .eq("snapshot_key", self.snapshot_key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0].get("payload")

    def save(self, payload: dict[str, Any]) -> None:
        """Upsert the payload in a single write."""
        self.client.table(self.table).upsert(
            {
                "snapshot_key": self.snapshot_key,
                "payload": payload,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="snapshot_key",
        ).execute()
