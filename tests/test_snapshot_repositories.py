"""Tests for snapshot repository adapters."""

from dataclasses import dataclass, field
from pathlib import Path

from calorie_bank.adapters.file_snapshot_repository import FileSnapshotRepository
from calorie_bank.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    rows: list[dict[str, object]] = field(default_factory=list)
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    on_conflict: str | None = None

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        return self

    def upsert(  # type: ignore[no-untyped-def]
        self, payload, on_conflict: str = ""
    ) -> "FakeTable":
        self._action = "upsert"
        self.last_payload = payload
        self.on_conflict = on_conflict
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        if getattr(self, "_action", "select") == "upsert":
            assert isinstance(self.last_payload, dict)
            self.rows = [self.last_payload]
            return FakeResponse(data=[self.last_payload])
        return FakeResponse(data=list(self.rows))


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_supabase_snapshot_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseSnapshotRepository(
        client,  # type: ignore[arg-type]
        snapshot_key="alice",
    )

    assert repository.load() is None

    repository.save({"version": 1, "state": {"pending_carry_over": 0}})
    loaded = repository.load()

    table = client.tables["calorie_bank_snapshots"]
    assert loaded == {"version": 1, "state": {"pending_carry_over": 0}}
    assert table.on_conflict == "snapshot_key"
    assert ("snapshot_key", "alice") in table.last_filters
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["snapshot_key"] == "alice"
    assert "updated_at" in table.last_payload


def test_file_snapshot_repository_roundtrip(tmp_path: Path) -> None:
    repository = FileSnapshotRepository.create(str(tmp_path / "nested" / "state.json"))

    assert repository.load() is None

    repository.save({"version": 1, "state": {"goal": None}})
    repository.save({"version": 1, "state": {"goal": None, "pending_carry_over": 5}})

    assert repository.load() == {
        "version": 1,
        "state": {"goal": None, "pending_carry_over": 5},
    }
    assert [p.name for p in (tmp_path / "nested").iterdir()] == ["state.json"]


def test_file_snapshot_repository_flags_unreadable_json(tmp_path: Path) -> None:
    path = tmp_path / "state.json"
    path.write_text("{not json", encoding="utf-8")

    payload = FileSnapshotRepository(path=path).load()

    assert payload == {"version": None}
