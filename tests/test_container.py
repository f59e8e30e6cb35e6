"""Tests for container wiring."""

import asyncio

import pytest

from calorie_bank import containers
from calorie_bank.adapters.device_sync_client import HttpxDeviceSyncClient
from calorie_bank.adapters.file_snapshot_repository import FileSnapshotRepository
from calorie_bank.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)
from calorie_bank.config import Settings
from calorie_bank.containers import build_container


def test_build_container_defaults_to_file_snapshots(settings: Settings) -> None:
    container = build_container(settings)
    service = container.calorie_bank_service

    assert isinstance(service.repository, FileSnapshotRepository)
    assert service.device_client is None
    assert service.suggestion_service is None
    asyncio.run(container.close_resources())


def test_build_container_wires_optional_clients(
    settings: Settings, monkeypatch: pytest.MonkeyPatch
) -> None:
    created: list[tuple[str, str]] = []

    def fake_create_client(url: str, key: str) -> object:
        created.append((url, key))
        return object()

    monkeypatch.setattr(containers, "create_client", fake_create_client)
    configured = settings.model_copy(
        update={
            "supabase_url": "https://example.supabase.co",
            "supabase_service_key": "service-key",
            "openai_api_key": "openai-key",
            "device_sync_base_url": "https://proxy.test",
            "device_sync_session_id": "session-1",
        }
    )

    container = build_container(configured)
    service = container.calorie_bank_service

    assert created == [("https://example.supabase.co", "service-key")]
    assert isinstance(service.repository, SupabaseSnapshotRepository)
    assert isinstance(service.device_client, HttpxDeviceSyncClient)
    assert service.suggestion_service is not None
    assert service.clock().tzinfo is not None
    asyncio.run(container.close_resources())
