"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from zoneinfo import ZoneInfo

from supabase import create_client

from calorie_bank.adapters.device_sync_client import HttpxDeviceSyncClient
from calorie_bank.adapters.file_snapshot_repository import FileSnapshotRepository
from calorie_bank.adapters.openai_suggestion_client import OpenAISuggestionClient
from calorie_bank.adapters.supabase_snapshot_repository import (
    SupabaseSnapshotRepository,
)
from calorie_bank.config import Settings
from calorie_bank.services.calorie_bank import CalorieBankService
from calorie_bank.services.snapshot import SnapshotRepository
from calorie_bank.services.suggestions import SuggestionService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    calorie_bank_service: CalorieBankService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    repository: SnapshotRepository
    if resolved_settings.supabase_enabled:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        repository = SupabaseSnapshotRepository(
            client=supabase_client,
            table=resolved_settings.snapshot_table,
            snapshot_key=resolved_settings.snapshot_key,
        )
    else:
        repository = FileSnapshotRepository.create(resolved_settings.snapshot_path)

    device_client = None
    if (
        resolved_settings.device_sync_base_url
        and resolved_settings.device_sync_session_id
    ):
        device_client = HttpxDeviceSyncClient.create(
            base_url=resolved_settings.device_sync_base_url,
            session_id=resolved_settings.device_sync_session_id,
        )

    openai_client = None
    suggestion_service = None
    if resolved_settings.openai_api_key:
        openai_client = OpenAISuggestionClient.create(resolved_settings.openai_api_key)
        suggestion_service = SuggestionService(
            client=openai_client,
            model=resolved_settings.openai_model,
            reasoning_effort=resolved_settings.openai_reasoning_effort,
            store=resolved_settings.openai_store,
        )

    timezone = ZoneInfo(resolved_settings.timezone)
    calorie_bank_service = CalorieBankService(
        repository=repository,
        policy=resolved_settings.banking_policy(),
        clock=lambda: datetime.now(tz=timezone),
        device_client=device_client,
        suggestion_service=suggestion_service,
    )

    async def close_resources() -> None:
        if device_client is not None:
            await device_client.close()
        if openai_client is not None:
            await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        calorie_bank_service=calorie_bank_service,
        close_resources=close_resources,
    )
