"""Application configuration."""

import os

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from calorie_bank.domain.policy import BankingPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    api_token: str
    admin_token: str | None = None
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    snapshot_table: str = "calorie_bank_snapshots"
    snapshot_key: str = "default"
    snapshot_path: str = "calorie_bank_state.json"
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str = "low"
    openai_store: bool = False
    device_sync_base_url: str | None = None
    device_sync_session_id: str | None = None
    timezone: str = "UTC"
    safety_floor_calories: int = 1200
    overeating_mild_threshold: int = 300
    overeating_moderate_threshold: int = 500
    overeating_severe_threshold: int = 1000
    gentle_recovery_days: int = 7
    moderate_recovery_days: int = 5
    quick_recovery_days: int = 3
    pace_tolerance_ratio: float = 0.2
    stale_event_tolerance: int = 50
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_thresholds(self) -> "Settings":
        if not (
            0
            < self.overeating_mild_threshold
            < self.overeating_moderate_threshold
            < self.overeating_severe_threshold
        ):
            raise ValueError("overeating thresholds must be positive and increasing")
        if min(
            self.gentle_recovery_days,
            self.moderate_recovery_days,
            self.quick_recovery_days,
        ) < 1:
            raise ValueError("recovery horizons must be at least one day")
        return self

    @property
    def supabase_enabled(self) -> bool:
        """Return True when both Supabase credentials are configured."""
        return bool(self.supabase_url and self.supabase_service_key)

    def banking_policy(self) -> BankingPolicy:
        """Build the domain policy from the configured knobs."""
        return BankingPolicy(
            safety_floor=self.safety_floor_calories,
            mild_threshold=self.overeating_mild_threshold,
            moderate_threshold=self.overeating_moderate_threshold,
            severe_threshold=self.overeating_severe_threshold,
            gentle_days=self.gentle_recovery_days,
            moderate_days=self.moderate_recovery_days,
            quick_days=self.quick_recovery_days,
            pace_tolerance_ratio=self.pace_tolerance_ratio,
            stale_event_tolerance=self.stale_event_tolerance,
        )
