"""Health-device proxy client for burned calories."""

from dataclasses import dataclass
from datetime import date
from typing import Protocol

import httpx


class DeviceSyncClient(Protocol):
    """Interface for fetching device-synced active calories."""

    async def get_burned_calories_for_date(self, day: date) -> int:
        """Return active calories burned on a day, 0 when unavailable."""


@dataclass
class HttpxDeviceSyncClient(DeviceSyncClient):
    """HTTPX-backed client for the device proxy's daily summary endpoint."""

    base_url: str
    session_id: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str, session_id: str) -> "HttpxDeviceSyncClient":
        """Create a device sync client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            session_id=session_id,
            http_client=httpx.AsyncClient(),
        )

    async def get_burned_calories_for_date(self, day: date) -> int:
        """Fetch the day's summary and read its active calories."""
        url = f"{self.base_url}/api/garmin/daily-summary/{self.session_id}"
        response = await self.http_client.get(
            url,
            params={"date": day.isoformat()},
            timeout=15,
        )
        if response.status_code == httpx.codes.NOT_FOUND:
            return 0
        response.raise_for_status()
        payload = response.json()
        active = payload.get("activeCalories") if isinstance(payload, dict) else None
        if not isinstance(active, int | float) or isinstance(active, bool):
            return 0
        return max(0, round(active))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
