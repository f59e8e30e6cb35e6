"""Tests for admin endpoints."""

from fastapi.testclient import TestClient

from calorie_bank.api.app import create_app
from calorie_bank.containers import AppContainer
from tests.conftest import InMemorySnapshotRepository

ADMIN = {"X-Admin-Token": "admin-token"}


def test_admin_requires_admin_token(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    assert client.get("/admin/health").status_code == 401
    response = client.get("/admin/health", headers={"X-Admin-Token": "api-token"})
    assert response.status_code == 401


def test_admin_health_reports_reset(
    container: AppContainer, repository: InMemorySnapshotRepository
) -> None:
    repository.payload = {"version": 7, "state": {}}
    container.calorie_bank_service.load()
    client = TestClient(create_app(container))

    response = client.get("/admin/health", headers=ADMIN)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "reset_required": True}


def test_admin_state_returns_snapshot(container: AppContainer) -> None:
    client = TestClient(create_app(container))
    client.put(
        "/goal",
        json={"daily_baseline": 2000, "tdee": 2500},
        headers={"X-Api-Token": "api-token"},
    )

    response = client.get("/admin/state", headers=ADMIN)

    data = response.json()
    assert data["reset_required"] is False
    assert data["snapshot"]["version"] == 1
    assert data["snapshot"]["state"]["goal"]["daily_baseline"] == 2000


def test_admin_reset_clears_state(
    container: AppContainer, repository: InMemorySnapshotRepository
) -> None:
    repository.payload = {"version": 7, "state": {}}
    container.calorie_bank_service.load()
    client = TestClient(create_app(container))

    response = client.post("/admin/reset", headers=ADMIN)

    assert response.status_code == 200
    assert not container.calorie_bank_service.reset_required
    assert repository.payload is not None
    assert repository.payload["state"]["goal"] is None
