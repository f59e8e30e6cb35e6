"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from calorie_bank.services.snapshot import encode_state

if TYPE_CHECKING:
    from calorie_bank.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token or container.settings.api_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health(request: Request) -> dict[str, object]:
    """Admin health check endpoint, including whether a reset is pending."""
    container: AppContainer = request.app.state.container
    return {
        "status": "ok",
        "reset_required": container.calorie_bank_service.reset_required,
    }


@router.get("/state", dependencies=[Depends(require_admin)])
async def admin_state(request: Request) -> dict[str, object]:
    """Return the in-memory snapshot exactly as it is persisted."""
    container: AppContainer = request.app.state.container
    service = container.calorie_bank_service
    return {
        "reset_required": service.reset_required,
        "snapshot": encode_state(service.state),
    }


@router.post("/reset", dependencies=[Depends(require_admin)])
async def admin_reset(request: Request) -> dict[str, str]:
    """Discard the stored configuration and start from an empty state."""
    container: AppContainer = request.app.state.container
    container.calorie_bank_service.reset_configuration()
    return {"status": "reset"}
