"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any
from uuid import UUID

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse

from calorie_bank.api.admin import router as admin_router
from calorie_bank.api.models import (
    BankingPlanRequest,
    BurnedCaloriesRequest,
    CarryOverRequest,
    GoalRequest,
    MealRequest,
    MealUpdateRequest,
    RecoverySettingsRequest,
    StartSessionRequest,
    WeightRequest,
    WorkoutRequest,
    banking_to_json,
    day_to_json,
    session_to_json,
    to_json,
)
from calorie_bank.app_logging import configure_logging
from calorie_bank.containers import AppContainer
from calorie_bank.domain.errors import (
    AlreadyPlannedError,
    CalorieBankError,
    ConfigurationMissingError,
    InvalidEntryError,
    NotFoundError,
    PersistenceError,
    SessionConflictError,
)
from calorie_bank.services.calorie_bank import CalorieBankService

_ERROR_STATUS: tuple[tuple[type[CalorieBankError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AlreadyPlannedError, status.HTTP_409_CONFLICT),
    (SessionConflictError, status.HTTP_409_CONFLICT),
    (ConfigurationMissingError, status.HTTP_409_CONFLICT),
    (InvalidEntryError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (PersistenceError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def _service(request: Request) -> CalorieBankService:
    container: AppContainer = request.app.state.container
    return container.calorie_bank_service


async def require_token(
    request: Request, x_api_token: str | None = Header(default=None)
) -> None:
    """Ensure requests include the configured API token."""
    container: AppContainer = request.app.state.container
    if not x_api_token or x_api_token != container.settings.api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            app.state.container.calorie_bank_service.load()
        except PersistenceError:
            logger.exception("Failed to load calorie bank snapshot")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(CalorieBankError)
    async def handle_calorie_bank_error(
        _request: Request, exc: CalorieBankError
    ) -> JSONResponse:
        code = status.HTTP_400_BAD_REQUEST
        for error_type, error_code in _ERROR_STATUS:
            if isinstance(exc, error_type):
                code = error_code
                break
        if code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("Calorie bank request failed: %s", exc)
        return JSONResponse(status_code=code, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    guarded = [Depends(require_token)]

    @app.get("/today", dependencies=guarded)
    async def today(request: Request) -> Any:
        record = _service(request).get_todays_data()
        return day_to_json(record) if record else None

    @app.get("/progress", dependencies=guarded)
    async def progress(request: Request) -> Any:
        return to_json(_service(request).get_daily_progress())

    @app.get("/bank-status", dependencies=guarded)
    async def bank_status(request: Request) -> Any:
        return to_json(_service(request).get_calorie_bank_status())

    @app.put("/goal", dependencies=guarded)
    async def configure_goal(payload: GoalRequest, request: Request) -> Any:
        goal = _service(request).configure_goal(
            payload.daily_baseline, payload.to_config()
        )
        return to_json(goal)

    @app.get("/days/{day}/target", dependencies=guarded)
    async def daily_target(day: date, request: Request) -> dict[str, object]:
        return {"day": day, "target": _service(request).get_daily_target(day)}

    @app.get("/days/{day}/locked-target", dependencies=guarded)
    async def locked_target(day: date, request: Request) -> dict[str, object]:
        return {
            "day": day,
            "locked_target": _service(request).get_locked_daily_target(day),
        }

    @app.post("/days/{day}/lock", dependencies=guarded)
    async def lock_day(day: date, request: Request) -> dict[str, object]:
        return {"day": day, "locked_target": _service(request).lock_day(day)}

    @app.post("/meals", dependencies=guarded, status_code=status.HTTP_201_CREATED)
    async def log_meal(payload: MealRequest, request: Request) -> Any:
        return to_json(_service(request).log_meal(payload.to_domain()))

    @app.patch("/days/{day}/meals/{meal_id}", dependencies=guarded)
    async def edit_meal(
        day: date, meal_id: UUID, payload: MealUpdateRequest, request: Request
    ) -> Any:
        return to_json(_service(request).edit_meal(day, meal_id, payload.to_domain()))

    @app.delete(
        "/days/{day}/meals/{meal_id}",
        dependencies=guarded,
        status_code=status.HTTP_204_NO_CONTENT,
    )
    async def delete_meal(day: date, meal_id: UUID, request: Request) -> None:
        _service(request).delete_meal(day, meal_id)

    @app.post("/workouts", dependencies=guarded, status_code=status.HTTP_201_CREATED)
    async def log_workout(payload: WorkoutRequest, request: Request) -> Any:
        return to_json(_service(request).log_workout(payload.to_domain()))

    @app.put("/days/{day}/burned", dependencies=guarded)
    async def update_burned(
        day: date, payload: BurnedCaloriesRequest, request: Request
    ) -> Any:
        record = _service(request).update_burned_calories(day, payload.calories)
        return day_to_json(record)

    @app.post("/days/{day}/burned/sync", dependencies=guarded)
    async def sync_burned(day: date, request: Request) -> dict[str, object]:
        calories = await _service(request).sync_burned_calories(day)
        return {"day": day, "burned": calories}

    @app.post("/burned/sync-week", dependencies=guarded)
    async def sync_week(request: Request) -> dict[str, object]:
        synced = await _service(request).sync_current_week()
        return {"synced": {day.isoformat(): kcal for day, kcal in synced.items()}}

    @app.post("/weights", dependencies=guarded, status_code=status.HTTP_201_CREATED)
    async def log_weight(payload: WeightRequest, request: Request) -> Any:
        return to_json(_service(request).log_weight(payload.weight_kg, payload.day))

    @app.get("/weights/trend", dependencies=guarded)
    async def weight_trend(request: Request) -> Any:
        return to_json(_service(request).get_weight_trend())

    @app.post("/overeating/check", dependencies=guarded)
    async def check_overeating(request: Request, day: date | None = None) -> Any:
        return to_json(_service(request).check_for_overeating_event(day))

    @app.get("/overeating/pending", dependencies=guarded)
    async def pending_overeating(request: Request) -> Any:
        return to_json(_service(request).get_pending_overeating_event())

    @app.post("/overeating/{event_id}/acknowledge", dependencies=guarded)
    async def acknowledge_overeating(event_id: UUID, request: Request) -> Any:
        return to_json(_service(request).acknowledge_overeating_event(event_id))

    @app.post(
        "/overeating/{event_id}/plan",
        dependencies=guarded,
        status_code=status.HTTP_201_CREATED,
    )
    async def create_plan(event_id: UUID, request: Request) -> Any:
        plan = await _service(request).create_recovery_plan(event_id)
        return to_json(plan)

    @app.get("/recovery/history", dependencies=guarded)
    async def recovery_history(request: Request) -> Any:
        return to_json(_service(request).get_recovery_history())

    @app.get("/recovery/session", dependencies=guarded)
    async def active_session(request: Request) -> Any:
        session = _service(request).get_active_recovery_session()
        return session_to_json(session) if session else None

    @app.post(
        "/recovery/session",
        dependencies=guarded,
        status_code=status.HTTP_201_CREATED,
    )
    async def start_session(payload: StartSessionRequest, request: Request) -> Any:
        session = _service(request).start_recovery_session(
            payload.plan_id, payload.strategy
        )
        return session_to_json(session)

    @app.delete("/recovery/session", dependencies=guarded)
    async def abandon_session(request: Request) -> Any:
        return session_to_json(_service(request).abandon_recovery_session())

    @app.get("/recovery/progress", dependencies=guarded)
    async def recovery_progress(request: Request) -> Any:
        return to_json(_service(request).get_recovery_progress())

    @app.post(
        "/recovery/carry-over",
        dependencies=guarded,
        status_code=status.HTTP_201_CREATED,
    )
    async def accept_carry_over(payload: CarryOverRequest, request: Request) -> Any:
        return session_to_json(_service(request).accept_carry_over(payload.strategy))

    @app.get("/recovery/settings", dependencies=guarded)
    async def recovery_settings(request: Request) -> Any:
        return to_json(_service(request).get_recovery_settings())

    @app.patch("/recovery/settings", dependencies=guarded)
    async def update_recovery_settings(
        payload: RecoverySettingsRequest, request: Request
    ) -> Any:
        service = _service(request)
        settings = payload.apply(service.get_recovery_settings())
        return to_json(service.update_recovery_settings(settings))

    @app.get("/banking", dependencies=guarded)
    async def banking_plan(request: Request) -> dict[str, object]:
        service = _service(request)
        plan = service.get_banking_plan()
        return {
            "available": service.is_banking_available(),
            "plan": banking_to_json(plan) if plan else None,
        }

    @app.post("/banking/preview", dependencies=guarded)
    async def preview_banking(payload: BankingPlanRequest, request: Request) -> Any:
        preview = _service(request).preview_banking_plan(
            payload.target_date, payload.daily_reduction
        )
        return {**to_json(preview), "is_valid": preview.is_valid}

    @app.post("/banking", dependencies=guarded, status_code=status.HTTP_201_CREATED)
    async def create_banking(payload: BankingPlanRequest, request: Request) -> Any:
        plan = _service(request).create_banking_plan(
            payload.target_date, payload.daily_reduction
        )
        return banking_to_json(plan)

    @app.delete("/banking", dependencies=guarded)
    async def cancel_banking(request: Request) -> Any:
        return banking_to_json(_service(request).cancel_banking_plan())

    return app
