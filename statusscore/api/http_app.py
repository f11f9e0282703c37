from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import Body, FastAPI, HTTPException

from statusscore.api.handlers.scores import (
    cancel_scoring_handler,
    get_last_result_handler,
    get_pipeline_state_handler,
    list_results_history_handler,
    run_scoring_handler,
)
from statusscore.api.schemas import (
    ErrorResponse,
    HealthResponse,
    PipelineStateResponse,
    ReadyResponse,
    ResultsHistoryResponse,
    ScoreRequest,
    ScoreResultResponse,
    StoredResultResponse,
)
from statusscore.domain.errors import (
    AccessDeniedError,
    DomainValidationError,
    PipelineBusyError,
    ScoringError,
)
from statusscore.services.bootstrap import RuntimeContainer
from statusscore.services.error_reporting import ErrorReportingSubscription
from statusscore.services.telemetry import Events

ACCESS_DENIED_STATUS = {
    "login_required": 401,
    "subscription_required": 402,
}


def build_app(
    *,
    run_id: str,
    container: RuntimeContainer,
) -> FastAPI:
    logger = logging.getLogger("runtime")
    role = container.role.name
    mode = "stub" if container.settings.stub_mode else "proxy"
    error_reporting: ErrorReportingSubscription | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        nonlocal error_reporting
        del app

        error_reporting = ErrorReportingSubscription.subscribe(container.telemetry)
        container.telemetry.track_event(Events.APP_OPEN, {"run_id": run_id})
        logger.info(
            "role started",
            extra={"role": role, "service": role, "run_id": run_id},
        )

        yield

        container.controller.teardown()
        if container.on_shutdown is not None:
            await container.on_shutdown()
        container.telemetry.track_event(Events.APP_CLOSE, {"run_id": run_id})
        error_reporting.close()

        logger.info(
            "role stopped",
            extra={"role": role, "service": role, "run_id": run_id},
        )

    app = FastAPI(title="status-score-pipeline", version="0.1.0", lifespan=lifespan)

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", role=role, mode=mode)

    @app.get("/ready", response_model=ReadyResponse, tags=["System"])
    async def ready() -> ReadyResponse:
        return ReadyResponse(
            status="ready",
            role=role,
            mode=mode,
            scoring_in_flight=container.controller.in_flight,
            error_reporting_active=error_reporting is not None and error_reporting.active,
        )

    @app.post(
        "/scores",
        response_model=ScoreResultResponse,
        responses={
            401: {"model": ErrorResponse},
            402: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            502: {"model": ErrorResponse},
        },
        tags=["Scores"],
    )
    async def run_scoring(request: ScoreRequest = Body(...)) -> ScoreResultResponse:  # noqa: B008
        try:
            return await run_scoring_handler(container, answers=request.answers)
        except AccessDeniedError as exc:
            raise HTTPException(status_code=ACCESS_DENIED_STATUS.get(exc.reason, 403), detail=str(exc)) from exc
        except DomainValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except PipelineBusyError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ScoringError as exc:
            raise HTTPException(status_code=502, detail=exc.message) from exc

    @app.get("/scores/state", response_model=PipelineStateResponse, tags=["Scores"])
    async def get_pipeline_state() -> PipelineStateResponse:
        return await get_pipeline_state_handler(container)

    @app.post("/scores/cancel", response_model=PipelineStateResponse, tags=["Scores"])
    async def cancel_scoring() -> PipelineStateResponse:
        return await cancel_scoring_handler(container)

    @app.get(
        "/results/last",
        response_model=StoredResultResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Results"],
    )
    async def get_last_result() -> StoredResultResponse:
        stored = await get_last_result_handler(container)
        if stored is None:
            raise HTTPException(status_code=404, detail="no stored results")
        return stored

    @app.get("/results/history", response_model=ResultsHistoryResponse, tags=["Results"])
    async def list_results_history() -> ResultsHistoryResponse:
        return await list_results_history_handler(container)

    return app
