from __future__ import annotations

from collections.abc import Mapping

from statusscore.api.schemas import (
    AnswerValue,
    PipelineStateResponse,
    ResultsHistoryResponse,
    ScoreResultResponse,
    StoredResultResponse,
)
from statusscore.domain.errors import AccessDeniedError, PipelineBusyError
from statusscore.domain.questionnaire import validate_answers
from statusscore.services.bootstrap import RuntimeContainer


def ensure_access(container: RuntimeContainer) -> None:
    """Entitlement gate in front of the pipeline; the pipeline itself never checks."""
    if container.entitlements.user is None:
        raise AccessDeniedError("login_required", "login is required to run the assessment")
    if not container.entitlements.has_active_subscription():
        raise AccessDeniedError("subscription_required", "an active subscription is required")


async def run_scoring_handler(
    container: RuntimeContainer,
    *,
    answers: Mapping[str, AnswerValue],
) -> ScoreResultResponse:
    ensure_access(container)
    validate_answers(answers, strict_options=True)

    controller = container.controller
    if controller.in_flight:
        raise PipelineBusyError("a scoring run is already in flight")
    result = await controller.run(answers)
    if result is None:
        raise PipelineBusyError(controller.state.error or "scoring run was not started")
    return ScoreResultResponse.from_result(result)


async def get_pipeline_state_handler(container: RuntimeContainer) -> PipelineStateResponse:
    controller = container.controller
    return PipelineStateResponse.from_state(controller.state, in_flight=controller.in_flight)


async def cancel_scoring_handler(container: RuntimeContainer) -> PipelineStateResponse:
    controller = container.controller
    controller.cancel()
    return PipelineStateResponse.from_state(controller.state, in_flight=controller.in_flight)


async def get_last_result_handler(container: RuntimeContainer) -> StoredResultResponse | None:
    stored = container.store.last_result()
    if stored is None:
        return None
    return StoredResultResponse(result=stored)


async def list_results_history_handler(container: RuntimeContainer) -> ResultsHistoryResponse:
    return ResultsHistoryResponse(items=container.store.history())
