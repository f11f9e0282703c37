from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from statusscore.domain.dto import POPULATION_SIZE, PipelineState, ScoreResult

AnswerValue = str | int | float | None


class ErrorResponse(BaseModel):
    detail: str


class HealthResponse(BaseModel):
    status: str
    role: str
    mode: str


class ReadyResponse(BaseModel):
    status: str
    role: str
    mode: str
    scoring_in_flight: bool
    error_reporting_active: bool


class ScoreRequest(BaseModel):
    answers: dict[str, AnswerValue] = Field(default_factory=dict)


class GlobalRankingResponse(BaseModel):
    position: int = Field(ge=1, le=POPULATION_SIZE)
    percentile: float = Field(ge=0, le=100)


class ScoreResultResponse(BaseModel):
    category_scores: dict[str, int]
    overall_score: int = Field(ge=0, le=100)
    global_ranking: GlobalRankingResponse
    status: str = Field(min_length=1)
    future_prediction: str = Field(min_length=1)

    @classmethod
    def from_result(cls, result: ScoreResult) -> ScoreResultResponse:
        return cls(
            category_scores=dict(result.category_scores),
            overall_score=result.overall_score,
            global_ranking=GlobalRankingResponse(
                position=result.global_ranking.position,
                percentile=result.global_ranking.percentile,
            ),
            status=result.status,
            future_prediction=result.future_prediction,
        )


class PipelineStateResponse(BaseModel):
    loading: bool
    error: str | None
    progress: int = Field(ge=0, le=100)
    status_message: str
    retry_count: int = Field(ge=0)
    in_flight: bool

    @classmethod
    def from_state(cls, state: PipelineState, *, in_flight: bool) -> PipelineStateResponse:
        return cls(
            loading=state.loading,
            error=state.error,
            progress=state.progress,
            status_message=state.status_message,
            retry_count=state.retry_count,
            in_flight=in_flight,
        )


class StoredResultResponse(BaseModel):
    result: dict[str, Any]


class ResultsHistoryResponse(BaseModel):
    items: list[dict[str, Any]]
