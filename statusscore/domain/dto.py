from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from collections.abc import Mapping

SCORE_CATEGORIES: tuple[str, ...] = (
    "wealth",
    "fitness",
    "power",
    "intelligence",
    "willpower",
    "legacy",
)

POPULATION_SIZE = 3_970_000_000
DEFAULT_SCORE = 50
DEFAULT_POSITION = 1_985_000_000
DEFAULT_PERCENTILE = 50.0
NO_DATA_SENTINEL = "No data available"


@dataclass(frozen=True)
class ScoringRequest:
    system_prompt: str
    user_prompt: str
    model: str
    temperature: float
    max_tokens: int


@dataclass(frozen=True)
class TransportResponse:
    status_code: int
    text: str
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


@dataclass(frozen=True)
class GlobalRanking:
    position: int
    percentile: float


@dataclass(frozen=True)
class ScoreResult:
    category_scores: Mapping[str, int]
    overall_score: int
    global_ranking: GlobalRanking
    status: str
    future_prediction: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "category_scores", MappingProxyType(dict(self.category_scores)))

    def to_payload(self) -> dict[str, object]:
        """Render the upstream camelCase shape used by stores and the CLI."""
        return {
            "categoryScores": dict(self.category_scores),
            "overallScore": self.overall_score,
            "globalRanking": {
                "position": self.global_ranking.position,
                "percentile": self.global_ranking.percentile,
            },
            "status": self.status,
            "futurePrediction": self.future_prediction,
        }


@dataclass
class AttemptState:
    max_attempts: int
    attempt_number: int = 0
    status_message: str = ""
    progress_percent: int = 0

    def reset(self) -> None:
        self.attempt_number = 0
        self.status_message = ""
        self.progress_percent = 0


@dataclass(frozen=True)
class ProgressUpdate:
    progress: int
    status_message: str
    attempt_number: int
    state: str


@dataclass(frozen=True)
class PipelineState:
    loading: bool = False
    error: str | None = None
    progress: int = 0
    status_message: str = ""
    retry_count: int = 0
