from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from statusscore.domain.errors import DomainInvariantError

ScoringState = Literal[
    "idle",
    "validating",
    "connecting",
    "awaiting_response",
    "parsing",
    "retrying",
    "done",
    "failed",
]


@dataclass(frozen=True)
class ProgressCheckpoint:
    state: ScoringState
    progress: int
    message: str


CHECKPOINTS: dict[ScoringState, ProgressCheckpoint] = {
    "validating": ProgressCheckpoint("validating", 0, "Validating your responses..."),
    "connecting": ProgressCheckpoint("connecting", 20, "Connecting to assessment server..."),
    "awaiting_response": ProgressCheckpoint("awaiting_response", 40, "Analyzing your profile data..."),
    "parsing": ProgressCheckpoint("parsing", 70, "Processing results..."),
    "done": ProgressCheckpoint("done", 100, "Calculation complete!"),
}

RETRY_CONNECTION_MESSAGE = "Retrying connection..."
RETRY_ANALYSIS_MESSAGE = "Retrying analysis..."


ALLOWED_TRANSITIONS: dict[ScoringState, set[ScoringState]] = {
    "idle": {"validating"},
    "validating": {"connecting", "failed"},
    "connecting": {"awaiting_response", "retrying", "failed"},
    "awaiting_response": {"parsing", "retrying", "failed"},
    "parsing": {"done", "retrying", "failed"},
    "retrying": {"connecting", "failed"},
    "done": set(),
    "failed": set(),
}


def ensure_transition(*, from_state: ScoringState, to_state: ScoringState) -> ScoringState:
    if to_state not in ALLOWED_TRANSITIONS[from_state]:
        raise DomainInvariantError(f"invalid scoring transition: {from_state} -> {to_state}")
    return to_state
