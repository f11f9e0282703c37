from __future__ import annotations

from typing import Literal

# Canonical failure vocabulary for the scoring pipeline.
FailureClass = Literal[
    "network_error",
    "rate_limited",
    "server_error",
    "malformed_response",
    "validation_error",
    "fatal",
]

RetryClassification = Literal["recoverable", "terminal"]

CANONICAL_FAILURE_CLASSES: tuple[FailureClass, ...] = (
    "network_error",
    "rate_limited",
    "server_error",
    "malformed_response",
    "validation_error",
    "fatal",
)

# Failures retried locally within the shared attempt budget.
RECOVERABLE_FAILURE_CLASSES: frozenset[FailureClass] = frozenset(
    {
        "network_error",
        "rate_limited",
        "server_error",
        "malformed_response",
    }
)

# Failures backed off with the exponential (x2) schedule.
TRANSPORT_FAILURE_CLASSES: frozenset[FailureClass] = frozenset(
    {
        "network_error",
        "rate_limited",
        "server_error",
    }
)


def is_canonical_failure_class(code: str) -> bool:
    return code in CANONICAL_FAILURE_CLASSES


def classify_failure(code: FailureClass) -> RetryClassification:
    if code in RECOVERABLE_FAILURE_CLASSES:
        return "recoverable"
    return "terminal"


def failure_class_for_status(status_code: int) -> FailureClass | None:
    """Map an HTTP status to a failure class; None for 2xx."""
    if 200 <= status_code < 300:
        return None
    if status_code == 429:
        return "rate_limited"
    if status_code >= 500:
        return "server_error"
    return "fatal"


def resolve_failure_class(code: str) -> FailureClass:
    if is_canonical_failure_class(code):
        return code  # type: ignore[return-value]
    # Keep reporting stable even if a collaborator emitted an unknown code.
    return "fatal"
