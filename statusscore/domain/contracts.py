from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol, runtime_checkable

from statusscore.domain.dto import ScoreResult, TransportResponse

RESULTS_HISTORY_LIMIT = 10


@runtime_checkable
class ScoringTransport(Protocol):
    """POSTs a JSON body to the scoring proxy.

    Implementations raise TransportFailure when no HTTP response was received
    (connection errors, timeouts); any HTTP status is returned, not raised.
    """

    async def post_json(
        self,
        *,
        url: str,
        payload: Mapping[str, object],
        timeout_seconds: float,
    ) -> TransportResponse: ...


@runtime_checkable
class EntitlementGate(Protocol):
    @property
    def user(self) -> Mapping[str, object] | None: ...

    def has_active_subscription(self) -> bool: ...


@runtime_checkable
class ResultStore(Protocol):
    """Key-value write-through for final results.

    History is capped at RESULTS_HISTORY_LIMIT entries, newest first. The
    in-progress calculation state is removed once a run completes.
    """

    def save_result(self, result: ScoreResult) -> None: ...

    def last_result(self) -> dict[str, object] | None: ...

    def history(self) -> list[dict[str, object]]: ...

    def save_progress(self, *, status_message: str, progress: int, retry_count: int) -> None: ...

    def calculation_state(self) -> dict[str, object] | None: ...

    def clear_progress(self) -> None: ...

    def clear(self) -> None: ...


@runtime_checkable
class Telemetry(Protocol):
    def track_event(self, name: str, params: Mapping[str, object] | None = None) -> None: ...

    def log_error(
        self,
        error: BaseException | str,
        source: str,
        context: Mapping[str, object] | None = None,
    ) -> None: ...
