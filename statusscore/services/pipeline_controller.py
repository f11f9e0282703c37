from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
import asyncio
import logging
import uuid

from statusscore.domain.contracts import ResultStore, Telemetry
from statusscore.domain.dto import PipelineState, ProgressUpdate, ScoreResult
from statusscore.domain.errors import ScoringCancelledError, ScoringError
from statusscore.domain.questionnaire import AnswerSet
from statusscore.services.scoring_client import ScoringClient
from statusscore.services.telemetry import Events

StateListener = Callable[[PipelineState], None]

COMPONENT_ID = "services.pipeline_controller"
CANCELLED_MESSAGE = "Calculation was cancelled"
UNEXPECTED_MESSAGE = "An unexpected error occurred during calculation."
logger = logging.getLogger("runtime")


@dataclass
class _Invocation:
    invocation_id: str
    cancelled: bool = False


@dataclass
class PipelineController:
    """Lifecycle owner for scoring runs consumed by a UI or API caller.

    One invocation at a time; state writes from an invocation are dropped once
    it is cancelled or the controller is torn down.
    """

    client: ScoringClient
    store: ResultStore | None = None
    telemetry: Telemetry | None = None
    _state: PipelineState = field(init=False, default_factory=PipelineState)
    _invocation: _Invocation | None = field(init=False, default=None)
    _torn_down: bool = field(init=False, default=False)
    _listeners: list[StateListener] = field(init=False, default_factory=list)

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def in_flight(self) -> bool:
        return self._invocation is not None

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def run(self, answers: AnswerSet) -> ScoreResult | None:
        if self._torn_down:
            return None
        if self._invocation is not None:
            logger.info("scoring run ignored, invocation already in flight")
            return None

        invocation = _Invocation(invocation_id=uuid.uuid4().hex)
        self._invocation = invocation
        self._write(invocation, loading=True, error=None, progress=0, status_message="", retry_count=0)
        self._track(Events.ASSESSMENT_START, {"invocation_id": invocation.invocation_id})

        try:
            result = await self.client.execute(
                answers,
                on_progress=lambda update: self._on_progress(invocation, update),
                should_continue=lambda: not invocation.cancelled and not self._torn_down,
            )
        except ScoringCancelledError:
            return None
        except asyncio.CancelledError:
            # The awaiting task was cancelled; nothing is in flight any more.
            self._write(invocation, loading=False, error=CANCELLED_MESSAGE)
            invocation.cancelled = True
            raise
        except ScoringError as exc:
            if not self._accepts(invocation):
                return None
            self._write(invocation, loading=False, error=exc.message)
            self._log_error(
                exc,
                {
                    "invocation_id": invocation.invocation_id,
                    "failure_class": exc.failure_class,
                    "status_code": exc.status_code,
                    "attempts": exc.attempts,
                },
            )
            raise
        except Exception as exc:
            if self._accepts(invocation):
                self._write(invocation, loading=False, error=UNEXPECTED_MESSAGE)
                self._log_error(exc, {"invocation_id": invocation.invocation_id})
            raise
        finally:
            if self._invocation is invocation:
                self._invocation = None

        if not self._accepts(invocation):
            return None
        self._write(invocation, loading=False)
        self._persist(result)
        self._clear_progress()
        self._track(
            Events.ASSESSMENT_COMPLETE,
            {
                "invocation_id": invocation.invocation_id,
                "overall_score": result.overall_score,
                "retry_count": self._state.retry_count,
            },
        )
        return result

    def cancel(self) -> None:
        """Best effort: the in-flight request is not aborted."""
        if self._torn_down:
            return
        invocation = self._invocation
        if invocation is not None and not invocation.cancelled:
            invocation.cancelled = True
            self._track(Events.ASSESSMENT_ABANDON, {"invocation_id": invocation.invocation_id})
        self._apply(replace(self._state, loading=False, error=CANCELLED_MESSAGE))

    def cleanup(self) -> None:
        self._apply(PipelineState())

    def teardown(self) -> None:
        self._torn_down = True
        self.cleanup()
        self._listeners.clear()

    def _on_progress(self, invocation: _Invocation, update: ProgressUpdate) -> None:
        if not self._accepts(invocation):
            return
        self._store_progress(update)
        self._write(
            invocation,
            progress=update.progress,
            status_message=update.status_message,
            retry_count=update.attempt_number,
        )

    def _accepts(self, invocation: _Invocation) -> bool:
        return not invocation.cancelled and not self._torn_down

    def _write(self, invocation: _Invocation, **changes: object) -> None:
        if not self._accepts(invocation):
            return
        self._apply(replace(self._state, **changes))

    def _apply(self, state: PipelineState) -> None:
        self._state = state
        if self._torn_down:
            return
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("state listener failed")

    def _persist(self, result: ScoreResult) -> None:
        if self.store is None:
            return
        try:
            self.store.save_result(result)
        except Exception as exc:
            logger.exception("failed to save results")
            self._log_error(exc, {"operation": "save_result"})

    def _store_progress(self, update: ProgressUpdate) -> None:
        if self.store is None:
            return
        try:
            self.store.save_progress(
                status_message=update.status_message,
                progress=update.progress,
                retry_count=update.attempt_number,
            )
        except Exception:
            logger.exception("failed to save calculation state")

    def _clear_progress(self) -> None:
        if self.store is None:
            return
        try:
            self.store.clear_progress()
        except Exception:
            logger.exception("failed to clear calculation state")

    def _track(self, name: str, params: Mapping[str, object]) -> None:
        if self.telemetry is None:
            return
        try:
            self.telemetry.track_event(name, params)
        except Exception:
            logger.exception("telemetry event dropped", extra={"event_name": name})

    def _log_error(self, error: BaseException, context: Mapping[str, object]) -> None:
        if self.telemetry is None:
            return
        try:
            self.telemetry.log_error(error, COMPONENT_ID, context)
        except Exception:
            logger.exception("telemetry error report dropped")
