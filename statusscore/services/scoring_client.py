from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
import json
import logging

from statusscore.domain.contracts import ScoringTransport
from statusscore.domain.dto import AttemptState, ProgressUpdate, ScoreResult, ScoringRequest, TransportResponse
from statusscore.domain.error_taxonomy import FailureClass, failure_class_for_status
from statusscore.domain.errors import MalformedResponseError, ScoringCancelledError, ScoringError, TransportFailure
from statusscore.domain.lifecycle import (
    CHECKPOINTS,
    RETRY_ANALYSIS_MESSAGE,
    RETRY_CONNECTION_MESSAGE,
    ScoringState,
    ensure_transition,
)
from statusscore.domain.normalization import normalize_score_payload
from statusscore.domain.questionnaire import AnswerSet, freeze_answers
from statusscore.domain.request_builder import build_scoring_request, to_wire_payload
from statusscore.domain.response_parsing import extract_message_content, parse_score_payload
from statusscore.domain.retry_policy import RetryPolicy
from statusscore.domain.scoring_chain import ScoringChainSpec
from statusscore.settings import ScoringSettings

ProgressCallback = Callable[[ProgressUpdate], None]
SleepFn = Callable[[float], Awaitable[None]]
ContinueCheck = Callable[[], bool]

logger = logging.getLogger("scoring")


class _AttemptFailed(Exception):
    def __init__(self, failure_class: FailureClass, message: str, *, status_code: int | None = None) -> None:
        self.failure_class = failure_class
        self.status_code = status_code
        super().__init__(message)


@dataclass
class _StateTracker:
    attempt: AttemptState
    on_progress: ProgressCallback | None
    state: ScoringState = "idle"

    def advance(self, to_state: ScoringState, *, message: str | None = None) -> None:
        self.state = ensure_transition(from_state=self.state, to_state=to_state)
        checkpoint = CHECKPOINTS.get(to_state)
        if checkpoint is not None:
            self.attempt.progress_percent = checkpoint.progress
            self.attempt.status_message = checkpoint.message
        elif message is not None:
            self.attempt.status_message = message
        else:
            return
        if self.on_progress is None:
            return
        update = ProgressUpdate(
            progress=self.attempt.progress_percent,
            status_message=self.attempt.status_message,
            attempt_number=self.attempt.attempt_number,
            state=self.state,
        )
        try:
            self.on_progress(update)
        except Exception:
            logger.exception("progress callback failed", extra={"attempt": update.attempt_number})


@dataclass
class ScoringClient:
    """Runs one scoring invocation: request, retry loop, parse, normalize."""

    transport: ScoringTransport
    settings: ScoringSettings
    chain: ScoringChainSpec
    retry_policy: RetryPolicy | None = None
    sleep: SleepFn = asyncio.sleep
    policy: RetryPolicy = field(init=False)
    attempt_state: AttemptState = field(init=False)
    state: ScoringState = field(init=False, default="idle")

    def __post_init__(self) -> None:
        self.policy = self.retry_policy or RetryPolicy(
            base_delay_ms=self.settings.default_retry_delay_ms,
            max_retries=self.settings.max_retries,
            max_delay_ms=self.settings.max_retry_delay_ms,
        )
        self.attempt_state = AttemptState(max_attempts=self.policy.max_retries)

    async def execute(
        self,
        answers: AnswerSet,
        *,
        on_progress: ProgressCallback | None = None,
        should_continue: ContinueCheck | None = None,
    ) -> ScoreResult:
        snapshot = freeze_answers(answers)
        attempt = self.attempt_state
        attempt.reset()
        tracker = _StateTracker(attempt=attempt, on_progress=on_progress)

        try:
            tracker.advance("validating")
            self._validate_request(build_scoring_request(snapshot, chain=self.chain, settings=self.settings))

            while True:
                # Rebuilt per attempt from the same answers snapshot.
                request = build_scoring_request(snapshot, chain=self.chain, settings=self.settings)
                tracker.advance("connecting")
                try:
                    result = await self._attempt(request, tracker)
                except _AttemptFailed as failure:
                    decision = self.policy.should_retry(attempt.attempt_number, failure.failure_class)
                    if not decision.retry:
                        logger.error(
                            "scoring failed",
                            extra={
                                "attempt": attempt.attempt_number,
                                "failure_class": failure.failure_class,
                                "status_code": failure.status_code,
                            },
                        )
                        raise ScoringError(
                            failure.failure_class,
                            str(failure),
                            status_code=failure.status_code,
                            attempts=attempt.attempt_number + 1,
                        ) from failure

                    retry_message = (
                        RETRY_ANALYSIS_MESSAGE
                        if failure.failure_class == "malformed_response"
                        else RETRY_CONNECTION_MESSAGE
                    )
                    tracker.advance("retrying", message=retry_message)
                    logger.warning(
                        "scoring attempt failed, retrying",
                        extra={
                            "attempt": attempt.attempt_number,
                            "failure_class": failure.failure_class,
                            "status_code": failure.status_code,
                            "delay_ms": decision.delay_ms,
                        },
                    )
                    attempt.attempt_number += 1
                    await self.sleep(decision.delay_ms / 1000)
                    if should_continue is not None and not should_continue():
                        raise ScoringCancelledError(attempts=attempt.attempt_number)
                    continue

                tracker.advance("done")
                return result
        except (ScoringError, asyncio.CancelledError):
            if tracker.state not in ("done", "failed"):
                tracker.advance("failed")
            raise
        finally:
            self.state = tracker.state

    async def _attempt(self, request: ScoringRequest, tracker: _StateTracker) -> ScoreResult:
        try:
            response = await self.transport.post_json(
                url=self.settings.backend_url,
                payload=to_wire_payload(request),
                timeout_seconds=self.settings.request_timeout_seconds,
            )
        except (TransportFailure, TimeoutError, OSError) as exc:
            raise _AttemptFailed("network_error", f"Network request failed: {exc}") from exc
        except Exception as exc:
            raise _AttemptFailed("fatal", f"Unexpected transport error: {exc!r}") from exc

        if not response.ok:
            raise _AttemptFailed(
                failure_class_for_status(response.status_code) or "fatal",
                f"API request failed: {response.status_code} - {_upstream_message(response)}",
                status_code=response.status_code,
            )

        tracker.advance("awaiting_response")
        tracker.advance("parsing")
        try:
            content = extract_message_content(response.text)
            payload = parse_score_payload(
                content,
                required_keys=self.chain.response.required,
                required_categories=self.chain.response.categories,
            )
        except MalformedResponseError as exc:
            raise _AttemptFailed("malformed_response", f"Invalid response format: {exc}") from exc
        return normalize_score_payload(payload)

    @staticmethod
    def _validate_request(request: ScoringRequest) -> None:
        if not request.model.strip():
            raise ScoringError("fatal", "Invalid scoring request: model id is empty")
        if not request.system_prompt.strip() or not request.user_prompt.strip():
            raise ScoringError("fatal", "Invalid scoring request: prompt is empty")
        if request.max_tokens <= 0:
            raise ScoringError("fatal", "Invalid scoring request: max_tokens must be positive")


def _upstream_message(response: TransportResponse) -> str:
    try:
        body = json.loads(response.text)
    except (json.JSONDecodeError, TypeError):
        body = None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"].strip():
            return error["message"].strip()
        if isinstance(error, str) and error.strip():
            return error.strip()
    return response.reason or "Unknown error"
