from __future__ import annotations

from dataclasses import dataclass

from statusscore.domain.error_taxonomy import (
    TRANSPORT_FAILURE_CLASSES,
    FailureClass,
    classify_failure,
)

TRANSPORT_BACKOFF_FACTOR = 2.0
MALFORMED_BACKOFF_FACTOR = 1.5


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    delay_ms: int = 0


NO_RETRY = RetryDecision(retry=False)


@dataclass(frozen=True)
class RetryPolicy:
    """Stateless retry decision over a single shared attempt counter.

    Transport, rate-limit and malformed-response failures all draw from the
    same `max_retries` budget.
    """

    base_delay_ms: int = 2000
    max_retries: int = 3
    max_delay_ms: int = 10000

    def should_retry(self, attempt_number: int, failure_class: FailureClass) -> RetryDecision:
        if classify_failure(failure_class) == "terminal":
            return NO_RETRY
        if attempt_number >= self.max_retries:
            return NO_RETRY
        return RetryDecision(retry=True, delay_ms=self.backoff_ms(attempt_number, failure_class))

    def backoff_ms(self, attempt_number: int, failure_class: FailureClass) -> int:
        factor = TRANSPORT_BACKOFF_FACTOR if failure_class in TRANSPORT_FAILURE_CLASSES else MALFORMED_BACKOFF_FACTOR
        delay = self.base_delay_ms * factor ** max(attempt_number, 0)
        return int(min(delay, self.max_delay_ms))
