from __future__ import annotations

from statusscore.domain.error_taxonomy import FailureClass, resolve_failure_class


class DomainError(Exception):
    pass


class DomainValidationError(DomainError):
    pass


class DomainInvariantError(DomainError):
    pass


class AnswersIncompleteError(DomainValidationError):
    def __init__(self, fields: tuple[str, ...], message: str | None = None) -> None:
        self.fields = fields
        super().__init__(message or f"answers are incomplete: {', '.join(fields)}")


class ChainSpecError(DomainValidationError):
    pass


class TransportFailure(DomainError):
    """Raised by transports when no HTTP response was received."""


class MalformedResponseError(DomainError):
    pass


class ScoringError(DomainError):
    """Terminal pipeline failure carrying a display-ready message."""

    def __init__(
        self,
        failure_class: FailureClass,
        message: str,
        *,
        status_code: int | None = None,
        attempts: int = 0,
    ) -> None:
        self.failure_class = resolve_failure_class(failure_class)
        self.status_code = status_code
        self.attempts = attempts
        super().__init__(message.strip() or "An unexpected error occurred during calculation.")

    @property
    def message(self) -> str:
        return str(self)


class ScoringCancelledError(ScoringError):
    def __init__(self, *, attempts: int = 0) -> None:
        super().__init__("fatal", "Calculation was cancelled", attempts=attempts)


class AccessDeniedError(DomainError):
    def __init__(self, reason: str, message: str) -> None:
        self.reason = reason
        super().__init__(message)


class PipelineBusyError(DomainError):
    pass
