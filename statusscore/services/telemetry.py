from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
import logging
import traceback

MAX_ERROR_LOGS = 100
MAX_EVENTS = 500


class Events:
    APP_OPEN = "app_open"
    APP_CLOSE = "app_close"
    ASSESSMENT_START = "assessment_start"
    ASSESSMENT_COMPLETE = "assessment_complete"
    ASSESSMENT_ABANDON = "assessment_abandon"
    RESULTS_VIEW = "results_view"
    ERROR = "error"


@dataclass
class LoggingTelemetry:
    """Fire-and-forget analytics and error sink.

    Records are kept in bounded in-memory buffers (newest error first) and
    mirrored to the `telemetry` logger.
    """

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("telemetry"))
    events: deque[dict[str, object]] = field(default_factory=lambda: deque(maxlen=MAX_EVENTS))
    errors: deque[dict[str, object]] = field(default_factory=lambda: deque(maxlen=MAX_ERROR_LOGS))

    def track_event(self, name: str, params: Mapping[str, object] | None = None) -> None:
        event = {
            "event_name": name,
            "timestamp": _now_iso(),
            "params": dict(params or {}),
        }
        self.events.append(event)
        self.logger.info("analytics event", extra={"event_name": name})

    def log_error(
        self,
        error: BaseException | str,
        source: str,
        context: Mapping[str, object] | None = None,
    ) -> None:
        record = {
            "timestamp": _now_iso(),
            "source": source,
            "message": str(error),
            "stack": _format_stack(error),
            "context": dict(context or {}),
        }
        self.errors.appendleft(record)
        self.logger.error("error logged", extra={"source": source, "error_message": record["message"]})

    def error_logs(self) -> list[dict[str, object]]:
        return list(self.errors)

    def clear_error_logs(self) -> None:
        self.errors.clear()


def _format_stack(error: BaseException | str) -> str | None:
    if not isinstance(error, BaseException) or error.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()
