from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
import logging
from typing import Any

from statusscore.domain.contracts import Telemetry
from statusscore.services.telemetry import Events

LoopExceptionHandler = Callable[[asyncio.AbstractEventLoop, dict[str, Any]], object]

SOURCE = "GlobalErrorHandler"
logger = logging.getLogger("runtime")


@dataclass
class ErrorReportingSubscription:
    """Forwards unhandled event-loop errors to telemetry while registered.

    The application root subscribes at startup and closes at shutdown; close()
    restores whichever handler was installed before.
    """

    telemetry: Telemetry
    loop: asyncio.AbstractEventLoop
    _previous: LoopExceptionHandler | None = field(init=False, default=None)
    _active: bool = field(init=False, default=False)

    @classmethod
    def subscribe(
        cls,
        telemetry: Telemetry,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> ErrorReportingSubscription:
        subscription = cls(telemetry=telemetry, loop=loop or asyncio.get_running_loop())
        subscription._previous = subscription.loop.get_exception_handler()
        subscription.loop.set_exception_handler(subscription._handle)
        subscription._active = True
        return subscription

    @property
    def active(self) -> bool:
        return self._active

    def close(self) -> None:
        if not self._active:
            return
        self._active = False
        if self.loop.get_exception_handler() == self._handle:
            self.loop.set_exception_handler(self._previous)
        else:
            logger.warning("loop exception handler was replaced after subscription; leaving it in place")

    def __enter__(self) -> ErrorReportingSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _handle(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        error = context.get("exception")
        message = str(error) if error is not None else str(context.get("message", "unhandled event loop error"))
        self.telemetry.log_error(error if error is not None else message, SOURCE, {"is_fatal": False})
        self.telemetry.track_event(Events.ERROR, {"message": message, "is_fatal": False})
        if self._previous is not None:
            self._previous(loop, context)
        else:
            loop.default_exception_handler(context)
