from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
import logging
import time

logger = logging.getLogger("scoring.transport")

WINDOW_SECONDS = 60.0


@dataclass
class RequestThrottle:
    """Caps concurrent requests and requests per sliding 60s window."""

    max_concurrent: int = 5
    max_per_minute: int = 50
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _started: deque[float] = field(init=False, default_factory=deque)
    _semaphore: asyncio.Semaphore | None = field(init=False, default=None)
    _window_lock: asyncio.Lock | None = field(init=False, default=None)

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        semaphore, window_lock = self._primitives()
        async with semaphore:
            await self._wait_for_window(window_lock)
            yield

    @property
    def in_window(self) -> int:
        self._evict(self.clock())
        return len(self._started)

    def _primitives(self) -> tuple[asyncio.Semaphore, asyncio.Lock]:
        # Created lazily so the throttle binds to the running loop.
        if self._semaphore is None or self._window_lock is None:
            self._semaphore = asyncio.Semaphore(max(self.max_concurrent, 1))
            self._window_lock = asyncio.Lock()
        return self._semaphore, self._window_lock

    async def _wait_for_window(self, window_lock: asyncio.Lock) -> None:
        async with window_lock:
            while True:
                now = self.clock()
                self._evict(now)
                if len(self._started) < max(self.max_per_minute, 1):
                    self._started.append(now)
                    return
                wait_seconds = self._started[0] + WINDOW_SECONDS - now
                logger.info("request rate limit reached", extra={"delay_ms": int(wait_seconds * 1000)})
                await self.sleep(max(wait_seconds, 0.0))

    def _evict(self, now: float) -> None:
        while self._started and now - self._started[0] >= WINDOW_SECONDS:
            self._started.popleft()
