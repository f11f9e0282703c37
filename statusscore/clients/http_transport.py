from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
import time

import httpx

from statusscore.clients.throttle import RequestThrottle
from statusscore.domain.dto import TransportResponse
from statusscore.domain.errors import TransportFailure
from statusscore.settings import ScoringSettings

logger = logging.getLogger("scoring.transport")

JSON_HEADERS = {"Content-Type": "application/json"}


@dataclass
class HttpxScoringTransport:
    """Scoring proxy transport over a shared httpx.AsyncClient."""

    client: httpx.AsyncClient
    throttle: RequestThrottle = field(default_factory=RequestThrottle)

    async def post_json(
        self,
        *,
        url: str,
        payload: Mapping[str, object],
        timeout_seconds: float,
    ) -> TransportResponse:
        async with self.throttle.slot():
            started = time.perf_counter()
            try:
                response = await self.client.post(
                    url,
                    json=dict(payload),
                    headers=JSON_HEADERS,
                    timeout=timeout_seconds,
                )
            except httpx.TimeoutException as exc:
                raise TransportFailure(f"request timed out after {timeout_seconds:g}s") from exc
            except httpx.TransportError as exc:
                raise TransportFailure(str(exc) or type(exc).__name__) from exc

        logger.info(
            "scoring proxy responded",
            extra={
                "status_code": response.status_code,
                "latency_ms": int((time.perf_counter() - started) * 1000),
            },
        )
        return TransportResponse(
            status_code=response.status_code,
            text=response.text,
            reason=response.reason_phrase,
        )

    async def aclose(self) -> None:
        await self.client.aclose()


def build_http_transport(settings: ScoringSettings) -> HttpxScoringTransport:
    return HttpxScoringTransport(
        client=httpx.AsyncClient(timeout=settings.request_timeout_seconds),
        throttle=RequestThrottle(
            max_concurrent=settings.max_concurrent_requests,
            max_per_minute=settings.max_requests_per_minute,
        ),
    )
