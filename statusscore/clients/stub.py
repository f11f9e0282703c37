from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import json

from statusscore.domain.dto import TransportResponse
from statusscore.domain.errors import TransportFailure

STUB_SCORE_PAYLOAD: dict[str, object] = {
    "categoryScores": {
        "wealth": 62,
        "fitness": 58,
        "power": 47,
        "intelligence": 71,
        "willpower": 66,
        "legacy": 54,
    },
    "overallScore": 60,
    "globalRanking": {"position": 1588000000, "percentile": "top 40.0%"},
    "status": "Above the global median",
    "futurePrediction": "Steady upward trajectory with consistent discipline.",
}


def completion_body(content: str) -> str:
    """Wrap model content in the proxy's chat-completion envelope."""
    return json.dumps({"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]})


def ok_response(payload: Mapping[str, object] | None = None, *, fenced: bool = False) -> TransportResponse:
    content = json.dumps(dict(payload if payload is not None else STUB_SCORE_PAYLOAD))
    if fenced:
        content = f"```json\n{content}\n```"
    return TransportResponse(status_code=200, text=completion_body(content), reason="OK")


def error_response(status_code: int, message: str = "", reason: str = "") -> TransportResponse:
    body = json.dumps({"error": {"message": message}}) if message else ""
    return TransportResponse(status_code=status_code, text=body, reason=reason)


@dataclass
class StubScoringTransport:
    """Scripted transport; replays `responses` in order, then repeats `default`.

    A TransportFailure instance in the script is raised instead of returned.
    """

    responses: list[TransportResponse | TransportFailure] = field(default_factory=list)
    default: TransportResponse | TransportFailure = field(default_factory=ok_response)
    calls: list[dict[str, object]] = field(default_factory=list)

    async def post_json(
        self,
        *,
        url: str,
        payload: Mapping[str, object],
        timeout_seconds: float,
    ) -> TransportResponse:
        self.calls.append({"url": url, "payload": dict(payload), "timeout_seconds": timeout_seconds})
        outcome = self.responses.pop(0) if self.responses else self.default
        if isinstance(outcome, TransportFailure):
            raise outcome
        return outcome


@dataclass
class StubEntitlementGate:
    current_user: dict[str, object] | None = field(default_factory=lambda: {"id": "local-user"})
    subscribed: bool = True

    @property
    def user(self) -> dict[str, object] | None:
        return self.current_user

    def has_active_subscription(self) -> bool:
        return self.current_user is not None and self.subscribed
