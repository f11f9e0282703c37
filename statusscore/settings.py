from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class ScoringSettings:
    backend_url: str = ""
    model: str = "gpt-4o"
    temperature: float = 0.4
    max_tokens: int = 2048
    max_requests_per_minute: int = 50
    max_concurrent_requests: int = 5
    default_retry_delay_ms: int = 2000
    max_retries: int = 3
    request_timeout_ms: int = 30000
    max_retry_delay_ms: int = 10000
    results_path: str = ""

    @property
    def stub_mode(self) -> bool:
        return not self.backend_url

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000


def scoring_settings_from_env() -> ScoringSettings:
    defaults = ScoringSettings()
    return ScoringSettings(
        backend_url=os.getenv("SCORING_BACKEND_URL", defaults.backend_url).strip(),
        model=os.getenv("SCORING_MODEL", "").strip() or defaults.model,
        temperature=_env_float("SCORING_TEMPERATURE", defaults.temperature),
        max_tokens=_env_int("SCORING_MAX_TOKENS", defaults.max_tokens),
        max_requests_per_minute=_env_int("SCORING_MAX_REQUESTS_PER_MINUTE", defaults.max_requests_per_minute),
        max_concurrent_requests=_env_int("SCORING_MAX_CONCURRENT_REQUESTS", defaults.max_concurrent_requests),
        default_retry_delay_ms=_env_int("SCORING_RETRY_DELAY_MS", defaults.default_retry_delay_ms),
        max_retries=_env_int("SCORING_MAX_RETRIES", defaults.max_retries, minimum=0),
        request_timeout_ms=_env_int("SCORING_REQUEST_TIMEOUT_MS", defaults.request_timeout_ms),
        max_retry_delay_ms=_env_int("SCORING_MAX_RETRY_DELAY_MS", defaults.max_retry_delay_ms),
        results_path=os.getenv("SCORING_RESULTS_PATH", defaults.results_path).strip(),
    )


def _env_int(name: str, default: int, *, minimum: int = 1) -> int:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = int(value)
    except ValueError:
        return default

    return parsed if parsed >= minimum else default


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default

    try:
        parsed = float(value)
    except ValueError:
        return default

    return parsed if 0 <= parsed <= 2 else default
