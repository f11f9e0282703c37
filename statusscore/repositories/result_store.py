from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
import time

from statusscore.domain.contracts import RESULTS_HISTORY_LIMIT
from statusscore.domain.dto import ScoreResult

LAST_RESULTS_KEY = "last_results"
RESULTS_HISTORY_KEY = "results_history"
CALCULATION_STATE_KEY = "calculation_state"

logger = logging.getLogger("storage")


def result_entry(result: ScoreResult) -> dict[str, object]:
    entry = result.to_payload()
    entry["timestamp"] = int(time.time() * 1000)
    return entry


def progress_entry(*, status_message: str, progress: int, retry_count: int) -> dict[str, object]:
    return {
        "status": status_message,
        "progress": progress,
        "retryCount": retry_count,
        "timestamp": int(time.time() * 1000),
    }


@dataclass
class InMemoryResultStore:
    """Non-persistent store with the same capped-history semantics."""

    values: dict[str, object] = field(default_factory=dict)

    def save_result(self, result: ScoreResult) -> None:
        entry = result_entry(result)
        self.values[LAST_RESULTS_KEY] = entry
        history = [entry, *self.history()]
        self.values[RESULTS_HISTORY_KEY] = history[:RESULTS_HISTORY_LIMIT]

    def last_result(self) -> dict[str, object] | None:
        value = self.values.get(LAST_RESULTS_KEY)
        return dict(value) if isinstance(value, dict) else None

    def history(self) -> list[dict[str, object]]:
        value = self.values.get(RESULTS_HISTORY_KEY)
        if not isinstance(value, list):
            return []
        return [dict(item) for item in value if isinstance(item, dict)]

    def save_progress(self, *, status_message: str, progress: int, retry_count: int) -> None:
        self.values[CALCULATION_STATE_KEY] = progress_entry(
            status_message=status_message,
            progress=progress,
            retry_count=retry_count,
        )

    def calculation_state(self) -> dict[str, object] | None:
        value = self.values.get(CALCULATION_STATE_KEY)
        return dict(value) if isinstance(value, dict) else None

    def clear_progress(self) -> None:
        self.values.pop(CALCULATION_STATE_KEY, None)

    def clear(self) -> None:
        self.values.clear()


@dataclass
class JsonFileResultStore:
    """Key-value document on disk: {last_results, results_history, calculation_state}."""

    path: Path

    def save_result(self, result: ScoreResult) -> None:
        entry = result_entry(result)
        document = self._read()
        history = document.get(RESULTS_HISTORY_KEY)
        previous = [item for item in history if isinstance(item, dict)] if isinstance(history, list) else []
        document[LAST_RESULTS_KEY] = entry
        document[RESULTS_HISTORY_KEY] = [entry, *previous][:RESULTS_HISTORY_LIMIT]
        self._write(document)

    def last_result(self) -> dict[str, object] | None:
        value = self._read().get(LAST_RESULTS_KEY)
        return value if isinstance(value, dict) else None

    def history(self) -> list[dict[str, object]]:
        value = self._read().get(RESULTS_HISTORY_KEY)
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    def save_progress(self, *, status_message: str, progress: int, retry_count: int) -> None:
        document = self._read()
        document[CALCULATION_STATE_KEY] = progress_entry(
            status_message=status_message,
            progress=progress,
            retry_count=retry_count,
        )
        self._write(document)

    def calculation_state(self) -> dict[str, object] | None:
        value = self._read().get(CALCULATION_STATE_KEY)
        return value if isinstance(value, dict) else None

    def clear_progress(self) -> None:
        document = self._read()
        if document.pop(CALCULATION_STATE_KEY, None) is not None:
            self._write(document)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("results file is corrupt, starting fresh", extra={"path": str(self.path)})
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, document: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(document, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)
