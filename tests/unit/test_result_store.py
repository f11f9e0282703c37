from pathlib import Path

import pytest

from statusscore.domain.contracts import RESULTS_HISTORY_LIMIT
from statusscore.domain.dto import GlobalRanking, ScoreResult, SCORE_CATEGORIES
from statusscore.repositories.result_store import (
    LAST_RESULTS_KEY,
    RESULTS_HISTORY_KEY,
    InMemoryResultStore,
    JsonFileResultStore,
)


def _result(overall: int) -> ScoreResult:
    return ScoreResult(
        category_scores={category: overall for category in SCORE_CATEGORIES},
        overall_score=overall,
        global_ranking=GlobalRanking(position=1000, percentile=1.5),
        status="ok",
        future_prediction="ok",
    )


@pytest.mark.unit
def test_in_memory_store_keeps_newest_first_capped_history() -> None:
    store = InMemoryResultStore()

    for overall in range(RESULTS_HISTORY_LIMIT + 3):
        store.save_result(_result(overall))

    history = store.history()
    assert len(history) == RESULTS_HISTORY_LIMIT
    assert history[0]["overallScore"] == RESULTS_HISTORY_LIMIT + 2
    assert store.last_result()["overallScore"] == RESULTS_HISTORY_LIMIT + 2
    assert "timestamp" in history[0]

    store.clear()
    assert store.last_result() is None
    assert store.history() == []


@pytest.mark.unit
def test_json_file_store_persists_across_instances(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "results.json"
    JsonFileResultStore(path=path).save_result(_result(40))
    JsonFileResultStore(path=path).save_result(_result(70))

    reopened = JsonFileResultStore(path=path)
    assert reopened.last_result()["overallScore"] == 70
    assert [item["overallScore"] for item in reopened.history()] == [70, 40]
    assert reopened.last_result()["globalRanking"] == {"position": 1000, "percentile": 1.5}

    reopened.clear()
    assert not path.exists()
    assert reopened.history() == []


@pytest.mark.unit
def test_json_file_store_recovers_from_corrupt_document(tmp_path: Path) -> None:
    path = tmp_path / "results.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileResultStore(path=path)

    assert store.last_result() is None
    store.save_result(_result(55))
    assert store.last_result()["overallScore"] == 55


@pytest.mark.unit
def test_stored_document_uses_fixed_keys() -> None:
    store = InMemoryResultStore()
    store.save_result(_result(12))
    assert set(store.values) == {LAST_RESULTS_KEY, RESULTS_HISTORY_KEY}


@pytest.mark.unit
def test_calculation_state_round_trips_and_clears(tmp_path: Path) -> None:
    for store in (InMemoryResultStore(), JsonFileResultStore(path=tmp_path / "results.json")):
        assert store.calculation_state() is None

        store.save_progress(status_message="Processing results...", progress=70, retry_count=1)
        state = store.calculation_state()
        assert state["status"] == "Processing results..."
        assert state["progress"] == 70
        assert state["retryCount"] == 1
        assert isinstance(state["timestamp"], int)

        store.save_result(_result(80))
        store.clear_progress()
        assert store.calculation_state() is None
        assert store.last_result()["overallScore"] == 80
