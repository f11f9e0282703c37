from fastapi.testclient import TestClient
import pytest

from statusscore.api.http_app import build_app
from statusscore.clients.stub import StubEntitlementGate, StubScoringTransport, error_response
from statusscore.domain.questionnaire import ANSWER_FIELDS, QUESTION_OPTIONS
from statusscore.roles import validate_role
from statusscore.services.bootstrap import build_runtime_container
from statusscore.settings import ScoringSettings


def _answers() -> dict[str, object]:
    return {field: QUESTION_OPTIONS[field][-1] for field in ANSWER_FIELDS}


def _client(**container_kwargs: object) -> TestClient:
    container_kwargs.setdefault("settings", ScoringSettings(default_retry_delay_ms=1, max_retry_delay_ms=1))
    container = build_runtime_container(validate_role("api"), **container_kwargs)
    return TestClient(build_app(run_id="integration-api", container=container))


@pytest.mark.integration
def test_system_endpoints_report_stub_mode() -> None:
    with _client() as client:
        health = client.get("/health")
        ready = client.get("/ready")

    assert health.status_code == 200
    assert health.json() == {"status": "ok", "role": "api", "mode": "stub"}
    assert ready.json()["scoring_in_flight"] is False
    assert ready.json()["error_reporting_active"] is True


@pytest.mark.integration
def test_scoring_run_is_returned_and_stored() -> None:
    with _client() as client:
        assert client.get("/results/last").status_code == 404

        score = client.post("/scores", json={"answers": _answers()})
        state = client.get("/scores/state")
        last = client.get("/results/last")
        history = client.get("/results/history")

    assert score.status_code == 200
    body = score.json()
    assert set(body["category_scores"]) == {"wealth", "fitness", "power", "intelligence", "willpower", "legacy"}
    assert body["overall_score"] == 60
    assert body["global_ranking"] == {"position": 1588000000, "percentile": 40.0}

    assert state.json() == {
        "loading": False,
        "error": None,
        "progress": 100,
        "status_message": "Calculation complete!",
        "retry_count": 0,
        "in_flight": False,
    }
    assert last.json()["result"]["overallScore"] == 60
    assert len(history.json()["items"]) == 1


@pytest.mark.integration
def test_incomplete_answers_are_rejected_before_scoring() -> None:
    transport = StubScoringTransport()
    answers = _answers()
    answers["netWorth"] = ""

    with _client(transport=transport) as client:
        response = client.post("/scores", json={"answers": answers})

    assert response.status_code == 422
    assert "netWorth" in response.json()["detail"]
    assert transport.calls == []


@pytest.mark.integration
def test_unknown_option_values_are_rejected() -> None:
    answers = _answers()
    answers["bodyType"] = "superhero"

    with _client() as client:
        response = client.post("/scores", json={"answers": answers})

    assert response.status_code == 422
    assert "bodyType" in response.json()["detail"]


@pytest.mark.integration
@pytest.mark.parametrize(
    ("gate", "status_code"),
    [
        (StubEntitlementGate(current_user=None), 401),
        (StubEntitlementGate(subscribed=False), 402),
    ],
)
def test_entitlement_gate_guards_scoring(gate: StubEntitlementGate, status_code: int) -> None:
    transport = StubScoringTransport()

    with _client(transport=transport, entitlements=gate) as client:
        response = client.post("/scores", json={"answers": _answers()})

    assert response.status_code == status_code
    assert transport.calls == []


@pytest.mark.integration
def test_upstream_failure_maps_to_bad_gateway() -> None:
    transport = StubScoringTransport(default=error_response(503, "maintenance"))

    with _client(transport=transport) as client:
        response = client.post("/scores", json={"answers": _answers()})
        state = client.get("/scores/state")

    assert response.status_code == 502
    assert response.json()["detail"] == "API request failed: 503 - maintenance"
    assert len(transport.calls) == 4
    assert state.json()["error"] == "API request failed: 503 - maintenance"
    assert state.json()["loading"] is False


@pytest.mark.integration
def test_cancel_without_run_reports_cancelled_state() -> None:
    with _client() as client:
        response = client.post("/scores/cancel")

    assert response.status_code == 200
    assert response.json()["error"] == "Calculation was cancelled"
    assert response.json()["in_flight"] is False
