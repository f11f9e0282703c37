import pytest

from statusscore.settings import ScoringSettings, scoring_settings_from_env


@pytest.mark.unit
def test_default_settings_run_in_stub_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SCORING_BACKEND_URL", raising=False)

    settings = scoring_settings_from_env()

    assert settings == ScoringSettings()
    assert settings.stub_mode is True
    assert settings.request_timeout_seconds == 30.0


@pytest.mark.unit
def test_settings_are_read_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCORING_BACKEND_URL", " https://proxy.example.invalid/score ")
    monkeypatch.setenv("SCORING_MODEL", "gpt-test")
    monkeypatch.setenv("SCORING_TEMPERATURE", "0.1")
    monkeypatch.setenv("SCORING_MAX_RETRIES", "5")
    monkeypatch.setenv("SCORING_RETRY_DELAY_MS", "250")
    monkeypatch.setenv("SCORING_REQUEST_TIMEOUT_MS", "1500")
    monkeypatch.setenv("SCORING_RESULTS_PATH", "/tmp/results.json")

    settings = scoring_settings_from_env()

    assert settings.backend_url == "https://proxy.example.invalid/score"
    assert settings.stub_mode is False
    assert settings.model == "gpt-test"
    assert settings.temperature == 0.1
    assert settings.max_retries == 5
    assert settings.default_retry_delay_ms == 250
    assert settings.request_timeout_seconds == 1.5
    assert settings.results_path == "/tmp/results.json"


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_invalid_integer_env_falls_back_to_default(monkeypatch: pytest.MonkeyPatch, raw: str) -> None:
    monkeypatch.setenv("SCORING_MAX_TOKENS", raw)
    monkeypatch.setenv("SCORING_MAX_RETRIES", "-1" if raw == "0" else raw)

    settings = scoring_settings_from_env()

    assert settings.max_tokens == 2048
    assert settings.max_retries == 3


@pytest.mark.unit
def test_retries_can_be_disabled_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCORING_MAX_RETRIES", "0")
    assert scoring_settings_from_env().max_retries == 0


@pytest.mark.unit
def test_out_of_range_temperature_falls_back_to_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCORING_TEMPERATURE", "7")
    assert scoring_settings_from_env().temperature == 0.4
