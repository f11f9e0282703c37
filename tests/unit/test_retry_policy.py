import pytest

from statusscore.domain.retry_policy import RetryPolicy


@pytest.mark.unit
@pytest.mark.parametrize("failure_class", ["network_error", "rate_limited", "server_error"])
def test_transport_failures_back_off_exponentially(failure_class: str) -> None:
    policy = RetryPolicy(base_delay_ms=1000, max_retries=5, max_delay_ms=60_000)

    delays = [policy.should_retry(attempt, failure_class).delay_ms for attempt in range(4)]

    assert delays == [1000, 2000, 4000, 8000]


@pytest.mark.unit
def test_malformed_responses_back_off_more_gently() -> None:
    policy = RetryPolicy(base_delay_ms=1000, max_retries=5, max_delay_ms=60_000)

    delays = [policy.should_retry(attempt, "malformed_response").delay_ms for attempt in range(3)]

    assert delays == [1000, 1500, 2250]


@pytest.mark.unit
def test_backoff_is_capped() -> None:
    policy = RetryPolicy(base_delay_ms=2000, max_retries=10, max_delay_ms=10_000)

    assert policy.backoff_ms(2, "server_error") == 8000
    assert policy.backoff_ms(3, "server_error") == 10_000
    assert policy.backoff_ms(9, "malformed_response") == 10_000


@pytest.mark.unit
def test_retry_budget_is_bounded_by_max_retries() -> None:
    policy = RetryPolicy(max_retries=3)

    assert policy.should_retry(2, "server_error").retry is True
    assert policy.should_retry(3, "server_error").retry is False
    assert policy.should_retry(3, "malformed_response").retry is False


@pytest.mark.unit
@pytest.mark.parametrize("failure_class", ["fatal", "validation_error"])
def test_terminal_failures_never_retry(failure_class: str) -> None:
    decision = RetryPolicy(max_retries=3).should_retry(0, failure_class)

    assert decision.retry is False
    assert decision.delay_ms == 0
