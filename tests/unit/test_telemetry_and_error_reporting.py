import asyncio

import pytest

from statusscore.services.error_reporting import ErrorReportingSubscription
from statusscore.services.telemetry import MAX_ERROR_LOGS, Events, LoggingTelemetry


@pytest.mark.unit
def test_error_log_is_newest_first_and_bounded() -> None:
    telemetry = LoggingTelemetry()

    for index in range(MAX_ERROR_LOGS + 5):
        telemetry.log_error(f"error-{index}", "test", {"index": index})

    logs = telemetry.error_logs()
    assert len(logs) == MAX_ERROR_LOGS
    assert logs[0]["message"] == f"error-{MAX_ERROR_LOGS + 4}"
    assert logs[0]["stack"] is None
    assert logs[0]["context"] == {"index": MAX_ERROR_LOGS + 4}

    telemetry.clear_error_logs()
    assert telemetry.error_logs() == []


@pytest.mark.unit
def test_raised_errors_keep_their_stack() -> None:
    telemetry = LoggingTelemetry()
    try:
        raise RuntimeError("kaboom")
    except RuntimeError as exc:
        telemetry.log_error(exc, "test")

    assert "RuntimeError: kaboom" in telemetry.error_logs()[0]["stack"]


@pytest.mark.unit
def test_events_carry_name_and_params() -> None:
    telemetry = LoggingTelemetry()
    telemetry.track_event(Events.RESULTS_VIEW, {"overall_score": 70})

    event = telemetry.events[-1]
    assert event["event_name"] == "results_view"
    assert event["params"] == {"overall_score": 70}
    assert event["timestamp"]


@pytest.mark.unit
def test_unhandled_loop_errors_are_reported_while_subscribed() -> None:
    telemetry = LoggingTelemetry()
    forwarded: list[dict[str, object]] = []

    async def scenario() -> None:
        loop = asyncio.get_running_loop()
        loop.set_exception_handler(lambda _loop, context: forwarded.append(context))
        previous = loop.get_exception_handler()

        subscription = ErrorReportingSubscription.subscribe(telemetry)
        assert subscription.active is True
        loop.call_exception_handler({"message": "task exploded", "exception": ValueError("bad state")})

        subscription.close()
        subscription.close()
        assert subscription.active is False
        assert loop.get_exception_handler() is previous

        loop.call_exception_handler({"message": "after close"})

    asyncio.run(scenario())

    assert telemetry.error_logs()[0]["source"] == "GlobalErrorHandler"
    assert telemetry.error_logs()[0]["message"] == "bad state"
    assert len(telemetry.error_logs()) == 1
    assert [event["event_name"] for event in telemetry.events] == [Events.ERROR]
    assert [context["message"] for context in forwarded] == ["task exploded", "after close"]


@pytest.mark.unit
def test_close_leaves_foreign_handler_in_place() -> None:
    telemetry = LoggingTelemetry()

    async def scenario() -> None:
        loop = asyncio.get_running_loop()

        def foreign(_loop: asyncio.AbstractEventLoop, context: dict[str, object]) -> None:
            return None

        with ErrorReportingSubscription.subscribe(telemetry, loop):
            loop.set_exception_handler(foreign)
        assert loop.get_exception_handler() is foreign

    asyncio.run(scenario())
