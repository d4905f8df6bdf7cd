import pytest

from conftest import fail, ok

from src.analysis_gateway.errors import RATE_LIMITED_MESSAGE, UpstreamRateLimited, UpstreamTransportError
from src.analysis_gateway.retry import RetryController, RetryPolicy


class Script:
    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.results.pop(0)


def test_429_429_200_makes_three_calls(sleeper):
    script = Script([fail(429), fail(429), ok("done")])
    ctl = RetryController(RetryPolicy(max_attempts=3, delays=(2, 4, 8)), sleep=sleeper)

    result = ctl.run(script)

    assert result.raw_text == "done"
    assert script.calls == 3
    assert sleeper.calls == [2, 4]


def test_all_429_exhausts_budget_with_cooldown_message(sleeper):
    script = Script([fail(429, "RESOURCE_EXHAUSTED raw text")] * 6)
    ctl = RetryController(RetryPolicy(max_attempts=5, delays=(1, 2, 4, 8, 16)), sleep=sleeper)

    with pytest.raises(UpstreamRateLimited) as ei:
        ctl.run(script)

    assert script.calls == 5
    assert sleeper.calls == [1, 2, 4, 8]
    assert ei.value.http_status == 429
    assert ei.value.attempts == 5
    assert ei.value.message == RATE_LIMITED_MESSAGE
    assert "RESOURCE_EXHAUSTED" not in ei.value.message


def test_500_is_terminal_without_retry(sleeper):
    script = Script([fail(500, "internal upstream error"), ok("never")])
    ctl = RetryController(RetryPolicy(max_attempts=5), sleep=sleeper)

    with pytest.raises(UpstreamTransportError) as ei:
        ctl.run(script)

    assert script.calls == 1
    assert sleeper.calls == []
    assert ei.value.http_status == 500
    assert ei.value.message == "internal upstream error"


def test_first_success_stops_immediately(sleeper):
    script = Script([ok("a"), ok("b")])
    result = RetryController(RetryPolicy(), sleep=sleeper).run(script)
    assert result.raw_text == "a"
    assert script.calls == 1
    assert sleeper.calls == []


def test_single_attempt_budget_never_sleeps(sleeper):
    script = Script([fail(429)])
    with pytest.raises(UpstreamRateLimited):
        RetryController(RetryPolicy(max_attempts=1), sleep=sleeper).run(script)
    assert sleeper.calls == []


def test_short_schedule_repeats_last_delay():
    policy = RetryPolicy(max_attempts=5, delays=(2, 4))
    assert [policy.delay_for(i) for i in range(4)] == [2, 4, 4, 4]


def test_custom_retry_statuses(sleeper):
    script = Script([fail(503), ok("ok")])
    policy = RetryPolicy(max_attempts=3, delays=(1,), retry_statuses=frozenset({429, 503}))
    assert RetryController(policy, sleep=sleeper).run(script).raw_text == "ok"
    assert sleeper.calls == [1]


def test_exception_from_call_propagates_without_retry(sleeper):
    calls = []

    def boom():
        calls.append(1)
        raise ValueError("bad body")

    with pytest.raises(ValueError):
        RetryController(RetryPolicy(max_attempts=3, delays=(1,)), sleep=sleeper).run(boom)
    assert calls == [1]
    assert sleeper.calls == []


def test_default_policy_uses_injected_sleep_for_each_retry(sleeper):
    script = Script([fail(429), fail(429), fail(429), ok("late")])
    result = RetryController(RetryPolicy(), sleep=sleeper).run(script)
    assert result.raw_text == "late"
    assert sleeper.calls == [1, 2, 4]
