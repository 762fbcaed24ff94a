"""Bounded polling tests"""
import time

import pytest

from l4lb_harness.polling import PollOutcome, poll


@pytest.mark.unit
class TestPoll:

    def test_ready_on_first_attempt(self):
        result = poll(lambda: True, interval=1.0, max_attempts=3)
        assert result.ready
        assert result.attempts == 1

    def test_ready_after_retries(self):
        answers = iter([False, False, True])
        result = poll(lambda: next(answers), interval=1.0, max_attempts=5)
        assert result.outcome == PollOutcome.READY
        assert result.attempts == 3

    def test_budget_exhausted(self):
        result = poll(lambda: False, interval=1.0, max_attempts=4)
        assert result.outcome == PollOutcome.NOT_READY
        assert result.attempts == 4
        assert result.error is None

    def test_exception_ends_poll_as_erred(self):
        def broken():
            raise RuntimeError("connection refused")

        result = poll(broken, interval=1.0, max_attempts=10)
        assert result.outcome == PollOutcome.ERRED
        assert result.attempts == 1
        assert isinstance(result.error, RuntimeError)

    def test_sleeps_between_attempts_only(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr(time, "sleep", sleeps.append)
        poll(lambda: False, interval=3.0, max_attempts=3)
        assert sleeps == [3.0, 3.0]

    def test_unbounded_poll_waits_until_ready(self):
        answers = iter([False] * 500 + [True])
        result = poll(lambda: next(answers), interval=1.0, max_attempts=None)
        assert result.ready
        assert result.attempts == 501
