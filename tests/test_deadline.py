"""
Tests for the shared deadline.
"""
import threading

import pytest

from connect_assets.deadline import Deadline
from connect_assets.errors import DeadlineExceededError


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_unbounded_deadline():
    deadline = Deadline()

    assert deadline.remaining() is None
    assert not deadline.expired
    assert deadline.request_timeout(30.0) == 30.0
    deadline.check("anything")


def test_deadline_expires_with_clock():
    clock = FakeClock()
    deadline = Deadline(10.0, clock=clock)

    assert deadline.remaining() == 10.0
    assert deadline.request_timeout(30.0) == 10.0

    clock.now += 10.0
    assert deadline.expired
    with pytest.raises(DeadlineExceededError) as exc_info:
        deadline.check("GET /v1/appScreenshots/1")
    assert "GET /v1/appScreenshots/1" in str(exc_info.value)


def test_cancel_fires_immediately():
    deadline = Deadline(600.0)
    deadline.cancel()

    assert deadline.cancelled
    assert deadline.expired
    assert deadline.remaining() == 0.0
    assert deadline.wait(5.0) is True


def test_wait_returns_false_when_not_fired():
    assert Deadline().wait(0.01) is False


def test_cancel_interrupts_wait_from_another_thread():
    deadline = Deadline()
    timer = threading.Timer(0.05, deadline.cancel)
    timer.start()
    try:
        assert deadline.wait(10.0) is True
    finally:
        timer.cancel()


def test_wait_past_remaining_time_reports_fired():
    assert Deadline(0.01).wait(5.0) is True
