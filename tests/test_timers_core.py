from __future__ import annotations

import logging
from dataclasses import dataclass

import pytest

from neurodrill.timers import TimerCoordinator


@dataclass
class FakeClock:
    t: float = 0.0

    def now(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += float(dt)


def test_due_timers_fire_in_deadline_order_then_scheduling_order() -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)
    fired: list[str] = []

    timers.call_later(2.0, lambda: fired.append("late"), label="late")
    timers.call_later(1.0, lambda: fired.append("a"), label="a")
    timers.call_later(1.0, lambda: fired.append("b"), label="b")
    timers.call_later(0.5, lambda: fired.append("early"), label="early")

    clock.advance(0.25)
    assert timers.poll() == 0
    clock.advance(2.0)
    assert timers.poll() == 4
    assert fired == ["early", "a", "b", "late"]


def test_repeating_timer_catches_up_on_missed_periods() -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)
    ticks: list[float] = []

    handle = timers.call_every(1.0, lambda: ticks.append(clock.now()), label="tick")
    clock.advance(3.5)
    assert timers.poll() == 3
    assert len(ticks) == 3
    assert handle.active
    assert handle.deadline_s == 4.0


def test_cancel_prevents_fire_and_is_idempotent() -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)
    fired: list[int] = []

    handle = timers.call_later(1.0, lambda: fired.append(1))
    assert timers.cancel(handle) is True
    assert timers.cancel(handle) is False
    assert timers.cancel(None) is False

    clock.advance(5.0)
    assert timers.poll() == 0
    assert fired == []
    stats = timers.stats()
    assert stats.cancelled == 1
    assert stats.balanced


def test_close_cancels_pending_and_refuses_new_timers() -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)
    fired: list[str] = []

    timers.call_later(1.0, lambda: fired.append("once"))
    timers.call_every(0.5, lambda: fired.append("tick"))
    assert timers.pending == 2

    timers.close()
    assert timers.closed
    assert timers.pending == 0

    late = timers.call_later(0.1, lambda: fired.append("late"))
    assert late.active is False

    clock.advance(10.0)
    assert timers.poll() == 0
    assert fired == []

    stats = timers.stats()
    assert stats.started == 2
    assert stats.cancelled == 2
    assert stats.balanced


def test_every_timer_ends_exactly_once() -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)

    keep = timers.call_every(1.0, lambda: None)
    gone = timers.call_later(0.5, lambda: None)
    timers.call_later(3.0, lambda: None)

    clock.advance(1.0)
    timers.poll()
    assert gone.active is False
    timers.cancel(keep)
    timers.cancel(gone)  # already ended by firing

    stats = timers.stats()
    assert stats.started == 3
    assert stats.expired == 1
    assert stats.cancelled == 1
    assert stats.pending == 1
    assert stats.balanced


def test_callback_error_is_logged_and_does_not_escape(caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    timers = TimerCoordinator(clock=clock)
    after: list[str] = []

    def boom() -> None:
        raise RuntimeError("boom")

    bad = timers.call_every(1.0, boom, label="bad")
    timers.call_later(1.0, lambda: after.append("ok"), label="good")

    clock.advance(1.0)
    with caplog.at_level(logging.ERROR, logger="neurodrill.timers"):
        assert timers.poll() == 2

    assert after == ["ok"]
    assert bad.active is False
    assert any("bad" in r.getMessage() for r in caplog.records)
    assert timers.stats().balanced


def test_invalid_durations_raise() -> None:
    timers = TimerCoordinator(clock=FakeClock())
    with pytest.raises(ValueError):
        timers.call_later(-0.1, lambda: None)
    with pytest.raises(ValueError):
        timers.call_every(0.0, lambda: None)
