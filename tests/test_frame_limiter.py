"""Tests for the redraw frame limiter."""

from __future__ import annotations

import os
import sys
import time

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from runtime.channel import EventChannel
from runtime.events import Redraw
from runtime.frame_limiter import FRAME_BUDGET, FrameLimiter


class FakeClock:
    def __init__(self, now: float = 100.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, interval: float, function) -> None:
        self.interval = interval
        self.function = function
        self.daemon = False
        self.name = ""
        self.started = False

    def start(self) -> None:
        self.started = True

    def fire(self) -> None:
        self.function()


class TimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval: float, function) -> FakeTimer:
        timer = FakeTimer(interval, function)
        self.timers.append(timer)
        return timer


@pytest.fixture
def channel():
    return EventChannel()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timers():
    return TimerFactory()


@pytest.fixture
def limiter(channel, clock, timers):
    return FrameLimiter(channel.sender(), clock=clock, timer_factory=timers)


def test_frame_budget_matches_144_fps() -> None:
    assert FRAME_BUDGET == pytest.approx(0.00694, abs=1e-5)


def test_renders_immediately_when_budget_elapsed(limiter, clock, timers) -> None:
    renders = []
    clock.advance(0.010)

    assert limiter.check(lambda: renders.append(1)) is True

    assert renders == [1]
    assert timers.timers == []
    assert limiter.last_render_at == clock.now


def test_last_render_recorded_after_render_completes(limiter, clock) -> None:
    clock.advance(0.010)

    def slow_render() -> None:
        clock.advance(0.003)

    limiter.check(slow_render)

    assert limiter.last_render_at == pytest.approx(100.013)


def test_too_soon_schedules_remaining_budget(limiter, clock, timers) -> None:
    renders = []
    clock.advance(0.010)
    limiter.check(lambda: renders.append(1))

    clock.advance(0.002)
    assert limiter.check(lambda: renders.append(2)) is False

    assert renders == [1]
    assert len(timers.timers) == 1
    timer = timers.timers[0]
    assert timer.started
    assert timer.daemon
    assert timer.interval == pytest.approx(FRAME_BUDGET - 0.002)
    assert timer.interval >= 0.00494 - 1e-6
    assert limiter.redraw_pending


def test_burst_collapses_into_single_timer(limiter, clock, timers) -> None:
    for _ in range(25):
        clock.advance(0.0001)
        limiter.check(lambda: None)

    assert len(timers.timers) == 1


def test_timer_sends_redraw_and_clears_flag(limiter, channel, clock, timers) -> None:
    clock.advance(0.001)
    limiter.check(lambda: None)
    timers.timers[0].fire()

    assert channel.receive(timeout=1.0) == Redraw()
    assert not limiter.redraw_pending

    # the flag is free again, so the next early request schedules anew
    limiter.check(lambda: None)
    assert len(timers.timers) == 2


def test_first_check_defers_until_budget() -> None:
    channel = EventChannel()
    clock = FakeClock()
    timers = TimerFactory()
    limiter = FrameLimiter(channel.sender(), clock=clock, timer_factory=timers)

    assert limiter.check(lambda: None) is False
    assert timers.timers[0].interval == pytest.approx(FRAME_BUDGET)


def test_real_timer_burst_yields_one_redraw() -> None:
    channel = EventChannel()
    limiter = FrameLimiter(channel.sender(), frame_budget=0.05)
    renders = []

    for _ in range(50):
        limiter.check(lambda: renders.append(1))

    assert channel.receive(timeout=1.0) == Redraw()
    time.sleep(0.1)
    assert channel._queue.empty()
    assert renders == []
    assert not limiter.redraw_pending
