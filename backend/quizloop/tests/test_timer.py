"""Tests for the countdown timer, by hand and on a real event loop."""

import asyncio
import pathlib
import sys
import time

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from quizloop.errors import InvalidStateError
from quizloop.timer import CountdownTimer, asyncio_scheduler


class FakeClock:
    def __init__(self):
        self.seconds = 100.0

    def __call__(self):
        return self.seconds

    def advance(self, seconds):
        self.seconds += seconds


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    def run_pending(self):
        pending, self.handles = self.handles, []
        for handle in pending:
            if not handle.cancelled:
                handle.callback()


def test_zero_duration_means_no_timer():
    fired = []
    scheduler = ManualScheduler()
    timer = CountdownTimer(0, scheduler=scheduler)
    timer.start(lambda: fired.append(1))
    assert not timer.running
    assert timer.remaining_seconds() is None
    assert scheduler.handles == []
    timer.tick()
    assert fired == []


def test_fires_once_when_deadline_reached():
    clock = FakeClock()
    scheduler = ManualScheduler()
    fired = []
    timer = CountdownTimer(2, scheduler=scheduler, clock=clock)
    timer.start(lambda: fired.append(clock()))

    clock.advance(1)
    scheduler.run_pending()
    assert fired == []
    assert timer.remaining_seconds() == 1

    clock.advance(1)
    scheduler.run_pending()
    assert fired == [102.0]
    assert timer.fired
    assert timer.remaining_seconds() == 0

    # Nothing left scheduled, extra ticks do nothing.
    clock.advance(5)
    scheduler.run_pending()
    timer.tick()
    assert len(fired) == 1


def test_ticks_are_at_most_one_second_apart():
    clock = FakeClock()
    scheduler = ManualScheduler()
    timer = CountdownTimer(1.5, scheduler=scheduler, clock=clock)
    timer.start(lambda: None)
    assert scheduler.handles[0].delay == 1.0
    clock.advance(1)
    scheduler.run_pending()
    assert scheduler.handles[0].delay == pytest.approx(0.5)


def test_stop_prevents_expiry():
    clock = FakeClock()
    scheduler = ManualScheduler()
    fired = []
    timer = CountdownTimer(1, scheduler=scheduler, clock=clock)
    timer.start(lambda: fired.append(1))
    timer.stop()
    assert all(h.cancelled for h in scheduler.handles)
    clock.advance(5)
    scheduler.run_pending()
    timer.tick()
    assert fired == []
    assert not timer.fired


def test_tick_queued_before_stop_does_not_fire():
    clock = FakeClock()
    scheduler = ManualScheduler()
    fired = []
    timer = CountdownTimer(1, scheduler=scheduler, clock=clock)
    timer.start(lambda: fired.append(1))
    queued = scheduler.handles[0].callback
    clock.advance(1)
    timer.stop()
    # The loop already dequeued the callback; it still runs after stop().
    queued()
    assert fired == []


def test_stop_from_inside_expiry_callback_is_harmless():
    clock = FakeClock()
    fired = []
    timer = CountdownTimer(1, clock=clock)

    def on_expire():
        fired.append(1)
        timer.stop()

    timer.start(on_expire)
    clock.advance(1)
    timer.tick()
    timer.tick()
    assert fired == [1]


def test_expire_if_due_fires_between_ticks():
    clock = FakeClock()
    fired = []
    timer = CountdownTimer(3, clock=clock)
    timer.start(lambda: fired.append(1))
    clock.advance(2)
    assert timer.expire_if_due() is False
    clock.advance(1)
    assert timer.expire_if_due() is True
    assert timer.expire_if_due() is False
    assert fired == [1]


def test_remaining_seconds_rounds_up_and_freezes_on_stop():
    clock = FakeClock()
    timer = CountdownTimer(60, clock=clock)
    assert timer.remaining_seconds() == 60
    timer.start(lambda: None)
    clock.advance(0.2)
    assert timer.remaining_seconds() == 60
    clock.advance(49.3)
    assert timer.remaining_seconds() == 11
    timer.stop()
    clock.advance(30)
    assert timer.remaining_seconds() == 11


def test_start_twice_is_rejected():
    timer = CountdownTimer(5, clock=FakeClock())
    timer.start(lambda: None)
    with pytest.raises(InvalidStateError):
        timer.start(lambda: None)


def test_one_second_timer_on_event_loop_fires_exactly_once():
    async def run():
        fired = []
        started = time.monotonic()
        timer = CountdownTimer(1, scheduler=asyncio_scheduler)
        timer.start(lambda: fired.append(time.monotonic()))
        await asyncio.sleep(1.5)
        assert len(fired) == 1
        assert fired[0] - started >= 1.0
        await asyncio.sleep(1.2)
        assert len(fired) == 1

    asyncio.run(run())


def test_stopped_timer_on_event_loop_never_fires():
    async def run():
        fired = []
        timer = CountdownTimer(1, scheduler=asyncio_scheduler)
        timer.start(lambda: fired.append(1))
        await asyncio.sleep(0.5)
        timer.stop()
        await asyncio.sleep(1.0)
        assert fired == []

    asyncio.run(run())
