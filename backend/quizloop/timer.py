"""Per-attempt countdown clock.

The timer does not own a thread or a loop. ``tick`` is its event-dispatch
method; an optional scheduler callable arranges the next tick. In the
service the scheduler is ``loop.call_later`` on the running asyncio loop,
in tests ticks are dispatched by hand against a fake clock.
"""

import asyncio
import logging
import math
import time
from typing import Any, Callable, Optional

from quizloop.errors import InvalidStateError

logger = logging.getLogger(__name__)

TICK_SECONDS = 1.0

# (delay_seconds, callback) -> handle exposing cancel()
Scheduler = Callable[[float, Callable[[], None]], Any]


def asyncio_scheduler(delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
    """Schedule ``callback`` on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class CountdownTimer:
    """Countdown that calls ``on_expire`` exactly once when it reaches zero.

    A duration of zero or less means "no timer": ``start`` does nothing and
    ``remaining_seconds`` returns ``None``.
    """

    def __init__(
        self,
        duration_seconds: float,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.duration_seconds = duration_seconds
        self._scheduler = scheduler
        self._clock = clock
        self._deadline: Optional[float] = None
        self._on_expire: Optional[Callable[[], None]] = None
        self._handle = None
        self._running = False
        self._fired = False
        self._remaining_at_stop: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return self.duration_seconds > 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def fired(self) -> bool:
        return self._fired

    def start(self, on_expire: Callable[[], None]) -> None:
        if not self.enabled:
            return
        if self._deadline is not None:
            raise InvalidStateError("Timer has already been started")
        self._on_expire = on_expire
        self._deadline = self._clock() + self.duration_seconds
        self._running = True
        self._schedule_next(self.duration_seconds)

    def remaining_seconds(self) -> Optional[int]:
        """Whole seconds left, rounded up; ``None`` when there is no limit."""
        if not self.enabled:
            return None
        if self._deadline is None:
            return math.ceil(self.duration_seconds)
        if self._fired:
            return 0
        if not self._running:
            return math.ceil(self._remaining_at_stop)
        return max(0, math.ceil(self._deadline - self._clock()))

    def tick(self) -> None:
        """Dispatch one clock tick.

        A tick that was already queued when ``stop`` ran finds the timer
        stopped and returns without firing.
        """
        self._handle = None
        if not self._running:
            return
        remaining = self._deadline - self._clock()
        if remaining > 0:
            self._schedule_next(remaining)
            return
        self._expire()

    def expire_if_due(self) -> bool:
        """Fire immediately if the deadline has passed between ticks."""
        if self._running and self._deadline - self._clock() <= 0:
            self._expire()
            return True
        return False

    def _expire(self) -> None:
        self._running = False
        self._fired = True
        self._remaining_at_stop = 0
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        logger.info("Countdown of %ss expired", self.duration_seconds)
        self._on_expire()

    def stop(self) -> None:
        if self._running:
            self._remaining_at_stop = max(0.0, self._deadline - self._clock())
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule_next(self, remaining: float) -> None:
        if self._scheduler is None:
            return
        self._handle = self._scheduler(min(TICK_SECONDS, remaining), self.tick)
