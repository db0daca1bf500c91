"""
Scheduler - the single execution context the engine runs on.

Everything the engine defers (coalesced notifications, debounced writes)
goes through an object with the asyncio event-loop calling surface:

    call_soon(callback, *args) -> handle
    call_later(delay, callback, *args) -> handle
    handle.cancel()

A running `asyncio` loop satisfies this directly. `ManualScheduler` is a
deterministic stand-in with a virtual clock for synchronous hosts (CLI
scripts) and tests.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol


logger = logging.getLogger(__name__)


class Handle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Handle: ...

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Handle: ...


@dataclass(order=True)
class ScheduledCall:
    """A callback queued on a ManualScheduler."""
    when: float
    seq: int
    callback: Callable[..., Any] = field(compare=False)
    args: tuple = field(default=(), compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        self.callback(*self.args)


class ManualScheduler:
    """
    Deterministic scheduler driven by the caller.

    Time only moves when advance() or run_until_idle() is called, so a
    burst of mutations followed by run_pending() behaves like one turn of
    a real event loop.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: list[ScheduledCall] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) scheduled calls."""
        return sum(1 for call in self._queue if not call.cancelled)

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        return self.call_later(0, callback, *args)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ScheduledCall:
        if delay < 0:
            raise ValueError(f"delay must be >= 0 (got {delay})")
        call = ScheduledCall(self._now + delay, next(self._counter), callback, args)
        heapq.heappush(self._queue, call)
        return call

    def _run_due(self, until: float) -> int:
        ran = 0
        while self._queue and self._queue[0].when <= until:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self._now = max(self._now, call.when)
            call.run()
            ran += 1
        return ran

    def run_pending(self) -> int:
        """Run everything due now, including callbacks queued while draining."""
        return self._run_due(self._now)

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing timers in due order."""
        if seconds < 0:
            raise ValueError(f"cannot move time backwards ({seconds})")
        target = self._now + seconds
        ran = self._run_due(target)
        self._now = target
        return ran

    def run_until_idle(self) -> int:
        """Fire every outstanding timer, however far in the future."""
        ran = 0
        while self._queue:
            ran += self._run_due(self._queue[0].when)
        if ran:
            logger.debug(f"Scheduler drained {ran} call(s), clock at {self._now:.3f}s")
        return ran
