from __future__ import annotations

import heapq
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .clock import Clock

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]


@dataclass(slots=True)
class TimerHandle:
    timer_id: int
    label: str
    deadline_s: float
    period_s: float | None = None
    active: bool = True
    callback: TimerCallback | None = field(default=None, repr=False)

    @property
    def repeating(self) -> bool:
        return self.period_s is not None


@dataclass(frozen=True, slots=True)
class TimerStats:
    started: int
    fired: int
    expired: int
    cancelled: int
    pending: int

    @property
    def balanced(self) -> bool:
        """Every timer started has ended exactly once or is still pending."""
        return self.started == self.expired + self.cancelled + self.pending


class TimerCoordinator:
    """Owns every timer of one drill instance.

    Timers are deadlines against the injected clock. The owner calls
    ``poll()`` once per frame; due callbacks run in deadline order and, for
    equal deadlines, in the order they were scheduled.

    Each timer ends exactly once: a one-shot timer ends when it fires, a
    repeating timer ends when it is cancelled. ``close()`` cancels whatever is
    left and refuses further scheduling, so nothing can mutate a discarded
    session.
    """

    def __init__(self, *, clock: Clock) -> None:
        self._clock = clock
        self._heap: list[tuple[float, int, TimerHandle]] = []
        self._live: dict[int, TimerHandle] = {}
        self._next_id = 1
        self._seq = 0
        self._closed = False

        self._started = 0
        self._fired = 0
        self._expired = 0
        self._cancelled = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return len(self._live)

    def stats(self) -> TimerStats:
        return TimerStats(
            started=self._started,
            fired=self._fired,
            expired=self._expired,
            cancelled=self._cancelled,
            pending=len(self._live),
        )

    def call_later(self, delay_s: float, callback: TimerCallback, *, label: str = "") -> TimerHandle:
        return self._schedule(delay_s=float(delay_s), period_s=None, callback=callback, label=label)

    def call_every(self, period_s: float, callback: TimerCallback, *, label: str = "") -> TimerHandle:
        if period_s <= 0.0:
            raise ValueError("period_s must be > 0")
        return self._schedule(delay_s=float(period_s), period_s=float(period_s), callback=callback, label=label)

    def cancel(self, handle: TimerHandle | None) -> bool:
        if handle is None or not handle.active:
            return False
        handle.active = False
        handle.callback = None
        self._live.pop(handle.timer_id, None)
        self._cancelled += 1
        return True

    def cancel_all(self) -> int:
        handles = list(self._live.values())
        for handle in handles:
            self.cancel(handle)
        self._heap.clear()
        return len(handles)

    def close(self) -> None:
        if self._closed:
            return
        count = self.cancel_all()
        self._closed = True
        if count:
            logger.debug("timer coordinator closed; cancelled %d pending timer(s)", count)

    def poll(self) -> int:
        """Run every callback that is due. Returns the number fired."""

        if self._closed:
            return 0

        fired = 0
        now = self._clock.now()
        while self._heap and not self._closed:
            deadline, _, handle = self._heap[0]
            if deadline > now:
                break
            heapq.heappop(self._heap)
            if not handle.active or handle.deadline_s != deadline:
                continue

            callback = handle.callback
            if handle.period_s is None:
                handle.active = False
                handle.callback = None
                self._live.pop(handle.timer_id, None)
                self._expired += 1
            else:
                handle.deadline_s = deadline + handle.period_s
                self._push(handle)

            self._fired += 1
            fired += 1
            if callback is None:
                continue
            try:
                callback()
            except Exception:
                # A timer dispatch has no caller to report to.
                logger.exception("timer %r (%d) callback failed", handle.label, handle.timer_id)
                if handle.active:
                    self.cancel(handle)
        return fired

    def _schedule(
        self,
        *,
        delay_s: float,
        period_s: float | None,
        callback: TimerCallback,
        label: str,
    ) -> TimerHandle:
        if delay_s < 0.0:
            raise ValueError("delay_s must be >= 0")

        handle = TimerHandle(
            timer_id=self._next_id,
            label=str(label),
            deadline_s=self._clock.now() + delay_s,
            period_s=period_s,
            callback=callback,
        )
        self._next_id += 1

        if self._closed:
            handle.active = False
            handle.callback = None
            logger.debug("ignoring timer %r scheduled after close", label)
            return handle

        self._live[handle.timer_id] = handle
        self._started += 1
        self._push(handle)
        return handle

    def _push(self, handle: TimerHandle) -> None:
        self._seq += 1
        heapq.heappush(self._heap, (handle.deadline_s, self._seq, handle))
