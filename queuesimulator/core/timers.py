"""Time sources and timers that fire engine callbacks.

A Timer owns one daemon worker thread and a heap of TimerTasks ordered by
(due time, insertion order). The worker sleeps until the earliest task is due,
pops it and runs its callback outside the heap lock. Periodic tasks are pushed
back with their next due time before the callback runs, so a slow callback
does not shift the schedule.

Two time sources are provided:

- WallClock: ``time.monotonic`` seconds and threaded Timers.
- ManualClock: time that only moves when ``advance()`` is called. Its timers
  share one heap, and callbacks fire on the thread calling ``advance()``.
  Tests and step-by-step tools use it for deterministic runs.
"""

from __future__ import annotations

import heapq
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from itertools import count
from typing import Protocol

from queuesimulator.errors import TimerCancelledError

logger = logging.getLogger(__name__)

TimerCallback = Callable[[], None]

_task_counter = count()


class TimerTask:
    """Handle for one scheduled callback.

    Attributes:
        when: Due time, in the owning time source's seconds.
        period: Re-fire interval in seconds, or None for one-shot tasks.
        name: Label used in log messages.
    """

    __slots__ = ("_cancelled", "_sort_index", "callback", "name", "period", "timer", "when")

    def __init__(
        self,
        when: float,
        callback: TimerCallback,
        timer: BaseTimer,
        period: float | None = None,
        name: str | None = None,
    ):
        self.when = when
        self.callback = callback
        self.timer = timer
        self.period = period
        self.name = name or getattr(callback, "__name__", "task")
        self._sort_index = next(_task_counter)
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Prevent any future firing. Cancelling twice is a no-op."""
        self._cancelled = True

    def _reschedule(self) -> None:
        self.when += self.period
        self._sort_index = next(_task_counter)

    def __lt__(self, other: TimerTask) -> bool:
        return (self.when, self._sort_index) < (other.when, other._sort_index)

    def __repr__(self) -> str:
        kind = f"every {self.period}s" if self.period else "once"
        return f"TimerTask({self.name!r}, when={self.when:.3f}, {kind})"


def _run_task(task: TimerTask) -> None:
    """Run a task's callback; a failing callback must not kill its timer."""
    try:
        task.callback()
    except Exception:
        logger.exception("[%s] Timer task %s raised", task.timer.name, task.name)


class BaseTimer(ABC):
    """Scheduling API shared by threaded and manual timers."""

    def __init__(self, name: str):
        self.name = name
        self._cancelled = False

    @abstractmethod
    def now(self) -> float:
        """Current time of this timer's time source, in seconds."""

    @abstractmethod
    def _enqueue(self, task: TimerTask) -> None:
        """Add a task to the pending set."""

    @abstractmethod
    def cancel(self) -> None:
        """Discard every pending task and refuse new ones."""

    @property
    @abstractmethod
    def pending(self) -> int:
        """Number of tasks that are scheduled and not cancelled."""

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def schedule_at(self, callback: TimerCallback, when: float, *, name: str | None = None) -> TimerTask:
        """Run ``callback`` once at absolute time ``when``.

        Raises:
            TimerCancelledError: If the timer has been cancelled.
        """
        return self._add(TimerTask(when, callback, self, name=name))

    def schedule(self, callback: TimerCallback, delay_s: float, *, name: str | None = None) -> TimerTask:
        """Run ``callback`` once after ``delay_s`` seconds (negative delays run immediately).

        Raises:
            TimerCancelledError: If the timer has been cancelled.
        """
        return self.schedule_at(callback, self.now() + max(0.0, delay_s), name=name)

    def schedule_at_fixed_rate(
        self,
        callback: TimerCallback,
        delay_s: float,
        period_s: float,
        *,
        name: str | None = None,
    ) -> TimerTask:
        """Run ``callback`` after ``delay_s`` seconds and then every ``period_s`` seconds.

        Raises:
            ValueError: If ``period_s`` is not positive.
            TimerCancelledError: If the timer has been cancelled.
        """
        if period_s <= 0:
            raise ValueError(f"period_s must be > 0, got {period_s}")
        when = self.now() + max(0.0, delay_s)
        return self._add(TimerTask(when, callback, self, period=period_s, name=name))

    def _add(self, task: TimerTask) -> TimerTask:
        if self._cancelled:
            raise TimerCancelledError(f"timer {self.name!r} is cancelled")
        self._enqueue(task)
        logger.debug("[%s] Scheduled %r", self.name, task)
        return task


class Timer(BaseTimer):
    """Timer backed by a single daemon worker thread.

    Callbacks run one at a time on the worker thread, in due order.

    Args:
        name: Thread and log label.
        clock: Monotonic seconds source. Defaults to ``time.monotonic``.
    """

    def __init__(self, name: str = "timer", clock: Callable[[], float] = time.monotonic):
        super().__init__(name)
        self._clock = clock
        self._heap: list[TimerTask] = []
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def now(self) -> float:
        return self._clock()

    @property
    def pending(self) -> int:
        with self._cond:
            return sum(1 for task in self._heap if not task.cancelled)

    def _enqueue(self, task: TimerTask) -> None:
        with self._cond:
            if self._cancelled:
                raise TimerCancelledError(f"timer {self.name!r} is cancelled")
            heapq.heappush(self._heap, task)
            self._cond.notify()

    def cancel(self) -> None:
        """Discard pending tasks and stop the worker thread.

        A callback that is already running finishes normally. Safe to call
        from inside a callback of this timer.
        """
        with self._cond:
            if self._cancelled:
                return
            self._cancelled = True
            for task in self._heap:
                task.cancel()
            self._heap.clear()
            self._cond.notify_all()
        logger.debug("[%s] Timer cancelled", self.name)

    def join(self, timeout: float | None = None) -> None:
        """Wait for the worker thread to exit. Only meaningful after cancel()."""
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _next_due(self) -> TimerTask | None:
        """Block until a task is due or the timer is cancelled. Called with the lock held."""
        while not self._cancelled:
            if not self._heap:
                self._cond.wait()
                continue
            head = self._heap[0]
            if head.cancelled:
                heapq.heappop(self._heap)
                continue
            remaining = head.when - self._clock()
            if remaining > 0:
                self._cond.wait(remaining)
                continue
            heapq.heappop(self._heap)
            if head.period is not None:
                head._reschedule()
                heapq.heappush(self._heap, head)
            return head
        return None

    def _run(self) -> None:
        while True:
            with self._cond:
                task = self._next_due()
            if task is None:
                return
            if not task.cancelled:
                _run_task(task)


class ManualTimer(BaseTimer):
    """Timer whose tasks live on a ManualClock's shared heap."""

    def __init__(self, name: str, clock: ManualClock):
        super().__init__(name)
        self._clock = clock
        self._tasks: set[TimerTask] = set()

    def now(self) -> float:
        return self._clock.now()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.cancelled)

    def _enqueue(self, task: TimerTask) -> None:
        self._tasks.add(task)
        self._clock._push(task)

    def _forget(self, task: TimerTask) -> None:
        self._tasks.discard(task)

    def cancel(self) -> None:
        self._cancelled = True
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        logger.debug("[%s] Timer cancelled", self.name)


class TimeSource(Protocol):
    """What the engine needs from a clock: the time, and timers on that time."""

    def now(self) -> float: ...

    def timer(self, name: str) -> BaseTimer: ...


class WallClock:
    """Real time: ``time.monotonic`` seconds and threaded timers."""

    def now(self) -> float:
        return time.monotonic()

    def timer(self, name: str) -> Timer:
        return Timer(name, clock=time.monotonic)


class ManualClock:
    """Deterministic time that moves only when advanced.

    Every timer created by ``timer()`` shares this clock's heap, so callbacks
    from different timers interleave in exact due order. Callbacks run on the
    thread that calls ``advance()``.

    Args:
        start: Initial reading of ``now()``.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._heap: list[TimerTask] = []
        self._lock = threading.RLock()

    def now(self) -> float:
        return self._now

    def __call__(self) -> float:
        return self._now

    def timer(self, name: str) -> ManualTimer:
        return ManualTimer(name, self)

    @property
    def pending(self) -> int:
        """Live (not cancelled) tasks across all timers of this clock."""
        with self._lock:
            return sum(1 for task in self._heap if not task.cancelled)

    def _push(self, task: TimerTask) -> None:
        with self._lock:
            heapq.heappush(self._heap, task)

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every task that falls due on the way.

        Returns:
            Number of callbacks run.
        """
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        target = self._now + seconds
        fired = 0
        while True:
            with self._lock:
                task = self._pop_due(target)
                if task is None:
                    self._now = max(self._now, target)
                    return fired
                self._now = max(self._now, task.when)
                if task.period is not None:
                    task._reschedule()
                    heapq.heappush(self._heap, task)
                else:
                    task.timer._forget(task)
            _run_task(task)
            fired += 1

    def _pop_due(self, target: float) -> TimerTask | None:
        while self._heap:
            head = self._heap[0]
            if head.cancelled:
                heapq.heappop(self._heap)
                continue
            if head.when > target:
                return None
            return heapq.heappop(self._heap)
        return None
