"""Timer-driven year playback for the dashboard slider.

The scheduler is single-threaded and polled: the UI loop (a Streamlit rerun,
an event-loop callback, or a test) calls ``run_pending(now)`` and every task
whose interval has elapsed fires on that thread. Nothing runs between polls,
so a cancelled task can never fire late.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Literal, Optional, Sequence

from gva.filters import SelectionState

logger = logging.getLogger(__name__)

AnimatorState = Literal["stopped", "playing"]
DEFAULT_INTERVAL = 1.5


@dataclass(eq=False)
class ScheduledTask:
    interval: float
    callback: Callable[[], None]
    next_due: float
    cancelled: bool = False
    _scheduler: Optional["PollingScheduler"] = field(default=None, repr=False)

    def cancel(self) -> None:
        """Stop the task; cancelling twice is a no-op."""
        if self.cancelled:
            return
        self.cancelled = True
        if self._scheduler is not None:
            self._scheduler._discard(self)


class PollingScheduler:
    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._tasks: List[ScheduledTask] = []

    @property
    def active_tasks(self) -> List[ScheduledTask]:
        return list(self._tasks)

    def call_every(self, interval: float, callback: Callable[[], None]) -> ScheduledTask:
        if interval <= 0:
            raise ValueError("interval must be positive")
        task = ScheduledTask(interval=interval, callback=callback, next_due=self.clock() + interval, _scheduler=self)
        self._tasks.append(task)
        return task

    def seconds_until_next(self, now: Optional[float] = None) -> Optional[float]:
        if not self._tasks:
            return None
        now = self.clock() if now is None else now
        return max(0.0, min(t.next_due for t in self._tasks) - now)

    def run_pending(self, now: Optional[float] = None) -> int:
        """Fire each due task at most once; a late poll reschedules from now. Returns the number of callbacks run."""
        now = self.clock() if now is None else now
        fired = 0
        for task in list(self._tasks):
            if not task.cancelled and task.next_due <= now:
                task.next_due = now + task.interval
                task.callback()
                fired += 1
        return fired

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _discard(self, task: ScheduledTask) -> None:
        if task in self._tasks:
            self._tasks.remove(task)


class YearAnimator:
    """Advances ``selection.selected_year`` through ``years`` while playing, wrapping at the end."""

    def __init__(
        self,
        selection: SelectionState,
        years: Sequence[str],
        scheduler: PollingScheduler,
        interval: float = DEFAULT_INTERVAL,
    ):
        if not years:
            raise ValueError("YearAnimator needs at least one year")
        self.selection = selection
        self.years = list(years)
        self.scheduler = scheduler
        self.interval = interval
        self._task: Optional[ScheduledTask] = None
        self.selection.playing = False

    @property
    def state(self) -> AnimatorState:
        return "playing" if self._task is not None else "stopped"

    @property
    def is_playing(self) -> bool:
        return self._task is not None

    def start(self) -> None:
        self._cancel_task()
        self._task = self.scheduler.call_every(self.interval, self.tick)
        self.selection.playing = True
        logger.debug("Year animation started at %s", self.selection.selected_year)

    def stop(self) -> None:
        self._cancel_task()
        self.selection.playing = False

    def toggle(self) -> AnimatorState:
        if self.is_playing:
            self.stop()
        else:
            self.start()
        return self.state

    def tick(self) -> str:
        current = self.selection.selected_year
        if current in self.years:
            nxt = self.years[(self.years.index(current) + 1) % len(self.years)]
        else:
            nxt = self.years[0]
        self.selection.selected_year = nxt
        return nxt

    def select_year(self, year: str) -> None:
        """Manual slider change; stops playback first."""
        if year not in self.years:
            raise ValueError(f"Unknown year: {year!r}")
        self.stop()
        self.selection.selected_year = year

    def close(self) -> None:
        self.stop()

    def _cancel_task(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
