# ==============================================================================
# Threading Scheduler
# ==============================================================================
"""
Scheduler implementation backed by ``threading.Timer``.

Each scheduled callback gets its own daemon timer thread; an armed timer never
keeps the interpreter alive on exit.
"""

import threading
from collections.abc import Callable

from sitepulse.base import ScheduledTask, Scheduler


class TimerTask(ScheduledTask):
    """ScheduledTask wrapping a threading.Timer."""

    def __init__(self, timer: threading.Timer):
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        timer = threading.Timer(delay_seconds, callback)
        timer.daemon = True
        timer.start()
        return TimerTask(timer)
