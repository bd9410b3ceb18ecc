# ==============================================================================
# Scheduler Abstract Base Class
# ==============================================================================
"""
Abstract interface for delayed callbacks.

The event batcher arms at most one flush timer at a time and must be able to
cancel it. Keeping the scheduler behind an interface lets tests drive timers
by hand instead of sleeping.

Implementations: ThreadingScheduler (threading.Timer), ManualScheduler (tests).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable


class ScheduledTask(ABC):
    """Handle for one pending callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. No-op if it already ran."""
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        """Whether cancel() was called."""
        ...


class Scheduler(ABC):
    """Runs callbacks after a delay."""

    @abstractmethod
    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ScheduledTask:
        """
        Schedule a callback.

        Args:
            delay_seconds: Delay before the callback runs
            callback: Zero-argument callable

        Returns:
            ScheduledTask handle that can cancel the callback
        """
        ...
