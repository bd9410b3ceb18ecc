# ==============================================================================
# Event Batcher
# ==============================================================================
"""
Client-side queue that groups tracked events into batches.

A batch is flushed when whichever comes first:
    1. the queue reaches ``batch_size`` events (flush immediately)
    2. ``batch_timeout_ms`` elapses after the first queued event (timer)
    3. the client is exiting (``force_flush()``, fire-and-forget delivery)

At most one flush timer is pending at any time. ``track()``, ``flush()`` and
timer expiry all run under one re-entrant lock, which gives the batcher the
single cooperative timeline a browser event loop would: a size-triggered
flush cancels the pending timer, and a timer that fires after being replaced
or cancelled is ignored, so no event is ever sent in two batches.

Usage:
    batcher = EventBatcher(sender, identity, context)
    batcher.track("click", {"element": "BUTTON"})
    ...
    batcher.force_flush()
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Mapping, Optional

from sitepulse.base import BatchSender, DeliveryMode, ScheduledTask, Scheduler
from sitepulse.client.context import ClientContext
from sitepulse.client.identity import IdentityResolver
from sitepulse.client.scheduler import ThreadingScheduler
from sitepulse.core.models import Event, EventType

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
DEFAULT_BATCH_TIMEOUT_MS = 5000


def _now_ms() -> int:
    return int(time.time() * 1000)


class EventBatcher:
    """
    Builds events and queues them for batched delivery.

    Args:
        sender: Receives every flushed batch
        identity: Supplies session and user ids
        context: Environment fields stamped on each event
        batch_size: Queue length that triggers an immediate flush
        batch_timeout_ms: Delay between the first queued event and a timed flush
        scheduler: Timer source (default: threading.Timer based)
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        sender: BatchSender,
        identity: IdentityResolver,
        context: Optional[ClientContext] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_timeout_ms: int = DEFAULT_BATCH_TIMEOUT_MS,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], int] | None = None,
    ):
        if batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {batch_size}")
        if batch_timeout_ms <= 0:
            raise ValueError(f"batch_timeout_ms must be positive, got {batch_timeout_ms}")

        self.sender = sender
        self.identity = identity
        self.context = context or ClientContext()
        self.batch_size = batch_size
        self.batch_timeout_ms = batch_timeout_ms
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock or _now_ms

        self._lock = threading.RLock()
        self._queue: list[Event] = []
        self._timer: Optional[ScheduledTask] = None
        self._timer_generation = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def pending(self) -> int:
        """Number of queued events not yet flushed."""
        with self._lock:
            return len(self._queue)

    @property
    def has_pending_timer(self) -> bool:
        with self._lock:
            return self._timer is not None

    def track(self, event_type: str | EventType, data: Optional[Mapping[str, Any]] = None) -> Event:
        """
        Build an event and queue it.

        The event is stamped with the current session and user ids, the
        current time and the client context.

        Args:
            event_type: Event type (EventType or any string)
            data: Event-specific fields

        Returns:
            The queued Event
        """
        if isinstance(event_type, EventType):
            event_type = event_type.value

        with self._lock:
            now = self._clock()
            event = Event(
                type=event_type,
                timestamp=now,
                session_id=self.identity.resolve_session(now),
                user_id=self.identity.resolve_user(),
                data=dict(data or {}),
                **self.context.event_fields(),
            )
            self._queue.append(event)

            if len(self._queue) >= self.batch_size:
                self.flush()
            elif self._timer is None:
                self._arm_timer()

        return event

    def flush(self, mode: DeliveryMode = DeliveryMode.RELIABLE) -> list[Event]:
        """
        Hand every queued event to the sender as one batch.

        The queue is emptied before the sender is called, so events tracked
        while the batch is in flight belong to the next batch. Any pending
        timer is cancelled.

        Args:
            mode: Delivery mode passed to the sender

        Returns:
            The flushed batch (empty if the queue was empty)
        """
        with self._lock:
            self._cancel_timer()
            if not self._queue:
                return []

            batch, self._queue = self._queue, []
            logger.debug("Flushing batch of %d events (%s)", len(batch), mode.value)
            self.sender.send(batch, mode)
            return batch

    def force_flush(self) -> list[Event]:
        """
        Flush synchronously for client exit, using fire-and-forget delivery.

        Returns:
            The flushed batch
        """
        return self.flush(DeliveryMode.FIRE_AND_FORGET)

    # ------------------------------------------------------------------
    # Timer handling
    # ------------------------------------------------------------------

    def _arm_timer(self) -> None:
        self._timer_generation += 1
        generation = self._timer_generation
        self._timer = self._scheduler.call_later(
            self.batch_timeout_ms / 1000.0, lambda: self._on_timer(generation)
        )

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if self._timer is None or generation != self._timer_generation:
                logger.debug("Ignoring stale flush timer (generation %d)", generation)
                return
            self._timer = None
            self.flush()
