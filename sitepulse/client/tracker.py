# ==============================================================================
# Tracker
# ==============================================================================
"""
High-level tracking API composed from the identity resolver, the batcher and
the transport sender.

Provides the standard behavioral events:
- pageview     on start and on every navigation ({title, loadTime})
- click        on interactive elements ({element, text, id, className, ...})
- scroll       once per depth milestone per page ({depth})
- heartbeat    every ``heartbeat_interval_seconds`` ({duration})
- session_end  once, on exit, followed by a fire-and-forget flush
               ({duration, eventsCount})

Usage:
    tracker = Tracker.from_settings(context=ClientContext(url="https://example.com/"))
    tracker.install_exit_hook()
    tracker.start(title="Home")
    tracker.track_click("BUTTON", text="Sign up", element_id="signup")
"""

import atexit
import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Mapping, Optional

from sitepulse.base import Scheduler, ScheduledTask, Storage
from sitepulse.client.batcher import EventBatcher
from sitepulse.client.context import ClientContext
from sitepulse.client.identity import IdentityResolver
from sitepulse.client.scheduler import ThreadingScheduler
from sitepulse.client.transport import TransportSender
from sitepulse.core.models import Event, EventType
from sitepulse.infrastructure.storage import MemoryStorage, get_durable_storage
from sitepulse.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

SCROLL_MILESTONES = (25, 50, 75, 90, 100)
CLICK_TEXT_LIMIT = 100
DEFAULT_HEARTBEAT_INTERVAL = 60.0  # seconds


def _now_ms() -> int:
    return int(time.time() * 1000)


def scroll_percent(offset: float, content_height: float, viewport_height: float) -> int:
    """
    Percentage of scrollable content above the bottom of the viewport.

    Args:
        offset: Current scroll offset from the top
        content_height: Total content height
        viewport_height: Visible height

    Returns:
        Rounded percentage; 100 when the content fits in the viewport
    """
    scrollable = content_height - viewport_height
    if scrollable <= 0:
        return 100
    return round(offset / scrollable * 100)


class Tracker:
    """
    Behavioral tracker for one client.

    Args:
        batcher: Queue that builds and batches events
        heartbeat_interval_seconds: Interval between heartbeat events
        scheduler: Timer source for heartbeats (default: threading.Timer based)
        clock: Returns the current time in epoch milliseconds
    """

    def __init__(
        self,
        batcher: EventBatcher,
        heartbeat_interval_seconds: float = DEFAULT_HEARTBEAT_INTERVAL,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], int] | None = None,
    ):
        self.batcher = batcher
        self.heartbeat_interval_seconds = heartbeat_interval_seconds
        self._scheduler = scheduler or ThreadingScheduler()
        self._clock = clock or _now_ms

        self._lock = threading.RLock()
        self._page_load_time = self._clock()
        self._scroll_milestones: set[int] = set()
        self._events_tracked = 0
        self._heartbeat: Optional[ScheduledTask] = None
        self._ended = False

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        context: Optional[ClientContext] = None,
        durable_storage: Optional[Storage] = None,
        session_storage: Optional[Storage] = None,
    ) -> "Tracker":
        """
        Build a tracker wired to HTTP transport from application settings.

        Args:
            settings: Application settings (default: get_settings())
            context: Client environment (default: empty context)
            durable_storage: Storage for the user id (default: per settings)
            session_storage: Storage for the session id (default: in-memory)

        Returns:
            Configured Tracker, not yet started
        """
        settings = settings or get_settings()
        tracker_settings = settings.tracker

        sender = TransportSender(
            tracker_settings.endpoint,
            request_timeout=tracker_settings.request_timeout_seconds,
            beacon_timeout=tracker_settings.beacon_timeout_seconds,
        )
        identity = IdentityResolver(
            session_storage=session_storage if session_storage is not None else MemoryStorage(),
            durable_storage=(
                durable_storage
                if durable_storage is not None
                else get_durable_storage(tracker_settings)
            ),
            session_timeout_ms=tracker_settings.session_timeout_ms,
        )
        batcher = EventBatcher(
            sender,
            identity,
            context=context,
            batch_size=tracker_settings.batch_size,
            batch_timeout_ms=tracker_settings.batch_timeout_ms,
        )
        return cls(batcher, heartbeat_interval_seconds=tracker_settings.heartbeat_interval_seconds)

    @property
    def context(self) -> ClientContext:
        return self.batcher.context

    @property
    def events_tracked(self) -> int:
        with self._lock:
            return self._events_tracked

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, title: str = "") -> Event:
        """Track the initial page view and start heartbeats."""
        with self._lock:
            event = self.track_page_view(title)
            self._schedule_heartbeat()
            return event

    def install_exit_hook(self) -> None:
        """End the session automatically when the interpreter exits."""
        atexit.register(self.end_session)

    def end_session(self) -> Optional[Event]:
        """
        Track ``session_end`` and flush everything with fire-and-forget delivery.

        Only the first call has an effect.

        Returns:
            The session_end event, or None if the session already ended
        """
        with self._lock:
            if self._ended:
                return None
            self._ended = True
            self._stop_heartbeat()

            event = self.track(
                EventType.SESSION_END,
                {"duration": self._elapsed_ms(), "eventsCount": self._events_tracked},
            )
            self.batcher.force_flush()
            logger.debug("Session ended after %d events", self._events_tracked)
            return event

    def close(self) -> None:
        """End the session and shut down the transport."""
        self.end_session()
        self.batcher.sender.close(wait=True)

    def get_session(self) -> dict:
        """Current identity and event count, for display."""
        now = self._clock()
        identity = self.batcher.identity
        return {
            "sessionId": identity.resolve_session(now),
            "userId": identity.resolve_user(),
            "eventsCount": self.events_tracked,
        }

    # ------------------------------------------------------------------
    # Tracking
    # ------------------------------------------------------------------

    def track(self, event_type: str | EventType, data: Optional[Mapping[str, Any]] = None) -> Event:
        """Track an arbitrary event."""
        with self._lock:
            event = self.batcher.track(event_type, data)
            self._events_tracked += 1
            return event

    def track_page_view(self, title: str = "") -> Event:
        return self.track(EventType.PAGEVIEW, {"title": title, "loadTime": self._elapsed_ms()})

    def track_click(
        self,
        element: str,
        text: str = "",
        element_id: str = "",
        class_name: str = "",
        **extra: Any,
    ) -> Event:
        """
        Track a click on an element.

        Args:
            element: Element tag name (e.g. ``BUTTON``, ``A``)
            text: Element text, truncated to 100 characters
            element_id: Element id attribute
            class_name: Element class attribute
            **extra: Additional fields merged into the event data
        """
        data = {
            "element": element,
            "text": (text or "")[:CLICK_TEXT_LIMIT],
            "id": element_id,
            "className": class_name,
        }
        data.update(extra)
        return self.track(EventType.CLICK, data)

    def track_scroll(self, percent: float) -> list[Event]:
        """
        Track every scroll milestone reached for the first time on this page.

        Args:
            percent: Current scroll depth, 0-100

        Returns:
            Scroll events emitted (one per newly reached milestone)
        """
        events = []
        with self._lock:
            for milestone in SCROLL_MILESTONES:
                if percent >= milestone and milestone not in self._scroll_milestones:
                    self._scroll_milestones.add(milestone)
                    events.append(self.track(EventType.SCROLL, {"depth": milestone}))
        return events

    def heartbeat(self) -> Event:
        return self.track(EventType.HEARTBEAT, {"duration": self._elapsed_ms()})

    def navigate(self, url: str, title: str = "") -> Event:
        """
        Move to a new page: the old URL becomes the referrer, scroll
        milestones reset and a page view is tracked.
        """
        with self._lock:
            context = self.batcher.context
            context.referrer = context.url
            context.url = url
            self._scroll_milestones.clear()
            self._page_load_time = self._clock()
            return self.track_page_view(title)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _elapsed_ms(self) -> int:
        return self._clock() - self._page_load_time

    def _schedule_heartbeat(self) -> None:
        if self._ended or self._heartbeat is not None:
            return
        self._heartbeat = self._scheduler.call_later(
            self.heartbeat_interval_seconds, self._on_heartbeat
        )

    def _stop_heartbeat(self) -> None:
        if self._heartbeat is not None:
            self._heartbeat.cancel()
            self._heartbeat = None

    def _on_heartbeat(self) -> None:
        with self._lock:
            if self._ended:
                return
            self._heartbeat = None
            self.heartbeat()
            self._schedule_heartbeat()
