# ==============================================================================
# Aggregation Store - In-Memory Event Aggregation
# ==============================================================================
"""
In-memory aggregation of the tracked event stream.

This module contains the server-side domain logic:
- Bounded, append-only event logs (master log plus one per category)
- Session aggregation keyed by session id
- User aggregation keyed by user id
- Consistent snapshots for the statistics reporter

Each ``record()`` is applied as one atomic unit under a re-entrant lock, so
concurrent request handlers cannot lose counter updates or break the log
length cap. Nothing here touches the network or the filesystem.
"""

import json
import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Optional

from sitepulse.core.models import Event, EventType, Session, Timestamp, User

logger = logging.getLogger(__name__)

DEFAULT_MAX_LOG_ENTRIES = 10_000

# Category logs, keyed by the event type that feeds them
CATEGORY_LOGS = {
    EventType.PAGEVIEW.value: "page_views",
    EventType.CLICK.value: "clicks",
    EventType.SCROLL.value: "scrolls",
    EventType.HEARTBEAT.value: "heartbeats",
}


@dataclass(frozen=True)
class SessionActivity:
    """Timestamps of one session or user, as needed for windowed counts."""

    first_seen: Optional[Timestamp]
    last_seen: Optional[Timestamp]


@dataclass(frozen=True)
class StoreSnapshot:
    """
    Point-in-time copy of the store, taken under the store lock.

    Logs are tuples in arrival order. ``sessions`` holds copies of every
    session in creation order; their ``events`` lists are copied too so the
    snapshot does not change when later events arrive.
    """

    events: tuple[Event, ...]
    page_views: tuple[Event, ...]
    clicks: tuple[Event, ...]
    scrolls: tuple[Event, ...]
    heartbeats: tuple[Event, ...]
    session_activity: tuple[SessionActivity, ...]
    user_activity: tuple[SessionActivity, ...]
    recent_sessions: tuple[Session, ...]

    @property
    def total_sessions(self) -> int:
        return len(self.session_activity)

    @property
    def total_users(self) -> int:
        return len(self.user_activity)


class AggregationStore:
    """
    Owns all sessions, users and bounded event logs.

    Logs are ``deque(maxlen=N)`` ring buffers: appending past the cap drops
    the oldest entry by arrival, regardless of its timestamp. Sessions and
    users are dicts, so iteration follows creation order.
    """

    def __init__(self, max_log_entries: int = DEFAULT_MAX_LOG_ENTRIES):
        """
        Initialize an empty store.

        Args:
            max_log_entries: Cap applied to the master log and to each
                             category log independently.
        """
        if max_log_entries <= 0:
            raise ValueError(f"max_log_entries must be positive, got {max_log_entries}")

        self.max_log_entries = max_log_entries
        self._lock = threading.RLock()
        self._sessions: dict[Hashable, Session] = {}
        self._users: dict[Hashable, User] = {}
        self._reset_logs()

    def _reset_logs(self) -> None:
        cap = self.max_log_entries
        self._events: deque[Event] = deque(maxlen=cap)
        self._page_views: deque[Event] = deque(maxlen=cap)
        self._clicks: deque[Event] = deque(maxlen=cap)
        self._scrolls: deque[Event] = deque(maxlen=cap)
        self._heartbeats: deque[Event] = deque(maxlen=cap)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record(self, event: Event) -> None:
        """
        Record one event into the logs, its session and its user.

        Steps, applied atomically:
            1. Append to the master log
            2. Get or create the session, update last_seen, append the event
            3. Get or create the user, update last_seen, add the session id
            4. Append to the matching category log; bump pageview/click
               counters on the session and the user

        Unrecognized event types only reach the master log.
        Ids are used as given, whatever their type; an event without a
        numeric timestamp does not move first_seen/last_seen.

        Args:
            event: Event to record
        """
        with self._lock:
            self._events.append(event)
            timestamp = event.timestamp_ms

            session_key = _aggregate_key(event.session_id)
            session = self._sessions.get(session_key)
            if session is None:
                session = Session(
                    session_id=event.session_id,
                    user_id=event.user_id,
                    first_seen=timestamp,
                    last_seen=timestamp,
                )
                self._sessions[session_key] = session
            _touch(session, timestamp)
            session.events.append(event)

            user_key = _aggregate_key(event.user_id)
            user = self._users.get(user_key)
            if user is None:
                user = User(
                    user_id=event.user_id,
                    first_seen=timestamp,
                    last_seen=timestamp,
                )
                self._users[user_key] = user
            _touch(user, timestamp)
            user.add_session(event.session_id)

            log_name = CATEGORY_LOGS.get(event.type) if isinstance(event.type, str) else None
            if log_name is None:
                return
            getattr(self, f"_{log_name}").append(event)

            if event.type == EventType.PAGEVIEW.value:
                session.page_views += 1
                user.total_page_views += 1
            elif event.type == EventType.CLICK.value:
                session.clicks += 1
                user.total_clicks += 1

    def record_batch(self, events: Iterable[Event]) -> int:
        """
        Record events in order, holding the lock for the whole batch.

        Returns:
            Number of events recorded
        """
        count = 0
        with self._lock:
            for event in events:
                self.record(event)
                count += 1
        logger.debug("Recorded batch of %d events", count)
        return count

    def clear(self) -> None:
        """Drop every log, session and user."""
        with self._lock:
            self._reset_logs()
            self._sessions.clear()
            self._users.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self, recent_sessions: Optional[int] = None) -> StoreSnapshot:
        """
        Take a consistent copy of the store.

        Args:
            recent_sessions: Number of most recently created sessions to copy
                             in full. None copies all of them.

        Returns:
            StoreSnapshot with logs, activity timestamps and session copies
        """
        with self._lock:
            sessions = list(self._sessions.values())
            if recent_sessions is not None:
                sessions = sessions[-recent_sessions:] if recent_sessions > 0 else []
            return StoreSnapshot(
                events=tuple(self._events),
                page_views=tuple(self._page_views),
                clicks=tuple(self._clicks),
                scrolls=tuple(self._scrolls),
                heartbeats=tuple(self._heartbeats),
                session_activity=tuple(
                    SessionActivity(s.first_seen, s.last_seen) for s in self._sessions.values()
                ),
                user_activity=tuple(
                    SessionActivity(u.first_seen, u.last_seen) for u in self._users.values()
                ),
                recent_sessions=tuple(
                    s.model_copy(update={"events": list(s.events)}) for s in sessions
                ),
            )

    def get_session(self, session_id: Any) -> Optional[Session]:
        """Return a copy of a session, or None if it has not been seen."""
        with self._lock:
            session = self._sessions.get(_aggregate_key(session_id))
            if session is None:
                return None
            return session.model_copy(update={"events": list(session.events)})

    def get_user(self, user_id: Any) -> Optional[User]:
        """Return a copy of a user, or None if it has not been seen."""
        with self._lock:
            user = self._users.get(_aggregate_key(user_id))
            if user is None:
                return None
            return user.model_copy(update={"sessions": list(user.sessions)})

    def log_sizes(self) -> dict[str, int]:
        """Current length of every bounded log."""
        with self._lock:
            return {
                "events": len(self._events),
                "page_views": len(self._page_views),
                "clicks": len(self._clicks),
                "scrolls": len(self._scrolls),
                "heartbeats": len(self._heartbeats),
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def _touch(aggregate: Session | User, timestamp: Optional[Timestamp]) -> None:
    """Widen an aggregate's first_seen/last_seen range to include timestamp."""
    if timestamp is None:
        return
    if aggregate.last_seen is None or timestamp > aggregate.last_seen:
        aggregate.last_seen = timestamp
    if aggregate.first_seen is None or timestamp < aggregate.first_seen:
        aggregate.first_seen = timestamp


def _aggregate_key(value: Any) -> Hashable:
    """Dict key for a session or user id; unhashable ids key by their JSON text."""
    try:
        hash(value)
    except TypeError:
        return (type(value).__name__, json.dumps(value, sort_keys=True, default=str))
    return value
