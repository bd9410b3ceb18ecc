# ==============================================================================
# Statistics Reporter
# ==============================================================================
"""
On-demand rollups computed from an AggregationStore snapshot.

The reporter never mutates the store. Every report is computed from a single
StoreSnapshot, so counts, rankings and slices are mutually consistent even
while requests keep recording events.

Report shape (camelCase on the wire):
    {
        "overview":     {"totalEvents", "totalPageViews", "totalClicks",
                         "totalSessions", "totalUsers"},
        "last24h":      {"events", "pageViews", "clicks", "scrolls",
                         "heartbeats", "sessions", "users"},
        "lastHour":     same keys as last24h,
        "recentEvents": [event, ...]            newest first
        "topPages":     [{"page", "count"}, ...] count desc
        "scrollDepths": [{"depth", "count"}, ...] depth asc
        "sessions":     [session, ...]           newest first
    }
"""

import time
from collections import Counter
from collections.abc import Callable
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sitepulse.core.models import Event, Timestamp
from sitepulse.core.store import AggregationStore, SessionActivity, StoreSnapshot

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

DEFAULT_RECENT_EVENTS = 50
DEFAULT_TOP_PAGES = 10
DEFAULT_RECENT_SESSIONS = 20


def _now_ms() -> int:
    return int(time.time() * 1000)


class _ReportModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class Overview(_ReportModel):
    """Totals over the retained logs and all known sessions/users."""

    total_events: int = 0
    total_page_views: int = 0
    total_clicks: int = 0
    total_sessions: int = 0
    total_users: int = 0


class WindowCounts(_ReportModel):
    """Counts of entries newer than a trailing window."""

    events: int = 0
    page_views: int = 0
    clicks: int = 0
    scrolls: int = 0
    heartbeats: int = 0
    sessions: int = 0
    users: int = 0


class PageCount(_ReportModel):
    page: Optional[str]
    count: int


class DepthCount(_ReportModel):
    depth: int
    count: int


class StatsReport(_ReportModel):
    """Full statistics rollup returned by GET /api/stats."""

    overview: Overview = Field(default_factory=Overview)
    last24h: WindowCounts = Field(default_factory=WindowCounts, alias="last24h")
    last_hour: WindowCounts = Field(default_factory=WindowCounts)
    recent_events: list[dict[str, Any]] = Field(default_factory=list)
    top_pages: list[PageCount] = Field(default_factory=list)
    scroll_depths: list[DepthCount] = Field(default_factory=list)
    sessions: list[dict[str, Any]] = Field(default_factory=list)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class StatisticsReporter:
    """
    Computes StatsReport rollups for one AggregationStore.

    Args:
        store: Store to read from
        now_ms: Clock returning the current time in epoch milliseconds
        recent_events: How many master-log entries ``recentEvents`` shows
        top_pages: How many pages ``topPages`` shows
        recent_sessions: How many sessions ``sessions`` shows
    """

    def __init__(
        self,
        store: AggregationStore,
        now_ms: Callable[[], int] | None = None,
        recent_events: int = DEFAULT_RECENT_EVENTS,
        top_pages: int = DEFAULT_TOP_PAGES,
        recent_sessions: int = DEFAULT_RECENT_SESSIONS,
    ):
        self.store = store
        self._now_ms = now_ms or _now_ms
        self.recent_events = recent_events
        self.top_pages = top_pages
        self.recent_sessions = recent_sessions

    def compute(self) -> StatsReport:
        """Build a report from a fresh store snapshot."""
        snapshot = self.store.snapshot(recent_sessions=self.recent_sessions)
        now = self._now_ms()

        recent = list(snapshot.events[-self.recent_events :]) if self.recent_events > 0 else []
        recent.reverse()

        return StatsReport(
            overview=self.overview(snapshot),
            last24h=self.window_counts(snapshot, now - DAY_MS),
            last_hour=self.window_counts(snapshot, now - HOUR_MS),
            recent_events=[e.to_wire() for e in recent],
            top_pages=self.rank_pages(snapshot.page_views, self.top_pages),
            scroll_depths=self.scroll_histogram(snapshot.scrolls),
            sessions=[s.to_wire() for s in reversed(snapshot.recent_sessions)],
        )

    @staticmethod
    def overview(snapshot: StoreSnapshot) -> Overview:
        return Overview(
            total_events=len(snapshot.events),
            total_page_views=len(snapshot.page_views),
            total_clicks=len(snapshot.clicks),
            total_sessions=snapshot.total_sessions,
            total_users=snapshot.total_users,
        )

    @staticmethod
    def window_counts(snapshot: StoreSnapshot, since_ms: Timestamp) -> WindowCounts:
        """Count log entries and sessions/users strictly newer than ``since_ms``."""
        return WindowCounts(
            events=_count_events_since(snapshot.events, since_ms),
            page_views=_count_events_since(snapshot.page_views, since_ms),
            clicks=_count_events_since(snapshot.clicks, since_ms),
            scrolls=_count_events_since(snapshot.scrolls, since_ms),
            heartbeats=_count_events_since(snapshot.heartbeats, since_ms),
            sessions=_count_active_since(snapshot.session_activity, since_ms),
            users=_count_active_since(snapshot.user_activity, since_ms),
        )

    @staticmethod
    def rank_pages(page_views: Iterable[Event], limit: int = DEFAULT_TOP_PAGES) -> list[PageCount]:
        """
        Rank pages by pageview count.

        Counter keeps first-encounter order and ``sorted`` is stable, so
        ties keep the order in which pages were first seen.
        """
        counts = Counter(event.page for event in page_views)
        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [PageCount(page=page, count=count) for page, count in ranked[:limit]]

    @staticmethod
    def scroll_histogram(scrolls: Iterable[Event]) -> list[DepthCount]:
        """Histogram of ``data.depth`` values, ascending by depth."""
        counts = Counter(_scroll_depth(event) for event in scrolls)
        return [DepthCount(depth=depth, count=count) for depth, count in sorted(counts.items())]


def _scroll_depth(event: Event) -> int:
    """Depth recorded on a scroll event; absent or non-numeric depths count as 0."""
    depth = event.get("depth")
    if not depth or isinstance(depth, bool):
        return 0
    try:
        return int(float(depth))
    except (TypeError, ValueError, OverflowError):
        return 0


def _count_events_since(events: Iterable[Event], since_ms: Timestamp) -> int:
    return sum(1 for e in events if e.timestamp_ms is not None and e.timestamp_ms > since_ms)


def _count_active_since(activity: Iterable[SessionActivity], since_ms: Timestamp) -> int:
    return sum(1 for a in activity if a.last_seen is not None and a.last_seen > since_ms)
