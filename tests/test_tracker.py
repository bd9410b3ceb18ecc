# ==============================================================================
# Tests for Tracker — tracker.py
# ==============================================================================
"""
Tests for the high-level tracking API: page views, clicks, scroll
milestones, heartbeats, navigation and session end.
"""

from unittest.mock import patch

import pytest

from sitepulse.base import DeliveryMode
from sitepulse.client.batcher import EventBatcher
from sitepulse.client.context import ClientContext
from sitepulse.client.identity import IdentityResolver
from sitepulse.client.tracker import SCROLL_MILESTONES, Tracker, scroll_percent
from sitepulse.infrastructure.storage import MemoryStorage
from sitepulse.utils.config import Settings, TrackerSettings


@pytest.fixture()
def tracker(sender, session_storage, durable_storage, scheduler, clock):
    batcher = EventBatcher(
        sender,
        IdentityResolver(session_storage, durable_storage),
        context=ClientContext(url="https://example.com/"),
        batch_size=100,
        scheduler=scheduler,
        clock=clock,
    )
    return Tracker(batcher, heartbeat_interval_seconds=60, scheduler=scheduler, clock=clock)


def _tracked(tracker):
    """Every event the tracker produced, flushed or still queued."""
    tracker.batcher.flush()
    return tracker.batcher.sender.events


class TestScrollPercent:
    def test_midway(self):
        assert scroll_percent(500, 2000, 1000) == 50

    def test_content_fits_viewport(self):
        assert scroll_percent(0, 800, 1000) == 100


class TestPageViews:
    def test_start_tracks_pageview(self, tracker, clock):
        clock.advance(120)
        event = tracker.start(title="Home")

        assert event.type == "pageview"
        assert event.get("title") == "Home"
        assert event.get("loadTime") == 120
        assert tracker.events_tracked == 1

    def test_navigate_sets_referrer_and_path(self, tracker):
        tracker.start()
        event = tracker.navigate("https://example.com/pricing", title="Pricing")

        assert event.path == "/pricing"
        assert event.referrer == "https://example.com/"
        assert tracker.context.url == "https://example.com/pricing"


class TestClicks:
    def test_click_fields(self, tracker):
        event = tracker.track_click(
            "BUTTON", text="Sign up", element_id="signup", class_name="btn", href="/join"
        )
        assert event.type == "click"
        assert event.data == {
            "element": "BUTTON",
            "text": "Sign up",
            "id": "signup",
            "className": "btn",
            "href": "/join",
        }

    def test_text_truncated(self, tracker):
        event = tracker.track_click("P", text="x" * 250)
        assert len(event.get("text")) == 100


class TestScrollMilestones:
    def test_each_milestone_once(self, tracker):
        assert [e.get("depth") for e in tracker.track_scroll(60)] == [25, 50]
        assert tracker.track_scroll(55) == []
        assert [e.get("depth") for e in tracker.track_scroll(100)] == [75, 90, 100]
        assert tracker.track_scroll(100) == []

    def test_below_first_milestone(self, tracker):
        assert tracker.track_scroll(10) == []

    def test_navigation_resets_milestones(self, tracker):
        tracker.track_scroll(100)
        tracker.navigate("https://example.com/next")
        assert len(tracker.track_scroll(100)) == len(SCROLL_MILESTONES)


class TestHeartbeat:
    def test_heartbeat_repeats(self, tracker, scheduler, clock):
        tracker.start()
        clock.advance(60_000)
        scheduler.advance(60)
        clock.advance(60_000)
        scheduler.advance(60)

        heartbeats = [e for e in _tracked(tracker) if e.type == "heartbeat"]
        assert [e.get("duration") for e in heartbeats] == [60_000, 120_000]

    def test_session_end_stops_heartbeat(self, tracker, scheduler):
        tracker.start()
        tracker.end_session()
        scheduler.advance(600)
        assert not any(e.type == "heartbeat" for e in _tracked(tracker))


class TestSessionEnd:
    def test_tracks_and_force_flushes(self, tracker, sender, clock):
        tracker.start()
        tracker.track_click("A")
        clock.advance(5000)
        event = tracker.end_session()

        assert event.type == "session_end"
        assert event.get("eventsCount") == 2
        assert event.get("duration") == 5000

        batch, mode = sender.batches[-1]
        assert mode == DeliveryMode.FIRE_AND_FORGET
        assert batch[-1] is event
        assert tracker.batcher.pending == 0

    def test_idempotent(self, tracker, sender):
        tracker.start()
        assert tracker.end_session() is not None
        assert tracker.end_session() is None
        assert sum(1 for e in sender.events if e.type == "session_end") == 1

    def test_exit_hook_registers_end_session(self, tracker):
        with patch("sitepulse.client.tracker.atexit.register") as register:
            tracker.install_exit_hook()
        register.assert_called_once_with(tracker.end_session)

    def test_close_closes_sender(self, tracker, sender):
        tracker.close()
        assert sender.closed


class TestGetSession:
    def test_reports_identity(self, tracker):
        event = tracker.start()
        session = tracker.get_session()
        assert session == {
            "sessionId": event.session_id,
            "userId": event.user_id,
            "eventsCount": 1,
        }


class TestFromSettings:
    def test_wires_settings(self):
        settings = Settings(
            tracker=TrackerSettings(
                endpoint="http://collector.test/api/track",
                batch_size=7,
                batch_timeout_ms=1234,
                storage_backend="memory",
            )
        )
        tracker = Tracker.from_settings(settings, durable_storage=MemoryStorage())
        try:
            assert tracker.batcher.batch_size == 7
            assert tracker.batcher.batch_timeout_ms == 1234
            assert tracker.batcher.sender.endpoint == "http://collector.test/api/track"
        finally:
            tracker.batcher.sender.close()
