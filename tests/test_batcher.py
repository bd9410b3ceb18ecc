# ==============================================================================
# Tests for EventBatcher — batcher.py
# ==============================================================================
"""
Tests for size- and timer-triggered flushing, stale timers and exit flushes.

Timers run on a ManualScheduler, so nothing here sleeps.
"""

import pytest

from sitepulse.base import DeliveryMode
from sitepulse.client.batcher import EventBatcher
from sitepulse.client.context import ClientContext
from sitepulse.client.identity import IdentityResolver


@pytest.fixture()
def identity(session_storage, durable_storage):
    return IdentityResolver(session_storage, durable_storage)


@pytest.fixture()
def batcher(sender, identity, scheduler, clock):
    return EventBatcher(
        sender,
        identity,
        context=ClientContext(url="https://example.com/docs?x=1", user_agent="test-agent"),
        batch_size=3,
        batch_timeout_ms=5000,
        scheduler=scheduler,
        clock=clock,
    )


# ==============================================================================
# Construction
# ==============================================================================


class TestConstruction:
    def test_invalid_batch_size(self, sender, identity):
        with pytest.raises(ValueError, match="batch_size"):
            EventBatcher(sender, identity, batch_size=0)

    def test_invalid_timeout(self, sender, identity):
        with pytest.raises(ValueError, match="batch_timeout_ms"):
            EventBatcher(sender, identity, batch_timeout_ms=0)


# ==============================================================================
# Event construction
# ==============================================================================


class TestTrack:
    def test_event_is_stamped(self, batcher, clock):
        event = batcher.track("click", {"element": "BUTTON"})

        assert event.type == "click"
        assert event.timestamp == clock.now
        assert event.session_id
        assert event.user_id
        assert event.url == "https://example.com/docs?x=1"
        assert event.path == "/docs"
        assert event.user_agent == "test-agent"
        assert event.get("element") == "BUTTON"

    def test_data_is_copied(self, batcher):
        data = {"depth": 25}
        event = batcher.track("scroll", data)
        data["depth"] = 50
        assert event.get("depth") == 25

    def test_enum_type_accepted(self, batcher):
        from sitepulse.core.models import EventType

        assert batcher.track(EventType.HEARTBEAT).type == "heartbeat"

    def test_first_event_arms_one_timer(self, batcher, scheduler):
        batcher.track("click")
        batcher.track("click")
        assert batcher.has_pending_timer
        assert len(scheduler.tasks) == 1


# ==============================================================================
# Flushing
# ==============================================================================


class TestSizeFlush:
    def test_flushes_at_batch_size(self, batcher, sender):
        for _ in range(3):
            batcher.track("click")

        assert len(sender.batches) == 1
        batch, mode = sender.batches[0]
        assert len(batch) == 3
        assert mode == DeliveryMode.RELIABLE
        assert batcher.pending == 0

    def test_size_flush_cancels_timer(self, batcher, scheduler):
        for _ in range(3):
            batcher.track("click")
        assert not batcher.has_pending_timer
        assert scheduler.tasks[0].cancelled

    def test_one_flush_per_threshold_crossing(self, batcher, sender):
        """Seven events with batch size 3 flush exactly twice, in order."""
        events = [batcher.track("click", {"n": i}) for i in range(7)]

        assert [len(b) for b, _ in sender.batches] == [3, 3]
        assert sender.events == events[:6]
        assert batcher.pending == 1

    def test_no_event_sent_twice(self, batcher, sender, scheduler):
        events = [batcher.track("click", {"n": i}) for i in range(4)]
        scheduler.advance(5)
        batcher.flush()

        assert sender.events == events
        assert len({id(e) for e in sender.events}) == 4


class TestTimerFlush:
    def test_timer_flushes_partial_batch(self, batcher, sender, scheduler):
        batcher.track("click")
        batcher.track("scroll")

        scheduler.advance(4.9)
        assert sender.batches == []

        scheduler.advance(0.1)
        assert len(sender.batches) == 1
        assert len(sender.batches[0][0]) == 2
        assert not batcher.has_pending_timer

    def test_new_timer_after_timed_flush(self, batcher, scheduler):
        batcher.track("click")
        scheduler.advance(5)
        batcher.track("click")
        assert batcher.has_pending_timer
        assert len(scheduler.pending) == 1

    def test_stale_timer_is_ignored(self, batcher, sender, scheduler):
        """A cancelled timer that fires anyway does not flush the next batch early."""
        for _ in range(3):
            batcher.track("click")
        stale = scheduler.tasks[0]

        batcher.track("click")
        scheduler.fire(stale)

        assert len(sender.batches) == 1
        assert batcher.pending == 1
        assert batcher.has_pending_timer

    def test_empty_queue_never_sends(self, batcher, sender, scheduler):
        assert batcher.flush() == []
        scheduler.advance(10)
        assert sender.batches == []


class TestForceFlush:
    def test_uses_fire_and_forget(self, batcher, sender):
        batcher.track("session_end")
        flushed = batcher.force_flush()

        assert len(flushed) == 1
        assert sender.batches[0][1] == DeliveryMode.FIRE_AND_FORGET

    def test_cancels_pending_timer(self, batcher, scheduler, sender):
        batcher.track("click")
        batcher.force_flush()
        assert not batcher.has_pending_timer

        scheduler.advance(10)
        assert len(sender.batches) == 1

    def test_empty_force_flush_is_noop(self, batcher, sender):
        assert batcher.force_flush() == []
        assert sender.batches == []
