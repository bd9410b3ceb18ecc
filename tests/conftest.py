# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyStorage instances
- A manual scheduler and a settable clock for deterministic timer tests
- A recording BatchSender
- An event factory and an empty AggregationStore
"""

import itertools
from collections.abc import Callable

import fakeredis
import pytest

from sitepulse.base import BatchSender, DeliveryMode, ScheduledTask, Scheduler
from sitepulse.core.models import Event
from sitepulse.core.store import AggregationStore
from sitepulse.infrastructure.storage import MemoryStorage, ValkeyStorage

BASE_TIME = 1_700_000_000_000  # epoch ms


# ==============================================================================
# Timers and Clocks
# ==============================================================================


class ManualTask(ScheduledTask):
    """ScheduledTask that only runs when the ManualScheduler is advanced."""

    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False
        self.ran = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Scheduler driven by ``advance()`` instead of wall-clock time.

    Cancelled tasks are kept in ``tasks`` so tests can fire a stale callback
    on purpose with ``fire()``.
    """

    def __init__(self):
        self.now = 0.0
        self.tasks: list[ManualTask] = []

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(self.now + delay_seconds, callback)
        self.tasks.append(task)
        return task

    @property
    def pending(self) -> list[ManualTask]:
        return [t for t in self.tasks if not t.cancelled and not t.ran]

    def fire(self, task: ManualTask) -> None:
        """Run a task's callback regardless of its state."""
        task.ran = True
        task.callback()

    def advance(self, seconds: float) -> None:
        """Move time forward, running due, uncancelled tasks in due order."""
        self.now += seconds
        while True:
            due = [t for t in self.pending if t.due <= self.now]
            if not due:
                return
            self.fire(min(due, key=lambda t: t.due))


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, start: int = BASE_TIME):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSender(BatchSender):
    """BatchSender that keeps every batch it receives."""

    def __init__(self):
        self.batches: list[tuple[list[Event], DeliveryMode]] = []
        self.closed = False

    def send(self, batch, mode=DeliveryMode.RELIABLE):
        self.batches.append((list(batch), mode))
        return None

    def close(self, wait: bool = True) -> None:
        self.closed = True

    @property
    def events(self) -> list[Event]:
        return [event for batch, _ in self.batches for event in batch]


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def sender():
    return RecordingSender()


# ==============================================================================
# Storage
# ==============================================================================


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyStorage behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def fake_valkey_storage(fake_redis):
    """A ValkeyStorage with its internal client replaced by fakeredis.

    This avoids needing a real Valkey/Redis server for unit tests while
    exercising the full ValkeyStorage API surface.
    """
    storage = ValkeyStorage.__new__(ValkeyStorage)
    storage._client = fake_redis
    storage._url = "redis://fake:6379"
    storage._prefix = "sitepulse-test:"
    return storage


@pytest.fixture()
def session_storage():
    return MemoryStorage()


@pytest.fixture()
def durable_storage():
    return MemoryStorage()


# ==============================================================================
# Events and Store
# ==============================================================================


@pytest.fixture()
def make_event():
    """Factory for wire-shaped events with sensible defaults.

    Timestamps increase by one millisecond per call unless given.
    """
    counter = itertools.count()

    def _make(event_type: str = "pageview", **fields) -> Event:
        payload = {
            "type": event_type,
            "timestamp": BASE_TIME + next(counter),
            "sessionId": "s1",
            "userId": "u1",
            "url": "https://example.com/",
            "path": "/",
            "data": {},
        }
        payload.update(fields)
        return Event.model_validate(payload)

    return _make


@pytest.fixture()
def store():
    return AggregationStore()
