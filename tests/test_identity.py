# ==============================================================================
# Tests for IdentityResolver — identity.py
# ==============================================================================
"""
Tests for session id renewal and durable user ids.
"""

import itertools
import uuid

import pytest

from sitepulse.client.identity import (
    SESSION_ID_KEY,
    SESSION_START_KEY,
    USER_ID_KEY,
    IdentityResolver,
    generate_id,
)

from conftest import BASE_TIME

MINUTE_MS = 60 * 1000


@pytest.fixture()
def resolver(session_storage, durable_storage):
    counter = itertools.count(1)
    return IdentityResolver(
        session_storage,
        durable_storage,
        session_timeout_ms=30 * MINUTE_MS,
        id_factory=lambda: f"id-{next(counter)}",
    )


class TestGenerateId:
    def test_uuid_format(self):
        value = generate_id()
        assert str(uuid.UUID(value)) == value

    def test_unique(self):
        assert len({generate_id() for _ in range(100)}) == 100


class TestResolveSession:
    def test_creates_session_when_absent(self, resolver, session_storage):
        session_id = resolver.resolve_session(BASE_TIME)
        assert session_id == "id-1"
        assert session_storage.get(SESSION_ID_KEY) == "id-1"
        assert session_storage.get(SESSION_START_KEY) == str(BASE_TIME)

    def test_reuses_session_within_timeout(self, resolver):
        first = resolver.resolve_session(BASE_TIME)
        assert resolver.resolve_session(BASE_TIME + 10 * MINUTE_MS) == first
        assert resolver.resolve_session(BASE_TIME + 30 * MINUTE_MS) == first

    def test_renews_after_timeout(self, resolver, session_storage):
        """An id created at t and read at t + 31 minutes is replaced."""
        first = resolver.resolve_session(BASE_TIME)
        second = resolver.resolve_session(BASE_TIME + 31 * MINUTE_MS)
        assert second != first
        assert session_storage.get(SESSION_START_KEY) == str(BASE_TIME + 31 * MINUTE_MS)

    def test_timeout_measured_from_session_start(self, resolver):
        first = resolver.resolve_session(BASE_TIME)
        resolver.resolve_session(BASE_TIME + 20 * MINUTE_MS)
        assert resolver.resolve_session(BASE_TIME + 35 * MINUTE_MS) != first

    def test_unparsable_start_renews(self, resolver, session_storage):
        session_storage.set(SESSION_ID_KEY, "stale")
        session_storage.set(SESSION_START_KEY, "not-a-number")
        assert resolver.resolve_session(BASE_TIME) == "id-1"

    def test_missing_start_renews(self, resolver, session_storage):
        session_storage.set(SESSION_ID_KEY, "stale")
        assert resolver.resolve_session(BASE_TIME) == "id-1"


class TestResolveUser:
    def test_creates_and_persists(self, resolver, durable_storage):
        user_id = resolver.resolve_user()
        assert durable_storage.get(USER_ID_KEY) == user_id
        assert resolver.resolve_user() == user_id

    def test_survives_session_expiry(self, resolver):
        user_id = resolver.resolve_user()
        resolver.resolve_session(BASE_TIME)
        resolver.resolve_session(BASE_TIME + 60 * MINUTE_MS)
        assert resolver.resolve_user() == user_id

    def test_reset_user(self, resolver, durable_storage):
        first = resolver.resolve_user()
        assert resolver.reset_user() is True
        assert durable_storage.get(USER_ID_KEY) is None
        assert resolver.resolve_user() != first

    def test_existing_user_id_is_kept(self, session_storage, durable_storage):
        durable_storage.set(USER_ID_KEY, "returning-user")
        resolver = IdentityResolver(session_storage, durable_storage)
        assert resolver.resolve_user() == "returning-user"
