# ==============================================================================
# Identity Resolver
# ==============================================================================
"""
Derives the user and session identifiers stamped on every tracked event.

- The user id lives in durable storage and survives session expiry. It only
  changes when the durable storage is cleared.
- The session id lives in session-scoped storage together with its start
  time. It is renewed once more than ``session_timeout_ms`` has elapsed since
  the session started.

Storage keys:
    analytics_session_id     (session-scoped) current session id
    analytics_session_start  (session-scoped) session start, epoch ms
    analytics_user_id        (durable)        user id
"""

import logging
import uuid
from collections.abc import Callable

from sitepulse.base import Storage

logger = logging.getLogger(__name__)

SESSION_ID_KEY = "analytics_session_id"
SESSION_START_KEY = "analytics_session_start"
USER_ID_KEY = "analytics_user_id"

DEFAULT_SESSION_TIMEOUT_MS = 30 * 60 * 1000


def generate_id() -> str:
    """Generate a random 128-bit identifier in UUID format."""
    return str(uuid.uuid4())


class IdentityResolver:
    """
    Resolves session and user ids against persisted storage.

    Args:
        session_storage: Session-scoped storage (session id and start time)
        durable_storage: Durable storage (user id)
        session_timeout_ms: Age after which a session id is renewed
        id_factory: Callable producing new identifiers
    """

    def __init__(
        self,
        session_storage: Storage,
        durable_storage: Storage,
        session_timeout_ms: int = DEFAULT_SESSION_TIMEOUT_MS,
        id_factory: Callable[[], str] = generate_id,
    ):
        self.session_storage = session_storage
        self.durable_storage = durable_storage
        self.session_timeout_ms = session_timeout_ms
        self._id_factory = id_factory

    def resolve_session(self, now_ms: int) -> str:
        """
        Return the current session id, starting a new session if needed.

        A new session starts when no session id or start time is stored, when
        the stored start time cannot be parsed, or when more than the session
        timeout has elapsed since the start.

        Args:
            now_ms: Current time in epoch milliseconds

        Returns:
            Session id
        """
        session_id = self.session_storage.get(SESSION_ID_KEY)
        start = _parse_ms(self.session_storage.get(SESSION_START_KEY))

        if session_id and start is not None and now_ms - start <= self.session_timeout_ms:
            return session_id

        session_id = self._id_factory()
        self.session_storage.set(SESSION_ID_KEY, session_id)
        self.session_storage.set(SESSION_START_KEY, str(now_ms))
        logger.debug("Started session %s", session_id)
        return session_id

    def resolve_user(self) -> str:
        """
        Return the durable user id, generating and persisting one if absent.

        Returns:
            User id
        """
        user_id = self.durable_storage.get(USER_ID_KEY)
        if user_id:
            return user_id

        user_id = self._id_factory()
        self.durable_storage.set(USER_ID_KEY, user_id)
        logger.debug("Created user %s", user_id)
        return user_id

    def reset_user(self) -> bool:
        """Forget the durable user id. The next resolve_user() creates a new one."""
        return self.durable_storage.delete(USER_ID_KEY)


def _parse_ms(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
