# ==============================================================================
# SitePulse Domain Models
# ==============================================================================
"""
Pydantic models for tracked events and their aggregates.

These models are used for:
- Validating batches received by the ingestion endpoint
- Serializing batches sent by the client tracker
- Rendering sessions and users in statistics reports

Wire names are camelCase (``sessionId``, ``userAgent``); Python attribute
names are snake_case. Both spellings are accepted on input.

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
)
from pydantic.alias_generators import to_camel

Timestamp = Union[int, float]


def _keep_raw(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:
    """Validate against the declared type, keeping the raw value if that fails."""
    try:
        return handler(value)
    except ValidationError:
        return value


# Fields typed this way never fail validation; a wrong-typed value is kept as given
Lenient = WrapValidator(_keep_raw)
LenientStr = Annotated[Optional[str], Lenient]


class EventType(str, Enum):
    """Event types emitted by the tracker.

    ``Event.type`` is free-form; these are the values the store categorizes.
    """

    PAGEVIEW = "pageview"
    CLICK = "click"
    SCROLL = "scroll"
    SESSION_END = "session_end"
    HEARTBEAT = "heartbeat"


class EventParseError(ValueError):
    """Raised when a track payload does not have the shape of an event batch."""


class Event(BaseModel):
    """
    A single tracked occurrence.

    Immutable once created. Every field is optional: events missing
    ``sessionId`` or ``userId`` are still aggregated, under a ``None`` key.
    Fields are not type-checked: a value of the wrong type (``sessionId: 123``,
    ``data: [1]``) is kept exactly as received. Numeric strings are accepted as
    timestamps. Unknown top-level fields are kept and passed through untouched.

    Attributes:
        type: Event type (see EventType), or any other string
        timestamp: Unix timestamp in milliseconds when the event occurred
        session_id: Rolling session identifier
        user_id: Durable user identifier
        url: Full page URL
        path: Page path component of the URL
        referrer: Referring URL
        user_agent: Client user agent string
        screen_resolution: Screen size as ``WIDTHxHEIGHT``
        viewport: Viewport size as ``WIDTHxHEIGHT``
        data: Open mapping of event-specific fields (e.g. ``{"depth": 50}``)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    type: LenientStr = Field(None, description="Event type")
    timestamp: Annotated[Optional[Timestamp], Lenient] = Field(
        None, description="Unix timestamp in milliseconds"
    )
    session_id: LenientStr = Field(None, description="Session identifier")
    user_id: LenientStr = Field(None, description="User identifier")
    url: LenientStr = None
    path: LenientStr = None
    referrer: LenientStr = None
    user_agent: LenientStr = None
    screen_resolution: LenientStr = None
    viewport: LenientStr = None
    data: Annotated[Optional[dict[str, Any]], Lenient] = Field(default_factory=dict)

    @property
    def timestamp_ms(self) -> Optional[Timestamp]:
        """The timestamp if it is a number, else None."""
        ts = self.timestamp
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            return None
        return ts

    @property
    def event_time(self) -> Optional[datetime]:
        """Convert timestamp to a UTC datetime."""
        if self.timestamp_ms is None:
            return None
        return datetime.fromtimestamp(self.timestamp_ms / 1000.0, tz=timezone.utc)

    @property
    def page(self) -> Optional[str]:
        """Page key used for page rankings: the path, falling back to the URL."""
        page = self.path or self.url
        if page is None or isinstance(page, str):
            return page
        return str(page)

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field from the ``data`` mapping; a non-object ``data`` reads as empty."""
        if not isinstance(self.data, dict):
            return default
        return self.data.get(key, default)

    def to_wire(self) -> dict:
        """Serialize to the JSON wire shape (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True, warnings=False)


def parse_events(payload: Any) -> list[Event]:
    """
    Normalize a decoded track payload into an ordered list of events.

    The payload is either a single event object or an array of event objects.
    The whole payload is checked before anything is returned, so a non-object
    element rejects the batch as a unit. Field values are never rejected.

    Args:
        payload: Decoded JSON body

    Returns:
        Events in payload order

    Raises:
        EventParseError: If the payload or any element is not a JSON object
    """
    items = payload if isinstance(payload, list) else [payload]

    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise EventParseError(
                f"Event at index {index} must be a JSON object, got {type(item).__name__}"
            )
    return [Event.model_validate(item) for item in items]


class Session(BaseModel):
    """
    A bounded interval of activity from one client.

    Created on the first event carrying an unseen ``session_id`` and mutated
    by every later event with that id. The owned event list is not bounded
    by the store's retention cap.

    Attributes:
        session_id: Session identifier (may be None for lenient events)
        user_id: User that opened the session
        first_seen: Earliest event timestamp seen for this session
        last_seen: Latest event timestamp seen for this session
        events: Events recorded for this session, in arrival order
        page_views: Number of pageview events
        clicks: Number of click events
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    session_id: LenientStr = None
    user_id: LenientStr = None
    first_seen: Optional[Timestamp] = None
    last_seen: Optional[Timestamp] = None
    events: list[Event] = Field(default_factory=list)
    page_views: int = 0
    clicks: int = 0

    @property
    def event_count(self) -> int:
        """Total number of events in session."""
        return len(self.events)

    @property
    def duration_ms(self) -> int:
        """Elapsed time between first and last event, in milliseconds."""
        if self.first_seen is None or self.last_seen is None:
            return 0
        return int(self.last_seen - self.first_seen)

    def to_wire(self) -> dict:
        """Serialize for the statistics report."""
        return self.model_dump(mode="json", by_alias=True, warnings=False)


class User(BaseModel):
    """
    A durable client identity spanning sessions.

    Attributes:
        user_id: User identifier (may be None for lenient events)
        first_seen: Earliest event timestamp seen for this user
        last_seen: Latest event timestamp seen for this user
        sessions: Distinct session ids, in first-seen order
        total_page_views: Cumulative pageview count
        total_clicks: Cumulative click count
    """

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    user_id: LenientStr = None
    first_seen: Optional[Timestamp] = None
    last_seen: Optional[Timestamp] = None
    sessions: list[LenientStr] = Field(default_factory=list)
    total_page_views: int = 0
    total_clicks: int = 0

    def add_session(self, session_id: Any) -> None:
        """Associate a session id with this user (set semantics)."""
        if session_id not in self.sessions:
            self.sessions.append(session_id)

    def to_wire(self) -> dict:
        """Serialize for the statistics report."""
        return self.model_dump(mode="json", by_alias=True, warnings=False)
