# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no network or filesystem dependencies.

This module contains:
- Domain models (Event, EventType, Session, User)
- The in-memory AggregationStore
- The StatisticsReporter that computes rollups from store snapshots

All code here is framework-agnostic and easily unit-testable.
"""

from sitepulse.core.models import (
    Event,
    EventParseError,
    EventType,
    Session,
    User,
    parse_events,
)
from sitepulse.core.stats import StatisticsReporter, StatsReport
from sitepulse.core.store import AggregationStore, StoreSnapshot

__all__ = [
    "AggregationStore",
    "Event",
    "EventParseError",
    "EventType",
    "Session",
    "StatisticsReporter",
    "StatsReport",
    "StoreSnapshot",
    "User",
    "parse_events",
]
