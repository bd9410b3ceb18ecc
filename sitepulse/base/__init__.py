# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the seams between the tracker and its
collaborators.

These ABCs let the client run against real HTTP, files and Valkey in
production and against in-memory fakes in tests.
"""

from sitepulse.base.scheduler import ScheduledTask, Scheduler
from sitepulse.base.sender import BatchSender, DeliveryMode
from sitepulse.base.storage import Storage

__all__ = [
    "BatchSender",
    "DeliveryMode",
    "ScheduledTask",
    "Scheduler",
    "Storage",
]
