# ==============================================================================
# Client Tracker Package
# ==============================================================================
"""
Client side of SitePulse: identity, batching and HTTP delivery of events.

Modules:
- identity.py: Session and user id resolution against persisted storage
- context.py: Environment fields stamped on each event
- batcher.py: Size/timer driven event queue
- transport.py: HTTP delivery of batches (reliable and fire-and-forget)
- tracker.py: High-level tracking API built from the above
"""

from sitepulse.client.batcher import EventBatcher
from sitepulse.client.context import ClientContext
from sitepulse.client.identity import IdentityResolver, generate_id
from sitepulse.client.scheduler import ThreadingScheduler
from sitepulse.client.tracker import SCROLL_MILESTONES, Tracker, scroll_percent
from sitepulse.client.transport import TransportSender, serialize_batch

__all__ = [
    "ClientContext",
    "EventBatcher",
    "IdentityResolver",
    "SCROLL_MILESTONES",
    "ThreadingScheduler",
    "Tracker",
    "TransportSender",
    "generate_id",
    "scroll_percent",
    "serialize_batch",
]
