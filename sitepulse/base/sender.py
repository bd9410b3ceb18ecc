# ==============================================================================
# Batch Sender Abstract Base Class
# ==============================================================================
"""
Abstract interface for delivering event batches to the ingestion endpoint.

The batcher hands every flushed batch to a sender together with a delivery
mode. Senders never raise delivery failures back to the batcher: a failed
batch is logged and dropped.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Sequence

from sitepulse.core.models import Event


class DeliveryMode(str, Enum):
    """How a batch is delivered."""

    # Request issued in the background, failures logged. Normal batches.
    RELIABLE = "reliable"
    # Best-effort, unconfirmed delivery. Used only when the client is exiting.
    FIRE_AND_FORGET = "fire_and_forget"


class BatchSender(ABC):
    """Delivers batches of events."""

    @abstractmethod
    def send(self, batch: Sequence[Event], mode: DeliveryMode = DeliveryMode.RELIABLE) -> Any:
        """
        Deliver a batch without blocking the caller on the network.

        Args:
            batch: Events in queue order
            mode: Delivery mode

        Returns:
            Implementation-specific handle (e.g. a Future), or None
        """
        ...

    def close(self, wait: bool = True) -> None:
        """Release resources. Default is a no-op."""
