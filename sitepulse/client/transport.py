# ==============================================================================
# Transport Sender
# ==============================================================================
"""
Delivers event batches to the ingestion endpoint over HTTP.

Two delivery modes (see DeliveryMode):

- RELIABLE: the POST runs on a single background worker, so batches arrive
  in flush order and ``send()`` returns immediately with a Future. A network
  error or non-2xx response is logged; the batch is neither retried nor
  re-queued (at-most-once delivery).
- FIRE_AND_FORGET: the POST runs on its own non-daemon thread with a short
  timeout. The caller never waits, the request is allowed to finish while
  the interpreter shuts down, and its outcome is only logged at DEBUG.
"""

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Sequence

import requests

from sitepulse.base import BatchSender, DeliveryMode
from sitepulse.core.models import Event

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}
DEFAULT_REQUEST_TIMEOUT = 10.0  # seconds
DEFAULT_BEACON_TIMEOUT = 2.0  # seconds


def serialize_batch(batch: Sequence[Event]) -> bytes:
    """Encode a batch as a JSON array of wire-format events."""
    return json.dumps([event.to_wire() for event in batch]).encode("utf-8")


class TransportSender(BatchSender):
    """
    HTTP implementation of BatchSender using requests.

    Args:
        endpoint: Ingestion endpoint URL (``.../api/track``)
        request_timeout: Timeout for RELIABLE requests, in seconds
        beacon_timeout: Timeout for FIRE_AND_FORGET requests, in seconds
        session: Optional requests.Session for RELIABLE requests
    """

    def __init__(
        self,
        endpoint: str,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        beacon_timeout: float = DEFAULT_BEACON_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.request_timeout = request_timeout
        self.beacon_timeout = beacon_timeout
        self._session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sitepulse-transport")
        self._closed = False

    def send(
        self, batch: Sequence[Event], mode: DeliveryMode = DeliveryMode.RELIABLE
    ) -> Future | threading.Thread | None:
        """
        Serialize and dispatch a batch without blocking on the network.

        Returns:
            Future[bool] for RELIABLE, the beacon Thread for FIRE_AND_FORGET,
            or None when nothing was sent
        """
        if not batch:
            return None

        payload = serialize_batch(batch)

        if mode == DeliveryMode.FIRE_AND_FORGET:
            thread = threading.Thread(
                target=self._beacon,
                args=(payload, len(batch)),
                name="sitepulse-beacon",
                daemon=False,
            )
            thread.start()
            return thread

        if self._closed:
            logger.warning("Transport closed, dropping batch of %d events", len(batch))
            return None
        return self._executor.submit(self._post, payload, len(batch))

    def _post(self, payload: bytes, count: int) -> bool:
        try:
            response = self._session.post(
                self.endpoint,
                data=payload,
                headers=JSON_HEADERS,
                timeout=self.request_timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error("Analytics tracking error: %d events not delivered: %s", count, e)
            return False

        logger.debug("Delivered batch of %d events to %s", count, self.endpoint)
        return True

    def _beacon(self, payload: bytes, count: int) -> None:
        try:
            requests.post(
                self.endpoint,
                data=payload,
                headers=JSON_HEADERS,
                timeout=self.beacon_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.debug("Beacon of %d events not confirmed: %s", count, e)

    def close(self, wait: bool = True) -> None:
        """
        Stop accepting RELIABLE batches and release the HTTP session.

        Args:
            wait: Wait for queued RELIABLE requests to finish first
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        self._session.close()
