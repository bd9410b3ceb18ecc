# ==============================================================================
# Valkey Storage Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the Storage interface.

Lets several tracker processes on different hosts share one durable user
identity (e.g. a fleet of workers reporting as one installation).

Keys are namespaced with a configurable prefix. Values are plain strings.
"""

import logging

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from sitepulse.base import Storage
from sitepulse.utils.config import get_settings
from sitepulse.utils.retry import REDIS_RETRY_EXCEPTIONS, VALKEY_RETRIES

logger = logging.getLogger(__name__)


class ValkeyStorage(Storage):
    """
    Valkey/Redis implementation of the Storage interface.

    Configured with:
    - 10 second socket timeouts for fast failure detection
    - Automatic retries with exponential backoff for transient failures
    - Health check interval to keep connections alive
    """

    def __init__(
        self,
        url: str | None = None,
        key_prefix: str | None = None,
        socket_timeout: int = 10,
        retries: int | None = None,
        health_check_interval: int = 30,
    ):
        """
        Initialize Valkey storage.

        Args:
            url: Valkey/Redis connection URL. If None, uses settings.
            key_prefix: Prefix prepended to every key. If None, uses settings.
            socket_timeout: Socket timeout in seconds (default: 10)
            retries: Number of retries for transient failures (default: VALKEY_RETRIES)
            health_check_interval: Health check interval in seconds (default: 30)
        """
        if url is None or key_prefix is None:
            settings = get_settings()
            url = url if url is not None else settings.valkey.url
            key_prefix = key_prefix if key_prefix is not None else settings.valkey.key_prefix

        retry_count = retries if retries is not None else VALKEY_RETRIES
        retry_strategy = Retry(ExponentialBackoff(cap=32, base=1), retries=retry_count)

        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=retry_strategy,
            retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
            health_check_interval=health_check_interval,
        )
        self._url = url
        self._prefix = key_prefix

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> str | None:
        return self._client.get(self._key(key))

    def set(self, key: str, value: str) -> None:
        self._client.set(self._key(key), value)

    def delete(self, key: str) -> bool:
        return self._client.delete(self._key(key)) > 0

    def ping(self) -> bool:
        """
        Check if Valkey is reachable.

        Returns:
            True if ping succeeds, False otherwise
        """
        try:
            return bool(self._client.ping())
        except REDIS_RETRY_EXCEPTIONS as e:
            logger.debug("Valkey ping failed: %s", e)
            return False

    def close(self) -> None:
        """Close the connection."""
        self._client.close()
