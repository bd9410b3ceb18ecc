# ==============================================================================
# Storage Abstract Base Class
# ==============================================================================
"""
Abstract interface for the client's persisted key-value state.

The tracker keeps two kinds of state:
- Session-scoped: session id and session start time, lost when the client
  process ends
- Durable: the user id, kept until something external clears it

Values are opaque strings. Implementations: in-memory, JSON file, Valkey.
"""

from abc import ABC, abstractmethod


class Storage(ABC):
    """
    Generic string key-value storage used by the identity resolver.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Get a stored value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key: Storage key
            value: String value to store
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Args:
            key: Storage key to delete

        Returns:
            True if key was deleted, False if not found
        """
        ...
