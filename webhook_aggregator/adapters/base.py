"""Base adapter interface for key-value store backends."""
from abc import ABC, abstractmethod


class StoreAdapter(ABC):
    """Abstract interface for the durable key-value store.

    Values are opaque bytes; callers own the encoding. Implementations
    raise ``StoreUnavailableError`` when the backend cannot be reached.
    """

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """
        Read a value.

        Args:
            key: Record key

        Returns:
            Stored bytes, or None if absent
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        """
        Write a value, optionally expiring after ``ttl`` seconds.

        Args:
            key: Record key
            value: Encoded value
            ttl: Advisory time-to-live in seconds
        """
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """
        Delete records.

        Returns:
            Number of records actually removed
        """
        pass

    @abstractmethod
    async def pop(self, key: str) -> bytes | None:
        """Atomically read and delete a value."""
        pass

    @abstractmethod
    async def keys(self, prefix: str) -> list[str]:
        """List record keys starting with ``prefix``."""
        pass

    @abstractmethod
    async def list_append(self, key: str, value: bytes, max_len: int) -> None:
        """
        Append to a list record, keeping only the newest ``max_len`` items.

        Args:
            key: List key
            value: Encoded item
            max_len: Maximum retained length (oldest items evicted first)
        """
        pass

    @abstractmethod
    async def list_range(self, key: str) -> list[bytes]:
        """Return all items of a list record, oldest first."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the backend is healthy and accessible.

        Returns:
            True if backend is healthy, False otherwise
        """
        pass

    async def close(self) -> None:
        """Release backend resources."""
        return None
