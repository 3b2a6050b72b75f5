"""In-memory key-value store adapter."""
import time
from typing import Callable
import structlog
from .base import StoreAdapter

log = structlog.get_logger()


class InMemoryAdapter(StoreAdapter):
    """In-memory implementation of the store adapter.

    State lives only as long as the process. TTLs are honoured lazily on
    read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._values: dict[str, bytes] = {}
        self._expires_at: dict[str, float] = {}
        self._lists: dict[str, list[bytes]] = {}

    def _expire(self, key: str) -> None:
        deadline = self._expires_at.get(key)
        if deadline is not None and deadline <= self._clock():
            self._values.pop(key, None)
            self._expires_at.pop(key, None)
            log.debug("store.expired", key=key, adapter="memory")

    async def get(self, key: str) -> bytes | None:
        self._expire(key)
        return self._values.get(key)

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        self._values[key] = value
        if ttl:
            self._expires_at[key] = self._clock() + ttl
        else:
            self._expires_at.pop(key, None)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            self._expires_at.pop(key, None)
            if self._values.pop(key, None) is not None:
                removed += 1
            if self._lists.pop(key, None) is not None:
                removed += 1
        return removed

    async def pop(self, key: str) -> bytes | None:
        self._expire(key)
        self._expires_at.pop(key, None)
        return self._values.pop(key, None)

    async def keys(self, prefix: str) -> list[str]:
        for key in list(self._values):
            self._expire(key)
        names = list(self._values) + list(self._lists)
        return [name for name in names if name.startswith(prefix)]

    async def list_append(self, key: str, value: bytes, max_len: int) -> None:
        items = self._lists.setdefault(key, [])
        items.append(value)
        if len(items) > max_len:
            del items[: len(items) - max_len]

    async def list_range(self, key: str) -> list[bytes]:
        return list(self._lists.get(key, []))

    async def health_check(self) -> bool:
        """In-memory adapter is always healthy."""
        return True
