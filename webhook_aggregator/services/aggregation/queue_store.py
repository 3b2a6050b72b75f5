"""Per-key buffered event queues."""
from typing import Any, Dict
import orjson
import structlog
from ...adapters.base import StoreAdapter
from ...event_models import QueueEntry

log = structlog.get_logger()

QUEUE_PREFIX = "queue:"


class QueueStore:
    """
    Persists one QueueEntry per key under ``queue:<key>``.

    ``append`` is the only creation path: a key with no entry gets a fresh
    epoch on its first event. Events keep insertion order.
    """

    def __init__(self, store: StoreAdapter, ttl_seconds: int | None = None):
        self._store = store
        self._ttl = ttl_seconds

    @staticmethod
    def _record_key(key: str) -> str:
        return f"{QUEUE_PREFIX}{key}"

    @staticmethod
    def _decode(raw: bytes | None) -> QueueEntry | None:
        if raw is None:
            return None
        return QueueEntry.model_validate(orjson.loads(raw))

    async def get(self, key: str) -> QueueEntry | None:
        return self._decode(await self._store.get(self._record_key(key)))

    async def append(self, key: str, event: Dict[str, Any]) -> QueueEntry:
        entry = await self.get(key)
        if entry is None:
            entry = QueueEntry(key=key)
            log.info("queue.created", key=key, epoch=entry.epoch)
        entry.events.append(event)
        await self._store.set(
            self._record_key(key),
            orjson.dumps(entry.model_dump()),
            ttl=self._ttl,
        )
        return entry

    async def drain(self, key: str) -> QueueEntry | None:
        """Read and delete the entry in one step."""
        return self._decode(await self._store.pop(self._record_key(key)))

    async def clear(self, key: str) -> None:
        await self._store.delete(self._record_key(key))

    async def clear_all(self) -> int:
        keys = await self._store.keys(QUEUE_PREFIX)
        if not keys:
            return 0
        return await self._store.delete(*keys)
