"""Bounded audit log of received events and dispatch attempts."""
import orjson
from ...adapters.base import StoreAdapter
from ...event_models import HistoryCategory, HistoryRecord

HISTORY_PREFIX = "history:"
DEFAULT_HISTORY_LIMIT = 1000


class HistoryLog:
    """
    Append-only log per category, capped at ``limit`` entries.

    Each category is trimmed independently; the oldest records go first.
    """

    def __init__(self, store: StoreAdapter, limit: int = DEFAULT_HISTORY_LIMIT):
        self._store = store
        self.limit = limit

    @staticmethod
    def _record_key(category: HistoryCategory) -> str:
        return f"{HISTORY_PREFIX}{HistoryCategory(category).value}"

    async def append(self, category: HistoryCategory, record: HistoryRecord) -> None:
        await self._store.list_append(
            self._record_key(category),
            orjson.dumps(record.model_dump(mode="json", exclude_none=True)),
            self.limit,
        )

    async def list(self, category: HistoryCategory) -> list[dict]:
        """Records of ``category``, oldest first."""
        return [orjson.loads(raw) for raw in await self._store.list_range(self._record_key(category))]

    async def clear(self, category: HistoryCategory) -> None:
        await self._store.delete(self._record_key(category))

    async def clear_all(self) -> None:
        for category in HistoryCategory:
            await self.clear(category)
