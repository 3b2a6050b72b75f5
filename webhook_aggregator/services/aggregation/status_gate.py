"""Per-key online/paused switch."""
import structlog
from ...adapters.base import StoreAdapter
from ...event_models import Status

log = structlog.get_logger()

STATUS_PREFIX = "status:"


class StatusGate:
    """Stores ``status:<key>`` flags. Unseen keys default to online."""

    def __init__(self, store: StoreAdapter):
        self._store = store

    async def set_status(self, key: str, status: Status) -> Status:
        status = Status(status)
        await self._store.set(f"{STATUS_PREFIX}{key}", status.value.encode())
        log.info("status.updated", key=key, status=status.value)
        return status

    async def get_status(self, key: str) -> Status:
        raw = await self._store.get(f"{STATUS_PREFIX}{key}")
        if raw is None:
            return await self.set_status(key, Status.ONLINE)
        return Status(raw.decode())

    async def snapshot(self) -> dict[str, Status]:
        """Current status of every key seen so far."""
        result = {}
        for record_key in sorted(await self._store.keys(STATUS_PREFIX)):
            raw = await self._store.get(record_key)
            if raw is not None:
                result[record_key[len(STATUS_PREFIX):]] = Status(raw.decode())
        return result

    async def clear_all(self) -> int:
        keys = await self._store.keys(STATUS_PREFIX)
        if not keys:
            return 0
        return await self._store.delete(*keys)
