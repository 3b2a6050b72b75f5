"""Aggregation service wiring with pluggable store adapters."""
from typing import Any, Dict
from ..adapters.base import StoreAdapter
from ..adapters.memory import InMemoryAdapter
from ..adapters.redis_store import RedisAdapter
from ..config import Settings, get_settings
from ..event_models import AdmissionResult, HistoryCategory, Status, utc_now_iso
from .aggregation import Aggregator, HistoryLog, KeyedTimer, QueueStore, StatusGate
from .dispatcher import Dispatcher, HttpDispatcher
import structlog

log = structlog.get_logger()


class AggregationService:
    """
    Builds the aggregation engine from configuration and exposes the
    operations used by the HTTP layer.

    The store adapter is selected by the STORE_ADAPTER setting.
    """

    def __init__(
        self,
        store: StoreAdapter | None = None,
        dispatcher: Dispatcher | None = None,
        settings: Settings | None = None,
        metrics=None,
    ):
        settings = settings or get_settings()
        self.store = store or _create_default_adapter(settings)
        self.dispatcher = dispatcher or HttpDispatcher(
            settings.DISPATCH_URL, timeout=settings.DISPATCH_TIMEOUT_SECONDS
        )
        self.queues = QueueStore(self.store, ttl_seconds=settings.QUEUE_TTL_SECONDS)
        self.statuses = StatusGate(self.store)
        self.history = HistoryLog(self.store, limit=settings.HISTORY_LIMIT)
        self.timer = KeyedTimer()
        self.aggregator = Aggregator(
            queues=self.queues,
            statuses=self.statuses,
            history=self.history,
            timer=self.timer,
            dispatcher=self.dispatcher,
            window=settings.AGGREGATION_WINDOW_SECONDS,
            dispatch_timeout=settings.DISPATCH_TIMEOUT_SECONDS,
            metrics=metrics,
        )

    async def admit(
        self, key: str, event: Dict[str, Any], control_status: str | None = None
    ) -> AdmissionResult:
        return await self.aggregator.admit(key, event, control_status)

    async def get_status(self, key: str) -> Status:
        return await self.statuses.get_status(key)

    async def history_snapshot(self) -> Dict[str, list]:
        """Both history categories plus the status of every known key."""
        now = utc_now_iso()
        statuses = await self.statuses.snapshot()
        return {
            "received": await self.history.list(HistoryCategory.RECEIVED),
            "sent": await self.history.list(HistoryCategory.SENT),
            "status": [
                {"key": key, "status": status.value, "timestamp": now}
                for key, status in statuses.items()
            ],
        }

    async def clear_all(self) -> None:
        """Drop all queues, statuses, history and pending timers."""
        cancelled = self.aggregator.reset()
        await self.history.clear_all()
        queues = await self.queues.clear_all()
        statuses = await self.statuses.clear_all()
        log.info(
            "aggregator.cleared",
            timers_cancelled=cancelled,
            queues_deleted=queues,
            statuses_deleted=statuses,
        )

    async def health_check(self) -> bool:
        return await self.store.health_check()

    async def shutdown(self) -> None:
        self.aggregator.reset()
        await self.timer.drain()
        await self.dispatcher.close()
        await self.store.close()


def _create_default_adapter(settings: Settings) -> StoreAdapter:
    """
    Create the default adapter based on configuration.

    Returns:
        StoreAdapter instance based on STORE_ADAPTER setting
    """
    if settings.STORE_ADAPTER == "redis":
        if not settings.REDIS_URL:
            log.warning(
                "adapter.fallback",
                requested="redis",
                actual="memory",
                reason="REDIS_URL not configured"
            )
            return InMemoryAdapter()

        log.info("adapter.selected", type="redis", url=str(settings.REDIS_URL))
        return RedisAdapter(str(settings.REDIS_URL))
    else:
        log.info("adapter.selected", type="memory")
        return InMemoryAdapter()


# Global aggregation service instance
_service: AggregationService | None = None


def get_aggregation_service() -> AggregationService:
    """Get the global aggregation service instance."""
    global _service
    if _service is None:
        _service = AggregationService()
    return _service


def set_metrics(metrics) -> None:
    """Attach Prometheus metrics to the global aggregator."""
    get_aggregation_service().aggregator.metrics = metrics
