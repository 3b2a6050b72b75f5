"""Per-key debounce state machine: admission, flush and dispatch bookkeeping."""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict
import structlog
from .history_log import HistoryLog
from .keyed_timer import KeyedTimer
from .merge import merge_events
from .queue_store import QueueStore
from .status_gate import StatusGate
from ..dispatcher import Dispatcher
from ...errors import AdmissionValidationError, StoreUnavailableError
from ...event_models import (
    AdmissionResult,
    DispatchOutcome,
    HistoryCategory,
    HistoryRecord,
    Status,
)

log = structlog.get_logger()

# Extra time granted to a dispatcher on top of its own timeout
DISPATCH_GRACE_SECONDS = 1.0


class KeyedLocks:
    """
    Per-key asyncio locks that exist only while someone holds or awaits them.

    Waiters are served in arrival order. A key's lock is discarded when its
    last user leaves, so the map stays bounded by the keys in flight.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class Aggregator:
    """
    Coalesces bursts of events per key into single aggregates.

    A key moves Idle -> Buffering (entry stored, timer armed) -> Flushing
    (timer fired, entry drained, aggregate dispatched) -> Idle. Admission
    and the drain step share one per-key lock. Whole flushes of a key are
    serialized by a second lock held from drain until the ``sent`` record
    is written. Admissions never wait on dispatch: an event arriving
    mid-dispatch opens a new epoch whose flush queues behind the current
    one, so aggregates of one key leave in order.

    Pausing a key only blocks new admissions. A cycle whose timer is
    already armed still flushes.
    """

    def __init__(
        self,
        queues: QueueStore,
        statuses: StatusGate,
        history: HistoryLog,
        timer: KeyedTimer,
        dispatcher: Dispatcher,
        window: float,
        dispatch_timeout: float | None = None,
        metrics=None,
    ):
        self.queues = queues
        self.statuses = statuses
        self.history = history
        self.timer = timer
        self.dispatcher = dispatcher
        self.window = window
        self.dispatch_timeout = dispatch_timeout
        self.metrics = metrics
        self._admission_locks = KeyedLocks()
        self._flush_locks = KeyedLocks()

    async def admit(
        self,
        key: str,
        event: Dict[str, Any],
        control_status: str | Status | None = None,
    ) -> AdmissionResult:
        """
        Admit one inbound event for ``key``.

        Args:
            key: Aggregation stream identifier
            event: Event fields (schema-less)
            control_status: ``online``/``paused`` turns the call into a
                status change that never enqueues anything

        Returns:
            AdmissionResult describing what happened

        Raises:
            AdmissionValidationError: If key is missing
            StoreUnavailableError: If the store fails
        """
        if not key:
            raise AdmissionValidationError("key is required")

        if control_status in (Status.ONLINE, Status.PAUSED):
            status = await self.statuses.set_status(key, Status(control_status))
            self._count("status_updated")
            return AdmissionResult(state="status_updated", key=key, status=status)

        async with self._admission_locks.hold(key):
            if await self.statuses.get_status(key) == Status.PAUSED:
                log.info("aggregator.suppressed", key=key)
                self._count("suppressed")
                return AdmissionResult(state="suppressed", key=key, status=Status.PAUSED)

            entry = await self.queues.append(key, event)
            try:
                await self.history.append(
                    HistoryCategory.RECEIVED,
                    HistoryRecord(
                        category=HistoryCategory.RECEIVED,
                        data={**event, "key": key, "epoch": entry.epoch},
                    ),
                )
            finally:
                # A stored entry always has a timer that will flush it
                self.timer.arm(key, self.window, self.flush)

        log.info("aggregator.queued", key=key, epoch=entry.epoch, buffered=len(entry.events))
        self._count("queued")
        self._track_timers()
        return AdmissionResult(state="queued", key=key, epoch=entry.epoch)

    async def flush(self, key: str) -> DispatchOutcome | None:
        """
        Drain, merge and dispatch the buffered events of ``key``.

        Runs once per timer firing. Returns None when there was nothing to
        send or the store failed.
        """
        self._track_timers()
        async with self._flush_locks.hold(key):
            try:
                async with self._admission_locks.hold(key):
                    entry = await self.queues.drain(key)
                if entry is None or not entry.events:
                    log.debug("aggregator.flush_skipped", key=key)
                    return None

                aggregate = merge_events(entry)
                started = time.perf_counter()
                outcome = await self._send(aggregate)
                duration = time.perf_counter() - started

                await self.history.append(
                    HistoryCategory.SENT,
                    HistoryRecord(category=HistoryCategory.SENT, data=aggregate, outcome=outcome),
                )
            except StoreUnavailableError as e:
                log.error("aggregator.flush_failed", key=key, error=str(e))
                await self._clear_quietly(key)
                return None

        log.info(
            "aggregator.flushed",
            key=key,
            epoch=entry.epoch,
            merged=len(entry.events),
            success=outcome.success,
            http_status=outcome.status_code,
        )
        if self.metrics is not None:
            self.metrics.record_flush(outcome.success, duration)
        return outcome

    async def _send(self, aggregate: Dict[str, Any]) -> DispatchOutcome:
        timeout = None
        if self.dispatch_timeout is not None:
            timeout = self.dispatch_timeout + DISPATCH_GRACE_SECONDS
        try:
            return await asyncio.wait_for(self.dispatcher.send(aggregate), timeout=timeout)
        except asyncio.TimeoutError:
            log.warning("dispatch.deadline_exceeded", key=aggregate.get("key"))
            return DispatchOutcome(success=False, error_detail="Dispatch deadline exceeded")
        except Exception as e:
            # The sent record is written whatever the dispatcher does
            log.error("dispatch.failed", key=aggregate.get("key"), error=str(e), exc_info=True)
            return DispatchOutcome(success=False, error_detail=f"{type(e).__name__}: {e}")

    async def _clear_quietly(self, key: str) -> None:
        try:
            await self.queues.clear(key)
        except StoreUnavailableError as e:
            log.error("aggregator.cleanup_failed", key=key, error=str(e))

    def reset(self) -> int:
        """Cancel every pending timer."""
        cancelled = self.timer.cancel_all()
        self._track_timers()
        return cancelled

    def _count(self, outcome: str) -> None:
        if self.metrics is not None:
            self.metrics.record_admission(outcome)

    def _track_timers(self) -> None:
        if self.metrics is not None:
            self.metrics.set_pending_timers(len(self.timer))
