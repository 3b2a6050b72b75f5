"""Debounce timers, one per key, on the asyncio event loop."""
import asyncio
from typing import Awaitable, Callable, Dict
import structlog

log = structlog.get_logger()

TimerCallback = Callable[[str], Awaitable[None]]


class KeyedTimer:
    """
    Owns at most one pending callback per key.

    Re-arming a key cancels its pending callback and restarts the wait, so
    a burst of arms produces a single firing timed from the last one. Once
    a handle starts firing it is detached from the map: a later ``arm``
    schedules a fresh handle instead of cancelling the running callback.
    """

    def __init__(self):
        self._handles: Dict[str, asyncio.Task] = {}
        self._firing: set[asyncio.Task] = set()

    def arm(self, key: str, window: float, callback: TimerCallback) -> None:
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(
            self._run(key, window, callback), name=f"debounce:{key}"
        )
        self._handles[key] = task

    def cancel(self, key: str) -> bool:
        task = self._handles.pop(key, None)
        if task is None:
            return False
        task.cancel()
        return True

    def cancel_all(self) -> int:
        keys = list(self._handles)
        for key in keys:
            self.cancel(key)
        return len(keys)

    def pending(self, key: str) -> bool:
        return key in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    async def _run(self, key: str, window: float, callback: TimerCallback) -> None:
        await asyncio.sleep(window)
        task = asyncio.current_task()
        # Past this point the handle is consumed and can no longer be cancelled by arm().
        if self._handles.get(key) is task:
            del self._handles[key]
        self._firing.add(task)
        try:
            await callback(key)
        except Exception as e:
            log.error("timer.callback_failed", key=key, error=str(e), exc_info=True)
        finally:
            self._firing.discard(task)

    async def drain(self) -> None:
        """Wait for callbacks that are already firing."""
        if self._firing:
            await asyncio.gather(*self._firing, return_exceptions=True)
