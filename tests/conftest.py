"""Shared fixtures for aggregation tests."""
import asyncio
import pytest
import pytest_asyncio
from webhook_aggregator.adapters.memory import InMemoryAdapter
from webhook_aggregator.config import Settings
from webhook_aggregator.event_models import DispatchOutcome
from webhook_aggregator.services.aggregation_service import AggregationService
from webhook_aggregator.services.dispatcher import Dispatcher

TEST_WINDOW = 0.05


class RecordingDispatcher(Dispatcher):
    """Dispatcher that records aggregates instead of sending them."""

    def __init__(self, outcome: DispatchOutcome | None = None, delay: float = 0.0):
        self.sent: list[dict] = []
        self.outcome = outcome or DispatchOutcome(success=True, status_code=200, body={"ok": True})
        self.delay = delay
        self.closed = False

    async def send(self, aggregate):
        if self.delay:
            await asyncio.sleep(self.delay)
        self.sent.append(aggregate)
        return self.outcome

    async def close(self):
        self.closed = True


async def settle(window: float = TEST_WINDOW, factor: float = 4):
    """Sleep long enough for armed timers to fire and flushes to finish."""
    await asyncio.sleep(window * factor)


@pytest.fixture
def test_settings():
    return Settings(
        AGGREGATION_WINDOW_SECONDS=TEST_WINDOW,
        DISPATCH_TIMEOUT_SECONDS=1.0,
        HISTORY_LIMIT=1000,
        STORE_ADAPTER="memory",
    )


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest_asyncio.fixture
async def service(test_settings, dispatcher):
    svc = AggregationService(store=InMemoryAdapter(), dispatcher=dispatcher, settings=test_settings)
    yield svc
    svc.aggregator.reset()
