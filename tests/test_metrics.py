"""Tests for Prometheus metrics."""
import pytest
from prometheus_client import CollectorRegistry
from conftest import settle
from webhook_aggregator.metrics import Metrics


def sample(metrics: Metrics, name: str, labels: dict | None = None) -> float | None:
    return metrics.registry.get_sample_value(name, labels or {})


def test_admission_counter():
    metrics = Metrics(registry=CollectorRegistry())

    metrics.record_admission("queued")
    metrics.record_admission("queued")
    metrics.record_admission("suppressed")

    assert sample(metrics, "aggregator_events_received_total", {"outcome": "queued"}) == 2
    assert sample(metrics, "aggregator_events_received_total", {"outcome": "suppressed"}) == 1


def test_flush_counter_and_duration():
    metrics = Metrics(registry=CollectorRegistry())

    metrics.record_flush(True, 0.2)
    metrics.record_flush(False, 0.1)

    assert sample(metrics, "aggregator_flushes_total", {"result": "success"}) == 1
    assert sample(metrics, "aggregator_flushes_total", {"result": "transport_error"}) == 1
    assert sample(metrics, "aggregator_dispatch_duration_seconds_count") == 2


@pytest.mark.asyncio
async def test_aggregator_reports_metrics(service):
    metrics = Metrics(registry=CollectorRegistry())
    service.aggregator.metrics = metrics

    await service.admit("k1", {"message": "a"})
    assert sample(metrics, "aggregator_pending_timers") == 1

    await service.admit("k2", {}, control_status="paused")
    await service.admit("k2", {"message": "b"})
    await settle()

    assert sample(metrics, "aggregator_events_received_total", {"outcome": "queued"}) == 1
    assert sample(metrics, "aggregator_events_received_total", {"outcome": "status_updated"}) == 1
    assert sample(metrics, "aggregator_events_received_total", {"outcome": "suppressed"}) == 1
    assert sample(metrics, "aggregator_flushes_total", {"result": "success"}) == 1
    assert sample(metrics, "aggregator_pending_timers") == 0
