"""
Webhook Aggregator - per-key event debouncing and forwarding service.

Features:
- Debounced aggregation of bursts per key
- Per-key pause/resume
- Bounded audit history of received and sent events
- Structured logging with correlation IDs
- Prometheus metrics
- Health checks (liveness and readiness)
"""
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from .config import get_settings
from .logging import setup_logging, get_logger
from .api.router import router
from .middleware import (
    CorrelationIdMiddleware,
    ErrorHandlerMiddleware,
    MetricsMiddleware,
    ValidationMiddleware,
)
from .metrics import Metrics
from .health import HealthChecker
from .services.aggregation_service import get_aggregation_service, set_metrics

SERVICE_NAME = "webhook-aggregator"
VERSION = "0.1.0"

settings = get_settings()

setup_logging(json_output=settings.LOG_JSON, service_name=SERVICE_NAME)
logger = get_logger()

metrics = Metrics(service_name=SERVICE_NAME, version=VERSION)
health_checker = HealthChecker(service_name=SERVICE_NAME, version=VERSION)
set_metrics(metrics)

app = FastAPI(
    title="Webhook Aggregator",
    version=VERSION,
    description="Coalesces bursts of keyed webhooks into single aggregated deliveries",
)

# Last added runs first: correlation ID wraps everything else
app.add_middleware(ErrorHandlerMiddleware)
app.add_middleware(ValidationMiddleware, max_size=settings.MAX_EVENT_SIZE)
app.add_middleware(MetricsMiddleware, metrics=metrics)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(router)

metrics_app = make_asgi_app(registry=metrics.registry)
app.mount("/metrics", metrics_app)


@app.get("/health")
async def health():
    """Liveness probe. Returns 200 if the service is running."""
    logger.debug("health_check_liveness")
    return health_checker.liveness()


@app.get("/health/ready")
async def health_ready():
    """
    Readiness probe.

    Checks:
    - Store connectivity (memory or Redis)
    - Disk space availability
    - Memory availability

    Returns:
        200: Service is ready to handle traffic
        503: Service is not ready
    """
    logger.debug("health_check_readiness")
    result = await health_checker.readiness(get_aggregation_service())
    status_code = 200 if result["status"] == "ready" else 503
    return JSONResponse(result, status_code=status_code)


@app.on_event("startup")
async def startup_event():
    logger.info(
        "service_starting",
        version=VERSION,
        env=settings.ENV,
        store_adapter=settings.STORE_ADAPTER,
        window_seconds=settings.AGGREGATION_WINDOW_SECONDS,
    )


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel pending timers and release store and HTTP client resources."""
    logger.info("service_stopping")
    await get_aggregation_service().shutdown()
    metrics.app_up.labels(service=SERVICE_NAME, version=VERSION).set(0)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "webhook_aggregator.main:app",
        host="0.0.0.0",
        port=settings.SERVICE_PORT,
        reload=True,
    )
