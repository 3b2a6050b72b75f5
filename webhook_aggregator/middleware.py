"""
Middleware for observability, validation and structured errors.
"""
import uuid
import time
import orjson
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
import structlog
from .errors import StoreUnavailableError


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add correlation IDs to all requests.

    - Extracts correlation ID from X-Correlation-ID header if present
    - Generates new UUID if not present
    - Binds correlation ID to structlog context
    - Adds correlation ID to response headers
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id") or str(uuid.uuid4())

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        request.state.correlation_id = correlation_id

        response = await call_next(request)
        response.headers["x-correlation-id"] = correlation_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Middleware to collect HTTP metrics for Prometheus.

    - Records request count by method, path, status
    - Records request duration histogram
    - Tracks active requests
    """

    def __init__(self, app, metrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint to avoid recursion
        if request.url.path.startswith("/metrics"):
            return await call_next(request)

        self.metrics.http_requests_active.inc()
        start_time = time.time()
        logger = structlog.get_logger()

        try:
            response = await call_next(request)
            duration = time.time() - start_time

            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
                status=response.status_code,
            ).inc()

            self.metrics.http_request_duration.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
            ).observe(duration)

            logger.info(
                "http_request",
                http_status=response.status_code,
                duration_ms=round(duration * 1000, 2),
            )
            return response

        except Exception as e:
            duration = time.time() - start_time
            self.metrics.http_requests_total.labels(
                service=self.metrics.service_name,
                method=request.method,
                path=request.url.path,
                status=500,
            ).inc()
            logger.error(
                "http_request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=round(duration * 1000, 2),
            )
            raise

        finally:
            self.metrics.http_requests_active.dec()


class ValidationMiddleware(BaseHTTPMiddleware):
    """Rejects oversized or malformed JSON bodies before they reach a route."""

    def __init__(self, app, max_size: int):
        super().__init__(app)
        self.max_size = max_size

    def _too_large(self, size: int) -> JSONResponse:
        structlog.get_logger().warning("payload.too_large", size=size, max_size=self.max_size)
        return JSONResponse(
            status_code=413,
            content={
                "error": "PayloadTooLarge",
                "message": f"Request payload exceeds maximum size of {self.max_size} bytes",
                "max_size": self.max_size,
                "received_size": size,
            },
        )

    async def dispatch(self, request: Request, call_next):
        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_size:
            return self._too_large(int(content_length))

        if request.headers.get("content-type", "").startswith("application/json"):
            body = await request.body()
            if len(body) > self.max_size:
                return self._too_large(len(body))
            if body:
                try:
                    orjson.loads(body)
                except orjson.JSONDecodeError as e:
                    structlog.get_logger().warning("invalid.json", error=str(e))
                    return JSONResponse(
                        status_code=400,
                        content={
                            "error": "InvalidJSON",
                            "message": "Request body is not valid JSON",
                            "detail": str(e),
                        },
                    )

        return await call_next(request)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Provides structured error responses for exceptions escaping routes."""

    async def dispatch(self, request: Request, call_next):
        log = structlog.get_logger()
        correlation_id = getattr(request.state, "correlation_id", None)
        try:
            return await call_next(request)
        except StoreUnavailableError as exc:
            log.error("store.unavailable", operation=exc.operation, error=exc.detail)
            return JSONResponse(
                status_code=503,
                content={
                    "error": "StoreUnavailable",
                    "message": "Backing store is unavailable",
                    "correlation_id": correlation_id,
                    "path": str(request.url.path),
                },
            )
        except Exception as exc:
            log.error(
                "unhandled.exception",
                error=str(exc),
                error_type=exc.__class__.__name__,
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "InternalServerError",
                    "message": "An unexpected error occurred",
                    "correlation_id": correlation_id,
                    "path": str(request.url.path),
                },
            )
