"""
Prometheus metrics configuration for monitoring.
"""
import time

from fastapi import Request, Response
from kanban.core.config import settings
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

# Application info
app_info = Info('app_info', 'Application information')
app_info.info({
    'version': settings.app_version,
    'name': settings.app_name
})

# Request metrics
request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code']
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Active requests gauge
active_requests = Gauge(
    'http_requests_active',
    'Number of active HTTP requests'
)

# Board event metrics
board_events_published = Counter(
    'board_events_published_total',
    'Board events handed to the broadcast backend',
    ['event_type']
)

board_event_delivery_failures = Counter(
    'board_event_delivery_failures_total',
    'Board events that could not be delivered'
)

board_subscribers_active = Gauge(
    'board_subscribers_active',
    'Number of open board subscriptions'
)

# Ordering metrics
position_rewrites = Counter(
    'position_rewrites_total',
    'Sibling rows whose position changed during a reorder',
    ['entity']
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics."""

    async def dispatch(self, request: Request, call_next) -> Response:
        # Skip metrics collection for the metrics endpoint itself
        if request.url.path.endswith("/metrics"):
            return await call_next(request)

        active_requests.inc()
        start_time = time.time()
        endpoint = self._get_endpoint_name(request)

        try:
            response = await call_next(request)

            request_count.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=response.status_code
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=endpoint
            ).observe(time.time() - start_time)

            return response

        except Exception:
            request_count.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=500
            ).inc()
            request_duration.labels(
                method=request.method,
                endpoint=endpoint
            ).observe(time.time() - start_time)
            raise

        finally:
            active_requests.dec()

    def _get_endpoint_name(self, request: Request) -> str:
        """Get normalized endpoint name for metrics."""
        path = request.url.path

        if path.startswith("/api/v1/"):
            parts = path.split("/")
            # Replace IDs with placeholder
            normalized_parts = [
                "{id}" if i >= 4 and part and not part.isalpha() else part
                for i, part in enumerate(parts)
            ]
            return "/".join(normalized_parts)

        return path


def record_board_event(event_type: str) -> None:
    board_events_published.labels(event_type=event_type).inc()


def record_delivery_failure() -> None:
    board_event_delivery_failures.inc()


def record_position_rewrites(entity: str, count: int) -> None:
    """Record how many sibling rows a reorder touched."""
    if count > 0:
        position_rewrites.labels(entity=entity).inc(count)


def get_metrics() -> bytes:
    """Get Prometheus metrics in text format."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get Prometheus metrics content type."""
    return CONTENT_TYPE_LATEST
