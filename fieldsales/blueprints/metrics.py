"""
Prometheus metrics: HTTP traffic plus order lifecycle counters.

GET /metrics is unauthenticated; keep it on the internal network.
"""
import os
import time

from flask import Blueprint, Response, request, g
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess,
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share samples through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _collector_registry = None
else:
    registry = REGISTRY
    _collector_registry = registry

http_requests_total = Counter(
    'http_requests_total', 'Total HTTP requests',
    ['method', 'endpoint', 'http_status'], registry=_collector_registry,
)
http_request_duration_seconds = Histogram(
    'http_request_duration_seconds', 'HTTP request latency in seconds',
    ['method', 'endpoint'], registry=_collector_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)
http_requests_in_flight = Gauge(
    'http_requests_in_flight', 'Requests currently being served',
    registry=_collector_registry, multiprocess_mode='livesum',
)

orders_created_total = Counter(
    'orders_created_total', 'Orders created by executives',
    registry=_collector_registry,
)
order_status_transitions_total = Counter(
    'order_status_transitions_total', 'Orders moved to a new lifecycle status',
    ['status'], registry=_collector_registry,
)
public_submissions_total = Counter(
    'public_submissions_total', 'Share-link submissions by outcome',
    ['result'], registry=_collector_registry,
)


def record_status_transitions(orders):
    for order in orders:
        order_status_transitions_total.labels(status=order.status).inc()


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status code."""

    @app.before_request
    def _start_request_timer():
        g._metrics_started = time.time()
        http_requests_in_flight.inc()

    @app.after_request
    def _observe_request(response):
        started = g.pop('_metrics_started', None)
        if started is None:
            return response

        endpoint = request.endpoint or 'unknown'
        try:
            http_request_duration_seconds.labels(method=request.method, endpoint=endpoint) \
                .observe(time.time() - started)
            http_requests_total.labels(method=request.method, endpoint=endpoint,
                                       http_status=response.status_code).inc()
            http_requests_in_flight.dec()
        except ValueError as e:
            app.logger.warning(f"Failed to record metrics for {endpoint}: {e}")
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
