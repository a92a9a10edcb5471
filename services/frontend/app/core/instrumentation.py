"""Frontend — per-route HTTP metrics.

Routes registered with ``InstrumentedRoute`` record request count, error
count and latency under their route name (the instrumentation label).
Metrics live in a private ``CollectorRegistry`` so several apps, and tests,
never collide on metric names.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi.routing import APIRoute
from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server
from starlette.requests import Request
from starlette.responses import Response

# Request latency buckets, 5ms to 10s
DEFAULT_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class HandlerMetrics:
    """Prometheus metrics keyed by instrumentation label."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.requests_total = Counter(
            name="frontend_http_requests_total",
            documentation="HTTP requests handled, by route label",
            labelnames=["label", "method", "status"],
            registry=self.registry,
        )
        self.errors_total = Counter(
            name="frontend_http_errors_total",
            documentation="HTTP requests that failed with a 5xx or an exception",
            labelnames=["label"],
            registry=self.registry,
        )
        self.request_duration_seconds = Histogram(
            name="frontend_http_request_duration_seconds",
            documentation="HTTP request latency in seconds, by route label",
            labelnames=["label"],
            buckets=DEFAULT_LATENCY_BUCKETS,
            registry=self.registry,
        )

    def observe(self, label: str, method: str, status: int, duration: float) -> None:
        self.requests_total.labels(label=label, method=method, status=str(status)).inc()
        self.request_duration_seconds.labels(label=label).observe(duration)
        if status >= 500:
            self.errors_total.labels(label=label).inc()

    def request_count(self, label: str | None = None) -> float:
        """Requests recorded for ``label``, or across all labels."""
        total = 0.0
        for metric in self.requests_total.collect():
            for sample in metric.samples:
                if not sample.name.endswith("_total"):
                    continue
                if label is None or sample.labels.get("label") == label:
                    total += sample.value
        return total

    def error_count(self, label: str) -> float:
        value = self.registry.get_sample_value(
            "frontend_http_errors_total", {"label": label}
        )
        return value or 0.0

    def serve(self, port: int) -> None:
        """Expose the metrics on ``port`` from a background thread."""
        start_http_server(port, registry=self.registry)


class InstrumentedRoute(APIRoute):
    """An ``APIRoute`` whose handler reports to ``app.state.metrics``.

    The route ``name`` is used as the instrumentation label.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()
        label = self.name

        async def instrumented_handler(request: Request) -> Response:
            metrics: HandlerMetrics | None = getattr(request.app.state, "metrics", None)
            if metrics is None:
                return await handler(request)

            start = time.perf_counter()
            try:
                response = await handler(request)
            except Exception as exc:
                status = getattr(exc, "status_code", 500)
                metrics.observe(label, request.method, status, time.perf_counter() - start)
                raise
            metrics.observe(
                label, request.method, response.status_code, time.perf_counter() - start
            )
            return response

        return instrumented_handler
