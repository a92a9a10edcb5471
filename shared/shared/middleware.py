"""ASGI middleware for request logging and tracing.

``RequestLogMiddleware`` assigns a request id, binds it into the structlog
context and records one ``request_started`` / ``request_complete`` pair per
request. ``TracingMiddleware`` wraps the request in an OpenTelemetry server
span. Both are generic; service-specific layers (sessions) sit inside them.
"""

from __future__ import annotations

import time
import uuid
from typing import Any

import structlog
from opentelemetry import trace
from opentelemetry.propagate import extract
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

_REQUEST_HEADER = "X-Request-ID"

logger = structlog.get_logger()


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, latency and session for every request.

    The session id is read from ``request.state`` after the inner layers ran,
    so a freshly minted id is reported on the completion line. A failure of
    the logging backend never fails the request.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(_REQUEST_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        _safe_log(
            "request_started",
            method=request.method,
            path=request.url.path,
        )

        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception as exc:
            _safe_log(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
                session_id=getattr(request.state, "session_id", None),
                error=repr(exc),
            )
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 3)

        _safe_log(
            "request_complete",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=duration_ms,
            session_id=getattr(request.state, "session_id", None),
        )

        response.headers[_REQUEST_HEADER] = request_id
        return response


def _safe_log(event: str, **fields: Any) -> None:
    try:
        logger.info(event, **fields)
    except Exception:  # logging never fails a request
        pass


class TracingMiddleware(BaseHTTPMiddleware):
    """Opens one server span around the whole request."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        span_name: str = "http",
        tracer_provider: trace.TracerProvider | None = None,
    ) -> None:
        super().__init__(app)
        self._span_name = span_name
        self._tracer = trace.get_tracer(__name__, tracer_provider=tracer_provider)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        parent = extract(dict(request.headers))
        with self._tracer.start_as_current_span(
            self._span_name,
            context=parent,
            kind=SpanKind.SERVER,
            attributes={
                "http.method": request.method,
                "http.target": request.url.path,
            },
        ) as span:
            response = await call_next(request)
            span.set_attribute("http.status_code", response.status_code)
            if response.status_code >= 500:
                span.set_status(Status(StatusCode.ERROR))
        return response
