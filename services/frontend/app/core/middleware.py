"""Frontend — request middleware chain.

Layers are listed innermost first. Starlette wraps the most recently added
middleware around the others, so installing them in list order yields:

    tracing( logging( session( router ) ) )

Session assignment runs inside logging so the completion log line carries a
freshly minted session id; tracing is outermost so the span covers the
whole request.
"""

from __future__ import annotations

from fastapi import FastAPI
from opentelemetry.trace import TracerProvider

from app.core.session import CookieSettings, SessionIDMiddleware
from shared.middleware import RequestLogMiddleware, TracingMiddleware

MIDDLEWARE_CHAIN = (SessionIDMiddleware, RequestLogMiddleware, TracingMiddleware)


def build_handler(
    app: FastAPI,
    *,
    cookies: CookieSettings,
    tracer_provider: TracerProvider | None = None,
) -> FastAPI:
    """Install ``MIDDLEWARE_CHAIN`` around ``app``'s router and return it."""
    options = {
        SessionIDMiddleware: {"cookies": cookies},
        RequestLogMiddleware: {},
        TracingMiddleware: {"tracer_provider": tracer_provider},
    }
    for layer in MIDDLEWARE_CHAIN:
        app.add_middleware(layer, **options[layer])
    return app
