"""Unit tests for the session, logging and tracing middleware chain."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import SpanKind
from starlette.requests import Request
from structlog.testing import capture_logs

import shared.middleware
from app.core.assets import MappingAssets
from app.core.config import FrontendSettings
from app.core.middleware import MIDDLEWARE_CHAIN, build_handler
from app.core.platform import build_profile
from app.core.session import (
    SHARED_SESSION_ID,
    CookieSettings,
    SessionIDMiddleware,
    session_id,
)
from app.server import FrontendServer
from app.services.registry import ServiceHandles
from shared.middleware import RequestLogMiddleware, TracingMiddleware

SESSION_COOKIE = "shop_session-id"


def session_cookies(response) -> list[str]:
    return [
        header
        for header in response.headers.get_list("set-cookie")
        if header.startswith(f"{SESSION_COOKIE}=")
    ]


def cookie_value(header: str) -> str:
    return header.split(";", 1)[0].split("=", 1)[1]


def echo_session_app(cookies: CookieSettings | None = None) -> FastAPI:
    """A bare app that reports the session id its handler observed."""
    app = FastAPI()

    @app.get("/whoami")
    async def whoami(request: Request) -> dict[str, str]:
        return {"session_id": session_id(request)}

    app.add_middleware(SessionIDMiddleware, cookies=cookies or CookieSettings())
    return app


class TestSessionIDMiddleware:
    """Tests for session cookie assignment."""

    def test_new_visitor_gets_exactly_one_cookie(self) -> None:
        client = TestClient(echo_session_app())

        response = client.get("/whoami")

        cookies = session_cookies(response)
        assert len(cookies) == 1
        assert "Max-Age=172800" in cookies[0]

    def test_handler_sees_minted_session_id(self) -> None:
        client = TestClient(echo_session_app())

        response = client.get("/whoami")

        assert response.json()["session_id"] == cookie_value(session_cookies(response)[0])

    def test_returning_visitor_gets_no_cookie(self) -> None:
        client = TestClient(echo_session_app())
        client.cookies.set(SESSION_COOKIE, "existing-session")

        response = client.get("/whoami")

        assert session_cookies(response) == []
        assert response.json()["session_id"] == "existing-session"

    def test_session_is_stable_across_requests(self) -> None:
        client = TestClient(echo_session_app())

        first = client.get("/whoami").json()["session_id"]
        second = client.get("/whoami")

        assert second.json()["session_id"] == first
        assert session_cookies(second) == []

    def test_distinct_visitors_get_distinct_ids(self) -> None:
        first = TestClient(echo_session_app()).get("/whoami").json()["session_id"]
        second = TestClient(echo_session_app()).get("/whoami").json()["session_id"]

        assert first != second

    def test_single_shared_session(self) -> None:
        client = TestClient(echo_session_app(CookieSettings(single_shared_session=True)))

        response = client.get("/whoami")

        assert response.json()["session_id"] == SHARED_SESSION_ID

    def test_custom_cookie_settings(self) -> None:
        cookies = CookieSettings(prefix="test_", max_age=60)
        client = TestClient(echo_session_app(cookies))

        response = client.get("/whoami")

        headers = [
            h for h in response.headers.get_list("set-cookie") if h.startswith("test_session-id=")
        ]
        assert len(headers) == 1
        assert "Max-Age=60" in headers[0]

    def test_cookie_names(self) -> None:
        cookies = CookieSettings()

        assert cookies.session_id == "shop_session-id"
        assert cookies.currency == "shop_currency"
        assert cookies.max_age == 172800


class TestMiddlewareChain:
    """Tests for the composition order of the chain."""

    def test_chain_is_session_then_logging_then_tracing(self) -> None:
        assert MIDDLEWARE_CHAIN == (
            SessionIDMiddleware,
            RequestLogMiddleware,
            TracingMiddleware,
        )

    def test_tracing_is_outermost_and_session_innermost(self) -> None:
        app = build_handler(FastAPI(), cookies=CookieSettings())

        # Starlette lists user middleware outermost first
        assert [m.cls for m in app.user_middleware] == [
            TracingMiddleware,
            RequestLogMiddleware,
            SessionIDMiddleware,
        ]

    def test_completion_log_carries_fresh_session_id(self, client: TestClient) -> None:
        with capture_logs() as logs:
            response = client.get("/robots.txt")

        minted = cookie_value(session_cookies(response)[0])
        complete = [entry for entry in logs if entry["event"] == "request_complete"]
        assert len(complete) == 1
        assert complete[0]["session_id"] == minted
        assert complete[0]["status"] == 200
        assert complete[0]["path"] == "/robots.txt"
        assert complete[0]["method"] == "GET"
        assert "duration_ms" in complete[0]

    def test_request_id_header_is_echoed(self, client: TestClient) -> None:
        response = client.get("/healthz", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_logging_failure_does_not_fail_request(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        class ExplodingLogger:
            def info(self, *args: object, **kwargs: object) -> None:
                raise RuntimeError("log sink unavailable")

        monkeypatch.setattr(shared.middleware, "logger", ExplodingLogger())

        response = client.get("/robots.txt")

        assert response.status_code == 200
        assert len(session_cookies(response)) == 1


class TestRequestLogMiddleware:
    """Tests for the request log layer on its own."""

    def test_unhandled_error_is_logged_as_failed(self) -> None:
        app = FastAPI()

        @app.get("/boom")
        async def boom() -> None:
            raise RuntimeError("handler crashed")

        app.add_middleware(RequestLogMiddleware)
        client = TestClient(app, raise_server_exceptions=False)

        with capture_logs() as logs:
            response = client.get("/boom")

        assert response.status_code == 500
        failed = [entry for entry in logs if entry["event"] == "request_failed"]
        assert len(failed) == 1
        assert failed[0]["method"] == "GET"
        assert failed[0]["path"] == "/boom"
        assert "handler crashed" in failed[0]["error"]
        assert "duration_ms" in failed[0]
        assert not [entry for entry in logs if entry["event"] == "request_complete"]


class TestTracingMiddleware:
    """Tests for the outermost request span."""

    @pytest.fixture
    def exporter(self) -> InMemorySpanExporter:
        return InMemorySpanExporter()

    @pytest.fixture
    def traced_client(
        self,
        exporter: InMemorySpanExporter,
        services: ServiceHandles,
        settings: FrontendSettings,
    ) -> TestClient:
        provider = TracerProvider()
        provider.add_span_processor(SimpleSpanProcessor(exporter))
        server = FrontendServer(
            services=services,
            platform=build_profile("local"),
            hostname="frontend-test",
            assets=MappingAssets({}),
            settings=settings,
            tracer_provider=provider,
        )
        return TestClient(server.app, follow_redirects=False)

    def test_one_server_span_per_request(
        self, traced_client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        traced_client.get("/robots.txt")

        spans = exporter.get_finished_spans()
        assert len(spans) == 1
        assert spans[0].name == "http"
        assert spans[0].kind == SpanKind.SERVER
        assert spans[0].attributes["http.status_code"] == 200
        assert spans[0].attributes["http.target"] == "/robots.txt"

    def test_health_probe_is_traced_too(
        self, traced_client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        traced_client.get("/healthz")

        assert [span.name for span in exporter.get_finished_spans()] == ["http"]

    def test_error_response_marks_span(
        self, traced_client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        response = traced_client.get("/product/NOPE")

        assert response.status_code == 500
        span = exporter.get_finished_spans()[0]
        assert not span.status.is_ok
