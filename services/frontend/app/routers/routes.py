"""Frontend — route table.

The table is fixed and built once at startup. Every route except the
liveness probe is instrumented under its label.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter
from fastapi.routing import APIRoute

from app.core.instrumentation import InstrumentedRoute
from app.routers.storefront import StorefrontHandlers
from shared.health import HEALTH_PATH, liveness

GET_HEAD = frozenset({"GET", "HEAD"})
GET = frozenset({"GET"})
POST = frozenset({"POST"})


@dataclass(frozen=True)
class RouteEntry:
    methods: frozenset[str]
    path: str
    endpoint: Callable[..., Any]
    label: str | None = None

    @property
    def instrumented(self) -> bool:
        return self.label is not None


def build_routes(handlers: StorefrontHandlers) -> list[RouteEntry]:
    return [
        RouteEntry(GET_HEAD, "/", handlers.home, "home"),
        RouteEntry(GET_HEAD, "/product/{id}", handlers.product, "product"),
        RouteEntry(GET_HEAD, "/cart", handlers.cart_view, "cart_view"),
        RouteEntry(POST, "/cart", handlers.cart_add, "cart_add"),
        RouteEntry(POST, "/cart/empty", handlers.cart_empty, "cart_empty"),
        RouteEntry(POST, "/setCurrency", handlers.set_currency, "setcurrency"),
        RouteEntry(GET, "/logout", handlers.logout, "logout"),
        RouteEntry(POST, "/cart/checkout", handlers.cart_checkout, "cart_checkout"),
        # Path parameter holds the name with the /static/ prefix stripped
        RouteEntry(GET, "/static/{asset_path:path}", handlers.static, "static"),
        RouteEntry(GET_HEAD, "/robots.txt", handlers.robots, "robots"),
        # No instrumentation of the liveness probe
        RouteEntry(GET, HEALTH_PATH, liveness),
    ]


def mount_routes(router: APIRouter, routes: Iterable[RouteEntry]) -> None:
    """Register ``routes`` on ``router`` in order."""
    for route in routes:
        router.add_api_route(
            route.path,
            route.endpoint,
            methods=sorted(route.methods),
            name=route.label,
            include_in_schema=False,
            route_class_override=InstrumentedRoute if route.instrumented else APIRoute,
        )
