"""Frontend — resolution of the seven downstream service handles.

``resolve_services`` asks a locator for each service in turn and aborts on
the first failure, so a ``ServiceHandles`` either holds all seven handles or
does not exist.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Protocol, TypeVar

import httpx
import structlog

from app.core.config import FrontendSettings
from app.core.errors import DependencyResolutionError
from app.services.clients import (
    AdClient,
    CartClient,
    CatalogClient,
    CheckoutClient,
    CurrencyClient,
    RecommendationClient,
    ShippingClient,
)
from app.services.protocols import (
    AdService,
    CartService,
    CatalogService,
    CheckoutService,
    CurrencyService,
    RecommendationService,
    ShippingService,
)

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceHandles:
    """One resolved handle per downstream service."""

    catalog: CatalogService
    currency: CurrencyService
    cart: CartService
    recommendation: RecommendationService
    checkout: CheckoutService
    shipping: ShippingService
    ad: AdService

    def __post_init__(self) -> None:
        for field in fields(self):
            if getattr(self, field.name) is None:
                raise DependencyResolutionError(field.name, "handle is None")


# Field name -> capability, in resolution order
SERVICE_KINDS: tuple[tuple[str, type], ...] = (
    ("catalog", CatalogService),
    ("currency", CurrencyService),
    ("cart", CartService),
    ("recommendation", RecommendationService),
    ("checkout", CheckoutService),
    ("shipping", ShippingService),
    ("ad", AdService),
)


class ServiceLocator(Protocol):
    """Produces a handle for a service capability, or raises."""

    def get(self, kind: type[T]) -> T: ...


def resolve_services(locator: ServiceLocator) -> ServiceHandles:
    """Resolve all seven handles through ``locator``.

    Raises:
        DependencyResolutionError: on the first service that cannot be
            resolved. Nothing is retried and no default is substituted.
    """
    resolved: dict[str, Any] = {}
    for name, kind in SERVICE_KINDS:
        try:
            handle = locator.get(kind)
        except DependencyResolutionError:
            logger.error("dependency_resolution_failed", service=name)
            raise
        except Exception as exc:
            logger.error("dependency_resolution_failed", service=name, error=repr(exc))
            raise DependencyResolutionError(name, repr(exc)) from exc
        if handle is None:
            logger.error("dependency_resolution_failed", service=name, error="no handle")
            raise DependencyResolutionError(name, "locator returned no handle")
        resolved[name] = handle

    logger.info("dependencies_resolved", services=[name for name, _ in SERVICE_KINDS])
    return ServiceHandles(**resolved)


class HttpServiceLocator:
    """Builds httpx-backed clients from the configured service URLs.

    All clients share one ``httpx.AsyncClient``; ``aclose`` releases it.
    """

    _CLIENTS: dict[type, tuple[str, type]] = {
        CatalogService: ("catalog_service_url", CatalogClient),
        CurrencyService: ("currency_service_url", CurrencyClient),
        CartService: ("cart_service_url", CartClient),
        RecommendationService: ("recommendation_service_url", RecommendationClient),
        CheckoutService: ("checkout_service_url", CheckoutClient),
        ShippingService: ("shipping_service_url", ShippingClient),
        AdService: ("ad_service_url", AdClient),
    }

    def __init__(
        self,
        settings: FrontendSettings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._http = http_client or httpx.AsyncClient(timeout=settings.downstream_timeout)

    def get(self, kind: type[T]) -> T:
        try:
            setting, client_class = self._CLIENTS[kind]
        except KeyError:
            raise DependencyResolutionError(getattr(kind, "__name__", str(kind)), "unknown service") from None

        base_url = getattr(self._settings, setting)
        if not base_url:
            raise DependencyResolutionError(kind.__name__, f"{setting} is not configured")
        return client_class(self._http, base_url)

    async def aclose(self) -> None:
        await self._http.aclose()
