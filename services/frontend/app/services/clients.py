"""Frontend — REST/JSON clients for the downstream services.

Each client wraps a shared ``httpx.AsyncClient`` and a base URL. Transport
errors, non-2xx responses and replies that do not match the expected schema
surface as ``ServiceCallError``.
"""

from __future__ import annotations

import functools
from typing import Any

import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from app.core.errors import ServiceCallError
from app.schemas.boutique import (
    Ad,
    Address,
    CartItem,
    Money,
    OrderResult,
    PlaceOrderRequest,
    Product,
    ShipmentReceipt,
)

logger = structlog.get_logger()


@functools.lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter[Any]:
    return TypeAdapter(tp)


class _ServiceClient:
    service_name = "downstream"

    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body (None if empty)."""
        url = f"{self._base_url}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "downstream_call_failed",
                service=self.service_name,
                url=url,
                status=exc.response.status_code,
            )
            raise ServiceCallError(
                self.service_name, f"{method} {path} returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "downstream_call_failed",
                service=self.service_name,
                url=url,
                error=repr(exc),
            )
            raise ServiceCallError(self.service_name, f"{method} {path}: {exc!r}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ServiceCallError(self.service_name, f"{method} {path}: invalid JSON") from exc

    def _validate(self, tp: Any, data: Any) -> Any:
        """Validate a decoded reply against the type ``tp``."""
        try:
            return _adapter(tp).validate_python(data)
        except ValidationError as exc:
            logger.warning(
                "downstream_reply_invalid",
                service=self.service_name,
                errors=exc.error_count(),
            )
            raise ServiceCallError(
                self.service_name, f"unexpected reply: {exc.error_count()} validation errors"
            ) from exc


class CatalogClient(_ServiceClient):
    service_name = "productcatalog"

    async def list_products(self) -> list[Product]:
        data = await self._call("GET", "/products")
        return self._validate(list[Product], data or [])

    async def get_product(self, product_id: str) -> Product:
        data = await self._call("GET", f"/products/{product_id}")
        return self._validate(Product, data)

    async def search_products(self, query: str) -> list[Product]:
        data = await self._call("GET", "/products/search", params={"q": query})
        return self._validate(list[Product], data or [])


class CurrencyClient(_ServiceClient):
    service_name = "currency"

    async def get_supported_currencies(self) -> list[str]:
        data = await self._call("GET", "/currencies")
        return self._validate(list[str], data or [])

    async def convert(self, money: Money, to_code: str) -> Money:
        data = await self._call(
            "POST",
            "/convert",
            json={"from": money.model_dump(), "to_code": to_code},
        )
        return self._validate(Money, data)


class CartClient(_ServiceClient):
    service_name = "cart"

    async def add_item(self, user_id: str, item: CartItem) -> None:
        await self._call("POST", f"/carts/{user_id}/items", json=item.model_dump())

    async def get_cart(self, user_id: str) -> list[CartItem]:
        data = await self._call("GET", f"/carts/{user_id}")
        return self._validate(list[CartItem], data or [])

    async def empty_cart(self, user_id: str) -> None:
        await self._call("DELETE", f"/carts/{user_id}")


class RecommendationClient(_ServiceClient):
    service_name = "recommendation"

    async def list_recommendations(
        self, user_id: str, product_ids: list[str]
    ) -> list[str]:
        data = await self._call(
            "POST",
            "/recommendations",
            json={"user_id": user_id, "product_ids": product_ids},
        )
        return self._validate(list[str], data or [])


class CheckoutClient(_ServiceClient):
    service_name = "checkout"

    async def place_order(self, request: PlaceOrderRequest) -> OrderResult:
        data = await self._call("POST", "/orders", json=request.model_dump())
        return self._validate(OrderResult, data)


class ShippingClient(_ServiceClient):
    service_name = "shipping"

    async def get_quote(self, address: Address, items: list[CartItem]) -> Money:
        data = await self._call(
            "POST",
            "/quote",
            json={
                "address": address.model_dump(),
                "items": [i.model_dump() for i in items],
            },
        )
        return self._validate(Money, data)

    async def ship_order(self, address: Address, items: list[CartItem]) -> str:
        data = await self._call(
            "POST",
            "/ship",
            json={
                "address": address.model_dump(),
                "items": [i.model_dump() for i in items],
            },
        )
        return self._validate(ShipmentReceipt, data).tracking_id


class AdClient(_ServiceClient):
    service_name = "ad"

    async def get_ads(self, context_keys: list[str]) -> list[Ad]:
        data = await self._call("POST", "/ads", json={"context_keys": context_keys})
        return self._validate(list[Ad], data or [])
