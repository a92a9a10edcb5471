"""Frontend — capabilities the storefront needs from each downstream service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from app.schemas.boutique import (
    Ad,
    Address,
    CartItem,
    Money,
    OrderResult,
    PlaceOrderRequest,
    Product,
)


@runtime_checkable
class CatalogService(Protocol):
    async def list_products(self) -> list[Product]: ...

    async def get_product(self, product_id: str) -> Product: ...

    async def search_products(self, query: str) -> list[Product]: ...


@runtime_checkable
class CurrencyService(Protocol):
    async def get_supported_currencies(self) -> list[str]: ...

    async def convert(self, money: Money, to_code: str) -> Money: ...


@runtime_checkable
class CartService(Protocol):
    async def add_item(self, user_id: str, item: CartItem) -> None: ...

    async def get_cart(self, user_id: str) -> list[CartItem]: ...

    async def empty_cart(self, user_id: str) -> None: ...


@runtime_checkable
class RecommendationService(Protocol):
    async def list_recommendations(
        self, user_id: str, product_ids: list[str]
    ) -> list[str]: ...


@runtime_checkable
class CheckoutService(Protocol):
    async def place_order(self, request: PlaceOrderRequest) -> OrderResult: ...


@runtime_checkable
class ShippingService(Protocol):
    async def get_quote(self, address: Address, items: list[CartItem]) -> Money: ...

    async def ship_order(self, address: Address, items: list[CartItem]) -> str: ...


@runtime_checkable
class AdService(Protocol):
    async def get_ads(self, context_keys: list[str]) -> list[Ad]: ...
