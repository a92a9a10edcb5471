"""
Pytest configuration and shared fixtures for the frontend tests.

Testing Standards:
- Downstream services are replaced by in-memory fakes implementing the
  service protocols; no network is touched.
- Async tests rely on pytest-asyncio (auto mode enabled in pyproject.toml).
- Unit tests go in tests/unit/
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.core.assets import MappingAssets
from app.core.config import FrontendSettings
from app.core.errors import ServiceCallError
from app.core.platform import build_profile
from app.schemas.boutique import (
    Ad,
    Address,
    CartItem,
    Money,
    OrderItem,
    OrderResult,
    PlaceOrderRequest,
    Product,
)
from app.server import FrontendServer
from app.services import money
from app.services.registry import SERVICE_KINDS, ServiceHandles

SUNGLASSES = Product(
    id="OLJCESPC7Z",
    name="Sunglasses",
    description="Add a modern touch to your outfits.",
    picture="/static/img/products/sunglasses.jpg",
    price_usd=Money(currency_code="USD", units=19, nanos=990_000_000),
    categories=["accessories"],
)
TANK_TOP = Product(
    id="66VCHSJNUP",
    name="Tank Top",
    description="Perfectly cropped cotton tank.",
    picture="/static/img/products/tank-top.jpg",
    price_usd=Money(currency_code="USD", units=18, nanos=990_000_000),
    categories=["clothing", "tops"],
)

ASSETS = {
    "a.txt": b"hello asset",
    "styles/site.css": b"body { color: red; }",
}


# ── Fake downstream services ─────────────────


class FakeCatalog:
    def __init__(self, products: list[Product] | None = None) -> None:
        self.products = {p.id: p for p in (products or [SUNGLASSES, TANK_TOP])}

    async def list_products(self) -> list[Product]:
        return list(self.products.values())

    async def get_product(self, product_id: str) -> Product:
        try:
            return self.products[product_id]
        except KeyError:
            raise ServiceCallError("productcatalog", f"no product with ID {product_id}") from None

    async def search_products(self, query: str) -> list[Product]:
        return [p for p in self.products.values() if query.lower() in p.name.lower()]


class FakeCurrency:
    """Converts USD to EUR at a rate of 2 for easy arithmetic."""

    async def get_supported_currencies(self) -> list[str]:
        return ["EUR", "USD"]

    async def convert(self, amount: Money, to_code: str) -> Money:
        doubled = money.multiply(amount, 2)
        return Money(currency_code=to_code, units=doubled.units, nanos=doubled.nanos)


class FakeCart:
    def __init__(self) -> None:
        self.carts: dict[str, list[CartItem]] = {}
        self.requested_users: list[str] = []

    async def add_item(self, user_id: str, item: CartItem) -> None:
        self.carts.setdefault(user_id, []).append(item)

    async def get_cart(self, user_id: str) -> list[CartItem]:
        self.requested_users.append(user_id)
        return list(self.carts.get(user_id, []))

    async def empty_cart(self, user_id: str) -> None:
        self.carts.pop(user_id, None)


class FakeRecommendation:
    def __init__(self, catalog: FakeCatalog) -> None:
        self._catalog = catalog

    async def list_recommendations(self, user_id: str, product_ids: list[str]) -> list[str]:
        return [pid for pid in self._catalog.products if pid not in product_ids]


class FakeCheckout:
    def __init__(self) -> None:
        self.orders: list[PlaceOrderRequest] = []

    async def place_order(self, request: PlaceOrderRequest) -> OrderResult:
        self.orders.append(request)
        return OrderResult(
            order_id="order-0001",
            shipping_tracking_id="TRACK-0001",
            shipping_cost=Money(currency_code="USD", units=8, nanos=990_000_000),
            shipping_address=request.address,
            items=[
                OrderItem(
                    item=CartItem(product_id=SUNGLASSES.id, quantity=2),
                    cost=SUNGLASSES.price_usd,
                )
            ],
        )


class FakeShipping:
    async def get_quote(self, address: Address, items: list[CartItem]) -> Money:
        return Money(currency_code="USD", units=8, nanos=990_000_000)

    async def ship_order(self, address: Address, items: list[CartItem]) -> str:
        return "TRACK-0001"


class FakeAd:
    def __init__(self) -> None:
        self.fail = False

    async def get_ads(self, context_keys: list[str]) -> list[Ad]:
        if self.fail:
            raise ServiceCallError("ad", "unavailable")
        return [Ad(redirect_url=f"/product/{SUNGLASSES.id}", text="Sunglasses for sale")]


class FakeLocator:
    """Service locator over fixed handles; ``failing`` makes one lookup raise."""

    def __init__(self, handles: ServiceHandles, failing: type | None = None) -> None:
        self._by_kind = {kind: getattr(handles, name) for name, kind in SERVICE_KINDS}
        self._failing = failing

    def get(self, kind: type) -> object:
        if kind is self._failing:
            raise LookupError(f"{kind.__name__} is not registered")
        return self._by_kind[kind]


# ── Fixtures ─────────────────────────────────


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def services(catalog: FakeCatalog) -> ServiceHandles:
    """Provide a full set of fake downstream services."""
    return ServiceHandles(
        catalog=catalog,
        currency=FakeCurrency(),
        cart=FakeCart(),
        recommendation=FakeRecommendation(catalog),
        checkout=FakeCheckout(),
        shipping=FakeShipping(),
        ad=FakeAd(),
    )


@pytest.fixture
def settings() -> FrontendSettings:
    """Settings with the metadata probe disabled."""
    return FrontendSettings(
        _env_file=None,
        env_platform="local",
        platform_probe_enabled=False,
    )


@pytest.fixture
def server(services: ServiceHandles, settings: FrontendSettings) -> FrontendServer:
    return FrontendServer(
        services=services,
        platform=build_profile("local"),
        hostname="frontend-test",
        assets=MappingAssets(ASSETS),
        settings=settings,
    )


@pytest.fixture
def client(server: FrontendServer) -> Iterator[TestClient]:
    """Test client that does not follow redirects."""
    with TestClient(server.app, follow_redirects=False) as test_client:
        yield test_client
