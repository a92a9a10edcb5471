"""Frontend — storefront page handlers.

Handlers read the session id assigned by ``SessionIDMiddleware``, call the
downstream services they need and render a Jinja2 page. A failing downstream
call raises ``ServiceCallError``, which the application renders as the error
page.
"""

from __future__ import annotations

import asyncio
import random
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel, ValidationError
from starlette.requests import Request

from app.core.assets import AssetProvider, asset_response
from app.core.errors import FrontendError, InvalidFormError, ServiceCallError
from app.core.platform import PlatformProfile
from app.core.session import CookieSettings, session_id
from app.schemas.boutique import Ad, Address, CartItem, Money, PlaceOrderRequest, Product
from app.schemas.forms import AddToCartForm, CheckoutForm, SetCurrencyForm
from app.services import money
from app.services.registry import ServiceHandles

logger = structlog.get_logger()

ROBOTS_BODY = "User-agent: *\nDisallow: /"
MAX_RECOMMENDATIONS = 4


class StorefrontHandlers:
    def __init__(
        self,
        *,
        services: ServiceHandles,
        platform: PlatformProfile,
        hostname: str,
        cookies: CookieSettings,
        templates: Jinja2Templates,
        assets: AssetProvider,
        default_currency: str = "USD",
    ) -> None:
        self._services = services
        self._platform = platform
        self._hostname = hostname
        self._cookies = cookies
        self._templates = templates
        self._assets = assets
        self._default_currency = default_currency
        self._templates.env.filters["money"] = money.render

    # ── Pages ────────────────────────────────

    async def home(self, request: Request) -> Response:
        sid = session_id(request)
        currency = self._currency(request)
        currencies, products, cart = await asyncio.gather(
            self._services.currency.get_supported_currencies(),
            self._services.catalog.list_products(),
            self._services.cart.get_cart(sid),
        )
        prices = await asyncio.gather(
            *(self._convert(p.price_usd, currency) for p in products)
        )
        ad = await self._choose_ad([])

        return self._render(
            request,
            "home.html",
            currencies=currencies,
            cart_size=sum(item.quantity for item in cart),
            products=[{"item": p, "price": price} for p, price in zip(products, prices)],
            ad=ad,
        )

    async def product(self, request: Request) -> Response:
        product_id = request.path_params["id"]
        sid = session_id(request)
        currency = self._currency(request)
        logger.debug("serving product page", product_id=product_id, currency=currency)

        product, currencies, cart = await asyncio.gather(
            self._services.catalog.get_product(product_id),
            self._services.currency.get_supported_currencies(),
            self._services.cart.get_cart(sid),
        )
        price = await self._convert(product.price_usd, currency)
        recommendations = await self._recommendations(sid, [product_id])
        ad = await self._choose_ad(product.categories)

        return self._render(
            request,
            "product.html",
            product={"item": product, "price": price},
            currencies=currencies,
            cart_size=sum(item.quantity for item in cart),
            recommendations=recommendations,
            ad=ad,
        )

    async def cart_view(self, request: Request) -> Response:
        sid = session_id(request)
        currency = self._currency(request)
        currencies, cart = await asyncio.gather(
            self._services.currency.get_supported_currencies(),
            self._services.cart.get_cart(sid),
        )
        recommendations = await self._recommendations(
            sid, [item.product_id for item in cart]
        )
        quote = await self._services.shipping.get_quote(Address(), cart)
        shipping_cost = await self._convert(quote, currency)

        lines: list[dict[str, Any]] = []
        total = shipping_cost
        for item in cart:
            product = await self._services.catalog.get_product(item.product_id)
            price = await self._convert(product.price_usd, currency)
            line_total = money.multiply(price, item.quantity)
            lines.append({"item": product, "quantity": item.quantity, "price": line_total})
            total = money.add(total, line_total)

        year = datetime.now(timezone.utc).year
        return self._render(
            request,
            "cart.html",
            currencies=currencies,
            cart_size=sum(item.quantity for item in cart),
            items=lines,
            recommendations=recommendations,
            shipping_cost=shipping_cost,
            total_cost=total,
            expiration_years=[year + i for i in range(5)],
        )

    async def cart_add(self, request: Request) -> Response:
        sid = session_id(request)
        form = await self._parse_form(request, AddToCartForm)
        logger.debug("adding to cart", product_id=form.product_id, quantity=form.quantity)

        product = await self._services.catalog.get_product(form.product_id)
        await self._services.cart.add_item(
            sid, CartItem(product_id=product.id, quantity=form.quantity)
        )
        return RedirectResponse("/cart", status_code=302)

    async def cart_empty(self, request: Request) -> Response:
        await self._services.cart.empty_cart(session_id(request))
        return RedirectResponse("/", status_code=302)

    async def set_currency(self, request: Request) -> Response:
        form = await self._parse_form(request, SetCurrencyForm)
        response = RedirectResponse(request.headers.get("referer") or "/", status_code=302)
        response.set_cookie(
            self._cookies.currency,
            form.currency_code,
            max_age=self._cookies.max_age,
        )
        return response

    async def logout(self, request: Request) -> Response:
        logger.debug("logging out", session_id=session_id(request))
        response = RedirectResponse("/", status_code=302)
        for name in request.cookies:
            response.delete_cookie(name)
        return response

    async def cart_checkout(self, request: Request) -> Response:
        sid = session_id(request)
        currency = self._currency(request)
        form = await self._parse_form(request, CheckoutForm)

        order = await self._services.checkout.place_order(
            PlaceOrderRequest(
                user_id=sid,
                user_currency=currency,
                address=form.address(),
                email=form.email,
                credit_card=form.credit_card(),
            )
        )
        logger.info("order placed", order_id=order.order_id)

        recommendations = await self._recommendations(sid, [])
        items_cost = money.total(
            [money.multiply(line.cost, line.item.quantity) for line in order.items],
            order.shipping_cost.currency_code,
        )
        total_paid = money.add(order.shipping_cost, items_cost)

        currencies = await self._services.currency.get_supported_currencies()
        return self._render(
            request,
            "order.html",
            currencies=currencies,
            cart_size=0,
            order=order,
            total_paid=total_paid,
            recommendations=recommendations,
        )

    async def static(self, request: Request) -> Response:
        return asset_response(self._assets, request.path_params["asset_path"])

    async def robots(self, request: Request) -> Response:
        return PlainTextResponse(ROBOTS_BODY)

    async def render_error(self, request: Request, exc: Exception) -> Response:
        """Exception handler for ``FrontendError``: renders the error page."""
        status_code = exc.status_code if isinstance(exc, FrontendError) else 500
        logger.error("request error", error=str(exc), status=status_code)
        return self._render(
            request,
            "error.html",
            status_code,
            error=str(exc),
            show_currency=False,
            currencies=[],
            cart_size=0,
        )

    # ── Helpers ──────────────────────────────

    def _currency(self, request: Request) -> str:
        return request.cookies.get(self._cookies.currency) or self._default_currency

    async def _convert(self, amount: Money, currency: str) -> Money:
        if amount.currency_code == currency:
            return amount
        return await self._services.currency.convert(amount, currency)

    async def _recommendations(self, sid: str, product_ids: list[str]) -> list[Product]:
        ids = await self._services.recommendation.list_recommendations(sid, product_ids)
        ids = ids[:MAX_RECOMMENDATIONS]
        return list(
            await asyncio.gather(*(self._services.catalog.get_product(i) for i in ids))
        )

    async def _choose_ad(self, context_keys: list[str]) -> Ad | None:
        try:
            ads = await self._services.ad.get_ads(context_keys)
        except ServiceCallError as exc:
            logger.warning("failed to retrieve ads", error=str(exc))
            return None
        return random.choice(ads) if ads else None

    async def _parse_form(self, request: Request, schema: type[BaseModel]) -> Any:
        form = await request.form()
        try:
            return schema.model_validate(dict(form))
        except ValidationError as exc:
            fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
            raise InvalidFormError(f"invalid form fields: {fields}") from exc

    def _render(self, request: Request, template: str, status_code: int = 200, **context: Any) -> Response:
        context.setdefault("show_currency", True)
        context.setdefault("status_code", status_code)
        context.update(
            session_id=session_id(request),
            request_id=getattr(request.state, "request_id", ""),
            user_currency=self._currency(request),
            platform_css=self._platform.display_class,
            platform_name=self._platform.provider_name,
            hostname=self._hostname,
        )
        return self._templates.TemplateResponse(
            request, template, context, status_code=status_code
        )
