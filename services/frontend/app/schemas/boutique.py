"""Pydantic schemas for payloads exchanged with downstream services."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Money(BaseModel):
    """An amount in a currency: whole ``units`` plus ``nanos`` (10^-9 units).

    ``units`` and ``nanos`` always carry the same sign.
    """

    currency_code: str = Field(..., min_length=3, max_length=3)
    units: int = 0
    nanos: int = Field(0, gt=-1_000_000_000, lt=1_000_000_000)

    model_config = {"frozen": True}


class Product(BaseModel):
    id: str
    name: str
    description: str = ""
    picture: str = ""
    price_usd: Money
    categories: list[str] = Field(default_factory=list)


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)


class Address(BaseModel):
    street_address: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    zip_code: int = 0


class CreditCardInfo(BaseModel):
    number: str
    cvv: int
    expiration_year: int
    expiration_month: int


class OrderItem(BaseModel):
    item: CartItem
    cost: Money


class OrderResult(BaseModel):
    order_id: str
    shipping_tracking_id: str
    shipping_cost: Money
    shipping_address: Address
    items: list[OrderItem] = Field(default_factory=list)


class ShipmentReceipt(BaseModel):
    tracking_id: str


class Ad(BaseModel):
    redirect_url: str
    text: str


class PlaceOrderRequest(BaseModel):
    user_id: str
    user_currency: str
    address: Address
    email: str
    credit_card: CreditCardInfo
