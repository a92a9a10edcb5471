"""Pydantic schemas for storefront form submissions."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from app.schemas.boutique import Address, CreditCardInfo


class AddToCartForm(BaseModel):
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1, le=10)


class SetCurrencyForm(BaseModel):
    currency_code: str = Field(..., pattern=r"^[A-Z]{3}$")


class CheckoutForm(BaseModel):
    """Payload of the checkout form posted to ``/cart/checkout``."""

    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    street_address: str = Field(..., min_length=1, max_length=512)
    zip_code: int = Field(..., ge=0)
    city: str = Field(..., min_length=1, max_length=128)
    state: str = Field(..., min_length=1, max_length=128)
    country: str = Field(..., min_length=1, max_length=128)
    credit_card_number: str = Field(..., pattern=r"^[0-9 ]{12,23}$")
    credit_card_expiration_month: int = Field(..., ge=1, le=12)
    credit_card_expiration_year: int
    credit_card_cvv: int = Field(..., ge=0, le=9999)

    @field_validator("credit_card_expiration_year")
    @classmethod
    def _not_expired(cls, year: int) -> int:
        if year < datetime.now(timezone.utc).year:
            raise ValueError("credit card has expired")
        return year

    def address(self) -> Address:
        return Address(
            street_address=self.street_address,
            city=self.city,
            state=self.state,
            country=self.country,
            zip_code=self.zip_code,
        )

    def credit_card(self) -> CreditCardInfo:
        return CreditCardInfo(
            number=self.credit_card_number.replace(" ", ""),
            cvv=self.credit_card_cvv,
            expiration_year=self.credit_card_expiration_year,
            expiration_month=self.credit_card_expiration_month,
        )
