"""Arithmetic on ``Money`` values."""

from __future__ import annotations

from app.core.errors import FrontendError
from app.schemas.boutique import Money

NANOS_PER_UNIT = 1_000_000_000


class MismatchingCurrencyError(FrontendError, ValueError):
    """Raised when adding amounts in different currencies.

    Amounts only disagree when a downstream service returned an inconsistent
    currency, so the request ends on the error page.
    """


def _to_nanos(money: Money) -> int:
    return money.units * NANOS_PER_UNIT + money.nanos


def _from_nanos(total: int, currency_code: str) -> Money:
    # Truncate towards zero so units and nanos keep the same sign
    units = abs(total) // NANOS_PER_UNIT
    nanos = abs(total) % NANOS_PER_UNIT
    if total < 0:
        units, nanos = -units, -nanos
    return Money(currency_code=currency_code, units=units, nanos=nanos)


def zero(currency_code: str) -> Money:
    return Money(currency_code=currency_code)


def add(left: Money, right: Money) -> Money:
    """Return ``left + right``; both must share a currency."""
    if left.currency_code != right.currency_code:
        raise MismatchingCurrencyError(
            f"cannot add {left.currency_code} and {right.currency_code}"
        )
    return _from_nanos(_to_nanos(left) + _to_nanos(right), left.currency_code)


def multiply(money: Money, factor: int) -> Money:
    return _from_nanos(_to_nanos(money) * factor, money.currency_code)


def total(amounts: list[Money], currency_code: str) -> Money:
    result = zero(currency_code)
    for amount in amounts:
        result = add(result, amount)
    return result


def render(money: Money) -> str:
    """Format as ``"CODE units.cc"``, e.g. ``"USD 19.99"``."""
    cents = abs(money.nanos) // 10_000_000
    sign = "-" if money.units < 0 or money.nanos < 0 else ""
    return f"{money.currency_code} {sign}{abs(money.units)}.{cents:02d}"
