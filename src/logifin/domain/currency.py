"""Currency normalization between CFA and MAD.

Every cross-currency figure in the project goes through :func:`convert`:
dashboard totals, evolution series and transfer destination amounts. Rounding
happens exactly once, on the converted value, to two decimal places with
ROUND_HALF_UP.

Example:
    >>> convert(Money.of(6300, "CFA"), CurrencyCode.MAD, ExchangeRate(Decimal("63")))
    Money(amount=Decimal('100.00'), currency=<CurrencyCode.MAD: 'MAD'>)
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from .errors import UnsupportedCurrencyPair
from .value_objects import CurrencyCode, ExchangeRate, Money

if TYPE_CHECKING:
    from .entities import Account

__all__ = ["CENT", "convert", "convert_rounded", "round_money", "balance_in"]

CENT = Decimal("0.01")

RateLike = ExchangeRate | Decimal | int | float | str


def round_money(amount: Decimal) -> Decimal:
    """Quantize to cents with ROUND_HALF_UP.

    Raises ``ValueError`` for NaN, infinities and amounts too large to carry cents.
    """
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"cannot round {amount} to cents") from exc


def convert(amount: Money, to: CurrencyCode | str, rate: RateLike) -> Money:
    """Convert ``amount`` into ``to`` using ``rate`` (1 MAD = rate CFA).

    Raises:
        InvalidRate: if ``rate`` is zero or negative, even for a same-currency call.
        UnsupportedCurrencyPair: if no conversion exists between the currencies.
    """
    exchange_rate = ExchangeRate.coerce(rate)
    target = CurrencyCode.parse(to)

    if amount.currency == target:
        return amount

    if amount.currency == CurrencyCode.CFA and target == CurrencyCode.MAD:
        raw = amount.amount / exchange_rate.rate
    elif amount.currency == CurrencyCode.MAD and target == CurrencyCode.CFA:
        raw = amount.amount * exchange_rate.rate
    else:  # pragma: no cover - only reachable once a third currency is added
        raise UnsupportedCurrencyPair(f"No conversion from {amount.currency.value} to {target.value}")

    return Money(round_money(raw), target)


def balance_in(account: "Account", currency: CurrencyCode | str, rate: RateLike) -> Money:
    """Account balance expressed in ``currency`` (used for the alternative-currency column)."""

    return convert(account.balance, currency, rate)


def convert_rounded(amount: Money, to: CurrencyCode | str, rate: RateLike) -> Money:
    """Like :func:`convert`, but a same-currency result is also quantized to cents.

    Transfer destination amounts always carry two decimals, whichever
    currencies are involved.
    """
    converted = convert(amount, to, rate)
    if converted.currency == amount.currency:
        return Money(round_money(converted.amount), converted.currency)
    return converted
