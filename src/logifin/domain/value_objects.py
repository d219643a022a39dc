"""Core immutable value objects used across the Logifin domain layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Generic, TypeVar

from .errors import CurrencyMismatchError, InvalidRate

__all__ = [
    "CurrencyCode",
    "Money",
    "ExchangeRate",
    "DateRange",
    "Period",
    "BucketUnit",
    "Bucket",
    "SourceResult",
    "to_decimal",
]

T = TypeVar("T")


def to_decimal(value: object) -> Decimal:
    """Coerce API numbers (int, float, numeric strings) to Decimal without float noise.

    NaN and infinities are rejected with ``ValueError``.
    """

    if isinstance(value, Decimal):
        result = value
    elif value is None or value == "":
        return Decimal("0")
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return result


class CurrencyCode(str, Enum):
    """Currencies held by the treasury accounts."""

    CFA = "CFA"
    MAD = "MAD"

    @classmethod
    def parse(cls, value: "str | CurrencyCode") -> "CurrencyCode":
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().upper()
        # XOF is the ISO code the UI formats CFA amounts with.
        if normalized == "XOF":
            return cls.CFA
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown currency code: {value!r}") from None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value


@dataclass(frozen=True)
class Money:
    """Amount tagged with its currency."""

    amount: Decimal
    currency: CurrencyCode

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise TypeError("amount must be a Decimal instance")
        if not self.amount.is_finite():
            raise ValueError(f"amount must be finite, got {self.amount}")
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency))

    @classmethod
    def of(cls, amount: object, currency: "str | CurrencyCode") -> "Money":
        return cls(to_decimal(amount), CurrencyCode.parse(currency))

    @classmethod
    def zero(cls, currency: "str | CurrencyCode") -> "Money":
        return cls(Decimal("0"), CurrencyCode.parse(currency))

    def _ensure_same_currency(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError("Cannot operate on different currencies")

    def __add__(self, other: "Money") -> "Money":
        self._ensure_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: "Money") -> "Money":
        self._ensure_same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __str__(self) -> str:  # pragma: no cover - formatting helper
        return f"{self.amount} {self.currency.value}"


@dataclass(frozen=True)
class ExchangeRate:
    """Scalar rate defined as ``1 MAD = rate CFA``."""

    rate: Decimal

    def __post_init__(self) -> None:
        try:
            value = to_decimal(self.rate)
        except ValueError as exc:
            raise InvalidRate(str(exc)) from exc
        if value <= Decimal("0"):
            raise InvalidRate(f"exchange rate must be positive, got {value}")
        object.__setattr__(self, "rate", value)

    @classmethod
    def coerce(cls, value: "ExchangeRate | Decimal | int | float | str") -> "ExchangeRate":
        if isinstance(value, cls):
            return value
        return cls(value)


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("start must be on or before end")

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end

    def to_params(self) -> dict[str, str]:
        return {"start_date": self.start.isoformat(), "end_date": self.end.isoformat()}


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class BucketUnit(str, Enum):
    MONTH = "month"
    DAY = "day"


@dataclass(frozen=True)
class Bucket:
    label: str
    range: DateRange


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    """Outcome of one adapter call; a failed result carries a substituted value."""

    source: str
    value: T | None
    failed: bool = False
    error: str | None = None

    @classmethod
    def ok(cls, source: str, value: T) -> "SourceResult[T]":
        return cls(source=source, value=value)

    @classmethod
    def failure(cls, source: str, error: str, substitute: T | None = None) -> "SourceResult[T]":
        return cls(source=source, value=substitute, failed=True, error=error)

    def value_or(self, default: T) -> T:
        return default if self.value is None else self.value
