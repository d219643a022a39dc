from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pytest

from logifin.domain.errors import CurrencyMismatchError, InvalidRate
from logifin.domain.value_objects import (
    CurrencyCode,
    DateRange,
    ExchangeRate,
    Money,
    SourceResult,
    to_decimal,
)


def test_money_add_requires_matching_currency():
    cfa = Money(Decimal("100"), "CFA")
    mad = Money(Decimal("50"), "MAD")

    with pytest.raises(CurrencyMismatchError):
        _ = cfa + mad  # type: ignore[operator]


def test_money_arithmetic_keeps_currency():
    total = Money.of(100, "mad") + Money.of("25.50", "MAD") - Money.of(5, "MAD")

    assert total == Money(Decimal("120.50"), CurrencyCode.MAD)


def test_money_rejects_non_decimal_amount():
    with pytest.raises(TypeError):
        Money(100, "CFA")  # type: ignore[arg-type]


def test_currency_code_accepts_xof_alias():
    assert CurrencyCode.parse("xof") is CurrencyCode.CFA
    with pytest.raises(ValueError):
        CurrencyCode.parse("EUR")


@pytest.mark.parametrize("value", [0, "0", -1, Decimal("-63")])
def test_exchange_rate_must_be_positive(value):
    with pytest.raises(InvalidRate):
        ExchangeRate(value)


def test_exchange_rate_coerces_numbers_without_float_noise():
    assert ExchangeRate.coerce(63.1).rate == Decimal("63.1")
    assert ExchangeRate.coerce("63").rate == Decimal("63")


def test_to_decimal_defaults_blank_values_to_zero():
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("") == Decimal("0")
    with pytest.raises(ValueError):
        to_decimal("abc")


def test_date_range_rejects_invalid_order():
    with pytest.raises(ValueError):
        DateRange(start=datetime(2024, 1, 10), end=datetime(2024, 1, 1))


def test_date_range_renders_query_params():
    date_range = DateRange(start=datetime(2024, 7, 1), end=datetime(2024, 8, 15, 9, 30))

    assert date_range.to_params() == {
        "start_date": "2024-07-01T00:00:00",
        "end_date": "2024-08-15T09:30:00",
    }
    assert date_range.contains(datetime(2024, 8, 1))
    assert not date_range.contains(datetime(2024, 8, 16))


def test_source_result_failure_keeps_substitute_distinguishable():
    result = SourceResult.failure("express", "timeout", substitute=Decimal("0"))

    assert result.failed
    assert result.value == Decimal("0")
    assert result.error == "timeout"
    assert SourceResult.ok("express", Decimal("0")).failed is False


@pytest.mark.parametrize("value", ["NaN", "Infinity", "-Infinity", Decimal("NaN"), float("inf")])
def test_non_finite_numbers_are_rejected(value):
    with pytest.raises(ValueError):
        to_decimal(value)
    with pytest.raises(InvalidRate):
        ExchangeRate.coerce(value)
    with pytest.raises(ValueError):
        Money.of(value, "CFA")


def test_money_rejects_non_finite_decimal():
    with pytest.raises(ValueError):
        Money(Decimal("Infinity"), "MAD")
