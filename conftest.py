"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from logifin.domain.entities import (
    Account,
    BusinessAggregate,
    ClientRevenue,
    LedgerResponse,
    Parcel,
    ProductQuantity,
    TreasurySnapshot,
)
from logifin.domain.errors import SourceUnavailable


def _logifin_env() -> dict[str, str]:
    return {key: value for key, value in os.environ.items() if key.startswith("LOGIFIN_")}


_BASE_ENV = _logifin_env()


@pytest.fixture(autouse=True)
def _reset_env_vars():
    """Keep LOGIFIN_* variables from leaking between tests."""

    try:
        yield
    finally:
        for key in list(_logifin_env()):
            if key not in _BASE_ENV:
                os.environ.pop(key, None)
        os.environ.update(_BASE_ENV)


class FakeBusinessSource:
    """Returns canned aggregates keyed by range start; ``fail_on`` starts raise."""

    def __init__(self, aggregate: BusinessAggregate | None = None, by_start=None, fail_on=(), orders=()) -> None:
        self.aggregate = aggregate or BusinessAggregate.empty()
        self.by_start = dict(by_start or {})
        self.fail_on = set(fail_on)
        self.orders = list(orders)
        self.calls = []
        self.feed_calls = []

    def get_aggregate(self, date_range):
        self.calls.append(date_range)
        if date_range.start in self.fail_on or "*" in self.fail_on:
            raise SourceUnavailable("business", "HTTP 503")
        return self.by_start.get(date_range.start, self.aggregate)

    def recent_orders(self, limit):
        self.feed_calls.append(limit)
        if "orders" in self.fail_on:
            raise SourceUnavailable("recent_orders", "HTTP 503")
        return self.orders[:limit]


class FakeExpressSource:
    def __init__(self, parcels=(), by_start=None, fail_on=(), in_transit=()) -> None:
        self.parcels = list(parcels)
        self.by_start = dict(by_start or {})
        self.fail_on = set(fail_on)
        self.in_transit = list(in_transit)
        self.calls = []
        self.feed_calls = []

    def list_parcels(self, date_range):
        self.calls.append(date_range)
        if date_range.start in self.fail_on or "*" in self.fail_on:
            raise SourceUnavailable("express", "timeout")
        return list(self.by_start.get(date_range.start, self.parcels))

    def parcels_in_transit(self, limit):
        self.feed_calls.append(limit)
        if "in_transit" in self.fail_on:
            raise SourceUnavailable("parcels_in_transit", "timeout")
        return self.in_transit[:limit]


class FakeTreasurySource:
    """Historical snapshots keyed by date; missing dates raise SourceUnavailable."""

    def __init__(self, current: TreasurySnapshot | None = None, history=None, fail_current=False,
                 transactions=()) -> None:
        self.current = current or TreasurySnapshot()
        self.history = dict(history or {})
        self.fail_current = fail_current
        self.transactions = list(transactions)
        self.calls = []
        self.feed_calls = []

    def get_summary(self, as_of=None, account_id=None):
        self.calls.append((as_of, account_id))
        if as_of is None:
            if self.fail_current:
                raise SourceUnavailable("treasury", "HTTP 500")
            return self.current
        try:
            return self.history[as_of.date()]
        except KeyError:
            raise SourceUnavailable("treasury", f"no snapshot for {as_of.date()}") from None

    def recent_transactions(self, limit):
        self.feed_calls.append(limit)
        return self.transactions[:limit]


class FakeRateSource:
    def __init__(self, rate=Decimal("63"), error: Exception | None = None) -> None:
        self.rate = rate
        self.error = error
        self.calls = 0

    def get_exchange_rate(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rate


class FakeLedger:
    def __init__(self, response: LedgerResponse | None = None, error: Exception | None = None) -> None:
        self.response = response or LedgerResponse(success=True, message="Transfert effectué")
        self.error = error
        self.submitted = []

    def submit_transfer(self, instruction):
        self.submitted.append(instruction)
        if self.error is not None:
            raise self.error
        return self.response


class FakeAccountDirectory:
    def __init__(self, accounts) -> None:
        self.accounts = list(accounts)

    def list_accounts(self):
        return list(self.accounts)


@pytest.fixture
def fakes() -> SimpleNamespace:
    """In-memory collaborators standing in for the REST adapters."""

    return SimpleNamespace(
        Business=FakeBusinessSource,
        Express=FakeExpressSource,
        Treasury=FakeTreasurySource,
        Rate=FakeRateSource,
        Ledger=FakeLedger,
        Accounts=FakeAccountDirectory,
    )


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 5, 15, 14, 30, 0)


@pytest.fixture
def cfa_account() -> Account:
    return Account(id=1, name="Orange Money Dakar", type="orange_money", currency="CFA",
                   current_balance=Decimal("630000"))


@pytest.fixture
def mad_account() -> Account:
    return Account(id=2, name="Banque Casablanca", type="bank", currency="MAD",
                   current_balance=Decimal("10000"))


@pytest.fixture
def second_cfa_account() -> Account:
    return Account(id=3, name="Caisse Dakar", type="cash", currency="CFA",
                   current_balance=Decimal("50000"))


@pytest.fixture
def sample_aggregate() -> BusinessAggregate:
    return BusinessAggregate(
        total_revenue=Decimal("1000000"),
        total_margin=Decimal("250000"),
        average_margin_rate=Decimal("25"),
        total_paid=Decimal("800000"),
        total_unpaid=Decimal("200000"),
        total_orders=42,
        top_clients=(
            ClientRevenue(client_id=7, name="Awa Diop", revenue=Decimal("300000")),
            ClientRevenue(client_id=3, name="Moussa Fall", revenue=Decimal("300000")),
            ClientRevenue(client_id=9, name="Fatou Sow", revenue=Decimal("100000")),
        ),
        top_products=(
            ProductQuantity(product_id=1, name="Riz", quantity=Decimal("20")),
            ProductQuantity(product_id=2, name="Huile", quantity=Decimal("35")),
        ),
    )


@pytest.fixture
def sample_parcels() -> list[Parcel]:
    return [
        Parcel(id=1, price_mad=Decimal("500"), weight_kg=Decimal("10"), total_paid=Decimal("500"),
               status="delivered", destination_country="Sénégal", destination_city="Dakar"),
        Parcel(id=2, price_mad=Decimal("300"), weight_kg=Decimal("6"), total_paid=Decimal("100"),
               status="in_transit", destination_country="Sénégal", destination_city="Dakar"),
        Parcel(id=3, price_mad=Decimal("200"), weight_kg=Decimal("4.5"), total_paid=Decimal("0"),
               status="ready_for_pickup", destination_country="Mali", destination_city="Bamako"),
    ]
