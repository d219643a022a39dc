"""Contracts the aggregation engine and the transfer composer depend on."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from logifin.domain.entities import (
    Account,
    ActivityEntry,
    BusinessAggregate,
    LedgerResponse,
    Parcel,
    TransferInstruction,
    TreasurySnapshot,
)
from logifin.domain.value_objects import DateRange

__all__ = [
    "BusinessRevenueSource",
    "ExpressRevenueSource",
    "TreasurySource",
    "ExchangeRateSource",
    "LedgerSink",
    "AccountDirectory",
]


class BusinessRevenueSource(Protocol):
    def get_aggregate(self, date_range: DateRange) -> BusinessAggregate:
        ...

    def recent_orders(self, limit: int) -> Sequence[ActivityEntry]:
        ...


class ExpressRevenueSource(Protocol):
    def list_parcels(self, date_range: DateRange) -> Sequence[Parcel]:
        ...

    def parcels_in_transit(self, limit: int) -> Sequence[ActivityEntry]:
        ...


class TreasurySource(Protocol):
    def get_summary(
        self, as_of: datetime | None = None, account_id: int | None = None
    ) -> TreasurySnapshot:
        ...

    def recent_transactions(self, limit: int) -> Sequence[ActivityEntry]:
        ...


class ExchangeRateSource(Protocol):
    def get_exchange_rate(self) -> Decimal:
        ...


class LedgerSink(Protocol):
    def submit_transfer(self, instruction: TransferInstruction) -> LedgerResponse:
        ...


class AccountDirectory(Protocol):
    def list_accounts(self) -> Sequence[Account]:
        ...
