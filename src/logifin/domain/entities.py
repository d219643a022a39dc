"""Domain entities for accounts, revenue sources and transfers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Tuple

from .currency import CENT, convert_rounded
from .value_objects import CurrencyCode, ExchangeRate, Money

__all__ = [
    "Account",
    "ActivityEntry",
    "Parcel",
    "ClientRevenue",
    "ProductQuantity",
    "BusinessAggregate",
    "DestinationCount",
    "ExpressStats",
    "TreasurySnapshot",
    "LedgerResponse",
    "TransferInstruction",
    "PARCEL_IN_TRANSIT",
    "PARCEL_DELIVERED",
    "PARCEL_READY_FOR_PICKUP",
]

PARCEL_IN_TRANSIT = "in_transit"
PARCEL_DELIVERED = "delivered"
PARCEL_READY_FOR_PICKUP = "ready_for_pickup"


@dataclass(frozen=True)
class Account:
    id: int
    name: str
    type: str
    currency: CurrencyCode
    is_active: bool = True
    current_balance: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Account name cannot be empty")
        object.__setattr__(self, "name", self.name.strip())
        object.__setattr__(self, "currency", CurrencyCode.parse(self.currency))

    @property
    def balance(self) -> Money:
        return Money(self.current_balance, self.currency)


@dataclass(frozen=True)
class Parcel:
    """One Express parcel; prices and payments are in MAD."""

    id: int | None
    price_mad: Decimal
    weight_kg: Decimal
    total_paid: Decimal
    status: str
    destination_country: str | None = None
    destination_city: str | None = None

    @property
    def destination(self) -> str | None:
        if not self.destination_country:
            return None
        if self.destination_city:
            return f"{self.destination_country} - {self.destination_city}"
        return self.destination_country


@dataclass(frozen=True)
class ClientRevenue:
    client_id: int
    name: str
    revenue: Decimal


@dataclass(frozen=True)
class ProductQuantity:
    product_id: int
    name: str
    quantity: Decimal


@dataclass(frozen=True)
class BusinessAggregate:
    """Business order figures for one date range; amounts are in CFA."""

    total_revenue: Decimal = Decimal("0")
    total_margin: Decimal = Decimal("0")
    average_margin_rate: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_unpaid: Decimal = Decimal("0")
    total_orders: int = 0
    top_clients: Tuple[ClientRevenue, ...] = ()
    top_products: Tuple[ProductQuantity, ...] = ()

    currency = CurrencyCode.CFA

    @classmethod
    def empty(cls) -> "BusinessAggregate":
        return cls()


@dataclass(frozen=True)
class DestinationCount:
    name: str
    count: int


@dataclass(frozen=True)
class ExpressStats:
    """Figures derived from a parcel list; amounts are in MAD."""

    total_parcels: int = 0
    total_revenue: Decimal = Decimal("0")
    in_transit: int = 0
    delivered: int = 0
    ready_for_pickup: int = 0
    total_weight: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")
    total_debt: Decimal = Decimal("0")
    top_destinations: Tuple[DestinationCount, ...] = ()

    currency = CurrencyCode.MAD


@dataclass(frozen=True)
class TreasurySnapshot:
    total_balance_cfa: Decimal = Decimal("0")
    total_balance_mad: Decimal = Decimal("0")
    total_global_cfa: Decimal = Decimal("0")
    total_global_mad: Decimal = Decimal("0")
    as_of: datetime | None = None

    def balances(self) -> dict[CurrencyCode, Money]:
        return {
            CurrencyCode.CFA: Money(self.total_balance_cfa, CurrencyCode.CFA),
            CurrencyCode.MAD: Money(self.total_balance_mad, CurrencyCode.MAD),
        }


@dataclass(frozen=True)
class ActivityEntry:
    """One row of a dashboard activity feed: an order, a parcel or a ledger movement.

    ``label`` is the client name for orders and parcels and the account name
    for ledger movements; ``status`` holds the transaction type for the latter.
    """

    id: int | None
    reference: str | None
    label: str | None
    amount: Money
    status: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class LedgerResponse:
    success: bool
    message: str = ""
    transaction_ids: Tuple[int, ...] = field(default=())


@dataclass(frozen=True)
class TransferInstruction:
    source_account: Account
    destination_account: Account
    source_amount: Money
    destination_amount: Money
    rate: ExchangeRate
    description: str = ""

    def __post_init__(self) -> None:
        if self.source_account.id == self.destination_account.id:
            raise ValueError("source and destination accounts must differ")
        if self.source_amount.currency != self.source_account.currency:
            raise ValueError("source amount must be in the source account currency")
        if self.destination_amount.currency != self.destination_account.currency:
            raise ValueError("destination amount must be in the destination account currency")
        expected = convert_rounded(self.source_amount, self.destination_amount.currency, self.rate)
        if abs(expected.amount - self.destination_amount.amount) > CENT:
            raise ValueError(
                f"destination amount {self.destination_amount} does not match "
                f"converted source amount {expected}"
            )
