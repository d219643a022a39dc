"""Utility helpers for converting REST payloads to domain objects and back."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Mapping

from .entities import (
    Account,
    ActivityEntry,
    BusinessAggregate,
    ClientRevenue,
    LedgerResponse,
    Parcel,
    ProductQuantity,
    TransferInstruction,
    TreasurySnapshot,
)
from .value_objects import Money, to_decimal

__all__ = [
    "dict_to_account",
    "dict_to_order_entry",
    "dict_to_parcel_entry",
    "dict_to_transaction_entry",
    "dict_to_parcel",
    "dict_to_business_aggregate",
    "dict_to_treasury_snapshot",
    "dict_to_ledger_response",
    "transfer_instruction_to_dict",
    "extract_records",
]


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def extract_records(data: Any) -> list[Mapping[str, Any]]:
    """Return the record list from a plain or paginated (``{"data": [...]}``) payload."""

    if isinstance(data, Mapping):
        data = data.get("data", [])
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, Mapping)]


def dict_to_account(payload: Mapping[str, Any]) -> Account:
    return Account(
        id=int(payload["id"]),
        name=str(payload.get("name") or f"#{payload['id']}"),
        type=str(payload.get("type") or "orange_money"),
        currency=str(payload.get("currency") or "CFA"),
        is_active=bool(payload.get("is_active", True)),
        current_balance=to_decimal(payload.get("current_balance")),
    )


def dict_to_parcel(payload: Mapping[str, Any]) -> Parcel:
    trip = payload.get("trip") or {}
    return Parcel(
        id=payload.get("id"),
        price_mad=to_decimal(payload.get("price_mad")),
        weight_kg=to_decimal(payload.get("weight_kg")),
        total_paid=to_decimal(payload.get("total_paid")),
        status=str(payload.get("status") or ""),
        destination_country=trip.get("destination_country") or payload.get("trip_destination"),
        destination_city=trip.get("destination_city"),
    )


def _person_name(payload: Any) -> str | None:
    if not isinstance(payload, Mapping):
        return None
    name = f"{payload.get('first_name') or ''} {payload.get('last_name') or ''}".strip()
    return name or None


def _optional_id(payload: Mapping[str, Any]) -> int | None:
    return int(payload["id"]) if payload.get("id") is not None else None


def dict_to_order_entry(payload: Mapping[str, Any]) -> ActivityEntry:
    return ActivityEntry(
        id=_optional_id(payload),
        reference=payload.get("reference"),
        label=_person_name(payload.get("client")),
        amount=Money.of(payload.get("total_amount"), payload.get("currency") or "CFA"),
        status=payload.get("status"),
    )


def dict_to_parcel_entry(payload: Mapping[str, Any]) -> ActivityEntry:
    return ActivityEntry(
        id=_optional_id(payload),
        reference=payload.get("reference"),
        label=_person_name(payload.get("client")),
        amount=Money.of(payload.get("price_mad"), "MAD"),
        status=payload.get("status"),
    )


def dict_to_transaction_entry(payload: Mapping[str, Any]) -> ActivityEntry:
    account = payload.get("account")
    return ActivityEntry(
        id=_optional_id(payload),
        reference=payload.get("reference"),
        label=account.get("name") if isinstance(account, Mapping) else None,
        amount=Money.of(payload.get("amount"), payload.get("currency") or "CFA"),
        status=payload.get("type"),
        description=payload.get("description"),
    )


def _dict_to_client(payload: Mapping[str, Any]) -> ClientRevenue:
    name = _first_present(payload, "full_name", "name")
    if name is None:
        name = f"{payload.get('first_name', '')} {payload.get('last_name', '')}".strip()
    return ClientRevenue(
        client_id=int(_first_present(payload, "id", "client_id") or 0),
        name=str(name or "N/A"),
        revenue=to_decimal(_first_present(payload, "total_revenue", "revenue")),
    )


def _dict_to_product(payload: Mapping[str, Any]) -> ProductQuantity:
    return ProductQuantity(
        product_id=int(_first_present(payload, "id", "product_id") or 0),
        name=str(payload.get("name") or "N/A"),
        quantity=to_decimal(_first_present(payload, "total_quantity", "quantity")),
    )


def dict_to_business_aggregate(payload: Mapping[str, Any]) -> BusinessAggregate:
    summary = payload.get("summary") or {}
    clients: Iterable[Mapping[str, Any]] = payload.get("top_clients") or []
    products: Iterable[Mapping[str, Any]] = payload.get("top_products") or []
    return BusinessAggregate(
        total_revenue=to_decimal(summary.get("total_revenue")),
        total_margin=to_decimal(summary.get("total_margin")),
        average_margin_rate=to_decimal(summary.get("average_margin_rate")),
        total_paid=to_decimal(summary.get("total_paid")),
        total_unpaid=to_decimal(summary.get("total_unpaid")),
        total_orders=int(summary.get("total_orders") or 0),
        top_clients=tuple(_dict_to_client(item) for item in clients),
        top_products=tuple(_dict_to_product(item) for item in products),
    )


def dict_to_treasury_snapshot(
    payload: Mapping[str, Any], as_of: datetime | None = None
) -> TreasurySnapshot:
    return TreasurySnapshot(
        total_balance_cfa=to_decimal(_first_present(payload, "total_balance_cfa", "total_cfa")),
        total_balance_mad=to_decimal(_first_present(payload, "total_balance_mad", "total_mad")),
        total_global_cfa=to_decimal(payload.get("total_global_cfa")),
        total_global_mad=to_decimal(payload.get("total_global_mad")),
        as_of=as_of,
    )


def dict_to_ledger_response(payload: Mapping[str, Any]) -> LedgerResponse:
    data = payload.get("data")
    ids: tuple[int, ...] = ()
    if isinstance(data, Mapping):
        ids = tuple(
            int(data[key]) for key in ("debit_transaction_id", "credit_transaction_id") if data.get(key)
        )
    return LedgerResponse(
        success=bool(payload.get("success")),
        message=str(payload.get("message") or ""),
        transaction_ids=ids,
    )


def transfer_instruction_to_dict(instruction: TransferInstruction) -> dict[str, object]:
    return {
        "source_account_id": instruction.source_account.id,
        "destination_account_id": instruction.destination_account.id,
        "source_amount": float(instruction.source_amount.amount),
        "source_currency": instruction.source_amount.currency.value,
        "destination_amount": float(instruction.destination_amount.amount),
        "destination_currency": instruction.destination_amount.currency.value,
        "exchange_rate": float(instruction.rate.rate),
        "description": instruction.description,
    }
