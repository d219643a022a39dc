"""Treasury adapters: balances summary, account list and transfer ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping

from logifin.domain.entities import Account, ActivityEntry, LedgerResponse, TransferInstruction, TreasurySnapshot
from logifin.domain.errors import LedgerRejected, SourceUnavailable
from logifin.domain.mappers import (
    dict_to_account,
    dict_to_ledger_response,
    dict_to_transaction_entry,
    dict_to_treasury_snapshot,
    extract_records,
    transfer_instruction_to_dict,
)

from .client import ApiClient, ApiError

__all__ = ["TreasuryApiSource", "AccountApiDirectory", "LedgerApiSink"]


class TreasuryApiSource:
    name = "treasury"
    path = "/financial-transactions/summary"
    transactions_path = "/financial-transactions"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def get_summary(
        self, as_of: datetime | None = None, account_id: int | None = None
    ) -> TreasurySnapshot:
        params: dict[str, Any] = {}
        if as_of is not None:
            params["date"] = as_of.date().isoformat()
        if account_id is not None:
            params["account_id"] = account_id
        try:
            data = self._client.get(self.path, params=params)
        except ApiError as exc:
            raise SourceUnavailable(self.name, exc.message) from exc
        if not isinstance(data, Mapping):
            raise SourceUnavailable(self.name, "unexpected payload")
        try:
            return dict_to_treasury_snapshot(data, as_of=as_of)
        except ValueError as exc:
            raise SourceUnavailable(self.name, f"malformed payload: {exc}") from exc

    def recent_transactions(self, limit: int) -> List[ActivityEntry]:
        try:
            data = self._client.get(self.transactions_path, params={"per_page": limit})
        except ApiError as exc:
            raise SourceUnavailable("recent_transactions", exc.message) from exc
        try:
            return [dict_to_transaction_entry(record) for record in extract_records(data)[:limit]]
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable("recent_transactions", f"malformed payload: {exc}") from exc


class AccountApiDirectory:
    name = "accounts"
    path = "/accounts"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def list_accounts(self) -> List[Account]:
        try:
            data = self._client.get(self.path)
        except ApiError as exc:
            raise SourceUnavailable(self.name, exc.message) from exc
        try:
            return [dict_to_account(record) for record in extract_records(data)]
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable(self.name, f"malformed payload: {exc}") from exc


class LedgerApiSink:
    path = "/financial-transactions/transfer"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def submit_transfer(self, instruction: TransferInstruction) -> LedgerResponse:
        try:
            payload = self._client.post(self.path, json=transfer_instruction_to_dict(instruction))
        except ApiError as exc:
            raise LedgerRejected(exc.message) from exc
        return dict_to_ledger_response(payload)
