"""Inter-account transfer composition and submission."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Optional, Sequence

from logifin.application.analytics.ports import AccountDirectory, LedgerSink
from logifin.application.analytics.rates import ExchangeRateProvider
from logifin.domain.currency import RateLike, convert_rounded
from logifin.domain.entities import Account, LedgerResponse, TransferInstruction
from logifin.domain.errors import LedgerRejected, TransferValidationError
from logifin.domain.value_objects import CurrencyCode, ExchangeRate, Money, to_decimal
from logifin.shared.logging import log_event

__all__ = ["compose", "TransferForm", "TransferComposer", "TransferUseCase"]

ZERO = Decimal("0")


def compose(
    source_amount: Decimal | int | float | str,
    source_currency: CurrencyCode | str,
    destination_currency: CurrencyCode | str,
    rate: RateLike,
) -> Money:
    """Destination amount for a transfer; same-currency amounts are only rounded."""

    return convert_rounded(Money.of(source_amount, source_currency), destination_currency, rate)


class TransferForm:
    """Editable state of one transfer screen.

    The rate is local to the form: overriding it never changes the rate
    used elsewhere. Every change to an account, the source amount or the
    rate recomputes :attr:`destination_amount`.
    """

    def __init__(
        self,
        accounts: Sequence[Account],
        rate: RateLike = Decimal("63"),
        description: str = "",
    ) -> None:
        self._accounts: Dict[int, Account] = {account.id: account for account in accounts}
        self.source_account: Optional[Account] = None
        self.destination_account: Optional[Account] = None
        self.source_amount: Optional[Decimal] = None
        self.rate: Optional[Decimal] = ExchangeRate.coerce(rate).rate
        self.description = description
        self.destination_amount: Optional[Money] = None
        self._input_errors: Dict[str, str] = {}

    @property
    def accounts(self) -> list[Account]:
        return list(self._accounts.values())

    def destination_choices(self) -> list[Account]:
        """Accounts a transfer from the current source may target."""

        if self.source_account is None:
            return self.accounts
        return [a for a in self._accounts.values() if a.id != self.source_account.id]

    def set_source_account(self, account_id: int | None) -> None:
        self.source_account = self._lookup(account_id)
        self._recompute()

    def set_destination_account(self, account_id: int | None) -> None:
        self.destination_account = self._lookup(account_id)
        self._recompute()

    def set_source_amount(self, value: Decimal | int | float | str | None) -> None:
        self.source_amount = self._parse("source_amount", value, "Amount must be a number")
        self._recompute()

    def set_rate(self, value: Decimal | int | float | str) -> None:
        self.rate = self._parse("exchange_rate", value, "Exchange rate must be a number")
        self._recompute()

    def set_description(self, value: str) -> None:
        self.description = value or ""

    def _parse(self, field: str, value: object, message: str) -> Optional[Decimal]:
        self._input_errors.pop(field, None)
        if value is None or value == "":
            return None
        try:
            return to_decimal(value)
        except ValueError:
            # NaN, infinities and free text stay unset
            self._input_errors[field] = message
            return None

    def _lookup(self, account_id: int | None) -> Optional[Account]:
        if account_id is None:
            return None
        try:
            return self._accounts[int(account_id)]
        except KeyError:
            raise ValueError(f"Unknown account: {account_id}") from None

    def _recompute(self) -> None:
        self.destination_amount = None
        if self.source_account is None or self.destination_account is None:
            return
        if self.source_amount is None or self.source_amount <= ZERO or self.rate is None:
            return
        try:
            self.destination_amount = compose(
                self.source_amount,
                self.source_account.currency,
                self.destination_account.currency,
                self.rate,
            )
        except ValueError:
            # InvalidRate or an amount out of range; validate() reports it
            self.destination_amount = None

    def validate(self) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        if self.source_account is None:
            errors["source_account"] = "Source account is required"
        if self.destination_account is None:
            errors["destination_account"] = "Destination account is required"
        elif self.source_account is not None and self.source_account.id == self.destination_account.id:
            errors["destination_account"] = "Destination account must differ from the source account"
        if self.source_amount is None or self.source_amount <= ZERO:
            errors["source_amount"] = "Amount must be greater than 0"
        if self.rate is None or self.rate <= ZERO:
            errors["exchange_rate"] = "Exchange rate must be greater than 0"
        errors.update(self._input_errors)
        if self.destination_amount is None or self.destination_amount.amount <= ZERO:
            errors.setdefault("destination_amount", "Destination amount is required")
        return errors

    def build_instruction(self) -> TransferInstruction:
        errors = self.validate()
        if errors:
            raise TransferValidationError(errors)
        return TransferInstruction(
            source_account=self.source_account,
            destination_account=self.destination_account,
            source_amount=Money(self.source_amount, self.source_account.currency),
            destination_amount=self.destination_amount,
            rate=ExchangeRate(self.rate),
            description=self.description,
        )


class TransferComposer:
    """Sends a validated form to the ledger exactly once."""

    def __init__(self, ledger: LedgerSink, logger: Optional[logging.Logger] = None) -> None:
        self._ledger = ledger
        self._logger = logger or logging.getLogger(__name__)

    def submit(self, form: TransferForm) -> LedgerResponse:
        instruction = form.build_instruction()
        log_event(
            self._logger,
            "info",
            message="Submitting transfer",
            phase="transfer.submit",
            source_account=instruction.source_account.id,
            destination_account=instruction.destination_account.id,
            source_amount=str(instruction.source_amount),
            destination_amount=str(instruction.destination_amount),
            rate=str(instruction.rate.rate),
        )
        try:
            response = self._ledger.submit_transfer(instruction)
        except LedgerRejected as exc:
            self._log_rejection(exc.message)
            raise
        if not response.success:
            self._log_rejection(response.message)
            raise LedgerRejected(response.message)
        return response

    def _log_rejection(self, message: str) -> None:
        log_event(
            self._logger,
            "warning",
            message="Transfer rejected by ledger",
            phase="transfer.rejected",
            reason=message,
        )


class TransferUseCase:
    """Wires the account directory, the rate provider and the composer."""

    def __init__(
        self,
        accounts: AccountDirectory,
        rates: ExchangeRateProvider,
        composer: TransferComposer,
    ) -> None:
        self._accounts = accounts
        self._rates = rates
        self._composer = composer

    def open_form(self) -> TransferForm:
        active = [account for account in self._accounts.list_accounts() if account.is_active]
        return TransferForm(active, rate=self._rates.current())

    def prepare(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount: Decimal | int | float | str,
        rate: RateLike | None = None,
        description: str = "",
    ) -> TransferForm:
        form = self.open_form()
        form.set_source_account(source_account_id)
        form.set_destination_account(destination_account_id)
        form.set_source_amount(amount)
        if rate is not None:
            form.set_rate(rate.rate if isinstance(rate, ExchangeRate) else rate)
        form.set_description(description)
        return form

    def submit(self, form: TransferForm) -> LedgerResponse:
        return self._composer.submit(form)
