"""System settings adapter exposing the current MAD/CFA exchange rate."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from logifin.domain.errors import SourceUnavailable
from logifin.domain.value_objects import to_decimal

from .client import ApiClient, ApiError

__all__ = ["ExchangeRateApiSource", "parse_exchange_rate"]


def parse_exchange_rate(data: object) -> Decimal:
    """Accept either a bare number or ``{"rate": number}``."""

    if isinstance(data, Mapping):
        data = data.get("rate")
    if data is None or isinstance(data, bool):
        raise ValueError("exchange rate missing from payload")
    return to_decimal(data)


class ExchangeRateApiSource:
    name = "exchange_rate"
    path = "/exchange-rate"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def get_exchange_rate(self) -> Decimal:
        try:
            data = self._client.get(self.path)
        except ApiError as exc:
            raise SourceUnavailable(self.name, exc.message) from exc
        try:
            return parse_exchange_rate(data)
        except ValueError as exc:
            raise SourceUnavailable(self.name, str(exc)) from exc
