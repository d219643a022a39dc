"""Business orders analytics adapter."""

from __future__ import annotations

from typing import List, Mapping

from logifin.domain.entities import ActivityEntry, BusinessAggregate
from logifin.domain.errors import SourceUnavailable
from logifin.domain.mappers import dict_to_business_aggregate, dict_to_order_entry, extract_records
from logifin.domain.value_objects import DateRange

from .client import ApiClient, ApiError

__all__ = ["BusinessApiSource"]


class BusinessApiSource:
    name = "business"
    path = "/business/analytics/dashboard"
    orders_path = "/business/orders"

    def __init__(self, client: ApiClient) -> None:
        self._client = client

    def get_aggregate(self, date_range: DateRange) -> BusinessAggregate:
        try:
            data = self._client.get(self.path, params=date_range.to_params())
        except ApiError as exc:
            raise SourceUnavailable(self.name, exc.message) from exc
        if not isinstance(data, Mapping):
            raise SourceUnavailable(self.name, "unexpected payload")
        try:
            return dict_to_business_aggregate(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable(self.name, f"malformed payload: {exc}") from exc

    def recent_orders(self, limit: int) -> List[ActivityEntry]:
        try:
            data = self._client.get(self.orders_path, params={"per_page": limit})
        except ApiError as exc:
            raise SourceUnavailable("recent_orders", exc.message) from exc
        try:
            return [dict_to_order_entry(record) for record in extract_records(data)[:limit]]
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable("recent_orders", f"malformed payload: {exc}") from exc
