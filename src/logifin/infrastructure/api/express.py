"""Express parcels adapter; statistics are derived by the engine."""

from __future__ import annotations

from typing import Any, List

from logifin.domain.entities import PARCEL_IN_TRANSIT, ActivityEntry, Parcel
from logifin.domain.errors import SourceUnavailable
from logifin.domain.mappers import dict_to_parcel, dict_to_parcel_entry, extract_records
from logifin.domain.value_objects import DateRange

from .client import ApiClient, ApiError

__all__ = ["ExpressApiSource"]


class ExpressApiSource:
    name = "express"
    path = "/express/parcels"

    def __init__(self, client: ApiClient, page_size: int = 1000) -> None:
        self._client = client
        self._page_size = page_size

    def list_parcels(self, date_range: DateRange) -> List[Parcel]:
        params: dict[str, Any] = {**date_range.to_params(), "per_page": self._page_size}
        try:
            data = self._client.get(self.path, params=params)
        except ApiError as exc:
            raise SourceUnavailable(self.name, exc.message) from exc
        try:
            return [dict_to_parcel(record) for record in extract_records(data)]
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable(self.name, f"malformed payload: {exc}") from exc

    def parcels_in_transit(self, limit: int) -> List[ActivityEntry]:
        params = {"status": PARCEL_IN_TRANSIT, "per_page": limit}
        try:
            data = self._client.get(self.path, params=params)
        except ApiError as exc:
            raise SourceUnavailable("parcels_in_transit", exc.message) from exc
        try:
            return [dict_to_parcel_entry(record) for record in extract_records(data)[:limit]]
        except (KeyError, TypeError, ValueError) as exc:
            raise SourceUnavailable("parcels_in_transit", f"malformed payload: {exc}") from exc
