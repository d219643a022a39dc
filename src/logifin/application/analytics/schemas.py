"""Pydantic schemas for aggregation results exposed to callers."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pandas as pd
from pydantic import BaseModel, Field, model_validator

__all__ = [
    "RankedItem",
    "BusinessKpis",
    "ExpressKpis",
    "AggregateSummary",
    "BucketInfo",
    "TimeSeries",
    "ActivityItem",
    "RecentActivity",
    "DashboardSnapshot",
]


class RankedItem(BaseModel):
    id: Optional[int | str] = None
    name: str
    value: Decimal


class BusinessKpis(BaseModel):
    """Business figures in CFA, passed through from the source."""

    currency: str = "CFA"
    revenue: Decimal = Decimal("0")
    margin: Decimal = Decimal("0")
    average_margin_rate: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    unpaid: Decimal = Decimal("0")
    orders: int = 0
    top_clients: List[RankedItem] = Field(default_factory=list)
    top_products: List[RankedItem] = Field(default_factory=list)


class ExpressKpis(BaseModel):
    """Express figures in MAD, derived from the raw parcel list."""

    currency: str = "MAD"
    parcels: int = 0
    revenue: Decimal = Decimal("0")
    in_transit: int = 0
    delivered: int = 0
    ready_for_pickup: int = 0
    total_weight: Decimal = Decimal("0")
    paid: Decimal = Decimal("0")
    debt: Decimal = Decimal("0")
    top_destinations: List[RankedItem] = Field(default_factory=list)


class AggregateSummary(BaseModel):
    start: datetime
    end: datetime
    target_currency: str
    exchange_rate: Decimal
    total_revenue: Decimal
    revenue_by_module: Dict[str, Decimal]
    business: BusinessKpis
    express: ExpressKpis
    treasury: Dict[str, Decimal] = Field(default_factory=dict)
    treasury_global: Dict[str, Decimal] = Field(default_factory=dict)
    partial: bool = False
    failed_sources: List[str] = Field(default_factory=list)

    @property
    def counts(self) -> Dict[str, int]:
        return {
            "orders": self.business.orders,
            "parcels": self.express.parcels,
            "in_transit": self.express.in_transit,
        }

    def metrics(self) -> Dict[str, Any]:
        """Flatten into the metric keys the capability table gates."""

        return {
            "counts": self.counts,
            "total_revenue": self.total_revenue,
            "revenue_by_module": dict(self.revenue_by_module),
            "margin": {
                "total_margin": self.business.margin,
                "average_margin_rate": self.business.average_margin_rate,
            },
            "paid_unpaid": {"paid": self.business.paid, "unpaid": self.business.unpaid},
            "express_stats": self.express.model_dump(exclude={"top_destinations"}),
            "top_clients": [item.model_dump() for item in self.business.top_clients],
            "top_products": [item.model_dump() for item in self.business.top_products],
            "top_destinations": [item.model_dump() for item in self.express.top_destinations],
            "treasury": {
                "balances": dict(self.treasury),
                "global": dict(self.treasury_global),
            },
        }


class BucketInfo(BaseModel):
    label: str
    start: datetime
    end: datetime


class TimeSeries(BaseModel):
    """Bucketed series; every list is aligned with ``buckets`` (oldest first).

    ``None`` in a series means the bucket has no data, as opposed to a real
    zero.
    """

    buckets: List[BucketInfo]
    series: Dict[str, List[Optional[Decimal]]]
    partial: List[bool]
    currencies: Dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_alignment(self) -> "TimeSeries":
        expected = len(self.buckets)
        if len(self.partial) != expected:
            raise ValueError("partial flags must align with buckets")
        for name, values in self.series.items():
            if len(values) != expected:
                raise ValueError(f"series {name!r} must align with buckets")
        return self

    @property
    def labels(self) -> List[str]:
        return [bucket.label for bucket in self.buckets]

    @property
    def is_partial(self) -> bool:
        return any(self.partial)

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(
            {name: [None if v is None else float(v) for v in values] for name, values in self.series.items()},
            index=pd.Index(self.labels, name="bucket"),
        )
        frame["partial"] = self.partial
        return frame


class ActivityItem(BaseModel):
    id: Optional[int] = None
    reference: Optional[str] = None
    label: Optional[str] = None
    amount: Decimal
    currency: str
    status: Optional[str] = None
    description: Optional[str] = None


class RecentActivity(BaseModel):
    """Latest ledger movements, latest orders and parcels currently in transit."""

    transactions: List[ActivityItem] = Field(default_factory=list)
    orders: List[ActivityItem] = Field(default_factory=list)
    parcels_in_transit: List[ActivityItem] = Field(default_factory=list)
    partial: bool = False
    failed_sources: List[str] = Field(default_factory=list)

    def metrics(self) -> Dict[str, Any]:
        return {
            "recent_transactions": [item.model_dump() for item in self.transactions],
            "recent_orders": [item.model_dump() for item in self.orders],
            "parcels_in_transit": [item.model_dump() for item in self.parcels_in_transit],
        }


class DashboardSnapshot(BaseModel):
    """One dashboard pass after capability filtering."""

    token: int
    period: str
    roles: List[str]
    generated_at: datetime
    start: datetime
    end: datetime
    exchange_rate: Decimal
    target_currency: str
    partial: bool
    failed_sources: List[str] = Field(default_factory=list)
    metrics: Dict[str, Any] = Field(default_factory=dict)
