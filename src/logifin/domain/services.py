"""Domain services encapsulating reusable KPI calculations."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import Callable, Iterable, Sequence, TypeVar

from .entities import (
    PARCEL_DELIVERED,
    PARCEL_IN_TRANSIT,
    PARCEL_READY_FOR_PICKUP,
    DestinationCount,
    ExpressStats,
    Parcel,
)

__all__ = ["KpiCalculator", "DEFAULT_TOP_N"]

DEFAULT_TOP_N = 5

T = TypeVar("T")


class KpiCalculator:
    """Stateless KPI calculations over domain entities."""

    @staticmethod
    def top_n(
        items: Iterable[T],
        metric: Callable[[T], Decimal | int],
        identifier: Callable[[T], object],
        n: int = DEFAULT_TOP_N,
    ) -> list[T]:
        """Highest ``metric`` first, ties broken by ascending ``identifier``."""

        if n < 1:
            return []
        ordered = sorted(items, key=identifier)
        # sorted() is stable, so the identifier order survives equal metrics
        ordered.sort(key=metric, reverse=True)
        return ordered[:n]

    @staticmethod
    def express_stats(parcels: Sequence[Parcel], top: int = DEFAULT_TOP_N) -> ExpressStats:
        total_revenue = sum((p.price_mad for p in parcels), Decimal("0"))
        total_paid = sum((p.total_paid for p in parcels), Decimal("0"))
        statuses = Counter(p.status for p in parcels)
        destinations = Counter(p.destination for p in parcels if p.destination)

        top_destinations = KpiCalculator.top_n(
            (DestinationCount(name=name, count=count) for name, count in destinations.items()),
            metric=lambda item: item.count,
            identifier=lambda item: item.name,
            n=top,
        )

        return ExpressStats(
            total_parcels=len(parcels),
            total_revenue=total_revenue,
            in_transit=statuses.get(PARCEL_IN_TRANSIT, 0),
            delivered=statuses.get(PARCEL_DELIVERED, 0),
            ready_for_pickup=statuses.get(PARCEL_READY_FOR_PICKUP, 0),
            total_weight=sum((p.weight_kg for p in parcels), Decimal("0")),
            total_paid=total_paid,
            total_debt=total_revenue - total_paid,
            top_destinations=tuple(top_destinations),
        )

    @staticmethod
    def parcel_revenue(parcels: Sequence[Parcel]) -> Decimal:
        return sum((p.price_mad for p in parcels), Decimal("0"))
