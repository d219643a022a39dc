"""Aggregation engine merging Business, Express and Treasury figures."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from functools import partial
from typing import Callable, Dict, List, Mapping, Optional

from logifin.domain.currency import RateLike, convert
from logifin.domain.entities import ActivityEntry, BusinessAggregate, TreasurySnapshot
from logifin.domain.errors import SourceUnavailable
from logifin.domain.periods import bucketize
from logifin.domain.services import DEFAULT_TOP_N, KpiCalculator
from logifin.domain.value_objects import (
    Bucket,
    BucketUnit,
    CurrencyCode,
    DateRange,
    ExchangeRate,
    Money,
)
from logifin.shared.logging import log_event

from .fanout import SourceCall, fan_out
from .ports import BusinessRevenueSource, ExpressRevenueSource, TreasurySource
from .rates import ExchangeRateProvider
from .schemas import (
    ActivityItem,
    AggregateSummary,
    BucketInfo,
    BusinessKpis,
    ExpressKpis,
    RankedItem,
    RecentActivity,
    TimeSeries,
)

__all__ = ["AggregationEngine", "SeriesFetcher"]

SeriesFetcher = Callable[[Bucket], Optional[Decimal]]

ZERO = Decimal("0")


class AggregationEngine:
    """Fan out source calls per range or bucket and merge the results.

    Adapter failures never escape: they are substituted, flagged as partial
    and logged. Only an invalid exchange rate aborts a pass.
    """

    def __init__(
        self,
        business: BusinessRevenueSource,
        express: ExpressRevenueSource,
        treasury: TreasurySource,
        rates: Optional[ExchangeRateProvider] = None,
        *,
        target_currency: CurrencyCode | str = CurrencyCode.CFA,
        max_workers: int = 8,
        top: int = DEFAULT_TOP_N,
        revenue_months: int = 12,
        treasury_days: int = 30,
        recent_items: int = 10,
        zero_fill_missing_snapshots: bool = False,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._business = business
        self._express = express
        self._treasury = treasury
        self._rates = rates or ExchangeRateProvider()
        self._target = CurrencyCode.parse(target_currency)
        self._max_workers = max(1, max_workers)
        self._top = top
        self._revenue_months = revenue_months
        self._treasury_days = treasury_days
        self._recent_items = recent_items
        self._zero_fill = zero_fill_missing_snapshots
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    @property
    def target_currency(self) -> CurrencyCode:
        return self._target

    def resolve_rate(self, rate: RateLike | None = None) -> ExchangeRate:
        if rate is None:
            return self._rates.current()
        return ExchangeRate.coerce(rate)

    # ------------------------------------------------------------------
    # Range summary
    # ------------------------------------------------------------------
    def summarize(self, date_range: DateRange, rate: RateLike | None = None) -> AggregateSummary:
        exchange_rate = self.resolve_rate(rate)
        business_result, express_result, treasury_result = fan_out(
            [
                SourceCall("business", partial(self._business.get_aggregate, date_range), BusinessAggregate.empty()),
                SourceCall("express", partial(self._list_parcels, date_range), []),
                SourceCall("treasury", self._treasury.get_summary, TreasurySnapshot()),
            ],
            max_workers=self._max_workers,
            logger=self._logger,
        )

        aggregate: BusinessAggregate = business_result.value_or(BusinessAggregate.empty())
        stats = KpiCalculator.express_stats(express_result.value_or([]), top=self._top)
        snapshot: TreasurySnapshot = treasury_result.value_or(TreasurySnapshot())

        revenue_by_module = {
            "business": self._to_target(aggregate.total_revenue, aggregate.currency, exchange_rate),
            "express": self._to_target(stats.total_revenue, stats.currency, exchange_rate),
        }
        failed = [r.source for r in (business_result, express_result, treasury_result) if r.failed]

        top_clients = KpiCalculator.top_n(
            aggregate.top_clients, lambda c: c.revenue, lambda c: c.client_id, self._top
        )
        top_products = KpiCalculator.top_n(
            aggregate.top_products, lambda p: p.quantity, lambda p: p.product_id, self._top
        )

        summary = AggregateSummary(
            start=date_range.start,
            end=date_range.end,
            target_currency=self._target.value,
            exchange_rate=exchange_rate.rate,
            total_revenue=sum(revenue_by_module.values(), ZERO),
            revenue_by_module=revenue_by_module,
            business=BusinessKpis(
                revenue=aggregate.total_revenue,
                margin=aggregate.total_margin,
                average_margin_rate=aggregate.average_margin_rate,
                paid=aggregate.total_paid,
                unpaid=aggregate.total_unpaid,
                orders=aggregate.total_orders,
                top_clients=[RankedItem(id=c.client_id, name=c.name, value=c.revenue) for c in top_clients],
                top_products=[RankedItem(id=p.product_id, name=p.name, value=p.quantity) for p in top_products],
            ),
            express=ExpressKpis(
                parcels=stats.total_parcels,
                revenue=stats.total_revenue,
                in_transit=stats.in_transit,
                delivered=stats.delivered,
                ready_for_pickup=stats.ready_for_pickup,
                total_weight=stats.total_weight,
                paid=stats.total_paid,
                debt=stats.total_debt,
                top_destinations=[RankedItem(name=d.name, value=Decimal(d.count)) for d in stats.top_destinations],
            ),
            treasury={currency.value: money.amount for currency, money in snapshot.balances().items()},
            treasury_global={"CFA": snapshot.total_global_cfa, "MAD": snapshot.total_global_mad},
            partial=bool(failed),
            failed_sources=failed,
        )
        log_event(
            self._logger,
            "info",
            message="Range summary computed",
            phase="aggregate.summary",
            start=date_range.start.isoformat(),
            end=date_range.end.isoformat(),
            partial=summary.partial,
            failed_sources=failed,
        )
        return summary

    # ------------------------------------------------------------------
    # Bucketed series
    # ------------------------------------------------------------------
    def evolution(
        self,
        period_count: int,
        unit: BucketUnit | str,
        series: Mapping[str, SeriesFetcher],
        now: Optional[datetime] = None,
        substitutes: Optional[Mapping[str, Optional[Decimal]]] = None,
    ) -> TimeSeries:
        """Fetch every ``(bucket, series)`` pair concurrently.

        Results are joined by submission index, so bucket order never depends
        on which request returned first. A failed fetch yields the series
        substitute (zero unless overridden) and flags its bucket as partial.
        """
        moment = now or self._clock()
        buckets = bucketize(period_count, unit, moment)
        names = list(series)
        substitutes = substitutes or {}

        calls = [
            SourceCall(
                f"{name}[{bucket.label}]",
                partial(series[name], bucket),
                substitutes.get(name, ZERO),
            )
            for bucket in buckets
            for name in names
        ]
        results = fan_out(calls, max_workers=self._max_workers, logger=self._logger)

        values: Dict[str, List[Optional[Decimal]]] = {name: [] for name in names}
        flags: List[bool] = []
        width = len(names)
        for index in range(len(buckets)):
            row = results[index * width:(index + 1) * width]
            for name, result in zip(names, row):
                values[name].append(result.value)
            flags.append(any(result.failed for result in row))

        return TimeSeries(
            buckets=[
                BucketInfo(label=b.label, start=b.range.start, end=b.range.end) for b in buckets
            ],
            series=values,
            partial=flags,
        )

    def revenue_evolution(
        self,
        months: Optional[int] = None,
        now: Optional[datetime] = None,
        rate: RateLike | None = None,
    ) -> TimeSeries:
        """Monthly ``business`` (CFA), ``express`` (MAD) and ``total`` (target currency)."""

        exchange_rate = self.resolve_rate(rate)
        raw = self.evolution(
            months or self._revenue_months,
            BucketUnit.MONTH,
            {
                "business": lambda bucket: self._business.get_aggregate(bucket.range).total_revenue,
                "express": lambda bucket: KpiCalculator.parcel_revenue(self._list_parcels(bucket.range)),
            },
            now=now,
        )
        totals = [
            self._to_target(business or ZERO, CurrencyCode.CFA, exchange_rate)
            + self._to_target(express or ZERO, CurrencyCode.MAD, exchange_rate)
            for business, express in zip(raw.series["business"], raw.series["express"])
        ]
        return raw.model_copy(
            update={
                "series": {**raw.series, "total": totals},
                "currencies": {
                    "business": CurrencyCode.CFA.value,
                    "express": CurrencyCode.MAD.value,
                    "total": self._target.value,
                },
            }
        )

    def treasury_evolution(
        self,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
        account_id: Optional[int] = None,
    ) -> TimeSeries:
        """Daily CFA balance, snapshotted at the end of each day bucket.

        A day whose historical query fails has no data (``None``) unless
        ``zero_fill_missing_snapshots`` is set. The most recent day falls
        back to the current summary first.
        """
        moment = now or self._clock()

        def fetch(bucket: Bucket) -> Decimal:
            try:
                snapshot = self._treasury.get_summary(as_of=bucket.range.end, account_id=account_id)
            except SourceUnavailable as exc:
                if bucket.range.end != moment:
                    raise
                log_event(
                    self._logger,
                    "info",
                    message="Historical balance unavailable for today, using current summary",
                    phase="treasury.fallback",
                    reason=exc.reason,
                )
                snapshot = self._treasury.get_summary(account_id=account_id)
            return snapshot.total_balance_cfa

        missing = ZERO if self._zero_fill else None
        series = self.evolution(
            days or self._treasury_days,
            BucketUnit.DAY,
            {"balance_cfa": fetch},
            now=moment,
            substitutes={"balance_cfa": missing},
        )
        return series.model_copy(update={"currencies": {"balance_cfa": CurrencyCode.CFA.value}})

    # ------------------------------------------------------------------
    # Activity feeds
    # ------------------------------------------------------------------
    def recent_activity(self, limit: Optional[int] = None) -> RecentActivity:
        """Latest ledger movements, latest orders and parcels in transit, fetched together."""

        limit = limit or self._recent_items
        results = fan_out(
            [
                SourceCall("recent_transactions", partial(self._treasury.recent_transactions, limit), []),
                SourceCall("recent_orders", partial(self._business.recent_orders, limit), []),
                SourceCall("parcels_in_transit", partial(self._express.parcels_in_transit, limit), []),
            ],
            max_workers=self._max_workers,
            logger=self._logger,
        )
        transactions, orders, parcels = ([_activity_item(e) for e in r.value_or([])] for r in results)
        failed = [r.source for r in results if r.failed]
        return RecentActivity(
            transactions=transactions,
            orders=orders,
            parcels_in_transit=parcels,
            partial=bool(failed),
            failed_sources=failed,
        )

    # ------------------------------------------------------------------
    def _list_parcels(self, date_range: DateRange) -> list:
        return list(self._express.list_parcels(date_range))

    def _to_target(self, amount: Decimal, currency: CurrencyCode, rate: ExchangeRate) -> Decimal:
        return convert(Money(amount, currency), self._target, rate).amount


def _activity_item(entry: ActivityEntry) -> ActivityItem:
    return ActivityItem(
        id=entry.id,
        reference=entry.reference,
        label=entry.label,
        amount=entry.amount.amount,
        currency=entry.amount.currency.value,
        status=entry.status,
        description=entry.description,
    )
