from __future__ import annotations

import threading
from collections import Counter
from decimal import Decimal

from logifin.application.analytics.dashboard import DashboardService
from logifin.application.analytics.engine import AggregationEngine
from logifin.application.analytics.rates import ExchangeRateProvider
from logifin.application.analytics.requests import RequestTracker
from logifin.domain.entities import ActivityEntry, TreasurySnapshot
from logifin.domain.value_objects import Money

ORDERS = [
    ActivityEntry(id=11, reference="CMD-011", label="Awa Diop", amount=Money.of(150000, "CFA"), status="pending"),
    ActivityEntry(id=10, reference="CMD-010", label="Moussa Fall", amount=Money.of(90000, "CFA"), status="delivered"),
]
IN_TRANSIT = [
    ActivityEntry(id=2, reference="EXP-002", label="Fatou Sow", amount=Money.of(300, "MAD"), status="in_transit"),
]
TRANSACTIONS = [
    ActivityEntry(id=99, reference="TRF-099", label="Orange Money Dakar", amount=Money.of(6300, "CFA"),
                  status="transfer_out", description="Approvisionnement"),
]


def _sources(fakes, sample_aggregate, sample_parcels, fail_on=()):
    return (
        fakes.Business(sample_aggregate, orders=ORDERS),
        fakes.Express(sample_parcels, in_transit=IN_TRANSIT, fail_on=fail_on),
        fakes.Treasury(current=TreasurySnapshot(total_balance_cfa=Decimal("9000")), transactions=TRANSACTIONS),
    )


def _service(fakes, sample_aggregate, sample_parcels, now, tracker=None, rate_source=None, sources=None):
    rate_source = rate_source or fakes.Rate(Decimal("63"))
    business, express, treasury = sources or _sources(fakes, sample_aggregate, sample_parcels)
    engine = AggregationEngine(
        business,
        express,
        treasury,
        ExchangeRateProvider(rate_source),
        revenue_months=3,
        treasury_days=2,
        clock=lambda: now,
    )
    return DashboardService(engine, tracker=tracker, clock=lambda: now), rate_source


def test_admin_dashboard_contains_every_metric(fakes, sample_aggregate, sample_parcels, now):
    service, rate_source = _service(fakes, sample_aggregate, sample_parcels, now)

    snapshot = service.refresh("month", ["admin"])

    assert rate_source.calls == 1
    assert snapshot.period == "month"
    assert snapshot.exchange_rate == Decimal("63")
    assert snapshot.metrics["total_revenue"] == Decimal("1063000.00")
    assert len(snapshot.metrics["revenue_evolution"]["buckets"]) == 3
    assert snapshot.metrics["treasury_evolution"]["series"]["balance_cfa"][-1] == Decimal("9000")
    assert [item["reference"] for item in snapshot.metrics["recent_transactions"]] == ["TRF-099"]
    assert [item["reference"] for item in snapshot.metrics["recent_orders"]] == ["CMD-011", "CMD-010"]
    assert snapshot.metrics["parcels_in_transit"][0]["currency"] == "MAD"
    assert service.latest == snapshot


def test_secretary_dashboard_hides_financial_metrics(fakes, sample_aggregate, sample_parcels, now):
    service, _ = _service(fakes, sample_aggregate, sample_parcels, now)

    snapshot = service.refresh("week", ["secretary"])

    assert "total_revenue" not in snapshot.metrics
    assert "treasury" not in snapshot.metrics
    assert "treasury_evolution" not in snapshot.metrics
    assert "recent_transactions" not in snapshot.metrics
    assert snapshot.metrics["counts"] == {"orders": 42, "parcels": 3, "in_transit": 1}
    assert "revenue_evolution" in snapshot.metrics
    assert len(snapshot.metrics["recent_orders"]) == 2
    assert len(snapshot.metrics["parcels_in_transit"]) == 1


def test_unknown_role_only_receives_counts(fakes, sample_aggregate, sample_parcels, now):
    service, _ = _service(fakes, sample_aggregate, sample_parcels, now)

    snapshot = service.refresh("day", ["guest"])

    assert snapshot.metrics == {"counts": {"orders": 42, "parcels": 3, "in_transit": 1}}


def test_every_role_triggers_the_same_source_calls(fakes, sample_aggregate, sample_parcels, now):
    admin_sources = _sources(fakes, sample_aggregate, sample_parcels)
    secretary_sources = _sources(fakes, sample_aggregate, sample_parcels)
    admin, _ = _service(fakes, sample_aggregate, sample_parcels, now, sources=admin_sources)
    secretary, _ = _service(fakes, sample_aggregate, sample_parcels, now, sources=secretary_sources)

    admin_snapshot = admin.refresh("month", ["admin"])
    secretary_snapshot = secretary.refresh("month", ["secretary"])

    for admin_source, secretary_source in zip(admin_sources, secretary_sources):
        assert Counter(admin_source.calls) == Counter(secretary_source.calls)
        assert admin_source.feed_calls == secretary_source.feed_calls == [10]
    assert set(secretary_snapshot.metrics) < set(admin_snapshot.metrics)
    assert secretary_snapshot.partial == admin_snapshot.partial


def test_failed_activity_feed_is_substituted_and_flagged(fakes, sample_aggregate, sample_parcels, now):
    sources = _sources(fakes, sample_aggregate, sample_parcels, fail_on={"in_transit"})
    service, _ = _service(fakes, sample_aggregate, sample_parcels, now, sources=sources)

    snapshot = service.refresh("month", ["boss"])

    assert snapshot.partial is True
    assert "parcels_in_transit" in snapshot.failed_sources
    assert snapshot.metrics["parcels_in_transit"] == []
    assert len(snapshot.metrics["recent_orders"]) == 2


class _RendezvousEngine(AggregationEngine):
    """Each step waits until the three other steps of the pass have started."""

    def __init__(self, *args, barrier: threading.Barrier, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._barrier = barrier

    def summarize(self, *args, **kwargs):
        self._barrier.wait()
        return super().summarize(*args, **kwargs)

    def revenue_evolution(self, *args, **kwargs):
        self._barrier.wait()
        return super().revenue_evolution(*args, **kwargs)

    def treasury_evolution(self, *args, **kwargs):
        self._barrier.wait()
        return super().treasury_evolution(*args, **kwargs)

    def recent_activity(self, *args, **kwargs):
        self._barrier.wait()
        return super().recent_activity(*args, **kwargs)


def test_dashboard_steps_run_concurrently(fakes, sample_aggregate, sample_parcels, now):
    engine = _RendezvousEngine(
        *_sources(fakes, sample_aggregate, sample_parcels),
        ExchangeRateProvider(fakes.Rate(Decimal("63"))),
        revenue_months=2,
        treasury_days=2,
        barrier=threading.Barrier(4, timeout=5),
    )

    snapshot = DashboardService(engine, clock=lambda: now).refresh("month", ["admin"])

    assert snapshot.metrics["total_revenue"] == Decimal("1063000.00")


def test_stale_refresh_does_not_replace_latest(fakes, sample_aggregate, sample_parcels, now):
    tracker = RequestTracker()
    service, _ = _service(fakes, sample_aggregate, sample_parcels, now, tracker=tracker)

    first = service.refresh("day", ["boss"])
    newer_token = tracker.start()
    late = service.refresh("year", ["boss"])

    assert late.token > newer_token
    assert service.latest == late
    assert tracker.commit(first.token, first) is False
    assert service.latest == late
