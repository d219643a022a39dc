"""One dashboard refresh: summary, evolutions, activity feeds and role filtering."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, Optional

from logifin.domain.periods import parse_period, resolve
from logifin.domain.value_objects import Period
from logifin.shared.logging import log_event

from .capabilities import select_metrics
from .engine import AggregationEngine
from .requests import RequestTracker
from .schemas import DashboardSnapshot

__all__ = ["DashboardService"]


class DashboardService:
    def __init__(
        self,
        engine: AggregationEngine,
        tracker: Optional[RequestTracker[DashboardSnapshot]] = None,
        clock: Callable[[], datetime] = datetime.now,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._engine = engine
        self._tracker = tracker or RequestTracker()
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    @property
    def latest(self) -> Optional[DashboardSnapshot]:
        return self._tracker.result

    def refresh(
        self,
        period: Period | str,
        roles: Iterable[str],
        now: Optional[datetime] = None,
    ) -> DashboardSnapshot:
        """Run one pass and return its snapshot.

        Every metric is computed for every caller; the roles only decide which
        keys survive :func:`select_metrics`. The snapshot is returned even when
        a newer refresh started meanwhile; only :attr:`latest` is guarded
        against stale passes.
        """
        token = self._tracker.start()
        period = parse_period(period)
        roles = list(roles)
        moment = now or self._clock()

        date_range = resolve(period, moment)
        rate = self._engine.resolve_rate()

        with ThreadPoolExecutor(max_workers=4) as executor:
            summary_future = executor.submit(self._engine.summarize, date_range, rate=rate)
            revenue_future = executor.submit(self._engine.revenue_evolution, now=moment, rate=rate)
            treasury_future = executor.submit(self._engine.treasury_evolution, now=moment)
            activity_future = executor.submit(self._engine.recent_activity)
            summary = summary_future.result()
            revenue = revenue_future.result()
            treasury = treasury_future.result()
            activity = activity_future.result()

        metrics = summary.metrics()
        metrics["revenue_evolution"] = revenue.model_dump()
        metrics["treasury_evolution"] = treasury.model_dump()
        metrics.update(activity.metrics())

        failed = list(summary.failed_sources) + list(activity.failed_sources)
        partial = summary.partial or revenue.is_partial or treasury.is_partial or activity.partial

        snapshot = DashboardSnapshot(
            token=token,
            period=period.value,
            roles=roles,
            generated_at=moment,
            start=date_range.start,
            end=date_range.end,
            exchange_rate=rate.rate,
            target_currency=self._engine.target_currency.value,
            partial=partial,
            failed_sources=failed,
            metrics=select_metrics(metrics, roles),
        )
        if self._tracker.commit(token, snapshot):
            log_event(
                self._logger,
                "info",
                message="Dashboard refreshed",
                phase="dashboard.refresh",
                token=token,
                period=period.value,
                partial=partial,
            )
        return snapshot
