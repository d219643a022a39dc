"""Dependency injection container wiring the Logifin layers."""

from __future__ import annotations

from datetime import datetime

from dependency_injector import containers, providers

from logifin.application.analytics.dashboard import DashboardService
from logifin.application.analytics.engine import AggregationEngine
from logifin.application.analytics.rates import ExchangeRateProvider
from logifin.application.analytics.requests import RequestTracker
from logifin.application.treasury.transfer import TransferComposer, TransferUseCase
from logifin.infrastructure.api.business import BusinessApiSource
from logifin.infrastructure.api.client import ApiClient
from logifin.infrastructure.api.express import ExpressApiSource
from logifin.infrastructure.api.system import ExchangeRateApiSource
from logifin.infrastructure.api.treasury import (
    AccountApiDirectory,
    LedgerApiSink,
    TreasuryApiSource,
)

from .config import load_config

__all__ = ["Container"]


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the REST-backed analytics stack."""

    config = providers.Singleton(load_config)

    clock = providers.Object(datetime.now)

    # Infrastructure - REST
    api_client = providers.Singleton(
        ApiClient,
        base_url=config.provided.api.base_url,
        token=config.provided.api.token,
        timeout=config.provided.api.timeout,
        max_retries=config.provided.api.max_retries,
        retry_wait_seconds=config.provided.api.retry_wait_seconds,
    )

    business_source = providers.Factory(BusinessApiSource, client=api_client)

    express_source = providers.Factory(
        ExpressApiSource,
        client=api_client,
        page_size=config.provided.api.parcels_page_size,
    )

    treasury_source = providers.Factory(TreasuryApiSource, client=api_client)

    rate_source = providers.Factory(ExchangeRateApiSource, client=api_client)

    account_directory = providers.Factory(AccountApiDirectory, client=api_client)

    ledger_sink = providers.Factory(LedgerApiSink, client=api_client)

    # Application - Analytics
    rate_provider = providers.Factory(
        ExchangeRateProvider,
        source=rate_source,
        default_rate=config.provided.analytics.default_exchange_rate,
    )

    aggregation_engine = providers.Factory(
        AggregationEngine,
        business=business_source,
        express=express_source,
        treasury=treasury_source,
        rates=rate_provider,
        target_currency=config.provided.analytics.target_currency,
        max_workers=config.provided.analytics.max_workers,
        top=config.provided.analytics.top_n,
        revenue_months=config.provided.analytics.revenue_months,
        treasury_days=config.provided.analytics.treasury_days,
        recent_items=config.provided.analytics.recent_items,
        zero_fill_missing_snapshots=config.provided.analytics.zero_fill_missing_snapshots,
        clock=clock,
    )

    request_tracker = providers.Singleton(RequestTracker)

    dashboard_service = providers.Factory(
        DashboardService,
        engine=aggregation_engine,
        tracker=request_tracker,
        clock=clock,
    )

    # Application - Treasury
    transfer_composer = providers.Factory(TransferComposer, ledger=ledger_sink)

    transfer_use_case = providers.Factory(
        TransferUseCase,
        accounts=account_directory,
        rates=rate_provider,
        composer=transfer_composer,
    )
