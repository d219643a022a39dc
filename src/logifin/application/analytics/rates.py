"""Exchange rate lookup with the configured default as fallback."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from logifin.domain.errors import SourceUnavailable
from logifin.domain.value_objects import ExchangeRate
from logifin.shared.logging import log_event

from .ports import ExchangeRateSource

__all__ = ["ExchangeRateProvider", "DEFAULT_EXCHANGE_RATE"]

DEFAULT_EXCHANGE_RATE = Decimal("63")


class ExchangeRateProvider:
    """Reads the MAD/CFA rate once per call to :meth:`current`.

    A source outage falls back to ``default_rate``. A rate the source does
    return but that is zero or negative raises ``InvalidRate``.
    """

    def __init__(
        self,
        source: Optional[ExchangeRateSource] = None,
        default_rate: Decimal | int | float | str = DEFAULT_EXCHANGE_RATE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._source = source
        self._default = ExchangeRate.coerce(default_rate)
        self._logger = logger or logging.getLogger(__name__)

    @property
    def default(self) -> ExchangeRate:
        return self._default

    def current(self) -> ExchangeRate:
        if self._source is None:
            return self._default
        try:
            value = self._source.get_exchange_rate()
        except SourceUnavailable as exc:
            log_event(
                self._logger,
                "warning",
                message="Exchange rate unavailable, using default",
                phase="rate.fallback",
                reason=exc.reason,
                rate=str(self._default.rate),
            )
            return self._default
        return ExchangeRate.coerce(value)
