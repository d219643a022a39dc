"""Logifin analytics: multi-source KPI aggregation and CFA/MAD treasury helpers."""

from __future__ import annotations

from logifin.domain.errors import (
    InvalidRate,
    LedgerRejected,
    LogifinError,
    SourceUnavailable,
    TransferValidationError,
)

__all__ = [
    "__version__",
    "LogifinError",
    "SourceUnavailable",
    "InvalidRate",
    "TransferValidationError",
    "LedgerRejected",
]

__version__ = "0.3.0"
