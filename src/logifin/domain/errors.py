"""Exception hierarchy shared by every Logifin layer.

All project-specific exceptions derive from :class:`LogifinError` so callers
can catch them uniformly.
"""

from __future__ import annotations

from typing import Mapping

__all__ = [
    "LogifinError",
    "ConfigError",
    "SourceUnavailable",
    "InvalidRate",
    "CurrencyMismatchError",
    "UnsupportedCurrencyPair",
    "TransferValidationError",
    "LedgerRejected",
]


class LogifinError(Exception):
    """Base class for Logifin errors."""


class ConfigError(LogifinError):
    """Raised when configuration values are invalid."""


class SourceUnavailable(LogifinError):
    """Raised by a source adapter when a single fetch fails."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source} unavailable: {reason}")
        self.source = source
        self.reason = reason


class InvalidRate(LogifinError, ValueError):
    """Raised when an exchange rate is zero or negative."""


class CurrencyMismatchError(LogifinError, ValueError):
    """Raised when arithmetic is attempted on money values with different currencies."""


class UnsupportedCurrencyPair(LogifinError, ValueError):
    """Raised when no conversion is defined between two currencies."""


class TransferValidationError(LogifinError):
    """Raised when a transfer form violates its constraints.

    ``errors`` maps each offending field to a user-facing message.
    """

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors)) or "unknown"
        super().__init__(f"Invalid transfer fields: {fields}")


class LedgerRejected(LogifinError):
    """Raised when the ledger refuses a transfer; ``message`` is the ledger's own text."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
