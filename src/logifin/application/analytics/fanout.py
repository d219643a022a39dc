"""Bounded thread fan-out for source adapter calls, joined by submission index."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

from logifin.domain.errors import SourceUnavailable
from logifin.domain.value_objects import SourceResult
from logifin.shared.logging import log_event

__all__ = ["SourceCall", "fan_out", "guarded_call"]

T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceCall(Generic[T]):
    """One adapter invocation and the value substituted when it fails."""

    source: str
    func: Callable[[], T]
    substitute: Any = None


def guarded_call(call: SourceCall[T], logger: Optional[logging.Logger] = None) -> SourceResult[T]:
    """Run ``call`` and wrap the outcome; adapter failures become a failed result."""

    logger = logger or _LOGGER
    try:
        return SourceResult.ok(call.source, call.func())
    except SourceUnavailable as exc:
        reason = exc.reason
    except Exception as exc:  # noqa: BLE001
        reason = f"{type(exc).__name__}: {exc}"
    log_event(
        logger,
        "warning",
        message=f"{call.source} unavailable, substituting default",
        phase="source.failed",
        source=call.source,
        reason=reason,
    )
    return SourceResult.failure(call.source, reason, call.substitute)


def fan_out(
    calls: Sequence[SourceCall[Any]],
    max_workers: int = 8,
    logger: Optional[logging.Logger] = None,
) -> List[SourceResult[Any]]:
    """Submit every call at once and return results in the order of ``calls``.

    Each worker returns its own :class:`SourceResult`; nothing shared is
    written while calls are in flight.
    """
    if not calls:
        return []
    workers = max(1, min(max_workers, len(calls)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(guarded_call, call, logger) for call in calls]
        return [future.result() for future in futures]
