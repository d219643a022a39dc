"""Latest-request-wins bookkeeping for overlapping dashboard refreshes."""

from __future__ import annotations

import logging
import threading
from typing import Generic, Optional, TypeVar

from logifin.shared.logging import log_event

__all__ = ["RequestTracker"]

T = TypeVar("T")


class RequestTracker(Generic[T]):
    """Hands out increasing tokens and keeps only the newest result.

    A result committed under a token older than the latest one started is
    discarded, so a slow earlier refresh never overwrites a newer one.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._lock = threading.Lock()
        self._latest = 0
        self._result: Optional[T] = None
        self._committed_token: Optional[int] = None
        self._logger = logger or logging.getLogger(__name__)

    def start(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._latest

    def commit(self, token: int, result: T) -> bool:
        with self._lock:
            if token != self._latest:
                stale = True
            else:
                stale = False
                self._result = result
                self._committed_token = token
            latest = self._latest
        if stale:
            log_event(
                self._logger,
                "info",
                message="Discarding stale result",
                phase="request.stale",
                token=token,
                latest=latest,
            )
        return not stale

    @property
    def result(self) -> Optional[T]:
        with self._lock:
            return self._result

    @property
    def committed_token(self) -> Optional[int]:
        with self._lock:
            return self._committed_token
