from __future__ import annotations

import threading
import time
from typing import Optional

from statengine.core.exceptions import ComputationCancelledError


class CancellationToken:
    """
    Cooperative cancellation handle shared between a host and a computation.

    The host calls ``cancel()`` (or lets ``timeout_seconds`` elapse); long
    computations call ``raise_if_cancelled()`` at loop checkpoints.
    """

    def __init__(self, timeout_seconds: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._reason = "cancelled by caller"
        self._deadline = (
            time.monotonic() + timeout_seconds if timeout_seconds is not None else None
        )
        self._timeout_seconds = timeout_seconds

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ComputationCancelledError(self._reason)
        if self.expired:
            raise ComputationCancelledError(f"timed out after {self._timeout_seconds}s")


def checkpoint(token: Optional[CancellationToken]) -> None:
    """Raise if ``token`` is set; no-op for ``None``."""
    if token is not None:
        token.raise_if_cancelled()
