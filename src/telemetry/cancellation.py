"""
Cooperative cancellation for long analysis passes.

Analyzers check the token between batches; a cancelled or expired token
raises AnalysisCancelled and the run produces no report at all.
"""

import threading
import time
from typing import Callable, Optional

from ..data.data_models import AnalyticsError


class AnalysisCancelled(AnalyticsError):
    """An analysis run was cancelled or ran past its deadline."""

    def __init__(self, reason: str, stage: Optional[str] = None, processed: int = 0):
        self.reason = reason
        self.stage = stage
        self.processed = processed
        message = f"Analysis cancelled: {reason}"
        if stage:
            message += f" (during {stage}, {processed} items processed)"
        super().__init__(message)


class CancellationToken:
    """
    Thread-safe cancellation flag with an optional deadline.

    One thread may call cancel() while another runs the analysis.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._event = threading.Event()
        self._clock = clock
        self._deadline = clock() + timeout_seconds if timeout_seconds is not None else None
        self._reason = "cancelled"

    def cancel(self, reason: str = "cancelled"):
        self._reason = reason
        self._event.set()

    @property
    def expired(self) -> bool:
        return self._deadline is not None and self._clock() >= self._deadline

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self.expired

    def raise_if_cancelled(self, stage: Optional[str] = None, processed: int = 0):
        if self._event.is_set():
            raise AnalysisCancelled(self._reason, stage, processed)
        if self.expired:
            raise AnalysisCancelled("deadline exceeded", stage, processed)
