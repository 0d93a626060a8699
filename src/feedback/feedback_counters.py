"""
Feedback Counters
=================

Running feedback tallies as explicit, immutable state.

``record_feedback(counters, record)`` never mutates its input: it returns a
new FeedbackCounters value, so any number of analysis contexts can hold
their own snapshot. For a live dashboard counter, FeedbackTally wraps one
snapshot with a single writer thread; readers get the current immutable
value from ``snapshot()``.

Usage:
    counters = FeedbackCounters()
    counters = record_feedback(counters, record)
    alerts = check_alert_thresholds(counters)
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from ..data.config import AlertThresholds, get_settings
from ..data.data_models import FeedbackRecord, FeedbackType

logger = logging.getLogger(__name__)

ATTENTION_PHRASES = ("crash", "data loss")


@dataclass(frozen=True)
class FeedbackCounters:
    """Snapshot of feedback counts."""
    total_feedback: int = 0
    bug_reports: int = 0
    feature_requests: int = 0
    performance_issues: int = 0
    critical_issues: int = 0

    @property
    def error_rate(self) -> float:
        """Bug reports as a share of all feedback (0 with no feedback)."""
        if self.total_feedback == 0:
            return 0.0
        return self.bug_reports / self.total_feedback

    @property
    def critical_rate(self) -> float:
        if self.total_feedback == 0:
            return 0.0
        return self.critical_issues / self.total_feedback

    def statistics(self) -> Dict[str, Any]:
        return {
            "metrics": {
                "totalFeedback": self.total_feedback,
                "bugReports": self.bug_reports,
                "featureRequests": self.feature_requests,
                "performanceIssues": self.performance_issues,
                "criticalIssues": self.critical_issues,
            },
            "errorRate": self.error_rate,
            "criticalRate": self.critical_rate,
        }


@dataclass(frozen=True)
class ThresholdAlert:
    title: str
    current: float
    threshold: float

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "current": self.current, "threshold": self.threshold}


_TYPE_FIELDS = {
    FeedbackType.BUG: "bug_reports",
    FeedbackType.FEATURE: "feature_requests",
    FeedbackType.PERFORMANCE: "performance_issues",
}


def record_feedback(counters: FeedbackCounters, record: FeedbackRecord) -> FeedbackCounters:
    """Return new counters with ``record`` counted in."""
    changes = {"total_feedback": counters.total_feedback + 1}

    type_field = _TYPE_FIELDS.get(record.type)
    if type_field:
        changes[type_field] = getattr(counters, type_field) + 1

    if record.is_critical:
        changes["critical_issues"] = counters.critical_issues + 1

    return replace(counters, **changes)


def requires_immediate_attention(record: FeedbackRecord) -> bool:
    """Critical, security-related, or reporting a crash / data loss."""
    text = record.text.lower()
    return (
        record.is_critical
        or record.type == FeedbackType.SECURITY
        or any(phrase in text for phrase in ATTENTION_PHRASES)
    )


def check_alert_thresholds(
    counters: FeedbackCounters,
    thresholds: Optional[AlertThresholds] = None,
) -> List[ThresholdAlert]:
    """Alerts for the critical-issue count and the bug-report rate."""
    thresholds = thresholds or get_settings().alerts
    alerts = []

    if counters.critical_issues >= thresholds.critical_issues:
        alerts.append(ThresholdAlert(
            title="Critical Issues Threshold Exceeded",
            current=counters.critical_issues,
            threshold=thresholds.critical_issues,
        ))

    if counters.total_feedback and counters.error_rate >= thresholds.error_rate:
        alerts.append(ThresholdAlert(
            title="High Error Rate Detected",
            current=counters.error_rate,
            threshold=thresholds.error_rate,
        ))

    return alerts


class FeedbackTally:
    """
    Live feedback counter with exactly one writer thread.

    The first thread to call ``submit()`` becomes the writer; a submit from
    any other thread raises RuntimeError. ``snapshot()`` is safe from any
    thread and returns an immutable FeedbackCounters.
    """

    def __init__(self, initial: Optional[FeedbackCounters] = None):
        self._current = initial or FeedbackCounters()
        self._lock = threading.Lock()
        self._writer: Optional[int] = None

    def submit(self, record: FeedbackRecord) -> FeedbackCounters:
        ident = threading.get_ident()
        with self._lock:
            if self._writer is None:
                self._writer = ident
            elif self._writer != ident:
                raise RuntimeError("FeedbackTally accepts updates from a single writer thread only")
            self._current = record_feedback(self._current, record)
            current = self._current

        if requires_immediate_attention(record):
            logger.warning(
                "Feedback %s requires immediate attention (type=%s, severity=%s)",
                record.id, record.type.value, record.severity,
            )
        return current

    def snapshot(self) -> FeedbackCounters:
        with self._lock:
            return self._current
