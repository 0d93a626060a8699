"""
Log Pattern Analyzer
====================

Classifies and clusters structured application log entries:

- error-level entries are classified by an ordered list of message patterns
  (first match wins, no match is "other")
- slow requests / slow queries / high memory / high CPU are flagged per entry
- endpoint frequency and "path: message" error signatures are counted
- error timestamps are grouped into temporal clusters (gap <= 5 minutes)
- one fixed remediation block is emitted per non-zero dimension

Every call recomputes everything from the entries it is given; the analyzer
holds configuration only.

Usage:
    analyzer = LogPatternAnalyzer()
    report = analyzer.analyze(entries)
    report = analyzer.analyze_lines(open("app.log"))
"""

import logging
import time
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..data.config import AnalyticsConfig, LogThresholds, get_settings
from ..data.data_models import ClassifiedError, ErrorCategory, LogEntry
from ..data.log_parser import parse_log_entries, parse_log_lines
from .cancellation import CancellationToken
from .log_models import (
    ErrorClassification,
    ErrorCluster,
    LogAnalysisReport,
    RemediationBlock,
    ResourceSample,
    SlowQuery,
    SlowRequest,
)
from .log_rules import (
    ERROR_CATEGORY_RULES,
    HIGH_CPU,
    HIGH_MEMORY,
    REMEDIATION_RULES,
    SLOW_QUERIES,
    SLOW_REQUESTS,
    RemediationRule,
    classify_message,
)

logger = logging.getLogger(__name__)

TOP_N = 5
UNKNOWN_PATH = "unknown"


def _top(counter: Counter, n: int = TOP_N) -> List[Tuple[str, int]]:
    # Counter keeps insertion order; the stable sort keeps first-seen order on ties
    return sorted(counter.items(), key=lambda kv: kv[1], reverse=True)[:n]


def find_error_clusters(
    timestamps: Iterable[datetime],
    window_ms: float = 300_000,
    cancel_token: Optional[CancellationToken] = None,
    batch_size: int = 1000,
) -> List[ErrorCluster]:
    """
    Group error timestamps into temporal clusters.

    Timestamps are sorted, then consecutive ones are chained while each gap
    is at most ``window_ms``. Runs of a single timestamp are dropped.
    """
    ordered = sorted(timestamps)
    clusters: List[ErrorCluster] = []
    current: List[datetime] = []

    for i, ts in enumerate(ordered):
        if cancel_token is not None and i % batch_size == 0:
            cancel_token.raise_if_cancelled("clustering", i)

        if current and (ts - current[-1]).total_seconds() * 1000.0 > window_ms:
            if len(current) > 1:
                clusters.append(ErrorCluster(timestamps=tuple(current)))
            current = []
        current.append(ts)

    if len(current) > 1:
        clusters.append(ErrorCluster(timestamps=tuple(current)))

    return clusters


class LogPatternAnalyzer:
    """
    Error classification, performance checks and temporal clustering
    over a batch of log entries.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        thresholds: Optional[LogThresholds] = None,
        rules: Sequence[Tuple[ErrorCategory, Pattern]] = ERROR_CATEGORY_RULES,
        remediation: Sequence[RemediationRule] = REMEDIATION_RULES,
    ):
        if config is None or thresholds is None:
            settings = get_settings()
            config = config or settings.analytics
            thresholds = thresholds or settings.log_thresholds
        self.config = config
        self.thresholds = thresholds
        self.rules = tuple(rules)
        self.remediation = tuple(remediation)

    def classify(self, entry: LogEntry) -> Optional[ClassifiedError]:
        """Classified form of an error entry; None for non-error levels."""
        if not entry.is_error:
            return None
        return ClassifiedError(
            category=classify_message(entry.message, self.rules),
            timestamp=entry.timestamp,
            message=entry.message,
            path=entry.path,
            method=entry.method,
            severity=entry.severity or "error",
        )

    def analyze_lines(
        self,
        lines: Iterable[str],
        strict: Optional[bool] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> LogAnalysisReport:
        """Parse raw JSON log lines, then analyze them."""
        if strict is None:
            strict = self.config.strict_parsing
        parsed = parse_log_lines(lines, strict=strict)
        return self.analyze(
            parsed.entries, cancel_token=cancel_token, unparsed=parsed.unparsed, strict=strict
        )

    def analyze(
        self,
        entries: Iterable[Any],
        cancel_token: Optional[CancellationToken] = None,
        unparsed: int = 0,
        strict: Optional[bool] = None,
    ) -> LogAnalysisReport:
        """
        Analyze a batch of log entries.

        Dict entries that fail validation are skipped and added to
        ``unparsed`` unless strict parsing is on.

        Args:
            entries: LogEntry objects or dicts in log-entry shape
            cancel_token: Checked between batches of ``config.batch_size``
            unparsed: Lines the caller already failed to parse
            strict: Raise on the first invalid entry (default: config.strict_parsing)

        Returns:
            LogAnalysisReport

        Raises:
            AnalysisCancelled: if the token is cancelled or expires mid-run
            InvalidInputError: if ``entries`` is not a collection
            LogParseError: in strict mode, if an entry fails validation
        """
        started = time.monotonic()
        if strict is None:
            strict = self.config.strict_parsing
        validated = parse_log_entries(entries, strict=strict)
        records = validated.entries
        unparsed += validated.unparsed
        batch_size = self.config.batch_size

        logger.info("Starting log analysis of %d entries", len(records))

        breakdown: Dict[str, int] = {category.value: 0 for category in ErrorCategory}
        classified: List[ClassifiedError] = []
        slow_requests: List[SlowRequest] = []
        slow_queries: List[SlowQuery] = []
        high_memory: List[ResourceSample] = []
        high_cpu: List[ResourceSample] = []
        common_errors: Counter = Counter()
        endpoints: Counter = Counter()

        for i, entry in enumerate(records):
            if cancel_token is not None and i % batch_size == 0:
                cancel_token.raise_if_cancelled("classification", i)

            error = self.classify(entry)
            if error is not None:
                classified.append(error)
                breakdown[error.category.value] += 1
                common_errors[f"{entry.path or UNKNOWN_PATH}: {entry.message}"] += 1

            if entry.duration_ms is not None:
                if entry.entry_type == "request" and entry.duration_ms > self.thresholds.slow_request_ms:
                    slow_requests.append(SlowRequest(
                        path=entry.path,
                        method=entry.method,
                        duration_ms=entry.duration_ms,
                        timestamp=entry.timestamp,
                    ))
                if entry.entry_type == "query" and entry.duration_ms > self.thresholds.slow_query_ms:
                    slow_queries.append(SlowQuery(
                        query=entry.query,
                        duration_ms=entry.duration_ms,
                        timestamp=entry.timestamp,
                    ))

            if entry.path:
                endpoints[entry.path] += 1

            heap = entry.heap_used_bytes
            if heap is not None and heap > self.thresholds.high_memory_bytes:
                high_memory.append(ResourceSample(value=heap, timestamp=entry.timestamp))

            cpu = entry.cpu_usage_percent
            if cpu is not None and cpu > self.thresholds.high_cpu_percent:
                high_cpu.append(ResourceSample(value=cpu, timestamp=entry.timestamp))

        clusters = find_error_clusters(
            (e.timestamp for e in classified),
            window_ms=self.config.cluster_window_ms,
            cancel_token=cancel_token,
            batch_size=batch_size,
        )

        report = LogAnalysisReport(
            entries_analyzed=len(records),
            error_breakdown=breakdown,
            classifications=self._classifications(classified),
            classified_errors=classified,
            slow_requests=slow_requests,
            slow_queries=slow_queries,
            high_memory=high_memory,
            high_cpu=high_cpu,
            most_frequent_errors=_top(common_errors),
            most_frequent_endpoints=_top(endpoints),
            error_clusters=clusters,
            unparsed=unparsed,
        )
        report.recommendations = self.generate_recommendations(report)

        logger.info(
            "Log analysis complete: %d errors, %d clusters, %d recommendations",
            report.total_errors, report.cluster_count, len(report.recommendations),
            extra={"duration": round(time.monotonic() - started, 3), "count": len(records)},
        )
        return report

    def _classifications(self, classified: List[ClassifiedError]) -> List[ErrorClassification]:
        """One aggregate per category that occurred, in rule order."""
        result = []
        for category in ErrorCategory:
            errors = [e for e in classified if e.category == category]
            if not errors:
                continue
            endpoints: List[str] = []
            for e in errors:
                if e.path and e.path not in endpoints:
                    endpoints.append(e.path)
            result.append(ErrorClassification(
                category=category,
                count=len(errors),
                last_occurrence=max(e.timestamp for e in errors),
                affected_endpoints=tuple(endpoints),
            ))
        return result

    def generate_recommendations(self, report: LogAnalysisReport) -> List[RemediationBlock]:
        """Independent rule per dimension; several may fire in one run."""
        counts = dict(report.error_breakdown)
        counts[SLOW_REQUESTS] = len(report.slow_requests)
        counts[SLOW_QUERIES] = len(report.slow_queries)
        counts[HIGH_MEMORY] = len(report.high_memory)
        counts[HIGH_CPU] = len(report.high_cpu)

        return [
            RemediationBlock(
                category=rule.category,
                priority=rule.priority,
                issues=rule.issues,
                trigger=rule.trigger,
                count=counts[rule.trigger],
            )
            for rule in self.remediation
            if counts.get(rule.trigger, 0) > 0
        ]
