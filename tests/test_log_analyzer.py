"""
Tests for the log pattern analyzer.

Tests:
- Ordered error classification (first match wins)
- Performance checks (slow requests / queries, memory, CPU)
- Temporal error clustering
- Fixed remediation blocks
- Cooperative cancellation

Usage:
    pytest tests/test_log_analyzer.py -v
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from src.data.config import AnalyticsConfig, LogThresholds
from src.data.data_models import ErrorCategory, InvalidInputError, PriorityTier
from src.data.log_parser import LogParseError
from src.telemetry.cancellation import AnalysisCancelled, CancellationToken
from src.telemetry.log_analyzer import LogPatternAnalyzer, find_error_clusters
from src.telemetry.log_models import ErrorCluster
from src.telemetry.log_rules import classify_message


BASE_TIME = datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


def make_entry(message: str = "ok", level: str = "info", seconds: float = 0, **fields) -> dict:
    """Helper to create a log entry dict, ``seconds`` after BASE_TIME."""
    entry = {
        "timestamp": (BASE_TIME + timedelta(seconds=seconds)).isoformat(),
        "level": level,
        "message": message,
    }
    entry.update(fields)
    return entry


def make_error(message: str, seconds: float = 0, **fields) -> dict:
    return make_entry(message, level="error", seconds=seconds, **fields)


def make_analyzer(**config) -> LogPatternAnalyzer:
    return LogPatternAnalyzer(config=AnalyticsConfig(**config), thresholds=LogThresholds())


class TestClassification:

    def test_first_matching_rule_wins(self):
        assert classify_message("database timeout") == ErrorCategory.TIMEOUT

    def test_categories(self):
        assert classify_message("Request timed out") == ErrorCategory.TIMEOUT
        assert classify_message("JavaScript heap out of memory") == ErrorCategory.MEMORY
        assert classify_message("ECONNREFUSED: Connection refused") == ErrorCategory.DATABASE
        assert classify_message("Upstream returned 503") == ErrorCategory.API
        assert classify_message("Rate limit exceeded") == ErrorCategory.API
        assert classify_message("Invalid token supplied") == ErrorCategory.SECURITY

    def test_no_match_is_other(self):
        assert classify_message("Something odd happened") == ErrorCategory.OTHER
        assert classify_message("") == ErrorCategory.OTHER

    def test_only_error_level_classified(self):
        analyzer = make_analyzer()
        report = analyzer.analyze([
            make_entry("connection refused", level="warn"),
            make_entry("connection refused", level="info"),
        ])
        assert report.total_errors == 0
        assert report.classified_errors == []

    def test_breakdown_lists_every_category(self):
        report = make_analyzer().analyze([make_error("boom")])
        assert set(report.error_breakdown) == {c.value for c in ErrorCategory}
        assert report.error_breakdown["other"] == 1


class TestDatabaseIncident:
    """Six 'connection refused' errors inside three minutes."""

    def setup_method(self):
        self.entries = [
            make_error("connect ECONNREFUSED: connection refused", seconds=i * 36, path="/api/orders")
            for i in range(6)
        ]
        self.report = make_analyzer().analyze(self.entries)

    def test_all_classified_as_database(self):
        assert self.report.error_breakdown["database"] == 6
        assert all(e.category == ErrorCategory.DATABASE for e in self.report.classified_errors)

    def test_single_cluster_of_six(self):
        assert self.report.cluster_count == 1
        assert self.report.error_clusters[0].size == 6

    def test_database_recommendation(self):
        categories = [r.category for r in self.report.recommendations]
        assert categories == ["Database"]
        block = self.report.recommendations[0]
        assert block.priority == PriorityTier.HIGH
        assert block.issues[0] == "Frequent database connection errors detected"
        assert block.count == 6

    def test_most_frequent_error_signature(self):
        signature, count = self.report.most_frequent_errors[0]
        assert signature == "/api/orders: connect ECONNREFUSED: connection refused"
        assert count == 6

    def test_classification_aggregate(self):
        aggregate = self.report.classifications[0]
        assert aggregate.category == ErrorCategory.DATABASE
        assert aggregate.affected_endpoints == ("/api/orders",)
        assert aggregate.last_occurrence == BASE_TIME + timedelta(seconds=180)


class TestPerformanceChecks:

    def setup_method(self):
        self.analyzer = make_analyzer()

    def test_slow_request(self):
        report = self.analyzer.analyze([
            make_entry(type="request", durationMs=2500, path="/api/search", method="GET"),
            make_entry(type="request", durationMs=2000, path="/api/search", method="GET"),
        ])
        assert len(report.slow_requests) == 1
        assert report.slow_requests[0].duration_ms == 2500
        assert [r.category for r in report.recommendations] == ["Performance"]

    def test_slow_query(self):
        report = self.analyzer.analyze([
            make_entry(type="query", durationMs=1500, query="SELECT * FROM reviews"),
        ])
        assert len(report.slow_queries) == 1
        assert report.slow_queries[0].query == "SELECT * FROM reviews"

    def test_duration_ignored_without_matching_type(self):
        report = self.analyzer.analyze([make_entry(durationMs=9000)])
        assert report.slow_requests == []
        assert report.slow_queries == []

    def test_high_memory(self):
        report = self.analyzer.analyze([
            make_entry(memory={"heapUsed": 600 * 1024 * 1024}),
            make_entry(memory={"heapUsed": 100 * 1024 * 1024}),
        ])
        assert len(report.high_memory) == 1
        assert report.recommendations[0].category == "Memory"

    def test_high_cpu(self):
        report = self.analyzer.analyze([make_entry(cpu={"usage": 85})])
        assert len(report.high_cpu) == 1
        assert report.performance_issues["highCpu"] == 1

    def test_endpoint_frequency(self):
        entries = [make_entry(path="/a")] * 3 + [make_entry(path="/b")] * 5
        report = self.analyzer.analyze(entries)
        assert report.most_frequent_endpoints == [("/b", 5), ("/a", 3)]


class TestErrorClusters:

    def ts(self, minutes: float) -> datetime:
        return BASE_TIME + timedelta(minutes=minutes)

    def test_isolated_error_is_not_a_cluster(self):
        assert find_error_clusters([self.ts(0)]) == []
        assert find_error_clusters([self.ts(0), self.ts(10)]) == []

    def test_gap_splits_clusters(self):
        clusters = find_error_clusters([self.ts(m) for m in (0, 2, 4, 20, 21)])
        assert [c.size for c in clusters] == [3, 2]

    def test_gap_of_exactly_window_chains(self):
        clusters = find_error_clusters([self.ts(0), self.ts(5)])
        assert len(clusters) == 1

    def test_unsorted_input(self):
        clusters = find_error_clusters([self.ts(4), self.ts(0), self.ts(2)])
        assert clusters[0].start == self.ts(0)
        assert clusters[0].end == self.ts(4)
        assert clusters[0].span_ms == 4 * 60 * 1000

    def test_cluster_properties_hold(self):
        minutes = [0, 1, 3, 9, 10, 30, 31, 32, 50]
        clusters = find_error_clusters([self.ts(m) for m in minutes])
        window = timedelta(minutes=5)

        for cluster in clusters:
            assert cluster.size >= 2
            gaps = [b - a for a, b in zip(cluster.timestamps, cluster.timestamps[1:])]
            assert all(g <= window for g in gaps)
        for first, second in zip(clusters, clusters[1:]):
            assert second.start - first.end > window

    def test_cluster_needs_two_members(self):
        with pytest.raises(ValueError):
            ErrorCluster(timestamps=(self.ts(0),))

    def test_custom_window(self):
        clusters = find_error_clusters([self.ts(0), self.ts(2)], window_ms=60_000)
        assert clusters == []


class TestRecommendations:

    def test_one_block_per_dimension(self):
        report = make_analyzer().analyze([
            make_error("Request timed out"),
            make_error("Unauthorized access"),
            make_entry(type="request", durationMs=5000),
        ])
        assert [r.category for r in report.recommendations] == ["Timeout", "Security", "Performance"]

    def test_uncategorized_errors_block(self):
        report = make_analyzer().analyze([make_error("weird failure")])
        assert report.recommendations[0].category == "Uncategorized Errors"
        assert report.recommendations[0].priority == PriorityTier.LOW

    def test_clean_logs_have_no_recommendations(self):
        report = make_analyzer().analyze([make_entry()])
        assert report.recommendations == []


class TestAnalyzeLines:

    def test_unparsed_lines_reported(self):
        lines = [json.dumps(make_error("timeout")), "not json", ""]
        report = make_analyzer().analyze_lines(lines)
        assert report.entries_analyzed == 1
        assert report.unparsed == 1
        assert report.to_dict()["summary"]["unparsed"] == 1


class TestInputsAndCancellation:

    def test_empty_entries(self):
        report = make_analyzer().analyze([])
        assert report.entries_analyzed == 0
        assert report.total_errors == 0
        assert report.error_clusters == []

    def test_string_rejected(self):
        with pytest.raises(InvalidInputError):
            make_analyzer().analyze("connection refused")

    def test_invalid_entry_skipped_and_counted(self):
        report = make_analyzer().analyze([
            make_error("connection refused"),
            {"timestamp": BASE_TIME.isoformat(), "level": "error"},
        ])
        assert report.entries_analyzed == 1
        assert report.unparsed == 1
        assert report.error_breakdown["database"] == 1

    def test_invalid_entries_add_to_caller_unparsed(self):
        report = make_analyzer().analyze(
            [make_error("timeout"), {"level": "error", "message": "no timestamp"}],
            unparsed=2,
        )
        assert report.unparsed == 3

    def test_invalid_entry_strict(self):
        entries = [make_error("connection refused"), {"timestamp": BASE_TIME.isoformat(), "level": "error"}]
        with pytest.raises(LogParseError) as exc_info:
            make_analyzer().analyze(entries, strict=True)
        assert exc_info.value.line_number == 2

        with pytest.raises(LogParseError):
            make_analyzer(strict_parsing=True).analyze(entries)

    def test_non_mapping_entry_rejected(self):
        with pytest.raises(InvalidInputError):
            make_analyzer().analyze([make_error("boom"), 42])

    def test_cancelled_token_raises(self):
        token = CancellationToken()
        token.cancel("user abort")
        with pytest.raises(AnalysisCancelled) as exc_info:
            make_analyzer().analyze([make_error("boom")], cancel_token=token)
        assert exc_info.value.reason == "user abort"

    def test_deadline_checked_between_batches(self):
        now = [0.0]
        token = CancellationToken(timeout_seconds=5, clock=lambda: now[0])
        assert not token.cancelled
        now[0] = 6.0
        assert token.expired

        entries = [make_error("boom", seconds=i) for i in range(10)]
        with pytest.raises(AnalysisCancelled) as exc_info:
            make_analyzer(batch_size=4).analyze(entries, cancel_token=token)
        assert exc_info.value.reason == "deadline exceeded"

    def test_live_token_does_not_interfere(self):
        token = CancellationToken(timeout_seconds=3600)
        report = make_analyzer(batch_size=2).analyze(
            [make_error("boom", seconds=i) for i in range(5)], cancel_token=token
        )
        assert report.total_errors == 5

    def test_recomputed_per_call(self):
        analyzer = make_analyzer()
        first = analyzer.analyze([make_error("timeout")])
        second = analyzer.analyze([make_error("timeout")])
        assert first.total_errors == second.total_errors == 1
