"""
Feedback Priority Engine
========================

Aggregates classified errors, performance samples and user feedback into
ranked patterns and tiered recommendations.

Error priority per category:
    frequency_score = min(count / error_frequency, 1)
    severity_score  = 1.0 if any error is critical else 0.5
    recency_score   = exp(-(now - last_occurrence) / 1 day)
    priority        = 0.4 * frequency + 0.4 * severity + 0.2 * recency

Slow endpoint priority:
    priority = 0.5 * min(occurrences / 5, 1) + 0.5 * min(max_duration_ms / 5000, 1)

Tiers (all recommendation sources):
    >= 0.8 immediate | >= 0.6 high | >= 0.3 medium | else low

Every aggregate is computed from the arguments of the current call. With
``now`` omitted the newest input timestamp is used, so identical inputs
always give identical reports.

Usage:
    engine = FeedbackPriorityEngine()
    report = engine.analyze_all(feedback, log_report.classified_errors, perf_entries)
"""

import logging
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..data.config import AnalyticsConfig, get_settings
from ..data.data_models import (
    ClassifiedError,
    ErrorCategory,
    FeedbackRecord,
    LogEntry,
    PriorityTier,
    coerce_records,
    tier_for_priority,
)
from ..reviews.review_aspects import AspectClassifier
from ..reviews.review_sentiment import SentimentScorer
from .feature_requests import FeatureRequestExtractor
from .feedback_models import (
    TIER_ORDER,
    CategoryStats,
    ComplaintPattern,
    ErrorPattern,
    FeedbackAnalysisReport,
    FeedbackMetrics,
    FeedbackPatterns,
    FeedbackSummary,
    PerformancePattern,
    RecentTrends,
    Recommendation,
)

logger = logging.getLogger(__name__)


DAY_MS = 86_400_000.0
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

FREQUENCY_WEIGHT = 0.4
SEVERITY_WEIGHT = 0.4
RECENCY_WEIGHT = 0.2
CRITICAL_SEVERITY_SCORE = 1.0
DEFAULT_SEVERITY_SCORE = 0.5

# Slow endpoint priority saturation points
PERFORMANCE_OCCURRENCE_CAP = 5
PERFORMANCE_DURATION_CAP_MS = 5000.0

TOP_ISSUES = 5
TOP_COMPLAINTS = 3
GENERAL_ASPECT = "general"


# =============================================================================
# REMEDIATION LOOKUP
# =============================================================================

ERROR_RECOMMENDATIONS: Dict[ErrorCategory, str] = {
    ErrorCategory.TIMEOUT: "Review and adjust timeout settings, implement circuit breakers",
    ErrorCategory.MEMORY: "Profile memory usage, fix leaks and raise limits where justified",
    ErrorCategory.DATABASE: "Implement connection pooling and retry mechanisms",
    ErrorCategory.API: "Adjust rate limiting thresholds and implement caching",
    ErrorCategory.SECURITY: "Review and strengthen authentication mechanisms",
}
DEFAULT_ERROR_RECOMMENDATION = "Investigate and implement appropriate error handling"

ERROR_ISSUE_PREFIX: Dict[PriorityTier, str] = {
    PriorityTier.IMMEDIATE: "Frequent error",
    PriorityTier.HIGH: "Recurring error",
    PriorityTier.MEDIUM: "Intermittent error",
    PriorityTier.LOW: "Occasional error",
}

PERFORMANCE_RECOMMENDATION = "Add caching, optimize queries and paginate large responses"

COMPLAINT_RECOMMENDATIONS: Dict[str, str] = {
    "service": "Review staffing levels and service training",
    "food": "Review food quality and consistency with the kitchen",
    "pricing": "Review pricing against perceived value",
    "ambiance": "Address cleanliness, noise and comfort issues",
    "location": "Improve directions, parking and accessibility information",
}
DEFAULT_COMPLAINT_RECOMMENDATION = "Follow up with affected users to identify the root cause"

FEATURE_RECOMMENDATION = "Evaluate for the product roadmap"


def priority_score(count: int, critical: bool, age_ms: float, error_frequency: int = 5) -> Tuple[float, float, float, float]:
    """
    Priority of an error category.

    Returns:
        (priority, frequency_score, severity_score, recency_score)
    """
    frequency = min(count / error_frequency, 1.0) if error_frequency > 0 else 1.0
    severity = CRITICAL_SEVERITY_SCORE if critical else DEFAULT_SEVERITY_SCORE
    recency = math.exp(-max(age_ms, 0.0) / DAY_MS)
    priority = FREQUENCY_WEIGHT * frequency + SEVERITY_WEIGHT * severity + RECENCY_WEIGHT * recency
    return max(0.0, min(1.0, priority)), frequency, severity, recency


def performance_priority(occurrences: int, max_duration_ms: float) -> float:
    occurrence_score = min(occurrences / PERFORMANCE_OCCURRENCE_CAP, 1.0)
    duration_score = min(max_duration_ms / PERFORMANCE_DURATION_CAP_MS, 1.0)
    return max(0.0, min(1.0, 0.5 * occurrence_score + 0.5 * duration_score))


def _age_ms(now: datetime, then: datetime) -> float:
    return (now - then).total_seconds() * 1000.0


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class FeedbackPriorityEngine:
    """
    Ranks error, performance, complaint and feature-request signals.

    Stateless between calls: safe to share across threads.
    """

    def __init__(
        self,
        config: Optional[AnalyticsConfig] = None,
        scorer: Optional[SentimentScorer] = None,
        classifier: Optional[AspectClassifier] = None,
        feature_extractor: Optional[FeatureRequestExtractor] = None,
    ):
        self.config = config or get_settings().analytics
        self.scorer = scorer or SentimentScorer()
        self.classifier = classifier or AspectClassifier(scorer=self.scorer)
        self.feature_extractor = feature_extractor or FeatureRequestExtractor()

    # =========================================================================
    # Entry point
    # =========================================================================

    def analyze_all(
        self,
        feedback_entries: Iterable[Any],
        classified_errors: Iterable[Any],
        performance: Iterable[Any] = (),
        now: Optional[datetime] = None,
        user_satisfaction: Optional[float] = None,
    ) -> FeedbackAnalysisReport:
        """
        Analyze feedback and errors into a prioritized report.

        Args:
            feedback_entries: FeedbackRecord objects or dicts
            classified_errors: ClassifiedError objects or dicts
            performance: LogEntry objects or dicts carrying durationMs
            now: Reference time for recency; defaults to the newest input timestamp
            user_satisfaction: Externally measured satisfaction, passed through

        Raises:
            InvalidInputError: if an argument is not a collection of records
        """
        feedback = coerce_records(feedback_entries, FeedbackRecord, "feedback_entries")
        errors = coerce_records(classified_errors, ClassifiedError, "classified_errors")
        samples = [
            s for s in coerce_records(performance, LogEntry, "performance")
            if s.duration_ms is not None
        ]
        now = _as_utc(now) if now is not None else self._reference_time(feedback, errors, samples)

        logger.info(
            "Starting feedback analysis: %d feedback, %d errors, %d performance samples",
            len(feedback), len(errors), len(samples),
        )

        stats = self.aggregate_errors(errors)
        sentiments = [self.scorer.score(f.text) for f in feedback]

        patterns = FeedbackPatterns(
            error_patterns=self.analyze_error_patterns(stats, len(errors), now),
            performance_patterns=self.analyze_performance_patterns(samples),
            user_complaint_patterns=self.analyze_user_complaints(feedback, sentiments),
            feature_request_patterns=self.feature_extractor.extract(feedback),
        )

        report = FeedbackAnalysisReport(
            as_of=now,
            summary=self._summary(feedback, sentiments, errors, stats, samples, now),
            patterns=patterns,
            recommendations=self.generate_recommendations(patterns),
            metrics=self.calculate_metrics(feedback, errors, samples, user_satisfaction),
        )

        logger.info(
            "Feedback analysis completed: %d error patterns, %d recommendations",
            len(patterns.error_patterns), len(report.recommendations),
            extra={"count": len(feedback) + len(errors)},
        )
        return report

    @staticmethod
    def _reference_time(
        feedback: List[FeedbackRecord],
        errors: List[ClassifiedError],
        samples: List[LogEntry],
    ) -> datetime:
        stamps = [f.timestamp for f in feedback] + [e.timestamp for e in errors] + [s.timestamp for s in samples]
        return max(stamps) if stamps else EPOCH

    # =========================================================================
    # Errors
    # =========================================================================

    @staticmethod
    def aggregate_errors(errors: List[ClassifiedError]) -> Dict[ErrorCategory, CategoryStats]:
        """Per-category statistics, in category order; empty categories omitted."""
        stats: Dict[ErrorCategory, CategoryStats] = {}
        for category in ErrorCategory:
            members = [e for e in errors if e.category == category]
            if not members:
                continue
            endpoints: List[str] = []
            for e in members:
                if e.path and e.path not in endpoints:
                    endpoints.append(e.path)
            stats[category] = CategoryStats(
                category=category,
                count=len(members),
                last_occurrence=max(e.timestamp for e in members),
                first_occurrence=min(e.timestamp for e in members),
                affected_endpoints=tuple(endpoints),
                critical=any(e.is_critical for e in members),
            )
        return stats

    def analyze_error_patterns(
        self,
        stats: Dict[ErrorCategory, CategoryStats],
        total_errors: int,
        now: datetime,
    ) -> List[ErrorPattern]:
        """Categories with count >= error_frequency, by priority descending."""
        patterns = []
        for category, data in stats.items():
            if data.count < self.config.error_frequency:
                continue
            priority, frequency, severity, recency = priority_score(
                data.count,
                data.critical,
                _age_ms(now, data.last_occurrence),
                self.config.error_frequency,
            )
            patterns.append(ErrorPattern(
                category=category,
                count=data.count,
                frequency=data.count / total_errors if total_errors else 0.0,
                last_occurrence=data.last_occurrence,
                affected_endpoints=data.affected_endpoints,
                frequency_score=frequency,
                severity_score=severity,
                recency_score=recency,
                priority=priority,
            ))

        return sorted(patterns, key=lambda p: p.priority, reverse=True)

    # =========================================================================
    # Performance
    # =========================================================================

    def analyze_performance_patterns(self, samples: List[LogEntry]) -> List[PerformancePattern]:
        """Endpoints with calls above the performance threshold."""
        slow: Dict[str, List[float]] = {}
        for sample in samples:
            if sample.duration_ms <= self.config.performance_threshold_ms:
                continue
            endpoint = f"{(sample.method or 'ANY').upper()} {sample.path or 'unknown'}"
            slow.setdefault(endpoint, []).append(sample.duration_ms)

        patterns = [
            PerformancePattern(
                endpoint=endpoint,
                average_duration_ms=sum(durations) / len(durations),
                max_duration_ms=max(durations),
                occurrences=len(durations),
                priority=performance_priority(len(durations), max(durations)),
            )
            for endpoint, durations in slow.items()
        ]
        return sorted(patterns, key=lambda p: p.priority, reverse=True)

    # =========================================================================
    # User feedback
    # =========================================================================

    def _complaints_by_aspect(self, feedback, sentiments) -> Dict[str, List[Tuple[FeedbackRecord, float]]]:
        grouped: Dict[str, List[Tuple[FeedbackRecord, float]]] = {}
        for record, sentiment in zip(feedback, sentiments):
            if sentiment.score >= 0:
                continue
            for aspect in self.classifier.match_aspects(record.text) or [GENERAL_ASPECT]:
                grouped.setdefault(aspect, []).append((record, sentiment.score))
        return grouped

    def analyze_user_complaints(self, feedback, sentiments) -> List[ComplaintPattern]:
        """Aspects with at least ``complaint_threshold`` negative feedback entries."""
        threshold = self.config.complaint_threshold
        patterns = []
        for aspect, items in self._complaints_by_aspect(feedback, sentiments).items():
            if len(items) < threshold:
                continue
            average = round(sum(score for _, score in items) / len(items), 2)
            priority = 0.5 * min(len(items) / (2 * threshold), 1.0) + 0.5 * min(abs(average), 1.0)
            patterns.append(ComplaintPattern(
                aspect=aspect,
                count=len(items),
                average_score=average,
                priority=priority,
                examples=tuple(record.text[:300] for record, _ in items[:3]),
            ))
        return sorted(patterns, key=lambda p: p.priority, reverse=True)

    # =========================================================================
    # Recommendations
    # =========================================================================

    def generate_recommendations(self, patterns: FeedbackPatterns) -> List[Recommendation]:
        recommendations: List[Recommendation] = []

        for pattern in patterns.error_patterns:
            tier = tier_for_priority(pattern.priority)
            recommendations.append(Recommendation(
                category=pattern.category.value,
                issue_text=f"{ERROR_ISSUE_PREFIX[tier]}: {pattern.category.value}",
                recommendation_text=ERROR_RECOMMENDATIONS.get(pattern.category, DEFAULT_ERROR_RECOMMENDATION),
                priority_tier=tier,
                priority=pattern.priority,
                source="error",
                metrics={
                    "frequency": round(pattern.frequency, 4),
                    "occurrences": pattern.count,
                    "priority": round(pattern.priority, 4),
                },
            ))

        for pattern in patterns.performance_patterns:
            recommendations.append(Recommendation(
                category="performance",
                issue_text=f"Slow endpoint: {pattern.endpoint}",
                recommendation_text=PERFORMANCE_RECOMMENDATION,
                priority_tier=tier_for_priority(pattern.priority),
                priority=pattern.priority,
                source="performance",
                metrics={
                    "averageDurationMs": round(pattern.average_duration_ms, 2),
                    "maxDurationMs": pattern.max_duration_ms,
                    "occurrences": pattern.occurrences,
                    "priority": round(pattern.priority, 4),
                },
            ))

        for pattern in patterns.user_complaint_patterns:
            recommendations.append(Recommendation(
                category=pattern.aspect,
                issue_text=f"Repeated complaints about {pattern.aspect}",
                recommendation_text=COMPLAINT_RECOMMENDATIONS.get(pattern.aspect, DEFAULT_COMPLAINT_RECOMMENDATION),
                priority_tier=tier_for_priority(pattern.priority),
                priority=pattern.priority,
                source="complaint",
                metrics={
                    "complaints": pattern.count,
                    "averageScore": pattern.average_score,
                    "priority": round(pattern.priority, 4),
                },
            ))

        # Feature requests are backlog material, never urgent
        for pattern in patterns.feature_request_patterns:
            recommendations.append(Recommendation(
                category="feature",
                issue_text=f"Requested feature: {pattern.feature}",
                recommendation_text=FEATURE_RECOMMENDATION,
                priority_tier=PriorityTier.LOW,
                priority=pattern.confidence,
                source="feature",
                metrics={"mentions": pattern.mentions, "confidence": pattern.confidence},
            ))

        rank = {tier: i for i, tier in enumerate(TIER_ORDER)}
        return sorted(recommendations, key=lambda r: (rank[r.priority_tier], -r.priority))

    # =========================================================================
    # Summary & metrics
    # =========================================================================

    def _summary(self, feedback, sentiments, errors, stats, samples, now) -> FeedbackSummary:
        top_issues = [
            {
                "error": data.category.value,
                "count": data.count,
                "lastOccurrence": data.last_occurrence.isoformat(),
            }
            for data in sorted(stats.values(), key=lambda d: d.count, reverse=True)[:TOP_ISSUES]
        ]

        return FeedbackSummary(
            total_feedback=len(feedback),
            total_errors=len(errors),
            performance_issues=sum(
                1 for s in samples if s.duration_ms > self.config.performance_threshold_ms
            ),
            critical_issues=sum(1 for e in errors if e.is_critical),
            top_issues=top_issues,
            recent_trends=self.analyze_recent_trends(feedback, sentiments, stats, now),
        )

    def analyze_recent_trends(self, feedback, sentiments, stats, now: datetime) -> RecentTrends:
        """Feedback and error activity in the day before ``now``."""
        day = timedelta(milliseconds=DAY_MS)
        recent = [
            (record, sentiment)
            for record, sentiment in zip(feedback, sentiments)
            if now - record.timestamp < day
        ]

        trend = 0.0
        if recent:
            trend = round(sum(s.score for _, s in recent) / len(recent), 2)

        complaint_counts = Counter()
        for aspect, items in self._complaints_by_aspect(
            [r for r, _ in recent], [s for _, s in recent]
        ).items():
            complaint_counts[aspect] = len(items)
        top_complaints = sorted(complaint_counts.items(), key=lambda kv: kv[1], reverse=True)[:TOP_COMPLAINTS]

        emerging = [
            {
                "category": data.category.value,
                "count": data.count,
                "firstSeen": data.first_occurrence.isoformat(),
            }
            for data in sorted(stats.values(), key=lambda d: d.count, reverse=True)
            if now - data.first_occurrence < day
        ]

        return RecentTrends(
            daily_feedback_count=len(recent),
            sentiment_trend=trend,
            top_complaints=top_complaints,
            emerging_issues=emerging,
        )

    @staticmethod
    def calculate_metrics(
        feedback: List[FeedbackRecord],
        errors: List[ClassifiedError],
        samples: List[LogEntry],
        user_satisfaction: Optional[float] = None,
    ) -> FeedbackMetrics:
        total_feedback = len(feedback)
        critical = sum(1 for e in errors if e.is_critical)

        return FeedbackMetrics(
            error_rate=len(errors) / total_feedback if total_feedback else 0.0,
            critical_issue_rate=critical / total_feedback if total_feedback else 0.0,
            average_response_time=(
                sum(s.duration_ms for s in samples) / len(samples) if samples else 0.0
            ),
            user_satisfaction=user_satisfaction,
        )
