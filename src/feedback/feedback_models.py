"""
Feedback Analysis Data Models
=============================

Outputs of the feedback priority engine. ``to_dict()`` on the report gives
the JSON shape consumed by the reporting layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..data.data_models import ErrorCategory, PriorityTier


TIER_ORDER = (PriorityTier.IMMEDIATE, PriorityTier.HIGH, PriorityTier.MEDIUM, PriorityTier.LOW)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class CategoryStats:
    """Errors of one category, recomputed from the input on every call."""
    category: ErrorCategory
    count: int
    last_occurrence: datetime
    first_occurrence: datetime
    affected_endpoints: Tuple[str, ...]
    critical: bool                       # any contributing error is critical


@dataclass(frozen=True)
class ErrorPattern:
    """A category frequent enough to surface, with its priority breakdown."""
    category: ErrorCategory
    count: int
    frequency: float                     # share of all errors
    last_occurrence: datetime
    affected_endpoints: Tuple[str, ...]
    frequency_score: float
    severity_score: float
    recency_score: float
    priority: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.category.value,
            "count": self.count,
            "frequency": round(self.frequency, 4),
            "lastOccurrence": _iso(self.last_occurrence),
            "affectedEndpoints": list(self.affected_endpoints),
            "scores": {
                "frequency": round(self.frequency_score, 4),
                "severity": round(self.severity_score, 4),
                "recency": round(self.recency_score, 4),
            },
            "priority": round(self.priority, 4),
        }


@dataclass(frozen=True)
class PerformancePattern:
    """An endpoint whose calls exceeded the performance threshold."""
    endpoint: str
    average_duration_ms: float
    max_duration_ms: float
    occurrences: int
    priority: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "averageDurationMs": round(self.average_duration_ms, 2),
            "maxDurationMs": self.max_duration_ms,
            "occurrences": self.occurrences,
            "priority": round(self.priority, 4),
        }


@dataclass(frozen=True)
class ComplaintPattern:
    """Negative feedback sharing an aspect."""
    aspect: str
    count: int
    average_score: float
    priority: float
    examples: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspect": self.aspect,
            "count": self.count,
            "averageScore": self.average_score,
            "priority": round(self.priority, 4),
            "examples": list(self.examples),
        }


@dataclass(frozen=True)
class FeatureRequestPattern:
    """A missing feature detected from 'I wish' style phrasing."""
    feature: str
    mentions: int
    confidence: float                    # 0.0 to 1.0
    source_quotes: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": self.feature,
            "mentions": self.mentions,
            "confidence": self.confidence,
            "sourceQuotes": list(self.source_quotes),
        }


@dataclass(frozen=True)
class Recommendation:
    category: str
    issue_text: str
    recommendation_text: str
    priority_tier: PriorityTier
    priority: float
    source: str                          # error | performance | complaint | feature
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.source,
            "category": self.category,
            "issue": self.issue_text,
            "recommendation": self.recommendation_text,
            "priority": self.priority_tier.value,
            "metrics": dict(self.metrics),
        }


@dataclass
class RecentTrends:
    daily_feedback_count: int
    sentiment_trend: float
    top_complaints: List[Tuple[str, int]]
    emerging_issues: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dailyFeedbackCount": self.daily_feedback_count,
            "sentimentTrend": self.sentiment_trend,
            "topComplaints": [{"aspect": a, "count": c} for a, c in self.top_complaints],
            "emergingIssues": list(self.emerging_issues),
        }


@dataclass
class FeedbackSummary:
    total_feedback: int
    total_errors: int
    performance_issues: int
    critical_issues: int
    top_issues: List[Dict[str, Any]]
    recent_trends: RecentTrends

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalFeedback": self.total_feedback,
            "totalErrors": self.total_errors,
            "performanceIssues": self.performance_issues,
            "criticalIssues": self.critical_issues,
            "topIssues": list(self.top_issues),
            "recentTrends": self.recent_trends.to_dict(),
        }


@dataclass
class FeedbackPatterns:
    error_patterns: List[ErrorPattern] = field(default_factory=list)
    performance_patterns: List[PerformancePattern] = field(default_factory=list)
    user_complaint_patterns: List[ComplaintPattern] = field(default_factory=list)
    feature_request_patterns: List[FeatureRequestPattern] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorPatterns": [p.to_dict() for p in self.error_patterns],
            "performancePatterns": [p.to_dict() for p in self.performance_patterns],
            "userComplaintPatterns": [p.to_dict() for p in self.user_complaint_patterns],
            "featureRequestPatterns": [p.to_dict() for p in self.feature_request_patterns],
        }


@dataclass
class FeedbackMetrics:
    error_rate: float
    critical_issue_rate: float
    average_response_time: float
    user_satisfaction: Optional[float]   # supplied by an external survey pipeline

    def to_dict(self) -> Dict[str, Any]:
        return {
            "errorRate": round(self.error_rate, 4),
            "criticalIssueRate": round(self.critical_issue_rate, 4),
            "averageResponseTime": round(self.average_response_time, 2),
            "userSatisfaction": self.user_satisfaction,
        }


@dataclass
class FeedbackAnalysisReport:
    """Feedback + error analysis; recommendations ordered by tier, then priority."""
    as_of: datetime
    summary: FeedbackSummary
    patterns: FeedbackPatterns
    recommendations: List[Recommendation]
    metrics: FeedbackMetrics

    def by_tier(self) -> Dict[str, List[Recommendation]]:
        grouped: Dict[str, List[Recommendation]] = {tier.value: [] for tier in TIER_ORDER}
        for rec in self.recommendations:
            grouped[rec.priority_tier.value].append(rec)
        return grouped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asOf": _iso(self.as_of),
            "summary": self.summary.to_dict(),
            "patterns": self.patterns.to_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
            "metrics": self.metrics.to_dict(),
        }
