"""
Analysis Report Builder
=======================

Assembles the uniform report envelope

    {timestamp, scope, summary, patterns, recommendations, metrics}

for one of three scopes: a single business, all feedback, or a log
analysis window. Assembly only: every number comes from an already
computed result.

Usage:
    builder = AnalysisReportBuilder()
    report = builder.build_feedback_report(engine.analyze_all(feedback, errors))
    payload = report.to_dict()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..feedback.feedback_models import FeedbackAnalysisReport
from ..reviews.review_models import BusinessSentimentProfile
from ..telemetry.log_models import LogAnalysisReport

logger = logging.getLogger(__name__)


class ReportScope(str, Enum):
    BUSINESS = "business"
    FEEDBACK = "feedback"
    LOGS = "logs"


@dataclass
class AnalysisReport:
    """Report envelope shared by every scope."""
    timestamp: datetime
    scope: ReportScope
    summary: Dict[str, Any] = field(default_factory=dict)
    patterns: Dict[str, Any] = field(default_factory=dict)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "scope": self.scope.value,
            "summary": self.summary,
            "patterns": self.patterns,
            "recommendations": self.recommendations,
            "metrics": self.metrics,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AnalysisReportBuilder:
    """
    Builds AnalysisReport envelopes.

    ``clock`` supplies the timestamp when ``generated_at`` is not passed.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock

    def _timestamp(self, generated_at: Optional[datetime]) -> datetime:
        return generated_at if generated_at is not None else self.clock()

    def build_business_report(
        self,
        profile: BusinessSentimentProfile,
        generated_at: Optional[datetime] = None,
    ) -> AnalysisReport:
        """Report for one business from its sentiment profile."""
        negative_aspects = sorted(
            (name for name, value in profile.aspect_sentiment.items() if value.score < 0),
            key=lambda name: profile.aspect_sentiment[name].score,
        )

        return AnalysisReport(
            timestamp=self._timestamp(generated_at),
            scope=ReportScope.BUSINESS,
            summary={
                "businessId": profile.business_id,
                "sentimentScore": profile.sentiment_score,
                "reviewsAnalyzed": profile.reviews_analyzed,
                "sentimentDistribution": dict(profile.distribution),
            },
            patterns={
                "aspectSentiment": {
                    name: value.to_dict() for name, value in profile.aspect_sentiment.items()
                },
                "dominantAspects": list(profile.dominant_aspects),
            },
            recommendations=[
                {
                    "type": "aspect",
                    "category": name,
                    "issue": f"Negative sentiment about {name}",
                    "metrics": profile.aspect_sentiment[name].to_dict(),
                }
                for name in negative_aspects
            ],
            metrics={
                "averageConfidence": profile.average_confidence,
                "aspectsDetected": len(profile.aspect_sentiment),
            },
        )

    def build_feedback_report(
        self,
        report: FeedbackAnalysisReport,
        generated_at: Optional[datetime] = None,
    ) -> AnalysisReport:
        """Report over all feedback from a FeedbackAnalysisReport."""
        return AnalysisReport(
            timestamp=self._timestamp(generated_at),
            scope=ReportScope.FEEDBACK,
            summary=report.summary.to_dict(),
            patterns=report.patterns.to_dict(),
            recommendations=[r.to_dict() for r in report.recommendations],
            metrics=report.metrics.to_dict(),
        )

    def build_log_report(
        self,
        report: LogAnalysisReport,
        window: Optional[Tuple[datetime, datetime]] = None,
        generated_at: Optional[datetime] = None,
    ) -> AnalysisReport:
        """
        Report for a log-analysis window.

        Args:
            report: Result of LogPatternAnalyzer.analyze
            window: Optional (start, end) of the analyzed window, echoed in the summary
            generated_at: Report timestamp; defaults to now (UTC)
        """
        summary = report.summary_dict()
        if window is not None:
            start, end = window
            summary["window"] = {"start": start.isoformat(), "end": end.isoformat()}

        total = report.entries_analyzed
        return AnalysisReport(
            timestamp=self._timestamp(generated_at),
            scope=ReportScope.LOGS,
            summary=summary,
            patterns=report.patterns_dict(),
            recommendations=[r.to_dict() for r in report.recommendations],
            metrics={
                "errorRate": round(report.total_errors / total, 4) if total else 0.0,
                "clusterCount": report.cluster_count,
                "unparsed": report.unparsed,
            },
        )
