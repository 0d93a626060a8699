"""
Feedback Priority Engine
========================

Turns classified errors, performance samples and user feedback into
ranked patterns and tiered recommendations.

Modules:
    feedback_models    — Report models (ErrorPattern, Recommendation, FeedbackAnalysisReport)
    feedback_analyzer  — FeedbackPriorityEngine
    feature_requests   — "I wish" feature-request extraction and grouping
    feedback_counters  — Immutable feedback counters and the single-writer tally
"""

from .feedback_models import (
    ComplaintPattern,
    ErrorPattern,
    FeatureRequestPattern,
    FeedbackAnalysisReport,
    PerformancePattern,
    Recommendation,
)
from .feedback_analyzer import FeedbackPriorityEngine, performance_priority, priority_score
from .feature_requests import FeatureRequestExtractor
from .feedback_counters import (
    FeedbackCounters,
    FeedbackTally,
    ThresholdAlert,
    check_alert_thresholds,
    record_feedback,
    requires_immediate_attention,
)
