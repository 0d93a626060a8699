"""
Review Sentiment Engine
=======================

Deterministic sentiment and aspect analysis of business reviews.
No ML required: keyword lexicons, exact token matching.

Modules:
    review_models    — Result models (SentimentResult, AspectBucket, BusinessSentimentProfile)
    review_sentiment — Keyword polarity scoring
    review_aspects   — Sentence-to-aspect bucketing with per-aspect sentiment
    review_insights  — Aggregation into per-business sentiment profiles
"""

from .review_models import (
    Aspect,
    AspectBucket,
    AspectClassificationResult,
    AspectSummary,
    BusinessSentimentProfile,
    SentimentLabel,
    SentimentResult,
)
from .review_sentiment import SentimentScorer, POSITIVE_KEYWORDS, NEGATIVE_KEYWORDS
from .review_aspects import AspectClassifier, ASPECT_KEYWORDS
from .review_insights import ReviewInsightAggregator
