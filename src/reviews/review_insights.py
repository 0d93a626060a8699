"""
Business Sentiment Aggregator
=============================

Aggregates per-review sentiment and aspect buckets into one
BusinessSentimentProfile per business. The profile is what the map UI and
the business report show: a mean sentiment score, the positive / neutral /
negative distribution, and a per-aspect {score, count} map.

Usage:
    aggregator = ReviewInsightAggregator()
    profile = aggregator.build_profile(business_id, reviews)
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..data.data_models import FeedbackRecord, coerce_records
from .review_aspects import AspectClassifier
from .review_models import (
    AspectClassificationResult,
    AspectSentiment,
    BusinessSentimentProfile,
    SentimentLabel,
    SentimentResult,
)
from .review_sentiment import SentimentScorer

logger = logging.getLogger(__name__)


class ReviewInsightAggregator:
    """
    Builds business-level sentiment profiles from raw review records.

    Aspect scores are mention-weighted: an aspect discussed in three
    sentences of one review weighs three times a single passing mention.
    """

    def __init__(
        self,
        scorer: Optional[SentimentScorer] = None,
        classifier: Optional[AspectClassifier] = None,
    ):
        self.scorer = scorer or SentimentScorer()
        self.classifier = classifier or AspectClassifier(scorer=self.scorer)

    def analyze_review(self, text: str) -> Dict[str, Any]:
        """Sentiment and aspect breakdown for one review."""
        return {
            "sentiment": self.scorer.score(text),
            "aspects": self.classifier.classify(text),
        }

    def build_profile(
        self,
        business_id: str,
        reviews: Iterable[Any],
    ) -> BusinessSentimentProfile:
        """
        Build a sentiment profile from a business's reviews.

        Args:
            business_id: Identifier of the business
            reviews: FeedbackRecord objects or dicts with at least id/text/timestamp

        Returns:
            BusinessSentimentProfile (zeroed when there are no reviews)
        """
        records = coerce_records(reviews, FeedbackRecord, "reviews")

        sentiments: List[SentimentResult] = []
        classifications: List[AspectClassificationResult] = []
        for record in records:
            sentiments.append(self.scorer.score(record.text))
            classifications.append(self.classifier.classify(record.text))

        return self.combine(business_id, sentiments, classifications)

    def combine(
        self,
        business_id: str,
        sentiments: List[SentimentResult],
        classifications: List[AspectClassificationResult],
    ) -> BusinessSentimentProfile:
        """Fold already-computed per-review results into a profile."""
        distribution = {label.value: 0 for label in SentimentLabel}

        if not sentiments:
            return BusinessSentimentProfile(
                business_id=business_id,
                sentiment_score=0.0,
                reviews_analyzed=0,
                distribution=distribution,
                aspect_sentiment={},
            )

        for result in sentiments:
            distribution[self.scorer.label(result.score).value] += 1

        mean_score = round(sum(r.score for r in sentiments) / len(sentiments), 2)
        mean_confidence = round(sum(r.confidence for r in sentiments) / len(sentiments), 2)

        # Weighted sums per aspect, in aspect-table order
        weighted: Dict[str, float] = {}
        counts: Dict[str, int] = {}
        for name in self.classifier.aspect_names:
            for classification in classifications:
                bucket = classification.aspects.get(name)
                if bucket is None:
                    continue
                weighted[name] = weighted.get(name, 0.0) + bucket.score * bucket.mention_count
                counts[name] = counts.get(name, 0) + bucket.mention_count

        aspect_sentiment = {
            name: AspectSentiment(score=round(weighted[name] / counts[name], 2), count=counts[name])
            for name in counts
        }

        dominant = sorted(aspect_sentiment, key=lambda n: aspect_sentiment[n].count, reverse=True)[:2]

        logger.debug(
            f"Profile for {business_id}: score={mean_score:.2f}, "
            f"{len(sentiments)} reviews, {len(aspect_sentiment)} aspects"
        )

        return BusinessSentimentProfile(
            business_id=business_id,
            sentiment_score=mean_score,
            reviews_analyzed=len(sentiments),
            distribution=distribution,
            aspect_sentiment=aspect_sentiment,
            dominant_aspects=dominant,
            average_confidence=mean_confidence,
        )
