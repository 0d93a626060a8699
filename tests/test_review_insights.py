"""
Tests for business sentiment profiles.

Usage:
    pytest tests/test_review_insights.py -v
"""

import pytest

from src.data.data_models import InvalidInputError
from src.reviews.review_insights import ReviewInsightAggregator


def make_review(text: str, review_id: str = "R_TEST", **extra) -> dict:
    """Helper to create a review dict."""
    record = {"id": review_id, "text": text, "timestamp": "2024-03-01T12:00:00Z"}
    record.update(extra)
    return record


REVIEWS = [
    make_review("The food was delicious and the service was excellent", "R001"),
    make_review("The staff was rude", "R002"),
    make_review("Nice place", "R003"),
]


class TestBusinessProfile:

    def setup_method(self):
        self.aggregator = ReviewInsightAggregator()

    def test_mean_score(self):
        profile = self.aggregator.build_profile("cafe-1", REVIEWS)
        # (0.9 - 0.8 + 0.5) / 3
        assert profile.sentiment_score == pytest.approx(0.2)
        assert profile.reviews_analyzed == 3

    def test_distribution(self):
        profile = self.aggregator.build_profile("cafe-1", REVIEWS)
        assert profile.distribution == {"positive": 2, "neutral": 0, "negative": 1}

    def test_aspect_scores_are_mention_weighted(self):
        profile = self.aggregator.build_profile("cafe-1", REVIEWS)
        service = profile.aspect_sentiment["service"]
        assert service.count == 2
        assert service.score == pytest.approx(0.1)
        assert profile.aspect_sentiment["food"].score == pytest.approx(0.8)

    def test_dominant_aspects(self):
        profile = self.aggregator.build_profile("cafe-1", REVIEWS)
        assert profile.dominant_aspects == ["service", "food"]

    def test_empty_reviews_gives_zero_profile(self):
        profile = self.aggregator.build_profile("cafe-1", [])
        assert profile.sentiment_score == 0
        assert profile.reviews_analyzed == 0
        assert profile.aspect_sentiment == {}
        assert not profile.has_reviews

    def test_body_alias_accepted(self):
        review = {"id": 7, "body": "Terrible food", "timestamp": "2024-03-01T12:00:00Z"}
        profile = self.aggregator.build_profile("cafe-1", [review])
        assert profile.sentiment_score == pytest.approx(-1.0)

    def test_string_input_rejected(self):
        with pytest.raises(InvalidInputError):
            self.aggregator.build_profile("cafe-1", "The food was great")

    def test_to_dict_keys(self):
        payload = self.aggregator.build_profile("cafe-1", REVIEWS).to_dict()
        assert payload["businessId"] == "cafe-1"
        assert set(payload["aspectSentiment"]) == {"service", "food"}
        assert payload["aspectSentiment"]["service"]["count"] == 2

    def test_analyze_review(self):
        result = self.aggregator.analyze_review("Great food")
        assert result["sentiment"].score == pytest.approx(0.8)
        assert "food" in result["aspects"].aspects
