"""
Tests for feature request extraction and fuzzy grouping.

Usage:
    pytest tests/test_feature_requests.py -v
"""

from src.data.data_models import FeedbackRecord
from src.feedback.feature_requests import (
    FeatureRequestExtractor,
    RequestHits,
    group_similar_requests,
    normalize_request_key,
)


def make_feedback(text: str, feedback_id: str = "F_TEST") -> FeedbackRecord:
    return FeedbackRecord(id=feedback_id, text=text, timestamp="2024-01-15T10:00:00Z")


WISH_FEEDBACK = [
    make_feedback("I wish it had wireless charging built in.", "F001"),
    make_feedback("I wish it had wireless charging. That would be perfect.", "F002"),
    make_feedback("Would be nice if it came with an export to CSV.", "F003"),
    make_feedback("Would be nice if it came with an export to CSV for reports.", "F004"),
    make_feedback("Should have a night mode for the map.", "F005"),
    make_feedback("Great service overall.", "F006"),
]


class TestNormalization:

    def test_stopwords_removed(self):
        assert normalize_request_key("wireless charging built in") == "wireless charging"

    def test_punctuation_removed(self):
        assert normalize_request_key("Dark-mode!") == "darkmode"

    def test_all_stopwords(self):
        assert normalize_request_key("it would be the one") == ""


class TestGrouping:

    def test_same_normalized_key_merged(self):
        hits = {
            "wireless charging built in": RequestHits(1, ["a"]),
            "wireless charging": RequestHits(1, ["b"]),
        }
        merged = group_similar_requests(hits)
        assert merged == {"wireless charging": RequestHits(count=2, quotes=["a", "b"])}

    def test_unrelated_requests_kept_apart(self):
        hits = {
            "dark mode": RequestHits(1, []),
            "csv export": RequestHits(1, []),
        }
        assert len(group_similar_requests(hits)) == 2

    def test_similar_phrasings_merged_under_most_informative(self):
        hits = {
            "export to csv": RequestHits(1, ["a"]),
            "export to csv for reports": RequestHits(1, ["b"]),
        }
        merged = group_similar_requests(hits)
        assert list(merged) == ["export to csv for reports"]
        assert merged["export to csv for reports"].count == 2

    def test_quotes_capped(self):
        hits = {
            "dark mode": RequestHits(2, ["a", "b"]),
            "the dark mode": RequestHits(2, ["c", "d"]),
        }
        merged = group_similar_requests(hits)
        assert len(next(iter(merged.values())).quotes) == 3


class TestExtractor:

    def setup_method(self):
        self.extractor = FeatureRequestExtractor()

    def test_grouped_requests_surface(self):
        features = {r.feature: r for r in self.extractor.extract(WISH_FEEDBACK)}
        assert "wireless charging" in features
        assert features["wireless charging"].mentions == 2

    def test_single_mention_filtered(self):
        features = [r.feature for r in self.extractor.extract(WISH_FEEDBACK)]
        assert not any("night mode" in f for f in features)

    def test_sorted_by_mentions(self):
        requests = self.extractor.extract(WISH_FEEDBACK)
        mentions = [r.mentions for r in requests]
        assert mentions == sorted(mentions, reverse=True)

    def test_confidence_bounded(self):
        for request in self.extractor.extract(WISH_FEEDBACK):
            assert 0 < request.confidence <= 1

    def test_empty_feedback(self):
        assert self.extractor.extract([]) == []

    def test_short_features_filtered(self):
        feedback = [make_feedback("I wish it had ab.") for _ in range(3)]
        assert self.extractor.extract(feedback) == []
