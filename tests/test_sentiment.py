"""
Tests for the keyword sentiment scorer.

- Score / confidence formula on the fixed lexicon
- Exact token matching, case-insensitivity
- Labels for the dashboard buckets
- Input validation

Usage:
    pytest tests/test_sentiment.py -v
"""

import pytest

from src.reviews.review_models import SentimentLabel
from src.reviews.review_sentiment import (
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
    SentimentScorer,
    tokenize,
)


class TestSentimentScore:
    """Score and confidence on the default lexicon."""

    def setup_method(self):
        self.scorer = SentimentScorer()

    def test_single_positive_keyword(self):
        result = self.scorer.score("The food was delicious")
        assert result.score == pytest.approx(0.8)
        assert result.confidence == pytest.approx(1 / 3)
        assert result.matched_keywords == (("delicious", 0.8),)

    def test_mixed_keywords_average(self):
        """great (0.8) and rude (-0.8) cancel out."""
        result = self.scorer.score("Great food but rude staff")
        assert result.score == pytest.approx(0.0)
        assert result.confidence == pytest.approx(2 / 3)

    def test_no_keywords_is_zero(self):
        result = self.scorer.score("We went there on a Tuesday")
        assert result.score == 0
        assert result.confidence == 0
        assert result.matched_keywords == ()

    def test_empty_text(self):
        result = self.scorer.score("")
        assert result.score == 0
        assert result.confidence == 0

    def test_confidence_saturates(self):
        result = self.scorer.score("bad bad bad bad bad")
        assert result.score == pytest.approx(-0.7)
        assert result.confidence == 1.0

    def test_case_insensitive(self):
        assert self.scorer.score("TERRIBLE").score == pytest.approx(-1.0)

    def test_exact_token_match_only(self):
        """'goodness' is not 'good'."""
        assert self.scorer.score("goodness gracious").score == 0

    def test_punctuation_splits_tokens(self):
        result = self.scorer.score("excellent!!!amazing...")
        assert result.score == pytest.approx(1.0)
        assert result.matched_count == 2

    def test_score_always_in_range(self):
        texts = [
            "excellent amazing fantastic",
            "terrible horrible awful",
            "good bad nice poor",
            "",
        ]
        for text in texts:
            result = self.scorer.score(text)
            assert -1.0 <= result.score <= 1.0
            assert 0.0 <= result.confidence <= 1.0

    def test_score_rounded_to_two_decimals(self):
        # (0.5 + 0.4 + 0.3) / 3 = 0.4
        result = self.scorer.score("good clean decent")
        assert result.score == round(result.score, 2)

    def test_non_string_raises(self):
        with pytest.raises(TypeError):
            self.scorer.score(None)
        with pytest.raises(TypeError):
            self.scorer.score(42)

    def test_deterministic(self):
        text = "Friendly staff, slow kitchen, great dessert"
        assert self.scorer.score(text) == self.scorer.score(text)

    def test_to_dict_shape(self):
        payload = self.scorer.score("nice place").to_dict()
        assert payload == {
            "score": 0.5,
            "confidence": pytest.approx(1 / 3),
            "matchedKeywords": [{"word": "nice", "weight": 0.5}],
        }


class TestLexicon:

    def test_tables_are_disjoint(self):
        assert not set(POSITIVE_KEYWORDS) & set(NEGATIVE_KEYWORDS)

    def test_weights_have_correct_sign(self):
        assert all(0 < w <= 1 for w in POSITIVE_KEYWORDS.values())
        assert all(-1 <= w < 0 for w in NEGATIVE_KEYWORDS.values())

    def test_overlapping_custom_tables_rejected(self):
        with pytest.raises(ValueError):
            SentimentScorer(positive={"fine": 0.3}, negative={"fine": -0.3})

    def test_custom_lexicon(self):
        scorer = SentimentScorer(positive={"yummy": 0.9}, negative={"meh": -0.2})
        assert scorer.score("yummy").score == pytest.approx(0.9)
        assert scorer.score("excellent").score == 0

    def test_score_fields_skips_non_strings(self):
        scorer = SentimentScorer()
        results = scorer.score_fields({"food": "delicious", "rating": 5})
        assert list(results) == ["food"]


class TestLabels:

    def test_positive(self):
        assert SentimentScorer.label(0.5) == SentimentLabel.POSITIVE

    def test_boundary_is_neutral(self):
        assert SentimentScorer.label(0.3) == SentimentLabel.NEUTRAL
        assert SentimentScorer.label(-0.3) == SentimentLabel.NEUTRAL

    def test_negative(self):
        assert SentimentScorer.label(-0.31) == SentimentLabel.NEGATIVE


class TestTokenize:

    def test_lowercases_and_splits(self):
        assert tokenize("Great, FOOD!") == ["great", "food"]

    def test_no_empty_tokens(self):
        assert tokenize("  ...  ") == []
