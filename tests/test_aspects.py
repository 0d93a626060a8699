"""
Tests for the aspect classifier.

Usage:
    pytest tests/test_aspects.py -v
"""

import pytest

from src.reviews.review_aspects import (
    ASPECT_KEYWORDS,
    AspectClassifier,
    split_clauses,
    split_sentences,
)


class TestAspectClassification:

    def setup_method(self):
        self.classifier = AspectClassifier()

    def test_food_and_service_scored_separately(self):
        result = self.classifier.classify("The food was delicious and the service was excellent")

        assert set(result.aspects) == {"food", "service"}
        assert result.aspects["food"].score == pytest.approx(0.8)
        assert result.aspects["service"].score == pytest.approx(1.0)
        assert result.summary.overall_score == pytest.approx(0.9)

    def test_single_aspect_sentence_scored_whole(self):
        result = self.classifier.classify("The food was delicious, but the portion was tiny and terrible")

        assert list(result.aspects) == ["food"]
        assert result.aspects["food"].score == pytest.approx(-0.1)
        assert result.aspects["food"].sentiment.matched_keywords == (("delicious", 0.8), ("terrible", -1.0))

    def test_keyword_set_in_first_seen_order(self):
        result = self.classifier.classify("The food was delicious and the service was excellent")
        assert result.aspects["food"].keyword_set == ("food", "delicious")
        assert result.aspects["service"].keyword_set == ("service",)

    def test_mentions_count_sentences(self):
        text = "The food was great. The menu is small. Service was slow."
        result = self.classifier.classify(text)

        assert result.aspects["food"].mention_count == 2
        assert result.aspects["service"].mention_count == 1
        assert result.aspects["service"].score == pytest.approx(-0.4)

    def test_repeated_keyword_is_one_mention(self):
        result = self.classifier.classify("Food food food.")
        assert result.aspects["food"].mention_count == 1

    def test_sentence_can_match_several_aspects(self):
        result = self.classifier.classify("Cheap parking downtown")
        assert set(result.aspects) == {"pricing", "location"}

    def test_sentence_without_sentiment_scores_zero(self):
        result = self.classifier.classify("We looked at the menu")
        bucket = result.aspects["food"]
        assert bucket.score == 0
        assert bucket.sentiment.confidence == 0

    def test_dominant_aspects_by_mentions(self):
        text = "The food was great. The menu is small. Service was slow."
        dominant = self.classifier.classify(text).summary.dominant_aspects
        assert [d.aspect for d in dominant] == ["food", "service"]
        assert dominant[0].mentions == 2

    def test_dominant_ties_keep_table_order(self):
        result = self.classifier.classify("The food was good and the service was good")
        assert [d.aspect for d in result.summary.dominant_aspects] == ["service", "food"]

    def test_empty_text(self):
        result = self.classifier.classify("")
        assert result.aspects == {}
        assert result.summary is None

    def test_no_aspect_keywords(self):
        result = self.classifier.classify("It was a Tuesday.")
        assert result.aspects == {}
        assert result.summary is None

    def test_mentions_cover_matching_sentences(self):
        text = "Great food. Rude waiter! Cheap prices? Parking was close. Nothing else."
        result = self.classifier.classify(text)
        matching = {
            s for bucket in result.aspects.values() for s in bucket.matched_sentences
        }
        total_mentions = sum(b.mention_count for b in result.aspects.values())
        assert total_mentions >= len(matching)

    def test_non_string_raises(self):
        with pytest.raises(TypeError):
            self.classifier.classify(["food"])

    def test_to_dict_shape(self):
        payload = self.classifier.classify("Rude staff.").to_dict()
        service = payload["aspects"]["service"]
        assert service["mentions"] == 1
        assert service["keywords"] == ["rude", "staff"]
        assert payload["summary"]["dominantAspects"][0]["aspect"] == "service"


class TestAspectConfiguration:

    def test_empty_keyword_set_yields_no_mentions(self):
        classifier = AspectClassifier(aspect_keywords={"food": []})
        assert classifier.classify("The food was delicious").aspects == {}

    def test_custom_aspects(self):
        classifier = AspectClassifier(aspect_keywords=(("coffee", ("espresso", "latte")),))
        result = classifier.classify("The latte was excellent")
        assert list(result.aspects) == ["coffee"]
        assert result.aspects["coffee"].score == pytest.approx(1.0)

    def test_default_aspect_order(self):
        names = [name for name, _ in ASPECT_KEYWORDS]
        assert names == ["service", "food", "pricing", "ambiance", "location"]
        assert AspectClassifier().aspect_names == names

    def test_match_aspects(self):
        assert AspectClassifier().match_aspects("cheap parking") == ["pricing", "location"]
        assert AspectClassifier().match_aspects("nothing relevant") == []


class TestSplitting:

    def test_split_sentences(self):
        assert split_sentences("Good food!! Bad service. ") == ["Good food", "Bad service"]

    def test_split_clauses(self):
        assert split_clauses("the food was great, but the staff was rude") == [
            "the food was great",
            "the staff was rude",
        ]
