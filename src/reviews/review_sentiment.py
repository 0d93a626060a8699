"""
Keyword Sentiment Scorer (Deterministic)
========================================

Scores text polarity from a fixed keyword lexicon. No ML, no I/O:
the same text always yields the same SentimentResult.

    score      = round(sum(weights) / matched, 2)   (0 when nothing matched)
    confidence = min(matched / 3, 1)

Usage:
    scorer = SentimentScorer()
    result = scorer.score("Great food, rude staff")
"""

import re
from typing import Dict, List, Mapping, Optional, Tuple

from .review_models import SentimentLabel, SentimentResult


# =============================================================================
# SENTIMENT LEXICON
# =============================================================================
# Positive weights are in (0, 1], negative weights in [-1, 0).
# A word appears in at most one table.

POSITIVE_KEYWORDS: Dict[str, float] = {
    "excellent": 1.0,
    "amazing": 1.0,
    "great": 0.8,
    "good": 0.5,
    "nice": 0.5,
    "decent": 0.3,
    "friendly": 0.6,
    "clean": 0.4,
    "recommend": 0.7,
    "delicious": 0.8,
    "fantastic": 0.9,
    "helpful": 0.6,
    "professional": 0.7,
}

NEGATIVE_KEYWORDS: Dict[str, float] = {
    "terrible": -1.0,
    "horrible": -1.0,
    "bad": -0.7,
    "poor": -0.6,
    "dirty": -0.6,
    "rude": -0.8,
    "slow": -0.4,
    "expensive": -0.5,
    "disappointing": -0.7,
    "awful": -0.9,
    "mediocre": -0.4,
    "unprofessional": -0.7,
}

# Confidence saturates at this many matched keywords
FULL_CONFIDENCE_MATCHES = 3

# Dashboard buckets: score > 0.3 positive, < -0.3 negative
LABEL_THRESHOLD = 0.3

_TOKEN_SPLIT = re.compile(r"\W+")


def tokenize(text: str) -> List[str]:
    """Lower-case and split on runs of non-word characters."""
    return [t for t in _TOKEN_SPLIT.split(text.lower()) if t]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class SentimentScorer:
    """Lexicon-based polarity scorer. Stateless apart from its lexicon."""

    def __init__(
        self,
        positive: Optional[Mapping[str, float]] = None,
        negative: Optional[Mapping[str, float]] = None,
    ):
        self.positive = dict(POSITIVE_KEYWORDS if positive is None else positive)
        self.negative = dict(NEGATIVE_KEYWORDS if negative is None else negative)

        overlap = set(self.positive) & set(self.negative)
        if overlap:
            raise ValueError(f"Keywords in both tables: {sorted(overlap)}")

    def lookup(self, token: str) -> Optional[float]:
        """Weight of a token, positive table first; None if not a keyword."""
        if token in self.positive:
            return self.positive[token]
        if token in self.negative:
            return self.negative[token]
        return None

    def is_keyword(self, token: str) -> bool:
        return token in self.positive or token in self.negative

    def score(self, text: str) -> SentimentResult:
        """
        Score text polarity.

        Raises:
            TypeError: if text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be a string, got {type(text).__name__}")

        matched: List[Tuple[str, float]] = []
        for token in tokenize(text):
            weight = self.lookup(token)
            if weight is not None:
                matched.append((token, weight))

        if not matched:
            return SentimentResult(score=0.0, confidence=0.0, matched_keywords=())

        total_weight = sum(weight for _, weight in matched)
        score = _clamp(round(total_weight / len(matched), 2), -1.0, 1.0)
        confidence = _clamp(len(matched) / FULL_CONFIDENCE_MATCHES, 0.0, 1.0)

        return SentimentResult(
            score=score,
            confidence=confidence,
            matched_keywords=tuple(matched),
        )

    def score_fields(self, fields: Mapping[str, object]) -> Dict[str, SentimentResult]:
        """Score each string value of a mapping (e.g. per-aspect free text)."""
        return {
            name: self.score(value)
            for name, value in fields.items()
            if isinstance(value, str)
        }

    @staticmethod
    def label(score: float) -> SentimentLabel:
        if score > LABEL_THRESHOLD:
            return SentimentLabel.POSITIVE
        if score < -LABEL_THRESHOLD:
            return SentimentLabel.NEGATIVE
        return SentimentLabel.NEUTRAL
