"""
Review Sentiment Data Models
============================

Structured outputs of sentiment scoring and aspect classification.
Every result is produced fresh per call; none is mutated afterwards.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from enum import Enum


class Aspect(str, Enum):
    """Business aspects reviews are bucketed into."""
    SERVICE = "service"
    FOOD = "food"
    PRICING = "pricing"
    AMBIANCE = "ambiance"
    LOCATION = "location"


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


@dataclass(frozen=True)
class SentimentResult:
    """Polarity of one piece of text (keyword-based)."""
    score: float                                    # -1.0 to 1.0
    confidence: float                               # 0.0 to 1.0, grows with matched keywords
    matched_keywords: Tuple[Tuple[str, float], ...] = ()  # (word, weight) in text order

    @property
    def matched_count(self) -> int:
        return len(self.matched_keywords)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence,
            "matchedKeywords": [
                {"word": word, "weight": weight} for word, weight in self.matched_keywords
            ],
        }


@dataclass(frozen=True)
class AspectBucket:
    """Sentences of one review that talk about one aspect."""
    aspect_name: str
    keyword_set: Tuple[str, ...]         # distinct matched aspect keywords, first-seen order
    matched_sentences: Tuple[str, ...]
    mention_count: int                   # matching sentences, not keyword occurrences
    sentiment: SentimentResult

    @property
    def score(self) -> float:
        return self.sentiment.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspect": self.aspect_name,
            "score": self.sentiment.score,
            "confidence": self.sentiment.confidence,
            "mentions": self.mention_count,
            "keywords": list(self.keyword_set),
            "relevantText": list(self.matched_sentences),
            "sentiment": self.sentiment.to_dict(),
        }


@dataclass(frozen=True)
class DominantAspect:
    aspect: str
    mentions: int
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {"aspect": self.aspect, "mentions": self.mentions, "score": self.score}


@dataclass(frozen=True)
class AspectSummary:
    overall_score: float
    dominant_aspects: Tuple[DominantAspect, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "dominantAspects": [d.to_dict() for d in self.dominant_aspects],
        }


@dataclass(frozen=True)
class AspectClassificationResult:
    """Aspect buckets of one review plus a summary (None when nothing matched)."""
    aspects: Dict[str, AspectBucket]
    summary: Optional[AspectSummary]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aspects": {name: bucket.to_dict() for name, bucket in self.aspects.items()},
            "summary": self.summary.to_dict() if self.summary else None,
        }


@dataclass
class AspectSentiment:
    """Per-aspect sentiment across all reviews of a business."""
    score: float
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "count": self.count}


@dataclass
class BusinessSentimentProfile:
    """Aggregated review sentiment for one business."""
    business_id: str
    sentiment_score: float                      # mean review score
    reviews_analyzed: int
    distribution: Dict[str, int]                # positive / neutral / negative counts
    aspect_sentiment: Dict[str, AspectSentiment]
    dominant_aspects: List[str] = field(default_factory=list)
    average_confidence: float = 0.0

    @property
    def has_reviews(self) -> bool:
        return self.reviews_analyzed > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "businessId": self.business_id,
            "sentimentScore": self.sentiment_score,
            "reviewsAnalyzed": self.reviews_analyzed,
            "averageConfidence": self.average_confidence,
            "sentimentDistribution": dict(self.distribution),
            "aspectSentiment": {
                name: value.to_dict() for name, value in self.aspect_sentiment.items()
            },
            "dominantAspects": list(self.dominant_aspects),
        }
