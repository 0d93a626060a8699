"""
Aspect Classifier
=================

Buckets review sentences into business aspects (service, food, pricing,
ambiance, location) and scores the sentiment of each aspect.

A sentence belongs to an aspect when one of its tokens is an aspect keyword
(exact token match). One sentence can belong to several aspects.

Aspect sentiment is scored over the aspect's matched sentences. A sentence
that names two or more aspects is narrowed to clause-level evidence: only
the clauses that name the aspect and carry a sentiment word are used, so
"the food was delicious and the service was excellent" gives food 0.8 and
service 1.0. A sentence naming one aspect, or without such a clause,
contributes whole.

Usage:
    classifier = AspectClassifier()
    result = classifier.classify(review_text)
    result.aspects["food"].score
"""

import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from .review_models import (
    Aspect,
    AspectBucket,
    AspectClassificationResult,
    AspectSummary,
    DominantAspect,
)
from .review_sentiment import SentimentScorer, tokenize

logger = logging.getLogger(__name__)


# =============================================================================
# ASPECT KEYWORDS
# =============================================================================
# Order matters: it breaks ties between equally mentioned aspects.

ASPECT_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (Aspect.SERVICE.value, (
        "service", "staff", "waiter", "waitress", "server", "host",
        "hostess", "employee", "attention", "responsive", "quick",
        "slow", "friendly", "rude", "helpful", "attentive",
    )),
    (Aspect.FOOD.value, (
        "food", "dish", "meal", "taste", "flavor", "delicious",
        "portion", "menu", "cuisine", "appetizer", "entree",
        "dessert", "drink", "beverage", "fresh", "stale",
    )),
    (Aspect.PRICING.value, (
        "price", "value", "expensive", "cheap", "affordable",
        "overpriced", "cost", "worth", "deal", "bargain",
        "pricey", "reasonable", "fair", "money",
    )),
    (Aspect.AMBIANCE.value, (
        "ambiance", "atmosphere", "decor", "music", "noise",
        "lighting", "comfortable", "clean", "dirty", "cozy",
        "crowded", "quiet", "romantic", "space", "interior",
    )),
    (Aspect.LOCATION.value, (
        "location", "parking", "accessible", "neighborhood",
        "area", "street", "downtown", "distance", "convenient",
        "nearby", "far", "close",
    )),
)

DOMINANT_ASPECT_COUNT = 2

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

# Clause boundaries inside a sentence: punctuation and coordinating words
_CLAUSE_SPLIT = re.compile(
    r"[,;:]+|\b(?:and|but|while|whereas|although|though|yet)\b",
    re.IGNORECASE,
)


def split_sentences(text: str) -> List[str]:
    """Split on runs of . ! ? and drop empty pieces."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def split_clauses(sentence: str) -> List[str]:
    return [c.strip() for c in _CLAUSE_SPLIT.split(sentence) if c.strip()]


class AspectClassifier:
    """
    Keyword-driven aspect bucketing with per-aspect sentiment.

    Holds only immutable configuration; safe to share between threads.
    """

    def __init__(
        self,
        aspect_keywords: Optional[Sequence[Tuple[str, Sequence[str]]]] = None,
        scorer: Optional[SentimentScorer] = None,
    ):
        table = ASPECT_KEYWORDS if aspect_keywords is None else aspect_keywords
        if isinstance(table, Mapping):
            table = tuple(table.items())
        self.aspects: Tuple[Tuple[str, frozenset], ...] = tuple(
            (name, frozenset(k.lower() for k in keywords)) for name, keywords in table
        )
        self.scorer = scorer or SentimentScorer()

    @property
    def aspect_names(self) -> List[str]:
        return [name for name, _ in self.aspects]

    def match_aspects(self, text: str) -> List[str]:
        """Names of aspects mentioned anywhere in ``text``, in table order."""
        tokens = set(tokenize(text))
        return [name for name, keywords in self.aspects if tokens & keywords]

    def _evidence(self, sentence: str, keywords: frozenset) -> str:
        """Clauses that name the aspect and carry sentiment, else the sentence."""
        clauses = [
            clause for clause in split_clauses(sentence)
            if any(t in keywords for t in tokenize(clause))
            and any(self.scorer.is_keyword(t) for t in tokenize(clause))
        ]
        if clauses:
            return ", ".join(clauses)
        return sentence

    def classify(self, text: str) -> AspectClassificationResult:
        """
        Bucket sentences of ``text`` into aspects and score each aspect.

        Raises:
            TypeError: if text is not a string
        """
        if not isinstance(text, str):
            raise TypeError(f"text must be a string, got {type(text).__name__}")

        sentences = split_sentences(text)
        tokenized = [(sentence, tokenize(sentence)) for sentence in sentences]
        # Sentences naming two or more aspects are scored per clause
        shared = {
            sentence for sentence, tokens in tokenized
            if sum(1 for _, keywords in self.aspects if keywords & set(tokens)) > 1
        }

        buckets: Dict[str, AspectBucket] = {}
        for name, keywords in self.aspects:
            if not keywords:
                continue

            matched_sentences: List[str] = []
            matched_keywords: List[str] = []
            evidence: List[str] = []

            for sentence, tokens in tokenized:
                hits = [t for t in tokens if t in keywords]
                if not hits:
                    continue
                matched_sentences.append(sentence)
                for hit in hits:
                    if hit not in matched_keywords:
                        matched_keywords.append(hit)
                if sentence in shared:
                    evidence.append(self._evidence(sentence, keywords))
                else:
                    evidence.append(sentence)

            if not matched_sentences:
                continue

            buckets[name] = AspectBucket(
                aspect_name=name,
                keyword_set=tuple(matched_keywords),
                matched_sentences=tuple(matched_sentences),
                mention_count=len(matched_sentences),
                sentiment=self.scorer.score(". ".join(evidence)),
            )

        return AspectClassificationResult(
            aspects=buckets,
            summary=self._summarize(buckets),
        )

    def _summarize(self, buckets: Dict[str, AspectBucket]) -> Optional[AspectSummary]:
        if not buckets:
            return None

        overall = round(sum(b.score for b in buckets.values()) / len(buckets), 2)

        # sorted() is stable, so equal mention counts keep table order
        ranked = sorted(buckets.values(), key=lambda b: b.mention_count, reverse=True)
        dominant = tuple(
            DominantAspect(aspect=b.aspect_name, mentions=b.mention_count, score=b.score)
            for b in ranked[:DOMINANT_ASPECT_COUNT]
        )
        return AspectSummary(overall_score=overall, dominant_aspects=dominant)
