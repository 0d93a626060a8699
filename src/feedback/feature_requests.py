"""
Feature Request Extractor (Deterministic)
=========================================

Detects "I wish..." style feature requests in user feedback text with a
small set of regex patterns, then merges similar phrasings.

Grouping: each raw phrasing is reduced to a key (lowercase, punctuation and
stopwords removed). Keys are clustered greedily in first-seen order; a key
joins a cluster when it shares at least one word with the cluster's seed and
their SequenceMatcher ratio is >= 0.6. A cluster is reported under its most
mentioned phrasing. Only requests mentioned 2+ times are surfaced.

Usage:
    extractor = FeatureRequestExtractor()
    requests = extractor.extract(feedback_records)
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from difflib import SequenceMatcher
from typing import Dict, Iterable, List

from ..data.data_models import FeedbackRecord
from .feedback_models import FeatureRequestPattern

logger = logging.getLogger(__name__)


# =============================================================================
# "I WISH" PATTERNS: regex-based feature request detection
# =============================================================================

WISH_PATTERNS = [
    re.compile(r"i (?:\w+ )?wish (?:it |you |the app )?(?:had|was|were|could|would)(.*?)(?:\.|!|$)", re.IGNORECASE),
    re.compile(r"would be (?:nice|great|better|awesome) if(.*?)(?:\.|!|$)", re.IGNORECASE),
    re.compile(r"should (?:have|come with|include|support)(.*?)(?:\.|!|$)", re.IGNORECASE),
    re.compile(r"needs? (?:a |an |to have )(.*?)(?:\.|!|$)", re.IGNORECASE),
    re.compile(r"(?:missing|lacks?) (?:a |an )?(.*?)(?:\.|!|$)", re.IGNORECASE),
    re.compile(r"if only (?:it )?(.*?)(?:\.|!|$)", re.IGNORECASE),
]


# =============================================================================
# REQUEST NORMALISATION: stopwords + fuzzy grouping
# =============================================================================

_ENGLISH_STOPWORDS = {
    "a", "an", "the", "it", "its", "is", "was", "were", "be", "been",
    "have", "has", "had", "do", "does", "did", "will", "would", "could",
    "should", "can", "may", "might", "shall", "to", "of", "in", "on",
    "for", "with", "at", "by", "from", "that", "this", "these", "those",
    "and", "or", "but", "not", "so", "if", "then", "also", "just",
    "very", "really", "too", "more", "much", "some", "any", "all",
    "my", "your", "their", "our", "i", "me", "you", "we", "they",
    "came", "come", "built", "one", "like",
}

# Words present in nearly every request about the review app itself
_APP_STOPWORDS = {
    "app", "site", "website", "page", "option", "feature", "ability",
    "way", "button", "place", "business",
}

REQUEST_STOPWORDS = frozenset(_ENGLISH_STOPWORDS | _APP_STOPWORDS)

REQUEST_SIMILARITY_THRESHOLD = 0.6
MIN_SHARED_TOKENS = 1
MIN_MENTIONS = 2
MIN_FEATURE_LENGTH = 5
MAX_FEATURE_LENGTH = 100


@dataclass
class RequestHits:
    """Mentions of one raw request phrasing and a few feedback quotes."""
    count: int = 0
    quotes: List[str] = field(default_factory=list)


def normalize_request_key(text: str) -> str:
    """Lowercase, strip punctuation and stopwords, collapse whitespace."""
    cleaned = re.sub(r"[^a-z0-9\s]", "", text.lower())
    return " ".join(w for w in cleaned.split() if len(w) > 1 and w not in REQUEST_STOPWORDS)


def _is_similar(key: str, other: str, threshold: float) -> bool:
    # A shared word is required before the character ratio counts
    if len(set(key.split()) & set(other.split())) < MIN_SHARED_TOKENS:
        return False
    return SequenceMatcher(None, key, other).ratio() >= threshold


def _cluster_keys(keys: List[str], threshold: float) -> List[List[str]]:
    """Greedy single pass: each unclaimed key seeds a cluster of later similar keys."""
    clusters: List[List[str]] = []
    claimed = set()
    for i, seed in enumerate(keys):
        if seed in claimed:
            continue
        cluster = [seed] + [
            k for k in keys[i + 1:]
            if k not in claimed and _is_similar(seed, k, threshold)
        ]
        claimed.update(cluster)
        clusters.append(cluster)
    return clusters


def group_similar_requests(
    hits: Dict[str, RequestHits],
    threshold: float = REQUEST_SIMILARITY_THRESHOLD,
    max_quotes: int = 3,
) -> Dict[str, RequestHits]:
    """
    Merge raw phrasings whose normalized keys are similar.

    The merged entry is keyed by its most mentioned phrasing; ties go to the
    phrasing with the longest normalized key, then the shortest raw text.
    """
    phrasings: Dict[str, List[str]] = defaultdict(list)
    for raw in hits:
        key = normalize_request_key(raw)
        if key:
            phrasings[key].append(raw)

    merged: Dict[str, RequestHits] = {}
    for cluster in _cluster_keys(list(phrasings), threshold):
        members = [raw for key in cluster for raw in phrasings[key]]
        canonical = max(
            members,
            key=lambda raw: (hits[raw].count, len(normalize_request_key(raw)), -len(raw)),
        )
        quotes = [q for raw in members for q in hits[raw].quotes]
        merged[canonical] = RequestHits(
            count=sum(hits[raw].count for raw in members),
            quotes=quotes[:max_quotes],
        )
    return merged


class FeatureRequestExtractor:
    """Regex feature-request detection over feedback text."""

    def __init__(self, min_mentions: int = MIN_MENTIONS, max_quotes: int = 3):
        self.min_mentions = min_mentions
        self.max_quotes = max_quotes

    def extract(self, records: Iterable[FeedbackRecord]) -> List[FeatureRequestPattern]:
        """
        Extract grouped feature requests.

        Returns:
            FeatureRequestPattern list sorted by mentions descending
        """
        records = list(records)
        hits: Dict[str, RequestHits] = defaultdict(RequestHits)

        for record in records:
            text = record.text
            if not text:
                continue
            for pattern in WISH_PATTERNS:
                for match in pattern.findall(text):
                    feature = match.strip().rstrip(".,!?")
                    if not MIN_FEATURE_LENGTH <= len(feature) <= MAX_FEATURE_LENGTH:
                        continue
                    entry = hits[feature.lower()]
                    entry.count += 1
                    if len(entry.quotes) < self.max_quotes:
                        entry.quotes.append(text[:300])

        if not hits:
            return []

        grouped = group_similar_requests(dict(hits), max_quotes=self.max_quotes)
        total = len(records)

        requests = [
            FeatureRequestPattern(
                feature=feature,
                mentions=entry.count,
                confidence=round(min(1.0, entry.count / max(1, total) * 10), 2),
                source_quotes=tuple(entry.quotes),
            )
            for feature, entry in grouped.items()
            if entry.count >= self.min_mentions
        ]

        requests.sort(key=lambda r: r.mentions, reverse=True)
        logger.debug("Extracted %d feature request(s) from %d records", len(requests), total)
        return requests
