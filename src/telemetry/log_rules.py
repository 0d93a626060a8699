"""
Log Classification Rules & Remediation Table
============================================

Static configuration for the log analyzer.

ERROR_CATEGORY_RULES is an ORDERED list of (category, pattern) pairs. An
error message is assigned the first category whose pattern matches; a
message such as "database timeout" is therefore a timeout, not a database
error. Reordering the list changes classification results.

REMEDIATION_RULES maps each error category and performance dimension to a
fixed recommendation block, emitted whenever its count is non-zero.
"""

import re
from dataclasses import dataclass
from typing import Pattern, Sequence, Tuple

from ..data.data_models import ErrorCategory, PriorityTier


ERROR_CATEGORY_RULES: Tuple[Tuple[ErrorCategory, Pattern], ...] = (
    (ErrorCategory.TIMEOUT, re.compile(r"timeout|timed out", re.IGNORECASE)),
    (ErrorCategory.MEMORY, re.compile(r"out of memory|memory limit", re.IGNORECASE)),
    (ErrorCategory.DATABASE, re.compile(r"database error|connection refused|deadlock", re.IGNORECASE)),
    (ErrorCategory.API, re.compile(r"api error|rate limit|429|5\d\d", re.IGNORECASE)),
    (ErrorCategory.SECURITY, re.compile(r"unauthorized|forbidden|invalid token", re.IGNORECASE)),
)


def classify_message(
    message: str,
    rules: Sequence[Tuple[ErrorCategory, Pattern]] = ERROR_CATEGORY_RULES,
) -> ErrorCategory:
    """First matching category for an error message, else OTHER."""
    for category, pattern in rules:
        if pattern.search(message or ""):
            return category
    return ErrorCategory.OTHER


# Performance dimensions checked on every entry
SLOW_REQUESTS = "slow_requests"
SLOW_QUERIES = "slow_queries"
HIGH_MEMORY = "high_memory"
HIGH_CPU = "high_cpu"


@dataclass(frozen=True)
class RemediationRule:
    trigger: str               # error category value or performance dimension
    category: str              # display label
    priority: PriorityTier
    issues: Tuple[str, ...]


REMEDIATION_RULES: Tuple[RemediationRule, ...] = (
    RemediationRule(
        trigger=ErrorCategory.TIMEOUT.value,
        category="Timeout",
        priority=PriorityTier.HIGH,
        issues=(
            "Requests timing out detected",
            "Review and adjust timeout settings",
            "Implement circuit breakers for slow dependencies",
            "Add retries with backoff for idempotent calls",
        ),
    ),
    RemediationRule(
        trigger=ErrorCategory.MEMORY.value,
        category="Memory Errors",
        priority=PriorityTier.HIGH,
        issues=(
            "Out-of-memory errors detected",
            "Raise the memory limit or scale horizontally",
            "Stream large payloads instead of buffering them",
            "Profile heap usage under load",
        ),
    ),
    RemediationRule(
        trigger=ErrorCategory.DATABASE.value,
        category="Database",
        priority=PriorityTier.HIGH,
        issues=(
            "Frequent database connection errors detected",
            "Consider implementing connection pooling",
            "Add retry logic for failed queries",
            "Monitor connection pool metrics",
        ),
    ),
    RemediationRule(
        trigger=ErrorCategory.API.value,
        category="API",
        priority=PriorityTier.MEDIUM,
        issues=(
            "Frequent API errors detected",
            "Implement rate limiting",
            "Add request validation",
            "Improve error handling",
        ),
    ),
    RemediationRule(
        trigger=ErrorCategory.SECURITY.value,
        category="Security",
        priority=PriorityTier.HIGH,
        issues=(
            "Security-related errors detected",
            "Review authentication logic",
            "Implement request sanitization",
            "Add security headers",
        ),
    ),
    RemediationRule(
        trigger=ErrorCategory.OTHER.value,
        category="Uncategorized Errors",
        priority=PriorityTier.LOW,
        issues=(
            "Errors outside known categories detected",
            "Review the most frequent error signatures",
            "Add classification rules for recurring messages",
        ),
    ),
    RemediationRule(
        trigger=SLOW_REQUESTS,
        category="Performance",
        priority=PriorityTier.MEDIUM,
        issues=(
            "Multiple slow requests detected",
            "Implement request caching",
            "Add database query optimization",
            "Consider implementing pagination",
        ),
    ),
    RemediationRule(
        trigger=SLOW_QUERIES,
        category="Query Performance",
        priority=PriorityTier.MEDIUM,
        issues=(
            "Slow database queries detected",
            "Add indexes for frequent filters",
            "Review query plans of the slowest statements",
        ),
    ),
    RemediationRule(
        trigger=HIGH_MEMORY,
        category="Memory",
        priority=PriorityTier.HIGH,
        issues=(
            "High memory usage detected",
            "Implement memory leak detection",
            "Add garbage collection monitoring",
            "Review large object allocations",
        ),
    ),
    RemediationRule(
        trigger=HIGH_CPU,
        category="CPU",
        priority=PriorityTier.MEDIUM,
        issues=(
            "High CPU usage detected",
            "Profile hot code paths",
            "Move CPU-heavy work off the request path",
        ),
    ),
)
