"""
Log Analysis Data Models
========================

Outputs of the log pattern analyzer. All timestamps are UTC datetimes and
are serialized as ISO-8601 strings by ``to_dict()``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..data.data_models import ClassifiedError, ErrorCategory, PriorityTier


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class SlowRequest:
    path: Optional[str]
    method: Optional[str]
    duration_ms: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "method": self.method,
            "durationMs": self.duration_ms,
            "timestamp": _iso(self.timestamp),
        }


@dataclass(frozen=True)
class SlowQuery:
    query: Optional[str]
    duration_ms: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query, "durationMs": self.duration_ms, "timestamp": _iso(self.timestamp)}


@dataclass(frozen=True)
class ResourceSample:
    """A memory (bytes) or CPU (percent) reading above its threshold."""
    value: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "timestamp": _iso(self.timestamp)}


@dataclass(frozen=True)
class ErrorClassification:
    """Aggregate of all errors of one category."""
    category: ErrorCategory
    count: int
    last_occurrence: datetime
    affected_endpoints: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "count": self.count,
            "lastOccurrence": _iso(self.last_occurrence),
            "affectedEndpoints": list(self.affected_endpoints),
        }


@dataclass(frozen=True)
class ErrorCluster:
    """Two or more errors, each within the cluster window of the previous one."""
    timestamps: Tuple[datetime, ...]

    def __post_init__(self):
        if len(self.timestamps) < 2:
            raise ValueError("an error cluster needs at least 2 timestamps")

    @property
    def size(self) -> int:
        return len(self.timestamps)

    @property
    def start(self) -> datetime:
        return self.timestamps[0]

    @property
    def end(self) -> datetime:
        return self.timestamps[-1]

    @property
    def span_ms(self) -> float:
        return (self.end - self.start).total_seconds() * 1000.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "start": _iso(self.start),
            "end": _iso(self.end),
            "spanMs": self.span_ms,
            "timestamps": [_iso(t) for t in self.timestamps],
        }


@dataclass(frozen=True)
class RemediationBlock:
    """A fixed recommendation emitted by one log-analysis rule."""
    category: str
    priority: PriorityTier
    issues: Tuple[str, ...]
    trigger: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "priority": self.priority.value,
            "issues": list(self.issues),
            "trigger": self.trigger,
            "count": self.count,
        }


@dataclass
class LogAnalysisReport:
    """Everything one log analysis run found."""
    entries_analyzed: int
    error_breakdown: Dict[str, int]
    classifications: List[ErrorClassification]
    classified_errors: List[ClassifiedError]
    slow_requests: List[SlowRequest]
    slow_queries: List[SlowQuery]
    high_memory: List[ResourceSample]
    high_cpu: List[ResourceSample]
    most_frequent_errors: List[Tuple[str, int]]
    most_frequent_endpoints: List[Tuple[str, int]]
    error_clusters: List[ErrorCluster]
    recommendations: List[RemediationBlock] = field(default_factory=list)
    unparsed: int = 0

    @property
    def total_errors(self) -> int:
        return sum(self.error_breakdown.values())

    @property
    def cluster_count(self) -> int:
        return len(self.error_clusters)

    @property
    def performance_issues(self) -> Dict[str, int]:
        return {
            "slowRequests": len(self.slow_requests),
            "slowQueries": len(self.slow_queries),
            "highMemory": len(self.high_memory),
            "highCpu": len(self.high_cpu),
        }

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "entriesAnalyzed": self.entries_analyzed,
            "unparsed": self.unparsed,
            "totalErrors": self.total_errors,
            "errorBreakdown": dict(self.error_breakdown),
            "performanceIssues": self.performance_issues,
            "mostFrequentErrors": [[sig, count] for sig, count in self.most_frequent_errors],
            "mostFrequentEndpoints": [[path, count] for path, count in self.most_frequent_endpoints],
            "errorClusters": self.cluster_count,
        }

    def patterns_dict(self) -> Dict[str, Any]:
        return {
            "classifications": [c.to_dict() for c in self.classifications],
            "errorClusters": [c.to_dict() for c in self.error_clusters],
            "slowRequests": [r.to_dict() for r in self.slow_requests],
            "slowQueries": [q.to_dict() for q in self.slow_queries],
            "highMemory": [m.to_dict() for m in self.high_memory],
            "highCpu": [c.to_dict() for c in self.high_cpu],
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary_dict(),
            "details": self.patterns_dict(),
            "recommendations": [r.to_dict() for r in self.recommendations],
        }
