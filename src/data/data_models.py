"""
Input Record Models
===================

Pydantic models for the records ingestion collaborators hand to the engine:
feedback/review records, structured log entries and classified errors.

Validation is lenient on values the engine can interpret (unknown levels,
feedback types and categories fall back to their lowest/"other" member,
naive timestamps are read as UTC) and strict on structure (missing
timestamp, level or message fails validation).
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class AnalyticsError(Exception):
    """Base exception for analytics engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidInputError(AnalyticsError, TypeError):
    """Raised when an analysis input is not a collection of records."""
    pass


class LogLevel(str, Enum):
    """Log levels, most to least severe."""
    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    HTTP = "http"
    DEBUG = "debug"


class ErrorCategory(str, Enum):
    """Error categories, in classification order."""
    TIMEOUT = "timeout"
    MEMORY = "memory"
    DATABASE = "database"
    API = "api"
    SECURITY = "security"
    OTHER = "other"


class FeedbackType(str, Enum):
    """Kinds of user feedback."""
    BUG = "bug"
    FEATURE = "feature"
    PERFORMANCE = "performance"
    COMPLAINT = "complaint"
    SECURITY = "security"
    OTHER = "other"


class PriorityTier(str, Enum):
    """Recommendation urgency, most to least urgent."""
    IMMEDIATE = "immediate"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Tier boundaries on a [0, 1] priority score
IMMEDIATE_PRIORITY = 0.8
HIGH_PRIORITY = 0.6
MEDIUM_PRIORITY = 0.3


def tier_for_priority(priority: float) -> PriorityTier:
    """Map a priority score to its tier (>=0.8, >=0.6, >=0.3, else low)."""
    if priority >= IMMEDIATE_PRIORITY:
        return PriorityTier.IMMEDIATE
    if priority >= HIGH_PRIORITY:
        return PriorityTier.HIGH
    if priority >= MEDIUM_PRIORITY:
        return PriorityTier.MEDIUM
    return PriorityTier.LOW


_LEVEL_ALIASES = {"warning": "warn", "err": "error", "fatal": "error", "critical": "error"}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MemorySample(BaseModel):
    """Process memory snapshot attached to a log entry."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    heap_used_bytes: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("heapUsedBytes", "heapUsed", "heap_used_bytes"),
    )


class CpuSample(BaseModel):
    """CPU usage snapshot attached to a log entry."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    usage_percent: Optional[float] = Field(
        default=None,
        validation_alias=AliasChoices("usagePercent", "usage", "usage_percent"),
    )


class LogEntry(BaseModel):
    """One structured application log line."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    timestamp: datetime
    level: LogLevel
    message: str
    path: Optional[str] = None
    method: Optional[str] = None
    entry_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("type", "entry_type")
    )
    query: Optional[str] = None
    duration_ms: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("durationMs", "duration", "duration_ms")
    )
    memory: Optional[MemorySample] = None
    cpu: Optional[CpuSample] = None
    severity: Optional[str] = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        # Unknown levels are kept as the lowest severity
        if isinstance(value, str):
            level = value.strip().lower()
            level = _LEVEL_ALIASES.get(level, level)
            if level not in {m.value for m in LogLevel}:
                return LogLevel.DEBUG
            return level
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def is_error(self) -> bool:
        return self.level == LogLevel.ERROR

    @property
    def heap_used_bytes(self) -> Optional[float]:
        return self.memory.heap_used_bytes if self.memory else None

    @property
    def cpu_usage_percent(self) -> Optional[float]:
        return self.cpu.usage_percent if self.cpu else None


class ClassifiedError(BaseModel):
    """An error-level log entry after category classification."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    category: ErrorCategory
    timestamp: datetime
    message: str = ""
    path: Optional[str] = None
    method: Optional[str] = None
    severity: str = "error"

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            category = value.strip().lower()
            if category not in {m.value for m in ErrorCategory}:
                return ErrorCategory.OTHER
            return category
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def is_critical(self) -> bool:
        return (self.severity or "").lower() == "critical"


class FeedbackRecord(BaseModel):
    """A user feedback or business review record."""
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    text: str = Field(validation_alias=AliasChoices("text", "description", "body"))
    timestamp: datetime
    severity: Optional[str] = None
    user_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("userId", "user_id"))
    source_ref: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sourceRef", "source_ref")
    )
    type: FeedbackType = FeedbackType.OTHER

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: Any) -> Any:
        if value is None:
            return FeedbackType.OTHER
        if isinstance(value, str):
            kind = value.strip().lower()
            if kind not in {m.value for m in FeedbackType}:
                return FeedbackType.OTHER
            return kind
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @property
    def is_critical(self) -> bool:
        return (self.severity or "").lower() == "critical"


# Same record shape, named for what the review side calls it
TextSample = FeedbackRecord


RecordT = TypeVar("RecordT", bound=BaseModel)


def ensure_collection(items: Any, what: str) -> List[Any]:
    """
    Materialize an input collection.

    Raises:
        InvalidInputError: if ``items`` is not an iterable of records
    """
    if items is None:
        return []
    if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
        raise InvalidInputError(
            f"{what} must be an iterable of records, got {type(items).__name__}"
        )
    return list(items)


def coerce_records(items: Any, model: Type[RecordT], what: str) -> List[RecordT]:
    """Validate a collection of dicts/models into ``model`` instances."""
    records = []
    for item in ensure_collection(items, what):
        if isinstance(item, model):
            records.append(item)
        elif isinstance(item, Mapping):
            records.append(model.model_validate(item))
        else:
            raise InvalidInputError(
                f"{what} must contain mappings or {model.__name__} objects, "
                f"got {type(item).__name__}"
            )
    return records
