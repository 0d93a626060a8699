"""
Data Layer
==========

Configuration and validated input records for the analytics engine.

Modules:
    config       — Environment-driven settings (thresholds, logging)
    data_models  — Pydantic input records (FeedbackRecord, LogEntry, ClassifiedError)
    log_parser   — JSON-lines log parsing with skip-and-count policy
"""

from .data_models import (
    AnalyticsError,
    ClassifiedError,
    ErrorCategory,
    FeedbackRecord,
    FeedbackType,
    InvalidInputError,
    LogEntry,
    LogLevel,
    TextSample,
)
from .log_parser import LogParseError, ParsedLogs, parse_log_entries, parse_log_lines

__all__ = [
    "AnalyticsError",
    "ClassifiedError",
    "ErrorCategory",
    "FeedbackRecord",
    "FeedbackType",
    "InvalidInputError",
    "LogEntry",
    "LogLevel",
    "TextSample",
    "LogParseError",
    "ParsedLogs",
    "parse_log_entries",
    "parse_log_lines",
]
