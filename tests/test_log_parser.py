"""
Tests for JSON log line parsing and input record validation.

Usage:
    pytest tests/test_log_parser.py -v
"""

import json
from datetime import timezone

import pytest

from src.data.data_models import (
    ClassifiedError,
    ErrorCategory,
    FeedbackRecord,
    FeedbackType,
    InvalidInputError,
    LogLevel,
    coerce_records,
    tier_for_priority,
    PriorityTier,
)
from src.data.log_parser import LogParseError, parse_log_entries, parse_log_lines


def make_line(**fields) -> str:
    """Helper to create one JSON log line."""
    record = {"timestamp": "2024-01-15T10:00:00Z", "level": "info", "message": "ok"}
    record.update(fields)
    return json.dumps(record)


class TestParseLogLines:

    def test_valid_lines(self):
        parsed = parse_log_lines([make_line(), make_line(level="error", message="boom")])
        assert len(parsed.entries) == 2
        assert parsed.unparsed == 0
        assert parsed.entries[1].level == LogLevel.ERROR

    def test_blank_lines_ignored(self):
        parsed = parse_log_lines(["", make_line(), "   "])
        assert len(parsed.entries) == 1
        assert parsed.unparsed == 0

    def test_invalid_json_counted(self):
        parsed = parse_log_lines([make_line(), "{not json", make_line()])
        assert len(parsed.entries) == 2
        assert parsed.unparsed == 1
        assert parsed.errors[0].startswith("line 2:")

    def test_missing_required_field_counted(self):
        line = json.dumps({"timestamp": "2024-01-15T10:00:00Z", "level": "error"})
        parsed = parse_log_lines([line])
        assert parsed.entries == []
        assert parsed.unparsed == 1

    def test_non_object_counted(self):
        parsed = parse_log_lines(["[1, 2, 3]", '"text"'])
        assert parsed.unparsed == 2

    def test_strict_raises_on_first_bad_line(self):
        with pytest.raises(LogParseError) as exc_info:
            parse_log_lines([make_line(), "garbage", "more garbage"], strict=True)
        assert exc_info.value.line_number == 2

    def test_bytes_lines_decoded(self):
        parsed = parse_log_lines([make_line().encode("utf-8")])
        assert len(parsed.entries) == 1

    def test_string_instead_of_lines_rejected(self):
        with pytest.raises(InvalidInputError):
            parse_log_lines(make_line())


class TestParseLogEntries:

    def test_invalid_dict_counted(self):
        parsed = parse_log_entries([
            json.loads(make_line(level="error", message="connection refused")),
            {"timestamp": "2024-01-15T10:00:00Z", "level": "error"},
        ])
        assert len(parsed.entries) == 1
        assert parsed.unparsed == 1
        assert "message" in parsed.errors[0]

    def test_entry_objects_pass_through(self):
        entry = parse_log_lines([make_line()]).entries[0]
        parsed = parse_log_entries([entry])
        assert parsed.entries == [entry]

    def test_strict_reports_entry_index(self):
        with pytest.raises(LogParseError) as exc_info:
            parse_log_entries([json.loads(make_line()), {"level": "info"}], strict=True)
        assert exc_info.value.line_number == 2


class TestLogEntryFields:

    def test_level_aliases(self):
        parsed = parse_log_lines([make_line(level="WARNING"), make_line(level="fatal")])
        assert [e.level for e in parsed.entries] == [LogLevel.WARN, LogLevel.ERROR]

    def test_unknown_level_is_debug(self):
        parsed = parse_log_lines([make_line(level="verbose")])
        assert parsed.entries[0].level == LogLevel.DEBUG

    def test_camel_case_fields(self):
        line = make_line(
            type="request",
            durationMs=2500,
            path="/api/users",
            memory={"heapUsed": 1024},
            cpu={"usage": 91.5},
        )
        entry = parse_log_lines([line]).entries[0]
        assert entry.entry_type == "request"
        assert entry.duration_ms == 2500
        assert entry.heap_used_bytes == 1024
        assert entry.cpu_usage_percent == 91.5

    def test_naive_timestamp_read_as_utc(self):
        entry = parse_log_lines([make_line(timestamp="2024-01-15T10:00:00")]).entries[0]
        assert entry.timestamp.tzinfo == timezone.utc

    def test_unknown_fields_ignored(self):
        entry = parse_log_lines([make_line(hostname="web-1")]).entries[0]
        assert entry.message == "ok"


class TestRecordCoercion:

    def test_feedback_type_fallback(self):
        record = FeedbackRecord.model_validate(
            {"id": 1, "description": "x", "timestamp": "2024-01-15T10:00:00Z", "type": "praise"}
        )
        assert record.id == "1"
        assert record.type == FeedbackType.OTHER

    def test_unknown_category_is_other(self):
        error = ClassifiedError.model_validate(
            {"category": "disk", "timestamp": "2024-01-15T10:00:00Z"}
        )
        assert error.category == ErrorCategory.OTHER

    def test_none_is_empty(self):
        assert coerce_records(None, FeedbackRecord, "feedback") == []

    def test_mapping_rejected(self):
        with pytest.raises(InvalidInputError):
            coerce_records({"id": "1"}, FeedbackRecord, "feedback")

    def test_non_record_item_rejected(self):
        with pytest.raises(InvalidInputError):
            coerce_records(["text"], FeedbackRecord, "feedback")

    def test_invalid_input_is_type_error(self):
        assert issubclass(InvalidInputError, TypeError)


class TestTiers:

    def test_boundaries(self):
        assert tier_for_priority(0.8) == PriorityTier.IMMEDIATE
        assert tier_for_priority(0.79) == PriorityTier.HIGH
        assert tier_for_priority(0.6) == PriorityTier.HIGH
        assert tier_for_priority(0.59) == PriorityTier.MEDIUM
        assert tier_for_priority(0.3) == PriorityTier.MEDIUM
        assert tier_for_priority(0.29) == PriorityTier.LOW
