"""
Log Line Parser
===============

Turns raw JSON log lines (one object per line, as written by the web app's
JSON logger) into validated LogEntry records.

Default policy is skip-and-continue: a line that is not valid JSON or lacks
timestamp/level/message is dropped and counted in ``unparsed``. Strict mode
fails on the first bad line instead.

Entries that were decoded elsewhere (dicts handed to the analyzer) go
through parse_log_entries under the same policy.

Usage:
    parsed = parse_log_lines(fh)
    print(parsed.entries, parsed.unparsed)
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .data_models import AnalyticsError, InvalidInputError, LogEntry, ensure_collection

logger = logging.getLogger(__name__)


class LogParseError(AnalyticsError):
    """A log line could not be parsed (strict mode only)."""

    def __init__(self, line_number: int, reason: str, line: Optional[str] = None):
        self.line_number = line_number
        self.reason = reason
        self.line = line
        super().__init__(f"Line {line_number}: {reason}")


@dataclass
class ParsedLogs:
    """Result of parsing a batch of log lines."""
    entries: List[LogEntry] = field(default_factory=list)
    unparsed: int = 0
    errors: List[str] = field(default_factory=list)  # first few reasons, for diagnostics

    MAX_ERRORS_KEPT = 20

    def record_failure(self, line_number: int, reason: str):
        self.unparsed += 1
        if len(self.errors) < self.MAX_ERRORS_KEPT:
            self.errors.append(f"line {line_number}: {reason}")


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc or 'entry'}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def parse_log_record(record: Dict[str, Any]) -> LogEntry:
    """Validate one decoded log object. Raises pydantic ValidationError."""
    return LogEntry.model_validate(record)


def parse_log_lines(lines: Iterable[str], strict: bool = False) -> ParsedLogs:
    """
    Parse JSON log lines into LogEntry records.

    Blank lines are ignored and are not counted as unparsed.

    Args:
        lines: Iterable of raw lines (a file object works)
        strict: Raise LogParseError on the first malformed line

    Returns:
        ParsedLogs with the valid entries and the unparsed tally
    """
    result = ParsedLogs()

    for line_number, raw in enumerate(ensure_collection(lines, "lines"), 1):
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        line = raw.strip()
        if not line:
            continue

        try:
            decoded = json.loads(line)
        except json.JSONDecodeError as e:
            reason = f"invalid JSON ({e.msg})"
            if strict:
                raise LogParseError(line_number, reason, line) from e
            result.record_failure(line_number, reason)
            continue

        if not isinstance(decoded, dict):
            reason = f"expected a JSON object, got {type(decoded).__name__}"
            if strict:
                raise LogParseError(line_number, reason, line)
            result.record_failure(line_number, reason)
            continue

        try:
            result.entries.append(parse_log_record(decoded))
        except ValidationError as e:
            reason = _describe_validation_error(e)
            if strict:
                raise LogParseError(line_number, reason, line) from e
            result.record_failure(line_number, reason)

    if result.unparsed:
        logger.warning(
            "Skipped %d unparsed log line(s); first: %s",
            result.unparsed, result.errors[0],
        )

    return result


def parse_log_entries(items: Iterable[Any], strict: bool = False) -> ParsedLogs:
    """
    Validate already-decoded log entries (dicts or LogEntry objects).

    Same policy as parse_log_lines: an entry that fails validation is
    counted in ``unparsed`` unless ``strict`` is set.

    Raises:
        InvalidInputError: if ``items`` is not a collection, or holds
            something other than mappings and LogEntry objects
        LogParseError: in strict mode, on the first invalid entry
    """
    result = ParsedLogs()

    for number, item in enumerate(ensure_collection(items, "entries"), 1):
        if isinstance(item, LogEntry):
            result.entries.append(item)
            continue
        if not isinstance(item, Mapping):
            raise InvalidInputError(
                f"entries must contain mappings or LogEntry objects, got {type(item).__name__}"
            )

        try:
            result.entries.append(parse_log_record(item))
        except ValidationError as e:
            reason = _describe_validation_error(e)
            if strict:
                raise LogParseError(number, reason) from e
            result.record_failure(number, reason)

    if result.unparsed:
        logger.warning(
            "Skipped %d invalid log entry(ies); first: %s",
            result.unparsed, result.errors[0],
        )

    return result
