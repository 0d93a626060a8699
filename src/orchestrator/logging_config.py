"""
Structured Logging Configuration
================================

Routes the analytics engine's log records to stderr (and optionally a
rotating file), either as JSON lines for log aggregation or as plain text.
Everything comes from LoggingConfig (LOG_LEVEL, LOG_FILE, LOG_JSON,
LOG_MAX_BYTES, LOG_BACKUP_COUNT).

Usage:
    from src.orchestrator.logging_config import setup_logging

    setup_logging(get_settings().logging, verbose=args.verbose)
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Optional

from ..data.config import LoggingConfig

# Attributes passed through ``extra=`` that end up in the JSON line
EXTRA_FIELDS = ("duration", "count")

TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)-35s | %(message)s"


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Output format:
        {"ts": "2024-...", "level": "INFO", "logger": "src.telemetry.log_analyzer",
         "msg": "...", "duration": 0.012, "count": 6}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                payload[key] = val

        if record.exc_info and record.exc_info[0] is not None:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def setup_logging(config: Optional[LoggingConfig] = None, verbose: bool = False):
    """
    Replace the root handlers according to ``config``.

    Args:
        config: Logging settings (read from the environment when omitted)
        verbose: Force DEBUG regardless of config.level
    """
    config = config or LoggingConfig()
    level = "DEBUG" if verbose else config.level

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    if config.json_logs:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    # stderr keeps stdout free for command output
    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    root.addHandler(console)

    if config.log_file:
        os.makedirs(os.path.dirname(config.log_file) or ".", exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.debug(
        "Logging configured: level=%s json=%s file=%s",
        level, config.json_logs, config.log_file or "none",
    )
