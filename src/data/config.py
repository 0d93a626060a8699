"""
Analytics Engine Configuration Module
=====================================

Centralized configuration management using environment variables.
Supports both .env files and system environment variables.

Environment Variables:
    ANALYTICS_ERROR_FREQUENCY: Errors per category before a pattern surfaces (default: 5)
    ANALYTICS_PERFORMANCE_THRESHOLD_MS: Slow endpoint threshold in ms (default: 2000)
    ANALYTICS_COMPLAINT_THRESHOLD: Complaints per aspect before a pattern surfaces (default: 3)
    ANALYTICS_CLUSTER_WINDOW_MS: Max gap between clustered errors in ms (default: 300000)
    ANALYTICS_BATCH_SIZE: Entries processed between cancellation checks (default: 1000)
    ANALYTICS_STRICT_PARSING: Fail on the first malformed log line (default: false)

    LOG_SLOW_REQUEST_MS: Slow request threshold (default: 2000)
    LOG_SLOW_QUERY_MS: Slow query threshold (default: 1000)
    LOG_HIGH_MEMORY_MB: Heap usage threshold in MB (default: 500)
    LOG_HIGH_CPU_PERCENT: CPU usage threshold (default: 80)

    ALERT_CRITICAL_ISSUES: Critical feedback count that raises an alert (default: 5)
    ALERT_ERROR_RATE: Bug-report rate that raises an alert (default: 0.05)

    LOG_LEVEL / LOG_FILE / LOG_JSON: Logging output
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path
from dotenv import load_dotenv


# Load environment variables from .env file if present
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    """
    Get environment variable with optional default and required validation.

    Raises:
        ValueError: If required=True and variable is not set
    """
    value = os.getenv(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable '{key}' is not set")
    return value


def get_env_int(key: str, default: int) -> int:
    """Get environment variable as integer."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be an integer, got: {value}")


def get_env_float(key: str, default: float) -> float:
    """Get environment variable as float."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable '{key}' must be a float, got: {value}")


def get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as boolean."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class AnalyticsConfig:
    """Feedback and log aggregation thresholds."""

    # Same error category must occur this often before it is surfaced
    error_frequency: int = field(default_factory=lambda: get_env_int("ANALYTICS_ERROR_FREQUENCY", 5))

    # Endpoint calls slower than this (ms) feed the slow-endpoint patterns
    performance_threshold_ms: float = field(
        default_factory=lambda: get_env_float("ANALYTICS_PERFORMANCE_THRESHOLD_MS", 2000.0)
    )

    # Similar complaints before an aspect is surfaced
    complaint_threshold: int = field(default_factory=lambda: get_env_int("ANALYTICS_COMPLAINT_THRESHOLD", 3))

    # Errors closer together than this belong to the same cluster
    cluster_window_ms: int = field(default_factory=lambda: get_env_int("ANALYTICS_CLUSTER_WINDOW_MS", 300_000))

    # Cancellation is checked once per batch
    batch_size: int = field(default_factory=lambda: get_env_int("ANALYTICS_BATCH_SIZE", 1000))

    strict_parsing: bool = field(default_factory=lambda: get_env_bool("ANALYTICS_STRICT_PARSING", False))

    def __post_init__(self):
        """Validate configuration."""
        if self.error_frequency <= 0:
            raise ValueError("error_frequency must be positive")
        if self.complaint_threshold <= 0:
            raise ValueError("complaint_threshold must be positive")
        if self.cluster_window_ms < 0:
            raise ValueError("cluster_window_ms cannot be negative")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")


@dataclass
class LogThresholds:
    """Per-entry performance thresholds for log analysis."""

    slow_request_ms: float = field(default_factory=lambda: get_env_float("LOG_SLOW_REQUEST_MS", 2000.0))
    slow_query_ms: float = field(default_factory=lambda: get_env_float("LOG_SLOW_QUERY_MS", 1000.0))
    high_memory_mb: float = field(default_factory=lambda: get_env_float("LOG_HIGH_MEMORY_MB", 500.0))
    high_cpu_percent: float = field(default_factory=lambda: get_env_float("LOG_HIGH_CPU_PERCENT", 80.0))

    @property
    def high_memory_bytes(self) -> float:
        return self.high_memory_mb * 1024 * 1024


@dataclass
class AlertThresholds:
    """Thresholds checked against the running feedback counters."""

    critical_issues: int = field(default_factory=lambda: get_env_int("ALERT_CRITICAL_ISSUES", 5))
    error_rate: float = field(default_factory=lambda: get_env_float("ALERT_ERROR_RATE", 0.05))

    def __post_init__(self):
        if not 0.0 <= self.error_rate <= 1.0:
            raise ValueError("error_rate must be between 0 and 1")


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = field(default_factory=lambda: get_env("LOG_LEVEL", "INFO"))
    log_file: Optional[str] = field(default_factory=lambda: get_env("LOG_FILE"))

    # Structured logging
    json_logs: bool = field(default_factory=lambda: get_env_bool("LOG_JSON", False))

    # File rotation
    max_bytes: int = field(default_factory=lambda: get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))
    backup_count: int = field(default_factory=lambda: get_env_int("LOG_BACKUP_COUNT", 5))


@dataclass
class Settings:
    """Main application settings container."""

    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    log_thresholds: LogThresholds = field(default_factory=LogThresholds)
    alerts: AlertThresholds = field(default_factory=AlertThresholds)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    app_name: str = "review-analytics"
    app_version: str = "1.0.0"
    environment: str = field(default_factory=lambda: get_env("ENVIRONMENT", "development"))


def load_settings() -> Settings:
    """
    Load and validate all application settings.

    Raises:
        ValueError: If configuration is invalid
    """
    return Settings()


# Global settings instance (lazy-loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
