"""
Orchestrator Module
===================

Command-line entry point and logging setup for the analytics engine.

Usage:
    python -m src.orchestrator.cli logs app.log
"""

from .logging_config import JSONFormatter, setup_logging

__all__ = [
    "JSONFormatter",
    "setup_logging",
]
