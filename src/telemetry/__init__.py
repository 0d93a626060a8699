"""
Telemetry Analysis
==================

Classification and clustering of structured application logs.

Modules:
    log_rules     — Ordered error-category patterns and remediation table
    log_models    — Result models (ErrorClassification, ErrorCluster, LogAnalysisReport)
    log_analyzer  — LogPatternAnalyzer
    cancellation  — CancellationToken / AnalysisCancelled
"""

from .cancellation import AnalysisCancelled, CancellationToken
from .log_analyzer import LogPatternAnalyzer, find_error_clusters
from .log_models import (
    ErrorClassification,
    ErrorCluster,
    LogAnalysisReport,
    RemediationBlock,
)
from .log_rules import ERROR_CATEGORY_RULES, REMEDIATION_RULES, classify_message
