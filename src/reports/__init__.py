"""
Report assembly: one envelope shape for business, feedback and log reports.
"""

from .report_builder import AnalysisReport, AnalysisReportBuilder, ReportScope
