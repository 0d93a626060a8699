"""
Review Analytics CLI
====================

Command-line interface for the analytics engine.

Commands:
    sentiment   - Score the sentiment of a text
    aspects     - Break a review down by aspect
    logs        - Analyze a JSON-lines log file
    feedback    - Prioritize feedback (optionally with errors from a log file)
    report      - Emit a full report envelope (business, feedback or logs)

Usage:
    python -m src.orchestrator.cli sentiment "The food was delicious"
    python -m src.orchestrator.cli logs app.log --timeout 30
    python -m src.orchestrator.cli feedback feedback.json --errors app.log --json
    python -m src.orchestrator.cli report business reviews.json --business-id cafe-42

Exit codes: 0 success, 1 error, 2 analysis cancelled.
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from pydantic import ValidationError

from ..data.config import get_settings
from ..data.data_models import AnalyticsError, LogEntry
from ..data.log_parser import parse_log_lines
from ..feedback.feedback_analyzer import FeedbackPriorityEngine
from ..reports.report_builder import AnalysisReportBuilder
from ..reviews.review_aspects import AspectClassifier
from ..reviews.review_insights import ReviewInsightAggregator
from ..reviews.review_sentiment import SentimentScorer
from ..telemetry.cancellation import AnalysisCancelled, CancellationToken
from ..telemetry.log_analyzer import LogPatternAnalyzer
from ..telemetry.log_models import LogAnalysisReport
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 2


# =============================================================================
# INPUT HELPERS
# =============================================================================

def read_lines(path: str) -> List[str]:
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()


def load_records(path: str) -> List[Any]:
    """
    Load records from a JSON array file or a JSON-lines file.

    Raises:
        ValueError: if the content is neither
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    stripped = content.lstrip()
    if not stripped:
        return []
    if stripped.startswith("["):
        return json.loads(stripped)

    records = []
    for number, line in enumerate(content.splitlines(), start=1):
        if not line.strip():
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}:{number}: invalid JSON ({e.msg})") from e
    return records


def _print_json(payload: Any):
    print(json.dumps(payload, indent=2, default=str))


def _token(args) -> Optional[CancellationToken]:
    timeout = getattr(args, "timeout", None)
    return CancellationToken(timeout_seconds=timeout) if timeout else None


def _analyze_log_file(path: str, strict: bool, cancel_token: Optional[CancellationToken]):
    """Parse and analyze a log file; returns (entries, report)."""
    parsed = parse_log_lines(read_lines(path), strict=strict)
    analyzer = LogPatternAnalyzer()
    report = analyzer.analyze(parsed.entries, cancel_token=cancel_token, unparsed=parsed.unparsed)
    return parsed.entries, report


def _performance_samples(entries: List[LogEntry]) -> List[LogEntry]:
    return [e for e in entries if e.duration_ms is not None]


# =============================================================================
# COMMANDS
# =============================================================================

def cmd_sentiment(args):
    """Score a single text."""
    scorer = SentimentScorer()
    result = scorer.score(args.text)

    if args.json:
        _print_json(result.to_dict())
        return EXIT_OK

    print(f"Score:      {result.score:+.2f} ({scorer.label(result.score).value})")
    print(f"Confidence: {result.confidence:.2f}")
    if result.matched_keywords:
        words = ", ".join(f"{word} ({weight:+g})" for word, weight in result.matched_keywords)
        print(f"Keywords:   {words}")
    return EXIT_OK


def cmd_aspects(args):
    """Aspect breakdown of a single text."""
    result = AspectClassifier().classify(args.text)

    if args.json:
        _print_json(result.to_dict())
        return EXIT_OK

    if not result.aspects:
        print("No aspects detected.")
        return EXIT_OK

    print(f"{'Aspect':<10} {'Score':>6} {'Conf':>5} {'Mentions':>8}  Keywords")
    print("-" * 60)
    for name, bucket in result.aspects.items():
        print(
            f"{name:<10} {bucket.score:>+6.2f} {bucket.sentiment.confidence:>5.2f} "
            f"{bucket.mention_count:>8}  {', '.join(bucket.keyword_set)}"
        )
    if result.summary:
        dominant = ", ".join(d.aspect for d in result.summary.dominant_aspects)
        print()
        print(f"Overall: {result.summary.overall_score:+.2f}  Dominant: {dominant}")
    return EXIT_OK


def _print_log_summary(report: LogAnalysisReport):
    print("=" * 60)
    print("LOG ANALYSIS")
    print("=" * 60)
    print(f"Entries analyzed: {report.entries_analyzed} (unparsed: {report.unparsed})")
    print(f"Total errors:     {report.total_errors}")
    for category, count in report.error_breakdown.items():
        if count:
            print(f"  {category:<10} {count}")
    print(f"Error clusters:   {report.cluster_count}")
    for name, count in report.performance_issues.items():
        if count:
            print(f"  {name:<14} {count}")

    if report.most_frequent_errors:
        print()
        print("Most frequent errors:")
        for signature, count in report.most_frequent_errors:
            print(f"  {count:>4}  {signature[:70]}")

    if report.recommendations:
        print()
        print("Recommendations:")
        for block in report.recommendations:
            print(f"  [{block.priority.value.upper()}] {block.category} ({block.count})")
            for issue in block.issues:
                print(f"      - {issue}")


def cmd_logs(args):
    """Analyze a log file."""
    strict = args.strict or get_settings().analytics.strict_parsing
    _, report = _analyze_log_file(args.file, strict, _token(args))

    if args.json:
        _print_json(report.to_dict())
    else:
        _print_log_summary(report)
    return EXIT_OK


def _run_feedback(args):
    feedback = load_records(args.file)
    errors: List[Any] = []
    performance: List[LogEntry] = []

    if args.errors:
        entries, log_report = _analyze_log_file(
            args.errors, get_settings().analytics.strict_parsing, _token(args)
        )
        errors = log_report.classified_errors
        performance = _performance_samples(entries)

    return FeedbackPriorityEngine().analyze_all(
        feedback, errors, performance, user_satisfaction=args.user_satisfaction
    )


def cmd_feedback(args):
    """Prioritize feedback and errors."""
    report = _run_feedback(args)

    if args.json:
        _print_json(report.to_dict())
        return EXIT_OK

    summary = report.summary
    print("=" * 60)
    print("FEEDBACK ANALYSIS")
    print("=" * 60)
    print(f"Feedback: {summary.total_feedback}  Errors: {summary.total_errors}  "
          f"Critical: {summary.critical_issues}  Slow calls: {summary.performance_issues}")
    print(f"Error rate: {report.metrics.error_rate:.2%}  "
          f"Avg response: {report.metrics.average_response_time:.0f} ms")
    print()

    if not report.recommendations:
        print("No recommendations.")
        return EXIT_OK

    for tier, recommendations in report.by_tier().items():
        if not recommendations:
            continue
        print(f"{tier.upper()}:")
        for rec in recommendations:
            print(f"  - {rec.issue_text}")
            print(f"    {rec.recommendation_text}")
    return EXIT_OK


def cmd_report(args):
    """Emit a report envelope as JSON."""
    builder = AnalysisReportBuilder()

    if args.scope == "business":
        profile = ReviewInsightAggregator().build_profile(args.business_id, load_records(args.file))
        envelope = builder.build_business_report(profile)
    elif args.scope == "feedback":
        envelope = builder.build_feedback_report(_run_feedback(args))
    else:
        _, log_report = _analyze_log_file(
            args.file, args.strict or get_settings().analytics.strict_parsing, _token(args)
        )
        envelope = builder.build_log_report(log_report)

    _print_json(envelope.to_dict())
    return EXIT_OK


# =============================================================================
# ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review-analytics",
        description="Review sentiment and telemetry analytics",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # sentiment command
    sentiment_parser = subparsers.add_parser("sentiment", help="Score the sentiment of a text")
    sentiment_parser.add_argument("text", help="Text to score")
    sentiment_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # aspects command
    aspects_parser = subparsers.add_parser("aspects", help="Aspect breakdown of a review")
    aspects_parser.add_argument("text", help="Review text")
    aspects_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # logs command
    logs_parser = subparsers.add_parser("logs", help="Analyze a JSON-lines log file")
    logs_parser.add_argument("file", help="Log file path")
    logs_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first malformed line",
    )
    logs_parser.add_argument("--json", action="store_true", help="Output as JSON")
    logs_parser.add_argument(
        "--timeout",
        type=float,
        help="Cancel the analysis after this many seconds",
    )

    # feedback command
    feedback_parser = subparsers.add_parser("feedback", help="Prioritize feedback and errors")
    _add_feedback_arguments(feedback_parser)
    feedback_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # report command
    report_parser = subparsers.add_parser("report", help="Emit a report envelope as JSON")
    report_sub = report_parser.add_subparsers(dest="scope", required=True)

    business_parser = report_sub.add_parser("business", help="Report for one business")
    business_parser.add_argument("file", help="Reviews file (JSON array or JSON lines)")
    business_parser.add_argument("--business-id", required=True, help="Business identifier")

    feedback_report_parser = report_sub.add_parser("feedback", help="Report over all feedback")
    _add_feedback_arguments(feedback_report_parser)

    logs_report_parser = report_sub.add_parser("logs", help="Report for a log file")
    logs_report_parser.add_argument("file", help="Log file path")
    logs_report_parser.add_argument("--strict", action="store_true", help="Fail on the first malformed line")
    logs_report_parser.add_argument("--timeout", type=float, help="Cancel after this many seconds")

    return parser


def _add_feedback_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("file", help="Feedback file (JSON array or JSON lines)")
    parser.add_argument("--errors", help="Log file to take classified errors and timings from")
    parser.add_argument(
        "--user-satisfaction",
        type=float,
        help="Externally measured satisfaction score to include in metrics",
    )
    parser.add_argument("--timeout", type=float, help="Cancel log analysis after this many seconds")


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(get_settings().logging, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return EXIT_ERROR

    commands = {
        "sentiment": cmd_sentiment,
        "aspects": cmd_aspects,
        "logs": cmd_logs,
        "feedback": cmd_feedback,
        "report": cmd_report,
    }

    try:
        return commands[args.command](args)
    except AnalysisCancelled as e:
        logger.warning(str(e))
        return EXIT_CANCELLED
    except AnalyticsError as e:
        logger.error(f"{args.command} failed: {e.message}")
        return EXIT_ERROR
    except (ValidationError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
