"""Command-line argument parsing for PR event insights."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from .models import ContributorCohort, OrderDirection


def _positive_int(value: str) -> int:
    """Parse and validate a positive integer CLI value.

    Raises:
        argparse.ArgumentTypeError: If value is not a positive integer.
    """
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")

    return parsed


def _non_negative_int(value: str) -> int:
    """Parse and validate a non-negative integer CLI value."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc

    if parsed < 0:
        raise argparse.ArgumentTypeError("must be 0 or greater")

    return parsed


def _order(value: str) -> OrderDirection:
    try:
        return OrderDirection(value.upper())
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be ASC or DESC") from exc


def _common_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False)

    parser.add_argument(
        "--events",
        required=True,
        help="Path to a JSON or JSON-lines file of pull request events.",
    )
    parser.add_argument("--contributor", help="Filter on PR author login (case-insensitive).")
    parser.add_argument("--repo", help="Comma-separated repository full names, e.g. 'org/repo'.")
    parser.add_argument("--repo-ids", help="Comma-separated repository ids.")
    parser.add_argument("--topic", help="Repository topic, resolved through the repo search API.")
    parser.add_argument("--filter", help="Named repository filter, resolved through the repo search API.")
    parser.add_argument("--list-id", help="User list id, resolved through the list API.")
    parser.add_argument("--status", help="Filter on PR state (case-insensitive).")
    parser.add_argument(
        "--range",
        type=_positive_int,
        default=30,
        help="Number of days in the query window (default: 30).",
    )
    parser.add_argument(
        "--prev-days",
        type=_non_negative_int,
        default=0,
        help="Move the window end this many days into the past (default: 0).",
    )
    parser.add_argument(
        "--order",
        type=_order,
        default=OrderDirection.DESC,
        help="Sort direction by event time: ASC or DESC (default: DESC).",
    )
    parser.add_argument(
        "--api-url",
        help="Base URL of the repo search / list API (default: $PR_INSIGHTS_API_URL).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    return parser


def _add_paging(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--skip", type=_non_negative_int, default=0, help="Items to skip (default: 0).")
    parser.add_argument("--limit", type=_positive_int, default=10, help="Items per page (default: 10).")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        Parsed CLI arguments; ``command`` names the selected query.
    """
    common = _common_parser()
    parser = argparse.ArgumentParser(
        prog="pr-insights",
        description=(
            "Query pull request events: current PR state, activity histograms, "
            "merge velocity, and contributor cohorts."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", parents=[common], help="List the current state of each PR.")
    _add_paging(list_parser)
    list_parser.add_argument(
        "--distinct-authors",
        action="store_true",
        help="Return one record per author and repository instead of per PR.",
    )

    histogram_parser = subparsers.add_parser("histogram", parents=[common], help="Day-bucketed PR activity.")
    histogram_parser.add_argument(
        "--width",
        type=_positive_int,
        default=1,
        help="Bucket width in days (default: 1).",
    )
    histogram_parser.add_argument("--dense", action="store_true", help="Include empty buckets.")

    subparsers.add_parser("velocity", parents=[common], help="Average days from PR creation to merge.")

    subparsers.add_parser("stats", parents=[common], help="PR counters and velocity for a single --repo.")

    authors_parser = subparsers.add_parser("authors", parents=[common], help="Most recent PR authors.")
    _add_paging(authors_parser)

    contributors_parser = subparsers.add_parser(
        "contributors",
        parents=[common],
        help="Classify contributors into cohorts across two adjacent windows.",
    )
    _add_paging(contributors_parser)
    contributors_parser.add_argument(
        "--cohort",
        choices=[cohort.value for cohort in ContributorCohort],
        default=ContributorCohort.ALL.value,
        help="Contributor cohort (default: all).",
    )

    return parser.parse_args(argv)
