"""Tests for command-line argument parsing."""

import sys
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pr_insights.cli import parse_args
from pr_insights.models import OrderDirection


def test_parse_args_histogram_with_valid_arguments(monkeypatch):
    """Verify histogram parsing succeeds and keeps the scoping options."""
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "pr-insights",
            "histogram",
            "--events",
            "events.json",
            "--repo",
            "a/b,c/d",
            "--width",
            "7",
            "--dense",
        ],
    )

    args = parse_args()

    assert args.command == "histogram"
    assert args.events == "events.json"
    assert args.repo == "a/b,c/d"
    assert args.width == 7
    assert args.dense is True


def test_parse_args_applies_defaults(monkeypatch):
    """Verify range, offset, order, and paging defaults."""
    monkeypatch.setattr(sys, "argv", ["pr-insights", "list", "--events", "events.json"])

    args = parse_args()

    assert args.range == 30
    assert args.prev_days == 0
    assert args.order == OrderDirection.DESC
    assert args.skip == 0
    assert args.limit == 10
    assert args.distinct_authors is False
    assert args.contributor is None
    assert args.api_url is None


def test_parse_args_order_is_case_insensitive():
    """Verify a lowercase order value is accepted."""
    args = parse_args(["velocity", "--events", "e.json", "--contributor", "alice", "--order", "asc"])

    assert args.order == OrderDirection.ASC


def test_parse_args_contributors_cohort():
    """Verify the cohort option defaults to all and accepts known cohorts."""
    assert parse_args(["contributors", "--events", "e.json", "--repo-ids", "1"]).cohort == "all"
    assert parse_args(["contributors", "--events", "e.json", "--repo-ids", "1", "--cohort", "alumni"]).cohort == "alumni"


@pytest.mark.parametrize(
    "argv",
    [
        ["list", "--events", "e.json", "--range", "-5"],
        ["list", "--events", "e.json", "--range", "abc"],
        ["list", "--events", "e.json", "--prev-days", "-1"],
        ["list", "--events", "e.json", "--order", "sideways"],
        ["histogram", "--events", "e.json", "--width", "0"],
        ["contributors", "--events", "e.json", "--cohort", "lurkers"],
        ["list"],
        ["--events", "e.json"],
    ],
)
def test_parse_args_rejects_invalid_arguments(argv):
    """Verify invalid values, missing --events, and missing commands exit."""
    with pytest.raises(SystemExit):
        parse_args(argv)
