"""Plain-text rendering of insights query results.

This module provides utilities for:
- Formatting timestamps and page metadata.
- Rendering histograms, PR listings, contributor pages, and scalar metrics
  as human-readable reports.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from .models import Contributor, HistogramBucket, PageMeta, PageResult, PullRequestEvent

_HISTOGRAM_COLUMNS = (
    ("prs_count", "Total"),
    ("accepted_prs", "Accepted"),
    ("open_prs", "Open"),
    ("closed_prs", "Closed"),
    ("draft_prs", "Draft"),
    ("active_prs", "Active"),
    ("spam_prs", "Spam"),
    ("pr_velocity", "Velocity"),
)


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM`` UTC, or ``n/a`` when missing."""
    if value is None:
        return "n/a"
    return value.strftime("%Y-%m-%d %H:%M")


def format_page_meta(meta: PageMeta) -> str:
    return (
        f"Page {meta.page} of {max(meta.page_count, 1)}"
        f" ({meta.item_count} items, {meta.limit} per page)"
    )


def generate_histogram_report(title: str, buckets: List[HistogramBucket]) -> str:
    """Render histogram buckets as an aligned table.

    Buckets are rendered in the order given; callers decide the sort order.
    """
    header = ["Bucket".ljust(16)] + [label.rjust(9) for _, label in _HISTOGRAM_COLUMNS]
    lines = [title, "PR Activity Histogram", "", " ".join(header)]

    if not buckets:
        lines.append("(no activity in window)")

    for bucket in buckets:
        cells = [format_timestamp(bucket.bucket).ljust(16)]
        cells.extend(str(getattr(bucket, name)).rjust(9) for name, _ in _HISTOGRAM_COLUMNS)
        lines.append(" ".join(cells))

    return "\n".join(lines)


def generate_stats_report(repo_name: str, stats: HistogramBucket) -> str:
    lines = [f"Repository: {repo_name}", "PR Stats", ""]
    lines.extend(f"   {label}: {getattr(stats, name)}" for name, label in _HISTOGRAM_COLUMNS)
    return "\n".join(lines)


def generate_velocity_report(title: str, velocity_days: int, range_days: int) -> str:
    return "\n".join(
        [
            title,
            "PR Velocity (Creation to Merge)",
            f"   Range: last {range_days} days",
            f"   Average: {velocity_days} days",
        ]
    )


def generate_listing_report(title: str, page: PageResult[PullRequestEvent]) -> str:
    """Render one page of pull-request states."""
    lines = [title, "Pull Requests", format_page_meta(page.meta), ""]

    for record in page.items:
        flags = []
        if record.is_draft:
            flags.append("draft")
        if record.is_merged:
            flags.append("merged")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        lines.append(
            f"   {record.repo_name}#{record.pr_number} {record.state}{suffix}"
            f" by {record.author_login or 'unknown'} at {format_timestamp(record.event_time)}"
        )

    return "\n".join(lines)


def generate_contributors_report(title: str, page: PageResult[Contributor]) -> str:
    """Render one page of contributors with their last activity."""
    lines = [title, "Contributors", format_page_meta(page.meta), ""]
    lines.extend(
        f"   {contributor.author_login} (last event {format_timestamp(contributor.last_event_time)})"
        for contributor in page.items
    )
    return "\n".join(lines)
