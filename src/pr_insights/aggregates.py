"""Aggregations over deduplicated pull-request records.

This module computes:
- record counts (deduplicated and distinct PR numbers)
- merge velocity: mean whole days from creation to merge
- activity counters (accepted, open, closed, draft, active, spam)
- day-bucketed histograms of those counters anchored at the window start

Inputs are expected to be filtered, windowed, and already resolved to one
record per pull request. Empty inputs produce zero-valued results.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import ValidationError
from .models import HistogramBucket, OrderDirection, PullRequestEvent, Window

logger = logging.getLogger(__name__)

SPAM_LOCK_REASON = "spam"


def count(records: Sequence[PullRequestEvent]) -> int:
    """Number of deduplicated records."""
    return len(records)


def count_distinct_prs(events: Iterable[PullRequestEvent]) -> int:
    """Number of distinct PR numbers touched by ``events``; no resolution needed."""
    return len({event.pr_number for event in events})


def merge_days(record: PullRequestEvent) -> Optional[int]:
    """Whole calendar days between PR creation and merge.

    Returns ``None`` for unmerged records, missing timestamps, or a merge date
    before the creation date.
    """
    if not record.is_merged:
        return None

    if record.created_at is None or record.merged_at is None:
        logger.debug(
            "Skipping velocity sample due to missing timestamps",
            extra={"pr_number": record.pr_number, "repo_name": record.repo_name},
        )
        return None

    days = (record.merged_at.date() - record.created_at.date()).days
    if days < 0:
        logger.debug(
            "Skipping velocity sample due to negative duration",
            extra={"pr_number": record.pr_number, "repo_name": record.repo_name, "days": days},
        )
        return None

    return days


def velocity(records: Iterable[PullRequestEvent]) -> int:
    """Average merge velocity in whole days, truncated; ``0`` without merged records."""
    samples = [days for days in (merge_days(record) for record in records) if days is not None]
    if not samples:
        return 0
    return int(sum(samples) / len(samples))


def _tally(bucket: HistogramBucket, record: PullRequestEvent) -> None:
    action = record.action.lower()

    bucket.prs_count += 1
    if action == "closed":
        if record.is_merged:
            bucket.accepted_prs += 1
        else:
            bucket.closed_prs += 1
    elif action == "opened":
        bucket.active_prs += 1
        if record.is_draft:
            bucket.draft_prs += 1
        else:
            bucket.open_prs += 1

    if record.active_lock_reason == SPAM_LOCK_REASON:
        bucket.spam_prs += 1


def summarize(records: Sequence[PullRequestEvent], bucket_key: Optional[datetime] = None) -> HistogramBucket:
    """Activity counters and velocity for a whole record set."""
    summary = HistogramBucket(bucket=bucket_key)
    for record in records:
        _tally(summary, record)
    summary.pr_velocity = velocity(records)
    return summary


def bucket_index(record: PullRequestEvent, window: Window, width_days: int) -> int:
    """``floor((event_time - window.start) / width)``"""
    return (record.event_time - window.start) // timedelta(days=width_days)


def histogram(
    records: Iterable[PullRequestEvent],
    window: Window,
    width_days: int = 1,
    order: OrderDirection = OrderDirection.DESC,
    dense: bool = False,
) -> List[HistogramBucket]:
    """Partition records into fixed-width day buckets anchored at ``window.start``.

    Buckets without records are omitted unless ``dense`` is set, in which case
    every bucket overlapping the window is returned with zero counters.

    Raises:
        ValidationError: If ``width_days`` is not positive.
    """
    if width_days <= 0:
        raise ValidationError("width must be greater than 0")

    width = timedelta(days=width_days)
    grouped: Dict[int, List[PullRequestEvent]] = {}
    for record in records:
        grouped.setdefault(bucket_index(record, window, width_days), []).append(record)

    indices = set(grouped)
    if dense:
        indices.update(range((window.end - window.start) // width + 1))

    buckets = [
        summarize(grouped.get(index, []), bucket_key=window.start + index * width)
        for index in sorted(indices, reverse=order == OrderDirection.DESC)
    ]

    logger.info(
        "Built PR histogram",
        extra={"buckets": len(buckets), "populated_buckets": len(grouped), "width_days": width_days},
    )

    return buckets
