"""Latest-state resolution for multi-event pull-request logs.

GitHub emits several events per pull request (opened, closed, reopened, ...).
Resolution groups events by a partition key and keeps exactly one event per
group: the latest by ``event_time`` (ties go to the highest ``event_id``), or
the earliest when ascending order is requested.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Dict, Hashable, Iterable, List, Tuple

from .models import OrderDirection, PullRequestEvent

logger = logging.getLogger(__name__)


class PartitionKey(str, Enum):
    """Grouping used to collapse events into one record."""

    PULL_REQUEST = "pull_request"
    AUTHOR = "author"
    AUTHOR_REPO = "author_repo"


_KEY_FUNCTIONS: Dict[PartitionKey, Callable[[PullRequestEvent], Hashable]] = {
    PartitionKey.PULL_REQUEST: lambda event: (event.pr_number, event.repo_name),
    PartitionKey.AUTHOR: lambda event: event.author_login.casefold(),
    PartitionKey.AUTHOR_REPO: lambda event: (event.author_login.casefold(), event.repo_name),
}


def _rank_key(event: PullRequestEvent) -> Tuple:
    return (event.event_time, event.event_id)


def partition_of(event: PullRequestEvent, key: PartitionKey = PartitionKey.PULL_REQUEST) -> Hashable:
    """Return the partition an event belongs to under ``key``."""
    return _KEY_FUNCTIONS[key](event)


def resolve(
    events: Iterable[PullRequestEvent],
    key: PartitionKey = PartitionKey.PULL_REQUEST,
    order: OrderDirection = OrderDirection.DESC,
) -> List[PullRequestEvent]:
    """Reduce events to one record per partition.

    Args:
        events: Events to resolve, in any order.
        key: Partition key used for grouping.
        order: ``DESC`` keeps the latest event of each partition, ``ASC`` the
            earliest. The result is sorted by event time in the same direction.

    Returns:
        One event per non-empty partition. Resolving an already-resolved list
        returns the same records.
    """
    latest = order == OrderDirection.DESC
    selected: Dict[Hashable, PullRequestEvent] = {}
    scanned = 0

    for event in events:
        scanned += 1
        partition = partition_of(event, key)
        current = selected.get(partition)
        if current is None:
            selected[partition] = event
            continue

        if latest and _rank_key(event) > _rank_key(current):
            selected[partition] = event
        elif not latest and _rank_key(event) < _rank_key(current):
            selected[partition] = event

    logger.debug(
        "Resolved event partitions",
        extra={"partition_key": key.value, "events_scanned": scanned, "partitions": len(selected)},
    )

    return sorted(selected.values(), key=_rank_key, reverse=latest)
