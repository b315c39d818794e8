"""Contributor cohort classification over pairs of adjacent time windows.

An author is *present* in a window when they have any event in it that matches
the repo scope. Each cohort is a row in ``COHORT_RULES``: the required presence
in a current and a previous window, which windows those are, and the window
whose events supply the projected per-author record. Most cohorts compare the
plain current and previous windows; ``repeat`` compares the extended window
with the extended window before it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from .models import Contributor, ContributorCohort, OrderDirection, PullRequestEvent, Window
from .resolver import PartitionKey, resolve
from .windows import (
    current_window,
    extended_previous_window,
    extended_window,
    previous_window,
)

logger = logging.getLogger(__name__)

CURRENT = "current"
PREVIOUS = "previous"
EXTENDED = "extended"
EXTENDED_PREVIOUS = "extended_previous"

_WINDOW_BUILDERS: Dict[str, Callable[[datetime, int], Window]] = {
    CURRENT: current_window,
    PREVIOUS: previous_window,
    EXTENDED: extended_window,
    EXTENDED_PREVIOUS: extended_previous_window,
}


@dataclass(frozen=True)
class CohortRule:
    """Presence requirements for one cohort; ``None`` means no requirement."""

    in_current: Optional[bool]
    in_previous: Optional[bool]
    scan_window: str
    current_presence: str = CURRENT
    previous_presence: str = PREVIOUS


COHORT_RULES: Dict[ContributorCohort, CohortRule] = {
    ContributorCohort.ACTIVE: CohortRule(in_current=True, in_previous=True, scan_window=CURRENT),
    ContributorCohort.NEW: CohortRule(in_current=True, in_previous=False, scan_window=CURRENT),
    ContributorCohort.ALUMNI: CohortRule(in_current=False, in_previous=True, scan_window=EXTENDED),
    ContributorCohort.REPEAT: CohortRule(
        in_current=True,
        in_previous=True,
        scan_window=EXTENDED,
        current_presence=EXTENDED,
        previous_presence=EXTENDED_PREVIOUS,
    ),
    ContributorCohort.CHURN: CohortRule(in_current=False, in_previous=True, scan_window=EXTENDED),
    ContributorCohort.ALL: CohortRule(in_current=True, in_previous=None, scan_window=CURRENT),
}


def presence(events: Iterable[PullRequestEvent], window: Window) -> FrozenSet[str]:
    """Case-folded author logins with at least one event inside ``window``."""
    return frozenset(
        event.author_login.casefold()
        for event in events
        if event.author_login and window.contains(event.event_time)
    )


def to_contributor(record: PullRequestEvent) -> Contributor:
    return Contributor(
        author_login=record.author_login,
        author_id=record.author_id,
        last_event_time=record.event_time,
    )


def _matches(required: Optional[bool], present: bool) -> bool:
    return required is None or required == present


def classify(
    events: Iterable[PullRequestEvent],
    anchor: datetime,
    range_days: int,
    cohort: ContributorCohort,
    scope: Callable[[PullRequestEvent], bool] = lambda event: True,
    order: OrderDirection = OrderDirection.DESC,
) -> List[Contributor]:
    """Return the contributors belonging to ``cohort``.

    Args:
        events: Candidate events; only those matching ``scope`` and carrying an
            author login are considered. They should cover
            :func:`~pr_insights.windows.lookback_window`.
        anchor: End instant of the current window.
        range_days: Length of each of the two adjacent windows.
        cohort: Cohort to select.
        scope: Repo-scoping predicate applied to every window.
        order: ``DESC`` projects each author's latest event in the scan window,
            ``ASC`` the earliest. Results are sorted the same way.
    """
    rule = COHORT_RULES[cohort]
    scoped = [event for event in events if event.author_login and scope(event)]

    current = _WINDOW_BUILDERS[rule.current_presence](anchor, range_days)
    previous = _WINDOW_BUILDERS[rule.previous_presence](anchor, range_days)
    scan = _WINDOW_BUILDERS[rule.scan_window](anchor, range_days)

    current_logins = presence(scoped, current)
    previous_logins = presence(scoped, previous)

    primary = resolve(
        (event for event in scoped if scan.contains(event.event_time)),
        key=PartitionKey.AUTHOR,
        order=order,
    )

    selected = [
        to_contributor(record)
        for record in primary
        if _matches(rule.in_current, record.author_login.casefold() in current_logins)
        and _matches(rule.in_previous, record.author_login.casefold() in previous_logins)
    ]

    logger.info(
        "Classified contributors",
        extra={
            "cohort": cohort.value,
            "current_authors": len(current_logins),
            "previous_authors": len(previous_logins),
            "selected": len(selected),
        },
    )

    return selected
