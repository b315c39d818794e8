"""Pull-request event queries: listing, histograms, velocity, and contributors.

Every query follows the same pipeline: resolve the window, fetch events from
the source, apply the filter predicate, resolve one record per partition, and
hand the result to an aggregation or to the paginator. Counts and pages are
always derived from the same resolved list.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from . import aggregates
from .collaborators import EventSource, ListMembership, RepoSearch
from .contributors import classify, to_contributor
from .errors import NotFoundError, ValidationError
from .filters import FilterPipeline, require_scope
from .models import (
    Contributor,
    ContributorCohort,
    FilterCriteria,
    HistogramBucket,
    OrderDirection,
    PageOptions,
    PageResult,
    PullRequestEvent,
    Window,
    WindowOptions,
)
from .pagination import paginate
from .resolver import PartitionKey, resolve
from .windows import lookback_window, resolve_anchor, window_for

logger = logging.getLogger(__name__)


def _sort_by_event_time(records: List[PullRequestEvent], order: OrderDirection) -> List[PullRequestEvent]:
    return sorted(
        records,
        key=lambda record: (record.event_time, record.event_id),
        reverse=order == OrderDirection.DESC,
    )


class PullRequestEventsService:
    """Read-only query façade over a pull-request event source."""

    def __init__(
        self,
        source: EventSource,
        repo_search: Optional[RepoSearch] = None,
        list_membership: Optional[ListMembership] = None,
        now: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Create a service.

        Args:
            source: Source of pull-request events.
            repo_search: Collaborator used for topic / named-filter criteria.
            list_membership: Collaborator used for list criteria.
            now: Clock returning the current UTC instant; defaults to the system clock.
        """
        self._source = source
        self._pipeline = FilterPipeline(repo_search=repo_search, list_membership=list_membership)
        self._now = now

    def _anchor(self, options: WindowOptions) -> datetime:
        return resolve_anchor(options.prev_days_start_date, self._now() if self._now else None)

    def _select(
        self,
        criteria: FilterCriteria,
        options: WindowOptions,
    ) -> Tuple[Window, List[PullRequestEvent]]:
        window = window_for(options, self._now() if self._now else None)
        predicate = self._pipeline.build(criteria, window, range_days=options.range_days)
        events = [event for event in self._source.list_events(window) if predicate(event)]
        return window, events

    def _resolved(
        self,
        criteria: FilterCriteria,
        options: WindowOptions,
        key: PartitionKey = PartitionKey.PULL_REQUEST,
        rank_order: OrderDirection = OrderDirection.DESC,
    ) -> Tuple[Window, List[PullRequestEvent]]:
        window, events = self._select(criteria, options)
        records = resolve(events, key=key, order=rank_order)
        logger.info(
            "Resolved pull request records",
            extra={"events": len(events), "records": len(records), "partition_key": key.value},
        )
        return window, records

    def list_pull_request_state(
        self,
        criteria: FilterCriteria,
        window_options: WindowOptions = WindowOptions(),
        order: OrderDirection = OrderDirection.DESC,
        page: PageOptions = PageOptions(),
        rank_order: OrderDirection = OrderDirection.DESC,
    ) -> PageResult[PullRequestEvent]:
        """Page through the current state of each pull request matching ``criteria``.

        ``order`` sorts the page by event time; ``rank_order`` picks the latest
        (``DESC``) or earliest (``ASC``) event of each pull request. With
        ``criteria.distinct_authors`` one record per author and repository is
        returned instead of one per pull request.
        """
        key = PartitionKey.AUTHOR_REPO if criteria.distinct_authors else PartitionKey.PULL_REQUEST
        _, records = self._resolved(criteria, window_options, key=key, rank_order=rank_order)
        return paginate(_sort_by_event_time(records, order), page)

    def list_by_author(
        self,
        author: str,
        window_options: WindowOptions = WindowOptions(),
        order: OrderDirection = OrderDirection.DESC,
        page: PageOptions = PageOptions(),
    ) -> PageResult[PullRequestEvent]:
        """Page through the current state of every pull request opened by ``author``."""
        return self.list_pull_request_state(
            FilterCriteria(contributor=author),
            window_options=window_options,
            order=order,
            page=page,
        )

    def count(self, criteria: FilterCriteria, window_options: WindowOptions = WindowOptions()) -> int:
        """Number of pull requests matching ``criteria`` in the window."""
        require_scope(criteria)
        _, records = self._resolved(criteria, window_options)
        return aggregates.count(records)

    def count_by_author(self, author: str, window_options: WindowOptions = WindowOptions()) -> int:
        """Number of distinct PR numbers ``author`` touched in the window."""
        _, events = self._select(FilterCriteria(contributor=author), window_options)
        return aggregates.count_distinct_prs(events)

    def histogram(
        self,
        criteria: FilterCriteria,
        window_options: WindowOptions = WindowOptions(),
        width_days: int = 1,
        order: OrderDirection = OrderDirection.DESC,
        dense: bool = False,
    ) -> List[HistogramBucket]:
        """Day-bucketed PR activity counters for the window.

        Raises:
            ValidationError: If ``criteria`` has no scoping field.
        """
        require_scope(criteria)
        window, records = self._resolved(criteria, window_options)
        return aggregates.histogram(records, window, width_days=width_days, order=order, dense=dense)

    def velocity(self, criteria: FilterCriteria, window_options: WindowOptions = WindowOptions()) -> int:
        """Average days from creation to merge for merged PRs; ``0`` when none.

        Raises:
            ValidationError: If ``criteria`` has no scoping field.
        """
        require_scope(criteria)
        _, records = self._resolved(criteria, window_options)
        return aggregates.velocity(records)

    def velocity_by_author(self, author: str, window_options: WindowOptions = WindowOptions()) -> int:
        return self.velocity(FilterCriteria(contributor=author), window_options)

    def velocity_by_repo(self, repo: str, window_options: WindowOptions = WindowOptions()) -> int:
        return self.velocity(FilterCriteria(repos=(repo,)), window_options)

    def pr_stats_by_repo(self, repo: str, window_options: WindowOptions = WindowOptions()) -> HistogramBucket:
        """Activity counters and velocity for a single repository.

        Raises:
            NotFoundError: If the repository has no events in the window.
        """
        _, records = self._resolved(FilterCriteria(repos=(repo,)), window_options)
        if not records:
            raise NotFoundError(f"No pull request events found for repository '{repo}'")
        return aggregates.summarize(records)

    def search_authors(
        self,
        criteria: FilterCriteria,
        window_options: WindowOptions = WindowOptions(),
        order: OrderDirection = OrderDirection.DESC,
        page: PageOptions = PageOptions(),
    ) -> PageResult[Contributor]:
        """Page through authors with events in scoped repositories, most recent first.

        Raises:
            ValidationError: If none of repo, repo ids, topic, or filter is given.
        """
        if not (criteria.repos or criteria.repo_ids or criteria.topic or criteria.filter):
            raise ValidationError("must provide repo, repoIds, topic, filter")

        _, records = self._resolved(criteria, window_options, key=PartitionKey.AUTHOR, rank_order=order)
        contributors = [to_contributor(record) for record in records if record.author_login]
        return paginate(contributors, page)

    def classify_contributors(
        self,
        criteria: FilterCriteria,
        window_options: WindowOptions = WindowOptions(),
        cohort: ContributorCohort = ContributorCohort.ALL,
        page: PageOptions = PageOptions(),
        order: OrderDirection = OrderDirection.DESC,
    ) -> PageResult[Contributor]:
        """Page through the contributors of ``cohort`` within the repo scope.

        Raises:
            ValidationError: If an explicit repo-id set is empty, or if no repo
                scope (repo, repo ids, topic, filter) is given.
        """
        if criteria.repo_ids is not None and not criteria.repo_ids:
            raise ValidationError("Repo Ids cannot be empty")
        if not (criteria.repos or criteria.repo_ids or criteria.topic or criteria.filter):
            raise ValidationError("must provide repo, repoIds, topic, filter")

        anchor = self._anchor(window_options)
        range_days = window_options.range_days
        scope = self._pipeline.build(criteria, None, range_days=range_days)
        events = self._source.list_events(lookback_window(anchor, range_days))

        contributors = classify(events, anchor, range_days, cohort, scope=scope, order=order)
        return paginate(contributors, page)
