"""Tests for the pull request events query service."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pr_insights.errors import NotFoundError, ValidationError
from pr_insights.models import (
    ContributorCohort,
    FilterCriteria,
    ListMember,
    OrderDirection,
    PageOptions,
    PullRequestEvent,
    RepoRef,
    WindowOptions,
)
from pr_insights.service import PullRequestEventsService
from pr_insights.source import InMemoryEventSource

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)
WINDOW_30 = WindowOptions(range_days=30)


def _utc(month: int, day: int, hour: int = 0, year: int = 2024) -> datetime:
    return datetime(year, month, day, hour, tzinfo=timezone.utc)


def _event(
    event_id: int,
    pr_number: int,
    time: datetime,
    action: str = "opened",
    repo: str = "org/repo",
    repo_id: int = 1,
    author: str = "alice",
    is_merged: bool = False,
    created: datetime | None = None,
    merged: datetime | None = None,
) -> PullRequestEvent:
    return PullRequestEvent(
        event_id=event_id,
        pr_number=pr_number,
        repo_name=repo,
        repo_id=repo_id,
        author_login=author,
        author_id=100 + event_id,
        event_time=time,
        action=action,
        state="closed" if action == "closed" else "open",
        is_merged=is_merged,
        created_at=created,
        merged_at=merged,
    )


def _service(events, repo_search=None, list_membership=None) -> PullRequestEventsService:
    return PullRequestEventsService(
        InMemoryEventSource(events),
        repo_search=repo_search,
        list_membership=list_membership,
        now=lambda: NOW,
    )


def test_merged_pr_scenario_velocity_and_histogram():
    """Verify a PR created Jan 1 and merged Jan 4 gives velocity 3 and one accepted bucket."""
    event = _event(
        1,
        1,
        time=_utc(1, 4),
        action="closed",
        repo="a/b",
        author="x",
        is_merged=True,
        created=_utc(1, 1),
        merged=_utc(1, 4),
    )
    service = _service([event])
    criteria = FilterCriteria.from_query(repo="a/b")

    assert service.velocity(criteria, WINDOW_30) == 3

    buckets = service.histogram(criteria, WINDOW_30)
    assert len(buckets) == 1
    assert buckets[0].accepted_prs == 1
    assert buckets[0].pr_velocity == 3


def test_list_pull_request_state_returns_latest_state_per_pr():
    """Verify listing collapses duplicate events and orders by event time."""
    events = [
        _event(1, 1, _utc(1, 5), action="opened"),
        _event(2, 1, _utc(1, 6), action="closed"),
        _event(3, 2, _utc(1, 7), action="opened"),
    ]

    page = _service(events).list_pull_request_state(FilterCriteria(), WINDOW_30)

    assert page.item_count == 2
    assert [(record.pr_number, record.action) for record in page.items] == [(2, "opened"), (1, "closed")]


def test_list_pull_request_state_ascending_rank_shows_first_state():
    """Verify ascending rank order keeps the earliest event of each PR."""
    events = [
        _event(1, 1, _utc(1, 5), action="opened"),
        _event(2, 1, _utc(1, 6), action="closed"),
    ]

    page = _service(events).list_pull_request_state(
        FilterCriteria(),
        WINDOW_30,
        order=OrderDirection.ASC,
        rank_order=OrderDirection.ASC,
    )

    assert [record.action for record in page.items] == ["opened"]


def test_list_skip_past_end_keeps_item_count():
    """Verify skip=1000 on three PRs yields no items and an item count of three."""
    events = [_event(number, number, _utc(1, 10 + number)) for number in range(1, 4)]

    page = _service(events).list_pull_request_state(FilterCriteria(), WINDOW_30, page=PageOptions(skip=1000, limit=10))

    assert page.items == []
    assert page.item_count == 3


@pytest.mark.parametrize("limit", [1, 2, 10])
def test_list_item_count_matches_unsliced_count(limit):
    """Verify the page item count matches the scoped count for every limit."""
    events = [_event(number, number % 4, _utc(1, 3 + number)) for number in range(1, 12)]
    service = _service(events)
    criteria = FilterCriteria(repos=("org/repo",))

    page = service.list_pull_request_state(criteria, WINDOW_30, page=PageOptions(skip=0, limit=limit))

    assert page.item_count == service.count(criteria, WINDOW_30) == 4
    assert len(page.items) == min(limit, 4)


def test_list_distinct_authors_returns_one_record_per_author_and_repo():
    """Verify distinct-author listing collapses PRs by author and repository."""
    events = [
        _event(1, 1, _utc(1, 5), author="alice"),
        _event(2, 2, _utc(1, 6), author="alice"),
        _event(3, 3, _utc(1, 7), author="bob"),
    ]

    page = _service(events).list_pull_request_state(FilterCriteria(distinct_authors=True), WINDOW_30)

    assert [record.event_id for record in page.items] == [3, 2]


def test_window_excludes_events_outside_shifted_range():
    """Verify prev_days moves the window and excludes newer events."""
    events = [
        _event(1, 1, _utc(1, 25)),
        _event(2, 2, _utc(1, 5)),
    ]

    page = _service(events).list_by_author("ALICE", WindowOptions(range_days=30, prev_days_start_date=20))

    assert [record.pr_number for record in page.items] == [2]


@pytest.mark.parametrize("operation", ["histogram", "velocity", "count"])
def test_unscoped_aggregates_raise_validation_error(operation):
    """Verify aggregate queries without a scoping criterion are rejected."""
    service = _service([])

    with pytest.raises(ValidationError):
        getattr(service, operation)(FilterCriteria(status="open"), WINDOW_30)


def test_aggregates_on_empty_scope_return_zero_defaults():
    """Verify scoped aggregates over no events return zero values instead of errors."""
    service = _service([])
    criteria = FilterCriteria(repos=("org/none",))

    assert service.velocity(criteria, WINDOW_30) == 0
    assert service.count(criteria, WINDOW_30) == 0
    assert service.histogram(criteria, WINDOW_30) == []


def test_topic_filter_uses_repo_search_results():
    """Verify topic criteria restrict events to repositories returned by repo search."""
    repo_search = Mock()
    repo_search.resolve.return_value = [RepoRef(full_name="org/repo")]
    events = [
        _event(1, 1, _utc(1, 10), repo="org/repo"),
        _event(2, 2, _utc(1, 11), repo="org/other"),
    ]

    page = _service(events, repo_search=repo_search).list_pull_request_state(FilterCriteria(topic="python"), WINDOW_30)

    assert [record.repo_name for record in page.items] == ["org/repo"]
    assert repo_search.resolve.call_args.args[0].range == 30


def test_list_filter_uses_list_membership_results():
    """Verify list criteria restrict events to list members."""
    list_membership = Mock()
    list_membership.resolve.return_value = [ListMember(username="Bob")]
    events = [
        _event(1, 1, _utc(1, 10), author="alice"),
        _event(2, 2, _utc(1, 11), author="bob"),
    ]

    page = _service(events, list_membership=list_membership).list_pull_request_state(
        FilterCriteria(list_id="list-1"),
        WINDOW_30,
    )

    assert [record.author_login for record in page.items] == ["bob"]


def test_pr_stats_by_repo_summarizes_or_raises_not_found():
    """Verify single-repo stats summarize records and raise when the repo has none."""
    events = [
        _event(1, 1, _utc(1, 10), action="opened"),
        _event(2, 2, _utc(1, 11), action="closed", is_merged=True, created=_utc(1, 9), merged=_utc(1, 11)),
    ]
    service = _service(events)

    stats = service.pr_stats_by_repo("Org/Repo", WINDOW_30)

    assert stats.prs_count == 2
    assert stats.open_prs == 1
    assert stats.accepted_prs == 1
    assert stats.pr_velocity == 2

    with pytest.raises(NotFoundError):
        service.pr_stats_by_repo("org/missing", WINDOW_30)


def test_count_by_author_counts_distinct_pr_numbers():
    """Verify author counts ignore duplicate events for the same PR."""
    events = [
        _event(1, 1, _utc(1, 10)),
        _event(2, 1, _utc(1, 11), action="closed"),
        _event(3, 2, _utc(1, 12)),
        _event(4, 3, _utc(1, 12), author="bob"),
    ]

    assert _service(events).count_by_author("alice", WINDOW_30) == 2


def test_velocity_by_author_and_repo():
    """Verify the author and repo velocity shortcuts scope correctly."""
    events = [
        _event(1, 1, _utc(1, 10), action="closed", is_merged=True, created=_utc(1, 4), merged=_utc(1, 10)),
        _event(2, 2, _utc(1, 10), action="closed", repo="org/other", author="bob", is_merged=True,
               created=_utc(1, 8), merged=_utc(1, 10)),
    ]
    service = _service(events)

    assert service.velocity_by_author("alice", WINDOW_30) == 6
    assert service.velocity_by_repo("org/other", WINDOW_30) == 2


def test_search_authors_requires_repo_scope():
    """Verify author search rejects criteria without repo, repo ids, topic, or filter."""
    with pytest.raises(ValidationError):
        _service([]).search_authors(FilterCriteria(contributor="alice"), WINDOW_30)


def test_search_authors_returns_latest_event_per_author():
    """Verify author search projects one most-recent record per author."""
    events = [
        _event(1, 1, _utc(1, 10), author="alice"),
        _event(2, 2, _utc(1, 20), author="alice"),
        _event(3, 3, _utc(1, 15), author="bob"),
    ]

    page = _service(events).search_authors(FilterCriteria(repo_ids=("1",)), WINDOW_30)

    assert page.item_count == 2
    assert [(c.author_login, c.last_event_time) for c in page.items] == [
        ("alice", _utc(1, 20)),
        ("bob", _utc(1, 15)),
    ]
    assert page.items[0].author_id == 102


def test_classify_contributors_rejects_empty_repo_ids():
    """Verify an explicitly empty repo id set is a validation error."""
    with pytest.raises(ValidationError, match="Repo Ids cannot be empty"):
        _service([]).classify_contributors(FilterCriteria.from_query(repo_ids=""), WINDOW_30)


def test_classify_contributors_requires_repo_scope():
    """Verify classification without any repo scope is a validation error."""
    with pytest.raises(ValidationError):
        _service([]).classify_contributors(FilterCriteria(contributor="alice"), WINDOW_30)


def test_classify_contributors_alumni_scenario():
    """Verify an author seen only in the previous window is alumni and not active."""
    events = [
        _event(1, 1, _utc(12, 20, year=2023), author="x"),
        _event(2, 2, _utc(1, 20), author="y"),
    ]
    service = _service(events)
    criteria = FilterCriteria.from_query(repo_ids="1")

    alumni = service.classify_contributors(criteria, WINDOW_30, cohort=ContributorCohort.ALUMNI)
    active = service.classify_contributors(criteria, WINDOW_30, cohort=ContributorCohort.ACTIVE)
    new = service.classify_contributors(criteria, WINDOW_30, cohort=ContributorCohort.NEW)

    assert [c.author_login for c in alumni.items] == ["x"]
    assert active.items == []
    assert [c.author_login for c in new.items] == ["y"]


def test_classify_contributors_paginates_with_full_count():
    """Verify classification pages report the full cohort size."""
    events = [_event(number, number, _utc(1, 10 + number), author=f"user{number}") for number in range(1, 6)]

    page = _service(events).classify_contributors(
        FilterCriteria(repos=("org/repo",)),
        WINDOW_30,
        cohort=ContributorCohort.ALL,
        page=PageOptions(skip=2, limit=2),
    )

    assert page.item_count == 5
    assert [c.author_login for c in page.items] == ["user3", "user2"]


def test_classify_contributors_repeat_reads_events_older_than_extended_window():
    """Verify the service fetches enough history to find repeat contributors."""
    events = [
        _event(1, 1, _utc(1, 27), author="x"),
        _event(2, 2, _utc(11, 3, year=2023), author="x"),
        _event(3, 3, _utc(1, 27), author="y"),
        _event(4, 4, _utc(12, 23, year=2023), author="y"),
    ]
    service = _service(events)
    criteria = FilterCriteria(repos=("org/repo",))

    repeat = service.classify_contributors(criteria, WINDOW_30, cohort=ContributorCohort.REPEAT)
    active = service.classify_contributors(criteria, WINDOW_30, cohort=ContributorCohort.ACTIVE)

    assert [c.author_login for c in repeat.items] == ["x"]
    assert [c.author_login for c in active.items] == ["y"]
