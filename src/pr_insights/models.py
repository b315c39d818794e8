"""Domain models for pull-request event insights.

Events are immutable records of one pull-request state change. Everything else
in this module is either query input (criteria, windows, paging) or a derived
result that is recomputed per query and never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, List, Optional, Tuple, TypeVar

T = TypeVar("T")


class OrderDirection(str, Enum):
    """Sort direction for event-time ordering."""

    ASC = "ASC"
    DESC = "DESC"


class ContributorCohort(str, Enum):
    """Contributor classifications derived from presence in two adjacent windows."""

    ACTIVE = "active"
    NEW = "new"
    ALUMNI = "alumni"
    REPEAT = "repeat"
    CHURN = "churn"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class PullRequestEvent:
    """One GitHub pull-request event as delivered by the event source."""

    event_id: int
    pr_number: int
    repo_name: str
    repo_id: int
    author_login: str
    author_id: Optional[int]
    event_time: datetime
    action: str
    state: str
    is_draft: bool = False
    is_merged: bool = False
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    commits: int = 0
    active_lock_reason: Optional[str] = None
    title: Optional[str] = None
    head_ref: Optional[str] = None
    base_ref: Optional[str] = None
    comments: int = 0
    mergeable_state: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Window:
    """Absolute time interval; the start is always inclusive."""

    start: datetime
    end: datetime
    include_end: bool = True

    def contains(self, instant: datetime) -> bool:
        if instant < self.start:
            return False
        if self.include_end:
            return instant <= self.end
        return instant < self.end


@dataclass(frozen=True, slots=True)
class WindowOptions:
    """Relative window parameters supplied by a caller."""

    range_days: int = 30
    prev_days_start_date: int = 0


def _split_csv(value: Optional[str]) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """Optional filter fields; every field left as ``None`` is not applied.

    ``repo_ids`` distinguishes ``None`` (not supplied) from an empty tuple
    (supplied but empty), which contributor classification rejects.
    """

    contributor: Optional[str] = None
    repos: Optional[Tuple[str, ...]] = None
    repo_ids: Optional[Tuple[str, ...]] = None
    topic: Optional[str] = None
    filter: Optional[str] = None
    list_id: Optional[str] = None
    status: Optional[str] = None
    distinct_authors: bool = False

    @classmethod
    def from_query(
        cls,
        contributor: Optional[str] = None,
        repo: Optional[str] = None,
        repo_ids: Optional[str] = None,
        topic: Optional[str] = None,
        filter: Optional[str] = None,
        list_id: Optional[str] = None,
        status: Optional[str] = None,
        distinct_authors: bool = False,
    ) -> "FilterCriteria":
        """Build criteria from raw query values with comma-separated repo lists."""
        return cls(
            contributor=contributor or None,
            repos=_split_csv(repo),
            repo_ids=_split_csv(repo_ids),
            topic=topic or None,
            filter=filter or None,
            list_id=list_id or None,
            status=status or None,
            distinct_authors=distinct_authors,
        )

    @property
    def has_scope(self) -> bool:
        return bool(self.contributor or self.repos or self.repo_ids or self.topic or self.filter)


@dataclass(frozen=True, slots=True)
class PageOptions:
    """Offset pagination parameters."""

    skip: int = 0
    limit: int = 10


@dataclass(slots=True)
class PageMeta:
    """Page metadata derived from the total item count and paging options."""

    page: int
    limit: int
    item_count: int
    page_count: int
    has_previous_page: bool
    has_next_page: bool


@dataclass(slots=True)
class PageResult(Generic[T]):
    """One page of items plus metadata about the full result set."""

    items: List[T]
    meta: PageMeta

    @property
    def item_count(self) -> int:
        return self.meta.item_count


@dataclass(slots=True)
class HistogramBucket:
    """PR activity counters for one time bucket, or for a whole set when ``bucket`` is ``None``."""

    bucket: Optional[datetime]
    prs_count: int = 0
    accepted_prs: int = 0
    open_prs: int = 0
    closed_prs: int = 0
    draft_prs: int = 0
    active_prs: int = 0
    spam_prs: int = 0
    pr_velocity: int = 0


@dataclass(frozen=True, slots=True)
class Contributor:
    """An author's most recent activity within a scoping window."""

    author_login: str
    author_id: Optional[int]
    last_event_time: datetime


@dataclass(frozen=True, slots=True)
class RepoSearchQuery:
    """Input to the external repo-search collaborator."""

    range: int
    filter: Optional[str] = None
    topic: Optional[str] = None
    limit: int = 50
    skip: int = 0


@dataclass(frozen=True, slots=True)
class RepoRef:
    """Represents a repository returned by repo search."""

    full_name: str


@dataclass(frozen=True, slots=True)
class ListMember:
    """Represents one member of a user list."""

    username: str
