"""Composable filter pipeline over pull-request events.

Each criterion maps to one predicate builder. Builders only contribute a
predicate when their criterion is set, and the resulting predicates are
combined with logical AND. Topic / named-filter and list criteria are
resolved through injected collaborators before matching.
"""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, List, Optional

from .collaborators import ListMembership, RepoSearch
from .errors import ConfigurationError, ValidationError
from .models import FilterCriteria, PullRequestEvent, RepoSearchQuery, Window

logger = logging.getLogger(__name__)

Predicate = Callable[[PullRequestEvent], bool]

REPO_SEARCH_LIMIT = 50


def require_scope(criteria: FilterCriteria) -> None:
    """Reject unscoped aggregate queries.

    Raises:
        ValidationError: If none of contributor, repo, repo ids, topic, or
            filter is supplied.
    """
    if not criteria.has_scope:
        raise ValidationError("must provide contributor, repo, topic, filter, or repoIds")


def in_window(window: Window) -> Predicate:
    return lambda event: window.contains(event.event_time)


def author_equals(login: str) -> Predicate:
    expected = login.casefold()
    return lambda event: event.author_login.casefold() == expected


def author_in(logins: FrozenSet[str]) -> Predicate:
    return lambda event: event.author_login.casefold() in logins


def repo_name_in(names: FrozenSet[str]) -> Predicate:
    return lambda event: event.repo_name.casefold() in names


def repo_id_in(repo_ids: FrozenSet[str]) -> Predicate:
    return lambda event: str(event.repo_id) in repo_ids


def state_equals(status: str) -> Predicate:
    expected = status.casefold()
    return lambda event: event.state.casefold() == expected


def all_of(predicates: List[Predicate]) -> Predicate:
    """Combine predicates with logical AND; an empty list matches everything."""
    snapshot = tuple(predicates)
    return lambda event: all(predicate(event) for predicate in snapshot)


class FilterPipeline:
    """Builds a single event predicate from filter criteria and a window."""

    def __init__(
        self,
        repo_search: Optional[RepoSearch] = None,
        list_membership: Optional[ListMembership] = None,
    ) -> None:
        self._repo_search = repo_search
        self._list_membership = list_membership

    def build(self, criteria: FilterCriteria, window: Optional[Window], range_days: int = 30) -> Predicate:
        """Build the AND-combined predicate for ``criteria`` within ``window``.

        Args:
            criteria: Filter criteria; unset fields contribute nothing.
            window: Time window to scope events by, or ``None`` to skip windowing.
            range_days: Range forwarded to repo search for topic / filter lookups.

        Raises:
            ConfigurationError: If topic, filter, or list criteria are set but
                the matching collaborator was not provided.
        """
        predicates: List[Predicate] = []

        if window is not None:
            predicates.append(in_window(window))

        if criteria.contributor:
            predicates.append(author_equals(criteria.contributor))

        if criteria.filter or criteria.topic:
            predicates.append(repo_name_in(self._search_repo_names(criteria, range_days)))

        if criteria.repos:
            predicates.append(repo_name_in(frozenset(name.casefold() for name in criteria.repos)))

        if criteria.repo_ids:
            predicates.append(repo_id_in(frozenset(criteria.repo_ids)))

        if criteria.list_id:
            predicates.append(author_in(self._list_usernames(criteria.list_id)))

        if criteria.status:
            predicates.append(state_equals(criteria.status))

        return all_of(predicates)

    def _search_repo_names(self, criteria: FilterCriteria, range_days: int) -> FrozenSet[str]:
        if self._repo_search is None:
            raise ConfigurationError("topic and filter criteria require a repo search collaborator")

        query = RepoSearchQuery(
            range=range_days,
            filter=criteria.filter,
            topic=criteria.topic,
            limit=REPO_SEARCH_LIMIT,
            skip=0,
        )
        names = frozenset(repo.full_name.casefold() for repo in self._repo_search.resolve(query))
        logger.info(
            "Resolved repo search filter",
            extra={"topic": criteria.topic, "filter": criteria.filter, "repos": len(names)},
        )
        return names

    def _list_usernames(self, list_id: str) -> FrozenSet[str]:
        if self._list_membership is None:
            raise ConfigurationError("list criteria require a list membership collaborator")

        usernames = frozenset(
            member.username.casefold()
            for member in self._list_membership.resolve(list_id, skip=0)
            if member.username
        )
        logger.info("Resolved list members", extra={"list_id": list_id, "members": len(usernames)})
        return usernames
