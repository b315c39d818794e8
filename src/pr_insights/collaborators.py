"""Interfaces for the external collaborators consumed by the insights engine."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .models import ListMember, PullRequestEvent, RepoRef, RepoSearchQuery, Window


class RepoSearch(Protocol):
    """Translates topic / named-filter criteria into repository full names."""

    def resolve(self, query: RepoSearchQuery) -> Sequence[RepoRef]:
        """Return repositories matching the query, capped by ``query.limit``."""


class ListMembership(Protocol):
    """Translates a user-list id into member usernames."""

    def resolve(self, list_id: str, skip: int = 0) -> Sequence[ListMember]:
        """Return the members of a list starting at offset ``skip``."""


class EventSource(Protocol):
    """Read-only source of pull-request events."""

    def list_events(self, window: Window) -> Iterable[PullRequestEvent]:
        """Return events that may fall within ``window``; a superset is allowed."""
