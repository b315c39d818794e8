"""In-memory event source and JSON event-file loading.

Event files are either a JSON array of event objects or JSON lines (one object
per line). Field names match :class:`~pr_insights.models.PullRequestEvent`;
the ``pr_``-prefixed column names of GitHub event exports (``pr_action``,
``pr_author_login``, ...) are accepted as aliases.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .errors import DataValidationError
from .models import PullRequestEvent, Window

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("event_id", "pr_number", "repo_name", "repo_id", "event_time", "action", "state")
_DATETIME_FIELDS = ("created_at", "merged_at", "closed_at", "updated_at")
_BOOL_FIELDS = ("is_draft", "is_merged")
_INT_FIELDS = ("additions", "deletions", "changed_files", "commits", "comments")
_TEXT_FIELDS = ("active_lock_reason", "title", "head_ref", "base_ref", "mergeable_state")


class InMemoryEventSource:
    """Event source over a fixed sequence of events."""

    def __init__(self, events: Iterable[PullRequestEvent]) -> None:
        self._events: List[PullRequestEvent] = list(events)

    def list_events(self, window: Window) -> List[PullRequestEvent]:
        return [event for event in self._events if window.contains(event.event_time)]


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse ISO8601 timestamps into timezone-aware UTC datetimes."""
    if not value:
        return None

    text = str(value)
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise DataValidationError(f"Invalid timestamp '{value}'") from exc

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _lookup(item: Dict[str, Any], name: str) -> Any:
    if name in item:
        return item[name]
    return item.get(f"pr_{name}")


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1", "yes")
    return bool(value)


def _parse_optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


def parse_event(item: Dict[str, Any]) -> PullRequestEvent:
    """Build a :class:`PullRequestEvent` from a raw payload dictionary.

    Raises:
        DataValidationError: If required fields are missing or values cannot
            be converted.
    """
    missing = [name for name in _REQUIRED_FIELDS if _lookup(item, name) in (None, "")]
    if missing:
        raise DataValidationError(f"Event payload is missing required fields {missing}: payload={item}")

    try:
        values: Dict[str, Any] = {
            "event_id": int(_lookup(item, "event_id")),
            "pr_number": int(_lookup(item, "pr_number")),
            "repo_name": str(_lookup(item, "repo_name")),
            "repo_id": int(_lookup(item, "repo_id")),
            "author_login": str(_lookup(item, "author_login") or ""),
            "author_id": _parse_optional_int(_lookup(item, "author_id")),
            "event_time": parse_datetime(str(_lookup(item, "event_time"))),
            "action": str(_lookup(item, "action")),
            "state": str(_lookup(item, "state")),
        }
        for name in _DATETIME_FIELDS:
            values[name] = parse_datetime(_lookup(item, name))
        for name in _BOOL_FIELDS:
            values[name] = _parse_bool(_lookup(item, name))
        for name in _INT_FIELDS:
            values[name] = int(_lookup(item, name) or 0)
        for name in _TEXT_FIELDS:
            raw = _lookup(item, name)
            values[name] = str(raw) if raw is not None else None
    except (TypeError, ValueError) as exc:
        raise DataValidationError(f"Event payload has malformed values: payload={item}") from exc

    return PullRequestEvent(**values)


def parse_events(items: Sequence[Dict[str, Any]]) -> List[PullRequestEvent]:
    return [parse_event(item) for item in items]


def load_events(path: Union[str, Path]) -> List[PullRequestEvent]:
    """Load events from a JSON array file or a JSON-lines file.

    Raises:
        DataValidationError: If the file cannot be read, is not valid JSON /
            JSON lines, or an event payload is invalid.
    """
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataValidationError(f"Event file '{path}' could not be read: {exc}") from exc

    stripped = text.lstrip()

    try:
        if stripped.startswith("["):
            items = json.loads(stripped)
        else:
            items = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as exc:
        raise DataValidationError(f"Event file '{path}' is not valid JSON: {exc}") from exc

    if not all(isinstance(item, dict) for item in items):
        raise DataValidationError(f"Event file '{path}' must contain JSON objects")

    events = parse_events(items)
    logger.info("Loaded events", extra={"path": str(path), "events": len(events)})
    return events
