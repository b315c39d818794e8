"""Absolute time windows derived from a relative range and an anchor instant.

All windows for one query are computed from the same anchor, so the previous
window ends exactly where the current window starts. The previous window
excludes its end instant; an event on the boundary belongs to the current
window only.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import ValidationError
from .models import Window, WindowOptions


def resolve_anchor(prev_days: int = 0, now: Optional[datetime] = None) -> datetime:
    """Return the window anchor: ``now`` moved ``prev_days`` days into the past.

    Raises:
        ValidationError: If ``prev_days`` is negative.
    """
    if prev_days < 0:
        raise ValidationError("prev_days_start_date must be 0 or greater")

    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current - timedelta(days=prev_days)


def _check_range(range_days: int) -> None:
    if range_days <= 0:
        raise ValidationError("range must be greater than 0")


def current_window(anchor: datetime, range_days: int) -> Window:
    """``[anchor - range, anchor]``"""
    _check_range(range_days)
    return Window(start=anchor - timedelta(days=range_days), end=anchor)


def previous_window(anchor: datetime, range_days: int) -> Window:
    """``[anchor - 2*range, anchor - range)``"""
    _check_range(range_days)
    return Window(
        start=anchor - timedelta(days=2 * range_days),
        end=anchor - timedelta(days=range_days),
        include_end=False,
    )


def extended_window(anchor: datetime, range_days: int) -> Window:
    """``[anchor - 2*range, anchor]``, the union of the previous and current windows."""
    _check_range(range_days)
    return Window(start=anchor - timedelta(days=2 * range_days), end=anchor)


def extended_previous_window(anchor: datetime, range_days: int) -> Window:
    """``[anchor - 4*range, anchor - 2*range)``, the extended window shifted back once."""
    _check_range(range_days)
    return Window(
        start=anchor - timedelta(days=4 * range_days),
        end=anchor - timedelta(days=2 * range_days),
        include_end=False,
    )


def lookback_window(anchor: datetime, range_days: int) -> Window:
    """``[anchor - 4*range, anchor]``, every instant any contributor window can cover."""
    _check_range(range_days)
    return Window(start=anchor - timedelta(days=4 * range_days), end=anchor)


def window_for(options: WindowOptions, now: Optional[datetime] = None) -> Window:
    """Resolve caller window options to the current absolute window."""
    anchor = resolve_anchor(options.prev_days_start_date, now)
    return current_window(anchor, options.range_days)
