"""Offset pagination with metadata derived from the unsliced result set."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

from .models import PageMeta, PageOptions, PageResult

T = TypeVar("T")


def build_page_meta(item_count: int, options: PageOptions) -> PageMeta:
    """Derive page metadata from a total item count and paging options.

    ``page`` is 1-based and computed from ``skip // limit``. A non-positive
    limit is treated as a single page containing every item, and a negative
    skip as ``0``.
    """
    skip = max(options.skip, 0)
    limit = options.limit if options.limit > 0 else max(item_count, 1)
    page = skip // limit + 1
    page_count = math.ceil(item_count / limit)

    return PageMeta(
        page=page,
        limit=limit,
        item_count=item_count,
        page_count=page_count,
        has_previous_page=page > 1,
        has_next_page=page < page_count,
    )


def paginate(records: Sequence[T], options: PageOptions) -> PageResult[T]:
    """Slice one page out of ``records``.

    The item count is taken from the full sequence before slicing, so it is
    independent of ``skip`` and ``limit``. Skipping past the end yields an
    empty page that still reports the full count.
    """
    item_count = len(records)
    meta = build_page_meta(item_count, options)
    start = max(options.skip, 0)
    items = list(records[start : start + meta.limit])

    return PageResult(items=items, meta=meta)
