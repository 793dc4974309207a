"""Read-only queries over a loaded store."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from sbm.integrity import resolve_tag_ref, split_tag_refs

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sbm.models import Row, Store, Tag

ALL = "all"


def list_all(store: Store) -> list[Row]:
    """Live rows in stored order."""
    return store.live_rows


def list_by_title(store: Store, term: str) -> list[Row]:
    """Live rows whose title contains term, ignoring case. "all" matches every row."""
    if term.casefold() == ALL:
        return list_all(store)
    needle = term.casefold()
    return [row for row in store.live_rows if needle in row.title.casefold()]


def list_by_tags(store: Store, tag_refs: Iterable[str]) -> list[tuple[int, Row]]:
    """Live rows carrying any of the given tags, each paired with its position in the store.

    Every reference must resolve (TagNotFoundError otherwise). A row matching
    several of the tags is listed once.
    """
    tag_ids = {resolve_tag_ref(store, ref).id for ref in split_tag_refs(list(tag_refs))}
    return [
        (position, row)
        for position, row in enumerate(store.rows)
        if row.live and any(row.has_tag(tag_id) for tag_id in tag_ids)
    ]


def list_tags(store: Store) -> list[Tag]:
    return store.live_tags


def tag_usage(store: Store) -> Counter[int]:
    """Number of live rows carrying each tag ID."""
    counts: Counter[int] = Counter()
    for row in store.live_rows:
        counts.update(row.tags)
    return counts
