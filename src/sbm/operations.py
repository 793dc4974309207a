"""Bookmark and tag mutations, one per command.

Each function works on an already loaded Store and either completes or
raises before the caller saves. Collaborators that leave the process (page
fetch, confirmation prompt) are passed in as plain callables.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sbm.errors import (
    CapacityExceededError,
    DeclinedError,
    TagNotFoundError,
    ValidationError,
)
from sbm.integrity import (
    assign_tag_to_row,
    find_row_or_raise,
    require_utf8,
    resolve_tag_ref,
    split_tag_refs,
    validate_tag_name,
)
from sbm.models import COMMENT_S, ROW_TAG_C, TITLE_S, truncate

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sbm.models import Row, Store, Tag

logger = logging.getLogger("sbm.operations")


def parse_row_id(token: str | int) -> int:
    """Accept a positive decimal row ID, raising ValidationError otherwise."""
    if isinstance(token, int):
        row_id = token
    else:
        token = token.strip()
        if not token.isdecimal():
            msg = f"Row ID must be a number, got '{token}'"
            raise ValidationError(msg)
        row_id = int(token)
    if row_id <= 0:
        msg = f"Row ID must be positive, got {row_id}"
        raise ValidationError(msg)
    return row_id


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def add_row(
    store: Store,
    url: str,
    *,
    title: str | None = None,
    comment: str | None = None,
    tag_refs: str | Sequence[str] | None = None,
    fetch_title: Callable[[str], str] | None = None,
) -> Row:
    """Create a bookmark.

    Without an explicit title, `fetch_title(url)` supplies one; if it raises,
    nothing is created. Tag references that do not resolve are logged and
    skipped; the row is still created with the rest.
    """
    url = url.strip()
    if not url:
        msg = "Attempting to add a new URL but no URL provided"
        raise ValidationError(msg)
    require_utf8(url, "URL")
    for value, what in ((title, "Title"), (comment, "Comment")):
        if value is not None:
            require_utf8(value, what)

    tag_ids: list[int] = []
    for token in split_tag_refs(tag_refs):
        try:
            tag = resolve_tag_ref(store, token)
        except TagNotFoundError:
            logger.warning("Invalid tag name '%s' (skipped)", token)
            continue
        if tag.id in tag_ids:
            logger.warning("Tag '%s' given more than once (skipped)", token)
            continue
        tag_ids.append(tag.id)
    if len(tag_ids) > ROW_TAG_C:
        msg = f"Too many tags: {len(tag_ids)} given, limit is {ROW_TAG_C}"
        raise CapacityExceededError(msg)

    if title is None:
        if fetch_title is None:
            msg = "No title given and no way to fetch one"
            raise ValidationError(msg)
        title = fetch_title(url)

    row = store.append_row(url, title=title, comment=comment or "", tag_ids=tag_ids)
    logger.info("added row %d (%s) with %d tags", row.id, row.url, len(tag_ids))
    return row


def update_row(
    store: Store,
    row_id: int,
    *,
    title: str | None = None,
    comment: str | None = None,
    tag_refs: str | Sequence[str] | None = None,
    confirm: Callable[[str], bool] | None = None,
) -> Row:
    """Change any of title, comment and tags on an existing row.

    Each tag token toggles: absent tags are attached, present ones detached
    after confirmation. Fields not given are left alone; updated_at is
    refreshed whenever the row exists.
    """
    row = find_row_or_raise(store, row_id)
    for value, what in ((title, "Title"), (comment, "Comment")):
        if value is not None:
            require_utf8(value, what)
    if title is not None:
        row.title = truncate(title, TITLE_S)
    if comment is not None:
        row.comment = truncate(comment, COMMENT_S)
    for token in split_tag_refs(tag_refs):
        assign_tag_to_row(store, row.id, token, confirm or _refuse)
    row.touch()
    logger.info("updated row %d", row.id)
    return row


def remove_row(store: Store, row_id: int, confirm: Callable[[str], bool]) -> Row:
    """Delete a row after confirmation. Its tags are left untouched."""
    row = find_row_or_raise(store, row_id)
    if not confirm(f"Are you sure you want to delete row {row.id} entitled '{row.title}'?"):
        msg = f"Row {row.id} not deleted"
        raise DeclinedError(msg)
    row.deleted = True
    logger.info("removed row %d", row.id)
    return row


def open_row(store: Store, row_id: int) -> str:
    """The URL stored on a row."""
    return find_row_or_raise(store, row_id).url


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def add_tag(store: Store, name: str) -> Tag:
    normalized = validate_tag_name(store, name)
    tag = store.append_tag(normalized)
    logger.info("added tag %d (%s)", tag.id, tag.name)
    return tag


def rename_tag(store: Store, tag_ref: str, new_name: str) -> Tag:
    """Give an existing tag a new name, validated like a new one."""
    tag = resolve_tag_ref(store, tag_ref)
    normalized = validate_tag_name(store, new_name, exclude=tag)
    logger.info("renamed tag %d: %s -> %s", tag.id, tag.name, normalized)
    tag.name = normalized
    return tag


def _refuse(message: str) -> bool:  # noqa: ARG001
    return False
