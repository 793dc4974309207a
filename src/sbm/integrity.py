"""Keep row tag slots and the tag table consistent.

Every occupied slot on a live row must name a live tag. The functions here
are the only ones that attach, detach or delete tags, so that rule holds
after each of them returns.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Literal

from sbm.errors import (
    CapacityExceededError,
    DeclinedError,
    RowNotFoundError,
    TagNotFoundError,
    ValidationError,
)
from sbm.models import ROW_TAG_C, TAG_NAME_S, truncate

if TYPE_CHECKING:
    from collections.abc import Callable

    from sbm.models import Row, Store, Tag

logger = logging.getLogger("sbm.integrity")

# Command words a tag name may not take (compared case-insensitively).
RESERVED_WORDS = frozenset({"add", "update", "rename", "remove", "list"})
TAG_SEPARATOR = "-"

_SPACES_RE = re.compile(r"\s+")

TagChange = Literal["added", "removed"]


# ---------------------------------------------------------------------------
# Names and references
# ---------------------------------------------------------------------------


def require_utf8(value: str, what: str) -> str:
    """Reject text holding lone surrogates, which is how undecodable argv bytes arrive."""
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as exc:
        msg = f"{what} is not valid UTF-8"
        raise ValidationError(msg) from exc
    return value


def normalize_tag_name(name: str) -> str:
    """Strip surrounding whitespace and turn inner whitespace runs into '-'."""
    return _SPACES_RE.sub(TAG_SEPARATOR, name.strip())


def validate_tag_name(store: Store, name: str, *, exclude: Tag | None = None) -> str:
    """Return the normalized form of name, or raise ValidationError.

    A name must be non-empty, must not start with a digit (so it can never be
    mistaken for an ID), must not be a reserved word, and must not clash
    case-insensitively with another live tag (`exclude` is the tag being renamed).
    """
    require_utf8(name, "Tag name")
    normalized = normalize_tag_name(name)
    if not normalized:
        msg = "Tag name cannot be empty"
        raise ValidationError(msg)
    if normalized[0].isdigit():
        msg = f"Invalid tag name '{normalized}': tag names cannot begin with a number"
        raise ValidationError(msg)
    if normalized.casefold() in RESERVED_WORDS:
        msg = f"Invalid tag name '{normalized}': reserved word"
        raise ValidationError(msg)
    normalized = truncate(normalized, TAG_NAME_S)
    existing = store.find_tag_by_name(normalized)
    if existing is not None and existing is not exclude:
        msg = f"Tag '{existing.name}' already exists (ID {existing.id})"
        raise ValidationError(msg)
    return normalized


def resolve_tag_ref(store: Store, token: str) -> Tag:
    """Resolve a tag ID ("3") or name ("Reading") to a live tag.

    Tokens starting with a digit are IDs; anything else is compared against
    live tag names without regard to case.
    """
    token = token.strip()
    require_utf8(token, "Tag reference")
    if not token:
        raise TagNotFoundError(token)
    if token[0].isdigit():
        tag = store.find_tag(int(token)) if token.isdecimal() else None
    else:
        tag = store.find_tag_by_name(normalize_tag_name(token))
    if tag is None:
        raise TagNotFoundError(token)
    return tag


def split_tag_refs(refs: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Flatten one or more space-delimited tag reference strings into tokens."""
    if not refs:
        return []
    if isinstance(refs, str):
        refs = [refs]
    return [token for chunk in refs for token in chunk.split()]


def find_row_or_raise(store: Store, row_id: int) -> Row:
    row = store.find_row(row_id)
    if row is None:
        raise RowNotFoundError(row_id)
    return row


# ---------------------------------------------------------------------------
# Attach / detach
# ---------------------------------------------------------------------------


def assign_tag_to_row(
    store: Store,
    row_id: int,
    tag_ref: str,
    confirm: Callable[[str], bool],
) -> TagChange:
    """Attach a tag to a row, or detach it if the row already carries it.

    Detaching asks `confirm` first; a "no" raises DeclinedError and the
    row is left as it was. Attaching to a row whose slots are all taken
    raises CapacityExceededError.
    """
    row = find_row_or_raise(store, row_id)
    tag = resolve_tag_ref(store, tag_ref)

    if row.has_tag(tag.id):
        if not confirm(f"Are you sure you want to remove tag '{tag.name}' from row {row.id}?"):
            msg = f"Tag '{tag.name}' left on row {row.id}"
            raise DeclinedError(msg)
        row.clear_tag(tag.id)
        row.touch()
        logger.info("row %d: removed tag %d (%s)", row.id, tag.id, tag.name)
        return "removed"

    slot = row.free_slot()
    if slot is None:
        msg = f"Cannot add any more tags to row {row.id} (limit is {ROW_TAG_C})"
        raise CapacityExceededError(msg)
    row.tag_ids[slot] = tag.id
    row.touch()
    logger.info("row %d: added tag %d (%s) in slot %d", row.id, tag.id, tag.name, slot)
    return "added"


# ---------------------------------------------------------------------------
# Tag deletion (cascading)
# ---------------------------------------------------------------------------


def clear_tag_references(store: Store, tag_id: int) -> list[Row]:
    """Empty every slot referencing tag_id on every row. Returns the rows touched."""
    touched: list[Row] = []
    for row in store.rows:
        if row.clear_tag(tag_id):
            row.touch()
            touched.append(row)
    return touched


def remove_tag(store: Store, tag_ref: str, confirm: Callable[[str], bool]) -> tuple[Tag, list[Row]]:
    """Delete a tag after confirmation and clear it from every row.

    Returns the deleted tag and the rows that lost it.
    """
    tag = resolve_tag_ref(store, tag_ref)
    if not confirm(f"Are you sure you want to remove tag '{tag.name}'?"):
        msg = f"Tag '{tag.name}' not removed"
        raise DeclinedError(msg)
    touched = clear_tag_references(store, tag.id)
    tag.deleted = True
    logger.info("removed tag %d (%s); cleared from %d rows", tag.id, tag.name, len(touched))
    return tag, touched
