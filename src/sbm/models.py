"""Data models for the bookmark store: rows, tags, and the store that owns them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

# Field bounds. Changing ROW_TAG_C breaks every existing data file, since the
# encoded tag array must hold exactly this many slots.
ROW_TAG_C = 8
TITLE_S = 64
COMMENT_S = 256
TAG_NAME_S = 32

EMPTY_SLOT = 0
ELLIPSIS = "..."
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def now() -> datetime:
    """Local wall-clock time at second resolution."""
    return datetime.now().replace(microsecond=0)


def truncate(text: str, size: int) -> str:
    """Fit text into a field of `size` (one position is reserved, as in a C buffer).

    Over-long text keeps as much as fits and ends with "...".
    """
    limit = size - 1
    if len(text) <= limit:
        return text
    if limit <= len(ELLIPSIS):
        return text[:limit]
    return text[: limit - len(ELLIPSIS)] + ELLIPSIS


def empty_slots() -> list[int]:
    return [EMPTY_SLOT] * ROW_TAG_C


@dataclass
class Tag:
    """A named label. `deleted` marks a tombstone that is dropped on the next save."""

    id: int
    name: str
    deleted: bool = False

    @property
    def live(self) -> bool:
        return not self.deleted


@dataclass
class Row:
    """One bookmark entry."""

    id: int
    url: str
    title: str = ""
    comment: str = ""
    tag_ids: list[int] = field(default_factory=empty_slots)  # fixed ROW_TAG_C slots, 0 = empty
    updated_at: datetime = field(default_factory=now)
    deleted: bool = False

    @property
    def live(self) -> bool:
        return not self.deleted

    @property
    def tags(self) -> list[int]:
        """Occupied slots in slot order."""
        return [t for t in self.tag_ids if t != EMPTY_SLOT]

    def has_tag(self, tag_id: int) -> bool:
        return tag_id != EMPTY_SLOT and tag_id in self.tag_ids

    def free_slot(self) -> int | None:
        """Index of the first empty slot, or None when the row is full."""
        for i, tag_id in enumerate(self.tag_ids):
            if tag_id == EMPTY_SLOT:
                return i
        return None

    def clear_tag(self, tag_id: int) -> bool:
        """Empty every slot holding tag_id. Returns True if anything changed."""
        changed = False
        for i, current in enumerate(self.tag_ids):
            if current == tag_id:
                self.tag_ids[i] = EMPTY_SLOT
                changed = True
        return changed

    def touch(self) -> None:
        self.updated_at = now()

    @property
    def timestamp(self) -> str:
        return self.updated_at.strftime(TIMESTAMP_FORMAT)


@dataclass
class Store:
    """In-memory bookmark store.

    Removed rows and tags stay in their lists with `deleted=True` so indices
    remain valid for the whole run; the codec leaves them out when encoding.
    The two counters only grow, so IDs are never handed out twice.
    """

    rows: list[Row] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)
    next_row_uid: int = 1
    next_tag_uid: int = 1

    # ------------------------------------------------------------------
    # ID allocation
    # ------------------------------------------------------------------

    def next_row_id(self) -> int:
        uid = self.next_row_uid
        self.next_row_uid += 1
        return uid

    def next_tag_id(self) -> int:
        uid = self.next_tag_uid
        self.next_tag_uid += 1
        return uid

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    @property
    def live_rows(self) -> list[Row]:
        return [r for r in self.rows if r.live]

    @property
    def live_tags(self) -> list[Tag]:
        return [t for t in self.tags if t.live]

    @property
    def row_count(self) -> int:
        return sum(1 for r in self.rows if r.live)

    @property
    def tag_count(self) -> int:
        return sum(1 for t in self.tags if t.live)

    def find_row(self, row_id: int) -> Row | None:
        for row in self.rows:
            if row.live and row.id == row_id:
                return row
        return None

    def find_tag(self, tag_id: int) -> Tag | None:
        for tag in self.tags:
            if tag.live and tag.id == tag_id:
                return tag
        return None

    def find_tag_by_name(self, name: str) -> Tag | None:
        """Case-insensitive exact match among live tags."""
        wanted = name.casefold()
        for tag in self.tags:
            if tag.live and tag.name.casefold() == wanted:
                return tag
        return None

    def tag_name(self, tag_id: int) -> str | None:
        tag = self.find_tag(tag_id)
        return tag.name if tag else None

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append_row(
        self,
        url: str,
        *,
        title: str = "",
        comment: str = "",
        tag_ids: list[int] | None = None,
    ) -> Row:
        """Create a row with the next row ID and append it."""
        slots = empty_slots()
        for i, tag_id in enumerate(tag_ids or []):
            slots[i] = tag_id
        row = Row(
            id=self.next_row_id(),
            url=url,
            title=truncate(title, TITLE_S),
            comment=truncate(comment, COMMENT_S),
            tag_ids=slots,
        )
        self.rows.append(row)
        return row

    def append_tag(self, name: str) -> Tag:
        tag = Tag(id=self.next_tag_id(), name=name)
        self.tags.append(tag)
        return tag
