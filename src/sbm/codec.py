"""Encode and decode the store as data.json.

File layout (tab-indented JSON, sections in this order):

    {
        "tags":{
            "1": "reading",
            "2": "work"
        },
        "rows":{
            "1": ["https://example.com", "Example", "", "2024-01-31 09:15:00", ["1", "0", "0", "0", "0", "0", "0", "0"]]
        }
    }

Each row tuple is [url, title, comment, updated_at, tag slots]; the slot list
always has ROW_TAG_C entries, "0" meaning empty. Deleted entries are not
written. Counters are not stored: decoding sets each one to the highest ID
present plus one.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import Any

from sbm.errors import DecodeError
from sbm.models import (
    COMMENT_S,
    EMPTY_SLOT,
    ROW_TAG_C,
    TAG_NAME_S,
    TIMESTAMP_FORMAT,
    TITLE_S,
    Row,
    Store,
    Tag,
    truncate,
)

logger = logging.getLogger("sbm.codec")

SECTIONS = ("tags", "rows")
ROW_FIELDS = 5
_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}")


class _Object(list):  # type: ignore[type-arg]
    """JSON object kept as an ordered list of (key, value) pairs.

    Distinguishes objects from arrays and preserves duplicate keys so they
    can be rejected.
    """


def _fail(msg: str) -> DecodeError:
    return DecodeError(f"Corrupt store: {msg}")


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def decode(data: bytes) -> Store:
    """Parse data.json content into a Store. Raises DecodeError on any malformed input."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise _fail(f"not valid UTF-8 ({exc})") from exc
    try:
        root = json.loads(text, object_pairs_hook=_Object)
    except json.JSONDecodeError as exc:
        raise _fail(f"invalid JSON ({exc})") from exc

    if not isinstance(root, _Object):
        raise _fail("top level must be an object")
    names = tuple(key for key, _ in root)
    if names != SECTIONS:
        raise _fail(f"expected sections {list(SECTIONS)}, found {list(names)}")

    sections = dict(root)
    tags = _decode_tags(sections["tags"])
    live_tag_ids = {t.id for t in tags}
    rows = _decode_rows(sections["rows"], live_tag_ids)

    return Store(
        rows=rows,
        tags=tags,
        next_row_uid=max((r.id for r in rows), default=0) + 1,
        next_tag_uid=max((t.id for t in tags), default=0) + 1,
    )


def _parse_id(key: str, what: str) -> int:
    if not key.isdecimal() or int(key) == 0:
        raise _fail(f"{what} ID must be a positive integer, got {key!r}")
    return int(key)


def _decode_tags(section: Any) -> list[Tag]:
    if not isinstance(section, _Object):
        raise _fail("'tags' must be an object")
    tags: list[Tag] = []
    seen: set[int] = set()
    for key, value in section:
        tag_id = _parse_id(key, "tag")
        if tag_id in seen:
            raise _fail(f"duplicate tag ID {tag_id}")
        if not isinstance(value, str):
            raise _fail(f"tag {tag_id}: name must be a string")
        seen.add(tag_id)
        tags.append(Tag(id=tag_id, name=truncate(value, TAG_NAME_S)))
    return tags


def _decode_rows(section: Any, live_tag_ids: set[int]) -> list[Row]:
    if not isinstance(section, _Object):
        raise _fail("'rows' must be an object")
    rows: list[Row] = []
    seen: set[int] = set()
    for key, value in section:
        row_id = _parse_id(key, "row")
        if row_id in seen:
            raise _fail(f"duplicate row ID {row_id}")
        seen.add(row_id)
        rows.append(_decode_row(row_id, value, live_tag_ids))
    return rows


def _decode_row(row_id: int, value: Any, live_tag_ids: set[int]) -> Row:
    if isinstance(value, _Object) or not isinstance(value, list):
        raise _fail(f"row {row_id}: expected an array")
    if len(value) != ROW_FIELDS:
        raise _fail(f"row {row_id}: expected {ROW_FIELDS} fields, found {len(value)}")
    url, title, comment, stamp, slots = value
    for name, field_value in (("url", url), ("title", title), ("comment", comment), ("timestamp", stamp)):
        if not isinstance(field_value, str):
            raise _fail(f"row {row_id}: {name} must be a string")
    if not url:
        raise _fail(f"row {row_id}: empty url")
    if not _TIMESTAMP_RE.fullmatch(stamp):
        raise _fail(f"row {row_id}: timestamp {stamp!r} is not YYYY-MM-DD HH:MM:SS")
    try:
        updated_at = datetime.strptime(stamp, TIMESTAMP_FORMAT)
    except ValueError as exc:
        raise _fail(f"row {row_id}: timestamp {stamp!r} ({exc})") from exc

    return Row(
        id=row_id,
        url=url,
        title=truncate(title, TITLE_S),
        comment=truncate(comment, COMMENT_S),
        tag_ids=_decode_slots(row_id, slots, live_tag_ids),
        updated_at=updated_at,
    )


def _decode_slots(row_id: int, slots: Any, live_tag_ids: set[int]) -> list[int]:
    if isinstance(slots, _Object) or not isinstance(slots, list):
        raise _fail(f"row {row_id}: tag slots must be an array")
    if len(slots) != ROW_TAG_C:
        raise _fail(f"row {row_id}: expected {ROW_TAG_C} tag slots, found {len(slots)}")
    result: list[int] = []
    for slot in slots:
        if not isinstance(slot, str) or not slot.isdecimal():
            raise _fail(f"row {row_id}: tag slot {slot!r} is not a decimal string")
        tag_id = int(slot)
        if tag_id != EMPTY_SLOT and tag_id not in live_tag_ids:
            logger.warning("row %d: dropping reference to unknown tag %d", row_id, tag_id)
            tag_id = EMPTY_SLOT
        elif tag_id != EMPTY_SLOT and tag_id in result:
            logger.warning("row %d: dropping duplicate reference to tag %d", row_id, tag_id)
            tag_id = EMPTY_SLOT
        result.append(tag_id)
    return result


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def encode(store: Store) -> bytes:
    """Render the live entries of store in the data.json layout."""
    tag_lines = [f'\t\t"{tag.id}": {_quote(tag.name)}' for tag in store.live_tags]
    row_lines = [_encode_row(row) for row in store.live_rows]

    parts = ["{", '\t"tags":{']
    if tag_lines:
        parts.append(",\n".join(tag_lines))
    parts += ["\t},", '\t"rows":{']
    if row_lines:
        parts.append(",\n".join(row_lines))
    parts += ["\t}", "}"]
    return ("\n".join(parts) + "\n").encode("utf-8")


def _encode_row(row: Row) -> str:
    slots = ", ".join(f'"{tag_id}"' for tag_id in row.tag_ids)
    fields = ", ".join(_quote(v) for v in (row.url, row.title, row.comment, row.timestamp))
    return f'\t\t"{row.id}": [{fields}, [{slots}]]'
