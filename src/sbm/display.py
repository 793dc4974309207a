"""Terminal rendering for rows and tags."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from rich.console import Console

    from sbm.models import Row, Store, Tag


def _tag_names(store: Store, row: Row) -> list[str]:
    return [store.tag_name(tag_id) or str(tag_id) for tag_id in row.tags]


def print_row(console: Console, store: Store, row: Row, position: int | None = None) -> None:
    """Print one row:

      3. Example Domain
         > https://example.com
         # a comment
         | reading | work |
    """
    header = f"[bold]{row.id:>3}.[/bold] {escape(row.title)}"
    if position is not None:
        header += f"  [dim](#{position})[/dim]"
    console.print(header, soft_wrap=True)
    console.print(f"     [dim]>[/dim] {escape(row.url)}", soft_wrap=True)
    if row.comment:
        console.print(f"     [dim]#[/dim] {escape(row.comment)}", soft_wrap=True)
    names = _tag_names(store, row)
    if names:
        console.print("     | " + " | ".join(escape(n) for n in names) + " |", soft_wrap=True)


def print_rows(console: Console, store: Store, rows: Iterable[Row]) -> None:
    printed = 0
    for row in rows:
        print_row(console, store, row)
        printed += 1
    if not printed:
        console.print("[dim]No matching entries[/dim]")


def print_positioned_rows(console: Console, store: Store, matches: Sequence[tuple[int, Row]]) -> None:
    for position, row in matches:
        print_row(console, store, row, position=position)
    if not matches:
        console.print("[dim]No matching entries[/dim]")


def print_tags(console: Console, tags: Sequence[Tag], usage: dict[int, int]) -> None:
    if not tags:
        console.print("[dim]No tags[/dim]")
        return
    table = Table(title="Tags", show_header=True, header_style="bold")
    table.add_column("ID", justify="right", no_wrap=True)
    table.add_column("Name", no_wrap=True)
    table.add_column("Entries", justify="right")
    for tag in tags:
        table.add_row(str(tag.id), escape(tag.name), str(usage.get(tag.id, 0)))
    console.print(table)


def row_to_dict(store: Store, row: Row) -> dict[str, Any]:
    return {
        "id": row.id,
        "url": row.url,
        "title": row.title,
        "comment": row.comment,
        "tags": _tag_names(store, row),
        "updated_at": row.timestamp,
    }


def rows_to_json(store: Store, rows: Iterable[Row]) -> str:
    return json.dumps([row_to_dict(store, row) for row in rows], ensure_ascii=False)
