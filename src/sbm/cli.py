"""sbm CLI: bookmarks kept in a single data.json.

Commands:
    sbm add URL [-t TITLE] [-c COMMENT] [-tg TAGS]   add a bookmark (title fetched if omitted)
    sbm update ID [-t TITLE] [-c COMMENT] [-tg TAGS] change fields; -tg toggles tags
    sbm remove ID                                    delete a bookmark
    sbm open ID                                      open a bookmark in the viewer
    sbm list TERM|all [-tg TAGS]                     search titles and/or tags
    sbm tag add NAME                                 create a tag
    sbm tag rename TAG NAME                          rename a tag
    sbm tag remove TAG                               delete a tag everywhere
    sbm tag list all                                 list tags
    sbm tag ID TAG                                   toggle TAG on bookmark ID
    sbm config init                                  write a default sbm.toml

Every command loads the store, runs, and saves it again only if it succeeded.
"""

from __future__ import annotations

import contextlib
import logging
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console

from sbm.config import SBMConfig, init_config, load_config
from sbm.display import print_positioned_rows, print_rows, print_tags, rows_to_json
from sbm.errors import DeclinedError, SBMError, StoreCreated
from sbm.fetcher import fetch_title
from sbm.integrity import assign_tag_to_row, remove_tag
from sbm.operations import (
    add_row,
    add_tag,
    open_row,
    parse_row_id,
    remove_row,
    rename_tag,
    update_row,
)
from sbm.query import ALL, list_by_tags, list_by_title, list_tags, tag_usage
from sbm.repository import StoreRepository
from sbm.viewer import open_url

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sbm.models import Row, Store

TAGS_HELP = "Tag IDs or names, space-separated (quote them) or repeated."

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="sbm: %(message)s", force=True)


def _confirm(message: str) -> bool:
    return click.confirm(message, default=False)


def _load_cfg(ctx: click.Context) -> SBMConfig:
    home = ctx.find_root().obj.get("home")
    try:
        return load_config(home)
    except SBMError as exc:
        raise click.ClickException(str(exc)) from exc


@contextlib.contextmanager
def _session(ctx: click.Context) -> Iterator[tuple[SBMConfig, Store]]:
    """Load the store, hand it to the command body, save it if the body succeeds.

    Domain errors become ClickExceptions; a declined prompt aborts without saving.
    """
    cfg = _load_cfg(ctx)
    repo = StoreRepository(cfg)
    try:
        store = repo.load(confirm=_confirm)
        yield cfg, store
        repo.save(store)
    except StoreCreated as exc:
        click.echo(str(exc))
        ctx.exit(0)
    except DeclinedError as exc:
        click.echo(str(exc), err=True)
        raise click.Abort from exc
    except SBMError as exc:
        raise click.ClickException(str(exc)) from exc


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="sbm")
@click.option(
    "--home",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    envvar="SBM_HOME",
    help="Directory holding data.json and sbm.toml [default: ~/.config/sbm]",
)
@click.option("-v", "--verbose", count=True, help="-v for progress, -vv for debug output")
@click.pass_context
def cli(ctx: click.Context, home: Path | None, verbose: int) -> None:
    """sbm: simple bookmark manager."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["home"] = home


# ---------------------------------------------------------------------------
# Bookmarks
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("url")
@click.option("-t", "--title", default=None, help="Title (fetched from the page if omitted)")
@click.option("-c", "--comment", default=None, help="Free-form comment")
@click.option("-tg", "--tags", "tags", multiple=True, help=TAGS_HELP)
@click.pass_context
def add(ctx: click.Context, url: str, title: str | None, comment: str | None, tags: tuple[str, ...]) -> None:
    """Add a bookmark.

    \b
    sbm add https://example.com -t "Example" -tg "reading 2"
    """
    with _session(ctx) as (cfg, store):
        row = add_row(
            store,
            url,
            title=title,
            comment=comment,
            tag_refs=tags,
            fetch_title=partial(fetch_title, cfg=cfg),
        )
    click.echo(f"Added {row.id}: {row.title or row.url}")


@cli.command()
@click.argument("row_id")
@click.option("-t", "--title", default=None, help="New title")
@click.option("-c", "--comment", default=None, help="New comment")
@click.option("-tg", "--tags", "tags", multiple=True, help=TAGS_HELP + " Present tags are removed.")
@click.pass_context
def update(
    ctx: click.Context,
    row_id: str,
    title: str | None,
    comment: str | None,
    tags: tuple[str, ...],
) -> None:
    """Update a bookmark's title, comment or tags."""
    if title is None and comment is None and not tags:
        msg = "Give at least one of -t, -c or -tg"
        raise click.UsageError(msg)
    with _session(ctx) as (_, store):
        row = update_row(
            store,
            parse_row_id(row_id),
            title=title,
            comment=comment,
            tag_refs=tags,
            confirm=_confirm,
        )
    click.echo(f"Updated {row.id}")


@cli.command()
@click.argument("row_id")
@click.pass_context
def remove(ctx: click.Context, row_id: str) -> None:
    """Delete a bookmark (asks first)."""
    with _session(ctx) as (_, store):
        row = remove_row(store, parse_row_id(row_id), _confirm)
    click.echo(f"Removed {row.id}")


@cli.command("open")
@click.argument("row_id")
@click.pass_context
def open_cmd(ctx: click.Context, row_id: str) -> None:
    """Open a bookmark with the configured viewer."""
    with _session(ctx) as (cfg, store):
        url = open_row(store, parse_row_id(row_id))
    click.echo(url)
    try:
        open_url(url, cfg)
    except SBMError as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command("list")
@click.argument("term", required=False)
@click.option("-tg", "--tags", "tags", multiple=True, help=TAGS_HELP + " Rows with any of them match.")
@click.option("--json", "as_json", is_flag=True, help="Print matches as a JSON array")
@click.pass_context
def list_cmd(ctx: click.Context, term: str | None, tags: tuple[str, ...], as_json: bool) -> None:
    """List bookmarks whose title contains TERM ("all" for every bookmark).

    \b
    sbm list all
    sbm list python
    sbm list -tg "reading work"
    """
    if term is None and not tags:
        msg = "Give a search term, 'all', or -tg TAGS"
        raise click.UsageError(msg)
    matches: list[tuple[int, Row]] | None = None
    with _session(ctx) as (_, store):
        if tags:
            matches = list_by_tags(store, tags)
            if term and term.casefold() != ALL:
                needle = term.casefold()
                matches = [(pos, row) for pos, row in matches if needle in row.title.casefold()]
            rows = [row for _, row in matches]
        else:
            rows = list_by_title(store, term or ALL)

    if as_json:
        click.echo(rows_to_json(store, rows))
        return
    console = Console(highlight=False)
    if matches is not None:
        print_positioned_rows(console, store, matches)
    else:
        print_rows(console, store, rows)


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


class _TagGroup(click.Group):
    """Routes `sbm tag ROW_ID TAG` to the attach command."""

    def resolve_command(
        self, ctx: click.Context, args: list[str]
    ) -> tuple[str | None, click.Command | None, list[str]]:
        if args and args[0] not in self.commands and args[0][:1].isdigit():
            cmd = self.commands["attach"]
            return cmd.name, cmd, args
        return super().resolve_command(ctx, args)


@cli.group(cls=_TagGroup)
def tag() -> None:
    """Manage tags. `sbm tag ID TAG` toggles TAG on bookmark ID."""


@tag.command("add")
@click.argument("name", nargs=-1, required=True)
@click.pass_context
def tag_add(ctx: click.Context, name: tuple[str, ...]) -> None:
    """Create a tag. Spaces in NAME become '-'."""
    with _session(ctx) as (_, store):
        new_tag = add_tag(store, " ".join(name))
    click.echo(f"Added tag {new_tag.id}: {new_tag.name}")


@tag.command("rename")
@click.argument("tag_ref")
@click.argument("new_name")
@click.pass_context
def tag_rename(ctx: click.Context, tag_ref: str, new_name: str) -> None:
    """Rename the tag with ID or name TAG_REF."""
    with _session(ctx) as (_, store):
        renamed = rename_tag(store, tag_ref, new_name)
    click.echo(f"Renamed tag {renamed.id} to {renamed.name}")


@tag.command("remove")
@click.argument("tag_ref")
@click.pass_context
def tag_remove(ctx: click.Context, tag_ref: str) -> None:
    """Delete a tag and clear it from every bookmark (asks first)."""
    with _session(ctx) as (_, store):
        removed, touched = remove_tag(store, tag_ref, _confirm)
    click.echo(f"Removed tag {removed.id} ({removed.name}); cleared from {len(touched)} bookmark(s)")


@tag.command("list")
@click.argument("scope", default=ALL)
@click.pass_context
def tag_list(ctx: click.Context, scope: str) -> None:
    """List every tag with the number of bookmarks using it."""
    if scope.casefold() != ALL:
        msg = 'Only "all" can be used to list tags'
        raise click.UsageError(msg)
    with _session(ctx) as (_, store):
        tags = list_tags(store)
        usage = tag_usage(store)
    print_tags(Console(highlight=False), tags, usage)


@tag.command("attach")
@click.argument("row_id")
@click.argument("tag_ref")
@click.pass_context
def tag_attach(ctx: click.Context, row_id: str, tag_ref: str) -> None:
    """Add TAG_REF to bookmark ROW_ID, or remove it if already there (asks first)."""
    with _session(ctx) as (_, store):
        row_key = parse_row_id(row_id)
        change = assign_tag_to_row(store, row_key, tag_ref, _confirm)
    click.echo(f"Tag {tag_ref} {change} on {row_key}")


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@cli.group()
def config() -> None:
    """Inspect or create sbm.toml."""


@config.command("init")
@click.pass_context
def config_init(ctx: click.Context) -> None:
    """Write a commented default sbm.toml."""
    cfg = _load_cfg(ctx)
    try:
        path = init_config(cfg.root)
    except FileExistsError:
        click.echo(f"{cfg.config_path} already exists, skipping")
        return
    click.echo(f"Created {path}")


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the resolved settings."""
    cfg = _load_cfg(ctx)
    click.echo(f"Config     : {cfg.config_path}{'' if cfg.config_path.exists() else ' (absent)'}")
    click.echo(f"Data file  : {cfg.data_path}")
    click.echo(f"Opener     : {cfg.opener or '(webbrowser)'}")
    click.echo(f"Timeout    : {cfg.fetch_timeout:g}s")
    click.echo(f"User agent : {cfg.user_agent}")
