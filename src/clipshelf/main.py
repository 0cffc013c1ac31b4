"""CLI handling for clipshelf.

This module provides the command-line interface for clipshelf, handling
argument parsing via click, logging configuration, and dispatching each
command to the clipboard history engine.

Usage:
    clipshelf [--db PATH] [--verbose] list
    clipshelf add --text TEXT | --image PATH [--mime TYPE]
    clipshelf pin ID | unpin ID | delete ID | copy ID
    clipshelf edit ID TEXT
    clipshelf reorder ID [ID ...]
    clipshelf clear [--yes]
    clipshelf info
    clipshelf capture
    clipshelf watch [--interval SECONDS]
    clipshelf settings [--enable-pin/--disable-pin] [--copy-mode MODE]
"""

import mimetypes
import sys
from datetime import datetime
from pathlib import Path

import click

from clipshelf.constants import DB_PATH_ENVVAR, DEFAULT_DB_PATH, DEFAULT_REFRESH_INTERVAL
from clipshelf.main_logging import configure_logging
from clipshelf.main_options import ContentSourceOption
from clipshelf.settings import CopyMode

PREVIEW_WIDTH: int = 60


def _format_time(epoch_ms):
    if not epoch_ms:
        return "-"
    return datetime.fromtimestamp(epoch_ms / 1000).strftime("%Y-%m-%d %H:%M:%S")


def _describe(item) -> str:
    """Render one listed item as a single line."""
    from clipshelf.items import TextItem

    marker = "*" if item.pinned else " "
    if isinstance(item, TextItem):
        preview = item.content.replace("\n", " ").strip()
        if len(preview) > PREVIEW_WIDTH:
            preview = preview[:PREVIEW_WIDTH - 3] + "..."
    elif item.payload is None:
        preview = f"<{item.mime_type} image, undecodable>"
    else:
        preview = f"<{item.mime_type} image, {len(item.payload)} bytes>"
    return f"{marker} {item.id}  {preview}"


def _run(db_path: Path, action):
    """Run an async action against a context opened on db_path.

    Args:
        db_path: SQLite database file.
        action: Coroutine function taking the AppContext.

    Returns:
        Whatever action returns.
    """
    import asyncio
    from clipshelf.codec import CodecError
    from clipshelf.context import AppContext
    from clipshelf.document_store import StoreError
    from clipshelf.item_repository import ItemNotFoundError

    async def runner():
        app = AppContext.open(db_path, min_dwell=0)
        try:
            return await action(app)
        finally:
            app.close()

    try:
        return asyncio.run(runner())
    except (ItemNotFoundError, StoreError, CodecError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@click.group()
@click.option(
    "--db",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar=DB_PATH_ENVVAR,
    default=DEFAULT_DB_PATH,
    show_default=True,
    help=f"SQLite database file (env: {DB_PATH_ENVVAR})",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
@click.pass_context
def main(ctx: click.Context, db: Path, verbose: bool) -> None:
    """Keep a local history of copied text and images."""
    configure_logging(verbose)
    ctx.obj = db


@main.command("list")
@click.pass_obj
def list_items(db: Path) -> None:
    """Show the history, pinned items first."""

    async def action(app):
        await app.view_model.load_items()
        return app.view_model.items

    items = _run(db, action)
    if not items:
        click.echo("History is empty.")
        return
    for item in items:
        click.echo(_describe(item))


@main.command()
@click.option(
    "--text",
    cls=ContentSourceOption,
    siblings=["image"],
    one_required=True,
    help="Text to add",
)
@click.option(
    "--image",
    cls=ContentSourceOption,
    siblings=["text"],
    one_required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Image file to add",
)
@click.option(
    "--mime",
    help="Media type of --image (guessed from the file name by default)",
)
@click.pass_obj
def add(db: Path, text, image, mime) -> None:
    """Add a text or image item to the top of the history."""
    if image is not None:
        mime = mime or mimetypes.guess_type(image.name)[0]
        if not mime or not mime.startswith("image/"):
            raise click.UsageError(f"Cannot tell the image type of {image}; pass --mime")
        payload = image.read_bytes()

        async def action(app):
            return await app.view_model.add_image(payload, mime)
    else:

        async def action(app):
            return await app.view_model.add_text(text)

    item = _run(db, action)
    if item is None:
        click.echo("Nothing added.")
    else:
        click.echo(_describe(item))


@main.command()
@click.argument("item_id")
@click.argument("text")
@click.pass_obj
def edit(db: Path, item_id: str, text: str) -> None:
    """Replace the content of a text item."""

    async def action(app):
        return await app.view_model.update_text(item_id, text)

    click.echo(_describe(_run(db, action)))


def _set_pinned(db: Path, item_id: str, pinned: bool) -> None:
    async def action(app):
        settings = await app.settings.load()
        if not settings.enable_pin:
            raise click.ClickException("Pinning is disabled in settings")
        if await app.repository.get(item_id) is None:
            return None
        await app.view_model.set_pinned(item_id, pinned)
        return await app.repository.get(item_id)

    item = _run(db, action)
    if item is None:
        click.echo(f"No item {item_id}, nothing to do.", err=True)
    else:
        click.echo(_describe(item))


@main.command()
@click.argument("item_id")
@click.pass_obj
def pin(db: Path, item_id: str) -> None:
    """Move an item to the top of the pinned section."""
    _set_pinned(db, item_id, True)


@main.command()
@click.argument("item_id")
@click.pass_obj
def unpin(db: Path, item_id: str) -> None:
    """Move an item to the bottom of the unpinned section."""
    _set_pinned(db, item_id, False)


@main.command()
@click.argument("item_id")
@click.pass_obj
def delete(db: Path, item_id: str) -> None:
    """Delete an item. Deleting a missing item is not an error."""

    async def action(app):
        if await app.repository.get(item_id) is None:
            return False
        return await app.view_model.delete_item(item_id)

    if not _run(db, action):
        click.echo(f"No item {item_id}, nothing to do.", err=True)


@main.command()
@click.argument("item_ids", nargs=-1, required=True)
@click.pass_obj
def reorder(db: Path, item_ids) -> None:
    """Store ITEM_IDS as the new order, first id on top."""

    async def action(app):
        await app.view_model.load_items()
        by_id = {item.id: item for item in app.view_model.items}
        sequence = [by_id[item_id] for item_id in item_ids if item_id in by_id]
        unknown = [item_id for item_id in item_ids if item_id not in by_id]
        for item_id in unknown:
            click.echo(f"Skipping unknown item {item_id}", err=True)
        await app.view_model.reorder_items(sequence)
        return app.view_model.items

    for item in _run(db, action):
        click.echo(_describe(item))


@main.command()
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def clear(db: Path, yes: bool) -> None:
    """Delete every item, pinned ones included."""
    if not yes:
        click.confirm("Delete the whole clipboard history?", abort=True)

    async def action(app):
        return await app.view_model.clear_all()

    click.echo(f"Removed {_run(db, action) or 0} items.")


@main.command()
@click.pass_obj
def info(db: Path) -> None:
    """Show counts and storage size of the history."""

    async def action(app):
        return await app.repository.metadata()

    meta = _run(db, action)
    click.echo(f"Items:          {meta.total}")
    click.echo(f"Text items:     {meta.text_count}")
    click.echo(f"Image items:    {meta.image_count}")
    click.echo(f"Latest created: {_format_time(meta.latest_created_at)}")
    click.echo(f"Latest updated: {_format_time(meta.latest_updated_at)}")
    click.echo(f"Estimated size: {meta.estimated_bytes} bytes")


@main.command()
@click.pass_obj
def capture(db: Path) -> None:
    """Add the current clipboard content to the history."""
    from clipshelf.clipboard_copy import capture_clipboard
    from clipshelf.clipboard_port import SystemClipboardPort

    async def action(app):
        return await capture_clipboard(SystemClipboardPort(), app.view_model)

    item = _run(db, action)
    if item is None:
        click.echo("Nothing captured.")
    else:
        click.echo(_describe(item))


@main.command()
@click.argument("item_id")
@click.pass_obj
def copy(db: Path, item_id: str) -> None:
    """Put an item back on the clipboard."""
    from clipshelf.clipboard_copy import copy_item
    from clipshelf.clipboard_port import SystemClipboardPort
    from clipshelf.item_repository import ItemNotFoundError

    async def action(app):
        item = await app.repository.get(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return await copy_item(SystemClipboardPort(), item)

    if not _run(db, action):
        raise click.ClickException("Copy to clipboard failed")
    click.echo("Copied.")


@main.command()
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_REFRESH_INTERVAL,
    show_default=True,
    help="Seconds between clipboard polls and refreshes",
)
@click.pass_obj
def watch(db: Path, interval: float) -> None:
    """Record clipboard text and images as they change, until interrupted."""
    from clipshelf.clipboard_watch import watch_clipboard
    from clipshelf.clipboard_port import SystemClipboardPort

    async def action(app):
        return await watch_clipboard(
            SystemClipboardPort(),
            app.view_model,
            interval=interval,
            on_added=lambda item: click.echo(_describe(item)),
        )

    try:
        _run(db, action)
    except KeyboardInterrupt:
        click.echo("Stopped watching.", err=True)


@main.command()
@click.option(
    "--enable-pin/--disable-pin",
    default=None,
    help="Offer or hide the pin feature",
)
@click.option(
    "--copy-mode",
    type=click.Choice([mode.value for mode in CopyMode]),
    help="Gesture that copies an item",
)
@click.pass_obj
def settings(db: Path, enable_pin, copy_mode) -> None:
    """Show settings, updating any that are given."""
    changes = {}
    if enable_pin is not None:
        changes["enable_pin"] = enable_pin
    if copy_mode is not None:
        changes["copy_mode"] = copy_mode

    async def action(app):
        if changes:
            return await app.settings.save(**changes)
        return await app.settings.load()

    current = _run(db, action)
    click.echo(f"enable_pin: {str(current.enable_pin).lower()}")
    click.echo(f"copy_mode:  {current.copy_mode.value}")
