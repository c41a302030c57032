"""Command line interface for the record shop."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .app import RecordShop
from .domain.catalog.entities import CatalogRecord
from .domain.result import DomainError
from .domain.value_objects import RecordCategory, RecordFilter, RecordFormat
from .exceptions import RecordShopError
from .infrastructure.repositories import SQLiteDatabase
from .models.config import Config, load_config

console = Console()

FORMAT_CHOICES = [f.value for f in RecordFormat]
CATEGORY_CHOICES = [c.value for c in RecordCategory]


def _setup_logging(verbose: bool) -> None:
    if not verbose:
        return
    package_logger = logging.getLogger("record_shop")
    if not any(isinstance(h, RichHandler) for h in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=console, rich_tracebacks=True))
    package_logger.setLevel(logging.DEBUG)


def _run(config: Config, action):
    """Run ``action(shop)`` against a shop built from the config."""
    async def runner():
        shop = RecordShop.from_config(config)
        try:
            return await action(shop)
        finally:
            await shop.close()

    try:
        return asyncio.run(runner())
    except (DomainError, RecordShopError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


def _record_table(records, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Artist", style="cyan")
    table.add_column("Album")
    table.add_column("Format")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Qty", justify="right")
    for record in records:
        table.add_row(
            record.id,
            record.artist,
            record.album,
            record.format.value,
            record.category.value,
            str(record.price),
            str(record.qty),
        )
    return table


def _print_record(record: CatalogRecord, heading: str) -> None:
    console.print(f"[green]{heading}[/green]")
    console.print(_record_table([record], title=f"{record.artist} - {record.album}"))
    if record.tracklist:
        for track in record.tracklist:
            console.print(f"  {track.position}. {track.title}")


@click.group()
@click.version_option(package_name="record-shop")
@click.option(
    '--config',
    'config_path',
    type=click.Path(exists=True, path_type=Path),
    help='Configuration file path'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Verbose output'
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Manage the record shop catalog, stock and orders."""
    _setup_logging(verbose)
    try:
        ctx.obj = load_config(config_path)
    except RecordShopError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        sys.exit(1)


@cli.command('init-db')
@click.pass_obj
def init_db(config: Config):
    """Create the database schema."""
    try:
        SQLiteDatabase(config.database.path, busy_timeout=config.database.busy_timeout).initialize()
    except RecordShopError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    console.print(f"[green]Database ready at {config.database.path}[/green]")


@cli.command('add-record')
@click.option('--artist', required=True, help='Artist name')
@click.option('--album', required=True, help='Album title')
@click.option('--price', required=True, help='Unit price')
@click.option('--qty', required=True, type=click.IntRange(min=0), help='Units in stock')
@click.option('--format', 'record_format', required=True, type=click.Choice(FORMAT_CHOICES))
@click.option('--category', required=True, type=click.Choice(CATEGORY_CHOICES))
@click.option('--mbid', default=None, help='MusicBrainz release ID for the tracklist')
@click.pass_obj
def add_record(config: Config, artist, album, price, qty, record_format, category, mbid):
    """Add a record to the catalog."""
    record = _run(config, lambda shop: shop.create_record(
        artist=artist,
        album=album,
        price=price,
        qty=qty,
        format=record_format,
        category=category,
        mbid=mbid,
    ))
    _print_record(record, "Record added")


@cli.command('update-record')
@click.argument('record_id')
@click.option('--artist', default=None)
@click.option('--album', default=None)
@click.option('--price', default=None)
@click.option('--qty', default=None, type=click.IntRange(min=0))
@click.option('--format', 'record_format', default=None, type=click.Choice(FORMAT_CHOICES))
@click.option('--category', default=None, type=click.Choice(CATEGORY_CHOICES))
@click.option('--mbid', default=None)
@click.pass_obj
def update_record(config: Config, record_id, artist, album, price, qty, record_format, category, mbid):
    """Update fields of RECORD_ID."""
    changes = {
        "artist": artist,
        "album": album,
        "price": price,
        "qty": qty,
        "format": record_format,
        "category": category,
        "mbid": mbid,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        console.print("[yellow]Nothing to update[/yellow]")
        return

    record = _run(config, lambda shop: shop.update_record(record_id, changes))
    _print_record(record, "Record updated")


@cli.command('delete-record')
@click.argument('record_id')
@click.pass_obj
def delete_record(config: Config, record_id):
    """Remove RECORD_ID from the catalog."""
    _run(config, lambda shop: shop.delete_record(record_id))
    console.print(f"[green]Record {record_id} deleted[/green]")


@cli.command('list-records')
@click.option('--q', 'query', default=None, help='Search artist, album and category')
@click.option('--artist', default=None)
@click.option('--album', default=None)
@click.option('--format', 'record_format', default=None, type=click.Choice(FORMAT_CHOICES))
@click.option('--category', default=None, type=click.Choice(CATEGORY_CHOICES))
@click.option('--limit', default=20, type=int, show_default=True)
@click.option('--offset', default=0, type=int, show_default=True)
@click.pass_obj
def list_records(config: Config, query, artist, album, record_format, category, limit, offset):
    """List catalog records."""
    record_filter = RecordFilter(
        q=query,
        artist=artist,
        album=album,
        format=record_format,
        category=category,
        limit=limit,
        offset=offset,
    )
    page = _run(config, lambda shop: shop.list_records(record_filter))

    if not page.data:
        console.print("[yellow]No records found[/yellow]")
        return

    first = page.offset + 1
    last = page.offset + len(page.data)
    console.print(_record_table(page.data, title=f"Records {first}-{last} of {page.total}"))


@cli.command()
@click.argument('record_id')
@click.argument('quantity', type=click.IntRange(min=1))
@click.pass_obj
def order(config: Config, record_id, quantity):
    """Order QUANTITY units of RECORD_ID."""
    placed = _run(config, lambda shop: shop.create_order(record_id, quantity))

    table = Table(title="Order placed")
    table.add_column("Order", style="cyan")
    table.add_column("Record")
    table.add_column("Quantity", justify="right")
    table.add_column("Unit price", justify="right")
    table.add_column("Total", justify="right")
    table.add_row(placed.id, placed.record_id, str(placed.quantity), str(placed.price), str(placed.total))
    console.print(table)


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
