from __future__ import annotations

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lastpos.store import page_of, sorted_entries

from .common import format_offset, format_timestamp, load_settings_or_exit, save_settings_or_exit


def list_cmd(
    *,
    settings_from_path,
    settings_path: str | None,
    page: int,
    sort: str,
    descending: bool,
) -> None:
    """Show remembered positions one page at a time."""

    settings = load_settings_or_exit(settings_from_path, settings_path)
    if len(settings.positions) == 0:
        print("[yellow]No scroll positions recorded[/yellow]")
        return
    entries = sorted_entries(settings.positions, by=sort, descending=descending)
    current = page_of(entries, page, settings.config.page_size)

    table = Table(header_style="bold")
    table.add_column("Document", overflow="fold")
    table.add_column("Offset", justify="right")
    table.add_column("Last accessed")
    for key, record in current.items:
        table.add_row(escape(key), format_offset(record.offset), format_timestamp(record.last_accessed))
    Console().print(table)
    print(f"Total items: {current.total_items}    Page {current.page} / {current.total_pages}")


def show_cmd(*, settings_from_path, settings_path: str | None, document_key: str) -> None:
    settings = load_settings_or_exit(settings_from_path, settings_path)
    record = settings.positions.get(document_key)
    if record is None:
        print(f"[red]No scroll position for {escape(document_key)}[/red]")
        raise typer.Exit(code=1)
    print(f"[bold]{escape(document_key)}[/bold]")
    print(f"- Offset: {format_offset(record.offset)}")
    print(f"- Last accessed: {format_timestamp(record.last_accessed)}")


def forget_cmd(
    *, settings_from_path, settings_path: str | None, document_key: str, yes: bool
) -> None:
    """Delete one remembered position."""

    settings = load_settings_or_exit(settings_from_path, settings_path)
    if document_key not in settings.positions:
        print(f"[yellow]No scroll position for {escape(document_key)}[/yellow]")
        return
    if not yes and not typer.confirm(f"Delete the scroll position for [{document_key}]?"):
        print("Cancelled")
        return
    settings.positions.delete(document_key)
    save_settings_or_exit(settings)
    print(f"[green]✓ Deleted {escape(document_key)}[/green]")


def cleanup_cmd(*, settings_from_path, settings_path: str | None, days: int | None) -> None:
    """Remove positions not accessed within the retention window."""

    settings = load_settings_or_exit(settings_from_path, settings_path)
    max_age_days = days if days is not None else settings.config.cleanup_days
    if max_age_days <= 0:
        print("[red]--days must be positive[/red]")
        raise typer.Exit(code=1)
    removed = settings.positions.cleanup(max_age_days)
    if removed:
        save_settings_or_exit(settings)
    print(f"Removed {removed} scroll positions older than {max_age_days} days")
