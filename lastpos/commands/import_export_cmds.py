from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich import print

from lastpos.errors import ImportParseError, NoDataToExport
from lastpos.transfer import accepted_entries, export_positions, import_positions, parse_import, write_export

from .common import load_settings_or_exit, save_settings_or_exit


def export_positions_cmd(*, settings_from_path, settings_path: str | None, output: str | None) -> None:
    """Export scroll positions to a JSON text file for backup or transfer."""

    settings = load_settings_or_exit(settings_from_path, settings_path)
    try:
        if output == "-":
            sys.stdout.write(export_positions(settings.positions) + "\n")
            return
        output_path = write_export(settings.positions, output)
    except NoDataToExport as exc:
        print(f"[yellow]{exc}[/yellow]")
        return
    except OSError as exc:
        print(f"[red]Failed to write export: {exc}[/red]")
        raise typer.Exit(code=1) from exc
    print(f"[green]✓ Exported to {output_path}[/green]")
    print(f"  Records: {len(settings.positions)}")


def import_positions_cmd(
    *, settings_from_path, settings_path: str | None, input_file: str, dry_run: bool
) -> None:
    """Import scroll positions from an exported file; imported records win."""

    if input_file == "-":
        input_text = sys.stdin.read()
    else:
        input_path = Path(input_file).expanduser()
        if not input_path.exists():
            print(f"[red]Input file not found: {input_path}[/red]")
            raise typer.Exit(code=1)
        input_text = input_path.read_text(encoding="utf-8")

    settings = load_settings_or_exit(settings_from_path, settings_path)
    try:
        if dry_run:
            count = len(accepted_entries(parse_import(input_text)))
            print(f"[yellow]Dry run - {count} scroll position records would be imported[/yellow]")
            return
        count = import_positions(settings.positions, input_text)
    except ImportParseError as exc:
        print(f"[red]Import failed: {exc}[/red]")
        raise typer.Exit(code=1) from None
    save_settings_or_exit(settings)
    print(f"[green]✓ Imported {count} scroll position records[/green]")
