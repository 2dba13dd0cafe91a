from __future__ import annotations

import logging

import typer
from rich import print
from rich.logging import RichHandler

from . import __version__
from .commands.common import settings_from_path as _settings
from .commands.config_cmds import config_set_cmd, config_show_cmd
from .commands.import_export_cmds import export_positions_cmd, import_positions_cmd
from .commands.position_cmds import cleanup_cmd, forget_cmd, list_cmd, show_cmd
from .store import SORT_FIELDS

app = typer.Typer(help="lastpos: remember where you left off in every document")
config_app = typer.Typer(help="Show or change settings")
app.add_typer(config_app, name="config")

SETTINGS_HELP = "Path to settings file"


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log engine activity"),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )


@app.command("list")
def list_positions(
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
    page: int = typer.Option(1, help="Page number"),
    sort: str = typer.Option("key", help=f"Sort by one of: {', '.join(SORT_FIELDS)}"),
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
) -> None:
    """List remembered scroll positions."""

    if sort not in SORT_FIELDS:
        print(f"[red]Unknown sort field: {sort}[/red]")
        raise typer.Exit(code=1)
    list_cmd(
        settings_from_path=_settings,
        settings_path=settings_path,
        page=page,
        sort=sort,
        descending=desc,
    )


@app.command()
def show(
    document_key: str = typer.Argument(..., help="Document path"),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Show the remembered position of one document."""

    show_cmd(settings_from_path=_settings, settings_path=settings_path, document_key=document_key)


@app.command()
def forget(
    document_key: str = typer.Argument(..., help="Document path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Delete the remembered position of one document."""

    forget_cmd(
        settings_from_path=_settings,
        settings_path=settings_path,
        document_key=document_key,
        yes=yes,
    )


@app.command()
def cleanup(
    days: int | None = typer.Option(None, help="Retention window in days (defaults to setting)"),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Remove positions not accessed within the retention window."""

    cleanup_cmd(settings_from_path=_settings, settings_path=settings_path, days=days)


@app.command("export")
def export_positions(
    output: str = typer.Option(
        None, "--output", "-o", help="Output file or directory, or '-' for stdout"
    ),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Export scroll positions to a JSON text file."""

    export_positions_cmd(settings_from_path=_settings, settings_path=settings_path, output=output)


@app.command("import")
def import_positions(
    input_file: str = typer.Argument(..., help="Exported file, or '-' for stdin"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report without writing"),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Import scroll positions from an exported file."""

    import_positions_cmd(
        settings_from_path=_settings,
        settings_path=settings_path,
        input_file=input_file,
        dry_run=dry_run,
    )


@config_app.command("show")
def config_show(
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Print current settings."""

    config_show_cmd(settings_from_path=_settings, settings_path=settings_path)


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name"),
    value: str = typer.Argument(..., help="New value"),
    settings_path: str = typer.Option(None, "--settings", help=SETTINGS_HELP),
) -> None:
    """Change one setting."""

    config_set_cmd(settings_from_path=_settings, settings_path=settings_path, key=key, value=value)


@app.command("version")
def version() -> None:
    """Print version."""

    print(__version__)


def main() -> None:
    app()
