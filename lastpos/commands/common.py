from __future__ import annotations

import datetime as dt

import typer
from rich import print

from lastpos.settings import Settings


def settings_from_path(settings_path: str | None) -> Settings:
    return Settings.load(settings_path)


def load_settings_or_exit(settings_from_path, settings_path: str | None) -> Settings:
    try:
        return settings_from_path(settings_path)
    except (OSError, ValueError) as exc:
        print(f"[red]Invalid settings file: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def save_settings_or_exit(settings: Settings) -> None:
    try:
        settings.save()
    except OSError as exc:
        print(f"[red]Failed to write settings: {exc}[/red]")
        raise typer.Exit(code=1) from exc


def format_offset(offset: float | None) -> str:
    if offset is None:
        return "undefined"
    return f"{offset:.0f}"


def format_timestamp(ms: int) -> str:
    return dt.datetime.fromtimestamp(ms / 1000).strftime("%Y-%m-%d %H:%M:%S")
