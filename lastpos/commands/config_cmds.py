from __future__ import annotations

import typer
from rich import print

from lastpos.config import config_to_dict, get_env_overrides, set_config_value

from .common import load_settings_or_exit, save_settings_or_exit


def config_show_cmd(*, settings_from_path, settings_path: str | None) -> None:
    settings = load_settings_or_exit(settings_from_path, settings_path)
    overrides = get_env_overrides()
    effective = config_to_dict(settings.effective_config())
    print(f"[bold]Settings[/bold] ({settings.path})")
    for key, value in config_to_dict(settings.config).items():
        line = f"- {key}: {value}"
        if key in overrides:
            line += f" (env override: {effective[key]})"
        print(line)
    print(f"- positions: {len(settings.positions)} records")


def config_set_cmd(*, settings_from_path, settings_path: str | None, key: str, value: str) -> None:
    settings = load_settings_or_exit(settings_from_path, settings_path)
    try:
        settings.config = set_config_value(settings.config, key, value)
    except ValueError as exc:
        print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    save_settings_or_exit(settings)
    print(f"[green]✓ {key} = {getattr(settings.config, key)}[/green]")
    print("[yellow]Changes take effect the next time the engine starts[/yellow]")
