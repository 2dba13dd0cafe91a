from __future__ import annotations

import json
import os
import warnings
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

from .fs_paths import ensure_path

DEFAULT_SETTINGS_PATH = Path("~/.config/lastpos/settings.json").expanduser()

LISTEN_EVENTS = ("mouseover", "click", "scroll")
PAGE_SIZES = (5, 10, 20, 50)

SETTINGS_ENV_OVERRIDES = {
    "autosave_interval_s": "LASTPOS_AUTOSAVE_INTERVAL_S",
    "retry_count": "LASTPOS_RETRY_COUNT",
    "retry_delay_ms": "LASTPOS_RETRY_DELAY_MS",
    "scroll_tolerance": "LASTPOS_SCROLL_TOLERANCE",
    "listen_event": "LASTPOS_LISTEN_EVENT",
    "page_size": "LASTPOS_PAGE_SIZE",
    "cleanup_enabled": "LASTPOS_CLEANUP_ENABLED",
    "cleanup_days": "LASTPOS_CLEANUP_DAYS",
}

# camelCase keys from the plugin's pre-1.0 data file.
LEGACY_KEY_ALIASES = {
    "myInterval": "autosave_interval_s",
    "myRetryCount": "retry_count",
    "listenEvent": "listen_event",
    "pageSize": "page_size",
    "scrollHeightData": "positions",
}


def get_settings_path(path: Path | str | None = None) -> Path:
    candidate = path or Path(os.getenv("LASTPOS_SETTINGS", DEFAULT_SETTINGS_PATH))
    return Path(candidate).expanduser()


def read_settings_file(path: Path | str | None = None) -> dict[str, Any]:
    settings_path = get_settings_path(path)
    if not settings_path.exists():
        return {}
    raw = settings_path.read_text(encoding="utf-8")
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError("invalid settings json") from exc
    if not isinstance(data, dict):
        raise ValueError("settings must be an object")
    for legacy, current in LEGACY_KEY_ALIASES.items():
        if legacy in data:
            value = data.pop(legacy)
            data.setdefault(current, value)
    return data


def write_settings_file(data: dict[str, Any], path: Path | str | None = None) -> Path:
    settings_path = ensure_path(get_settings_path(path))
    settings_path.write_text(json.dumps(data, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    return settings_path


def get_env_overrides() -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, env_var in SETTINGS_ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value is not None:
            overrides[key] = value
    return overrides


@dataclass
class LastPositionConfig:
    autosave_interval_s: float = 3
    retry_count: int = 30
    retry_delay_ms: int = 100
    # Readback within this many offset units counts as converged.
    scroll_tolerance: float = 1.0
    listen_event: str = "mouseover"
    page_size: int = 10
    cleanup_enabled: bool = False
    cleanup_days: int = 30

    @property
    def retry_delay_s(self) -> float:
        return self.retry_delay_ms / 1000.0


CONFIG_KEYS = tuple(f.name for f in fields(LastPositionConfig))


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    if value.lower() in {"1", "true", "yes", "on"}:
        return True
    if value.lower() in {"0", "false", "off", "no"}:
        return False
    return default


def _parse_int(value: object, default: int, *, key: str, minimum: int | None = 1) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if minimum is not None and parsed < minimum:
        warnings.warn(f"Out of range int for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _parse_float(value: object, default: float, *, key: str, positive: bool = True) -> float:
    if value is None:
        return default
    if isinstance(value, bool):
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        warnings.warn(f"Invalid number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    if parsed != parsed or parsed < 0 or (positive and parsed == 0):
        warnings.warn(f"Out of range number for {key}: {value!r}", RuntimeWarning, stacklevel=2)
        return default
    return parsed


def _coerce_bool(value: object, default: bool, *, key: str) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        return _parse_bool(value, default)
    warnings.warn(f"Invalid bool for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def _coerce_choice(value: object, default: Any, choices: tuple[Any, ...], *, key: str) -> Any:
    if value is None:
        return default
    if isinstance(value, str) and isinstance(default, int):
        try:
            value = int(value)
        except ValueError:
            pass
    if value in choices and not isinstance(value, bool):
        return value
    warnings.warn(f"Invalid choice for {key}: {value!r}", RuntimeWarning, stacklevel=2)
    return default


def _coerce_value(cfg: LastPositionConfig, key: str, value: object) -> Any:
    current = getattr(cfg, key)
    if key == "autosave_interval_s":
        return _parse_float(value, current, key=key)
    if key == "scroll_tolerance":
        return _parse_float(value, current, key=key, positive=False)
    if key in {"retry_count", "retry_delay_ms", "cleanup_days"}:
        return _parse_int(value, current, key=key)
    if key == "listen_event":
        return _coerce_choice(value, current, LISTEN_EVENTS, key=key)
    if key == "page_size":
        return _coerce_choice(value, current, PAGE_SIZES, key=key)
    if key == "cleanup_enabled":
        return _coerce_bool(value, current, key=key)
    raise KeyError(key)


def config_from_dict(data: dict[str, Any]) -> LastPositionConfig:
    return _apply_dict(LastPositionConfig(), data)


def config_to_dict(cfg: LastPositionConfig) -> dict[str, Any]:
    return asdict(cfg)


def load_config(path: Path | str | None = None) -> LastPositionConfig:
    try:
        data = read_settings_file(path)
    except ValueError:
        data = {}
    return apply_env(config_from_dict(data))


def _apply_dict(cfg: LastPositionConfig, data: dict[str, Any]) -> LastPositionConfig:
    for key, value in data.items():
        if key not in CONFIG_KEYS:
            continue
        setattr(cfg, key, _coerce_value(cfg, key, value))
    return cfg


def apply_env(cfg: LastPositionConfig) -> LastPositionConfig:
    """Return a copy of ``cfg`` with LASTPOS_* environment overrides applied."""

    effective = replace(cfg)
    for key, raw in get_env_overrides().items():
        setattr(effective, key, _coerce_value(effective, key, raw))
    return effective


def set_config_value(cfg: LastPositionConfig, key: str, raw: str) -> LastPositionConfig:
    """Validate and apply one user-supplied value, raising ValueError if rejected."""

    if key not in CONFIG_KEYS:
        raise ValueError(f"unknown setting: {key}")
    if key == "cleanup_enabled" and raw.lower() not in {"1", "true", "yes", "on", "0", "false", "off", "no"}:
        raise ValueError(f"Invalid bool for {key}: {raw!r}")
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        value = _coerce_value(cfg, key, raw)
    if caught:
        raise ValueError(str(caught[0].message))
    updated = replace(cfg)
    setattr(updated, key, value)
    return updated
