from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import (
    CONFIG_KEYS,
    LastPositionConfig,
    apply_env,
    config_from_dict,
    config_to_dict,
    get_settings_path,
    read_settings_file,
    write_settings_file,
)
from .store import PositionStore

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """The persisted aggregate: scalar config plus every position record.

    Saving always writes the whole aggregate. Components mutate ``positions``
    and then call ``flush()``, which saves only when the store is dirty.
    """

    config: LastPositionConfig = field(default_factory=LastPositionConfig)
    positions: PositionStore = field(default_factory=PositionStore)
    path: Path = field(default_factory=get_settings_path)
    # Unrecognised keys found on load, written back untouched.
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(
        cls, path: Path | str | None = None, *, strict: bool = True, now: int | None = None
    ) -> Settings:
        settings_path = get_settings_path(path)
        try:
            data = read_settings_file(settings_path)
        except (OSError, ValueError) as exc:
            if strict:
                raise
            logger.warning("settings file %s unreadable, starting empty", settings_path, exc_info=exc)
            data = {}
        raw_positions = data.get("positions")
        if raw_positions is not None and not isinstance(raw_positions, dict):
            if strict:
                raise ValueError("positions must be an object")
            logger.warning("ignoring non-object positions in %s", settings_path)
            raw_positions = None
        extra = {k: v for k, v in data.items() if k not in CONFIG_KEYS and k != "positions"}
        return cls(
            config=config_from_dict(data),
            positions=PositionStore.from_persisted(raw_positions, now=now),
            path=settings_path,
            extra=extra,
        )

    def effective_config(self) -> LastPositionConfig:
        return apply_env(self.config)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        data.update(config_to_dict(self.config))
        data["positions"] = self.positions.to_persisted()
        return data

    def save(self) -> Path:
        written = write_settings_file(self.to_dict(), self.path)
        self.positions.mark_clean()
        return written

    def flush(self) -> bool:
        if not self.positions.dirty:
            return False
        self.save()
        return True
