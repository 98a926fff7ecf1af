"""Editor defaults loaded from an optional JSON file and the environment.

Resolution order: built-in defaults, then ``meshwarp_config.json`` (or an
explicit path), then ``MESHWARP_*`` environment variables. Bad files and bad
values are skipped rather than reported as errors so a broken config never
keeps the editor from starting.
"""
from __future__ import annotations

import json
import logging
import math
import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from .geometry import MAX_DIVISIONS
from .model import (
    DEFAULT_BASE_COLS,
    DEFAULT_BASE_ROWS,
    DEFAULT_COLORS,
    DEFAULT_RULES,
    GridConfig,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "meshwarp_config.json"

_HEX_COLOR = re.compile(r"#[0-9a-fA-F]{6}")
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class EditorSettings:
    base_cols: int = DEFAULT_BASE_COLS
    base_rows: int = DEFAULT_BASE_ROWS
    rule_string: str = DEFAULT_RULES
    active_color: str = DEFAULT_COLORS[0]
    displacement_scale: float = 0.1
    palette: Tuple[str, ...] = DEFAULT_COLORS
    log_level: str = "INFO"

    def grid_config(self) -> GridConfig:
        return GridConfig(self.base_cols, self.base_rows, self.rule_string)

    def asdict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["palette"] = list(self.palette)
        return data


def _coerce_count(value: Any) -> Optional[int]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 1:
        return None
    return min(MAX_DIVISIONS, int(number))


def _coerce_scale(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_color(value: Any) -> Optional[str]:
    if isinstance(value, str) and _HEX_COLOR.fullmatch(value.strip()):
        return value.strip().lower()
    return None


def _coerce_rules(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _coerce_palette(value: Any) -> Optional[Tuple[str, ...]]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return None
    colors = tuple(c for c in (_coerce_color(item) for item in value) if c is not None)
    return colors or None


def _coerce_level(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().upper() in _LOG_LEVELS:
        return value.strip().upper()
    return None


# field name -> (environment variable, coercer)
_FIELDS: Dict[str, Tuple[str, Callable[[Any], Any]]] = {
    "base_cols": ("MESHWARP_BASE_COLS", _coerce_count),
    "base_rows": ("MESHWARP_BASE_ROWS", _coerce_count),
    "rule_string": ("MESHWARP_RULES", _coerce_rules),
    "active_color": ("MESHWARP_ACTIVE_COLOR", _coerce_color),
    "displacement_scale": ("MESHWARP_DISPLACEMENT_SCALE", _coerce_scale),
    "palette": ("MESHWARP_PALETTE", _coerce_palette),
    "log_level": ("MESHWARP_LOG_LEVEL", _coerce_level),
}


def _read_config_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable config file %s", path)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: expected a JSON object", path)
        return {}
    return data


def _overlay(settings: EditorSettings, raw: Mapping[str, Any], keys: Mapping[str, str]) -> EditorSettings:
    updates: Dict[str, Any] = {}
    for name, (_env, coerce) in _FIELDS.items():
        key = keys[name]
        if key not in raw:
            continue
        value = coerce(raw[key])
        if value is None:
            logger.debug("Ignoring invalid setting %s=%r", key, raw[key])
            continue
        updates[name] = value
    return replace(settings, **updates) if updates else settings


def load_settings(path: str | os.PathLike | None = None, environ: Mapping[str, str] | None = None) -> EditorSettings:
    settings = EditorSettings()
    config_path = Path(path) if path is not None else Path(__file__).with_name(CONFIG_FILENAME)
    file_data = _read_config_file(config_path)
    settings = _overlay(settings, file_data, {name: name for name in _FIELDS})

    env = os.environ if environ is None else environ
    settings = _overlay(settings, env, {name: env_name for name, (env_name, _c) in _FIELDS.items()})
    return settings


__all__ = ["CONFIG_FILENAME", "EditorSettings", "load_settings"]
