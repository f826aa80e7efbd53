"""Utility helpers shared by the crm_pages configuration loader."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ
from pathlib import Path

from .._coerce import _optional_str
from ..errors import SettingsError

DEFAULT_CONFIG_PATH = Path("config/crm_pages.yaml")
ENV_PREFIX = "CRM_PAGES_"
_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def _section(raw: cabc.Mapping[str, typ.Any], key: str) -> dict[str, typ.Any]:
    """Return the mapping stored under ``key`` or an empty dict."""
    value = raw.get(key)
    match value:
        case None:
            return {}
        case cabc.Mapping():
            return dict(value)
        case _:
            msg = f"Configuration section '{key}' must be a mapping."
            raise SettingsError(msg)


def _parse_features(value: object) -> frozenset[str]:
    """Normalize a feature list given as YAML sequence or comma string."""
    match value:
        case None:
            return frozenset()
        case str():
            items: cabc.Iterable[object] = value.split(",")
        case list() | tuple() | set() | frozenset():
            items = value
        case _:
            msg = "Tenant features must be a list or a comma-separated string."
            raise SettingsError(msg)
    return frozenset(
        text for text in (_optional_str(item) for item in items) if text is not None
    )


def _parse_timeout(value: object, default: float) -> float:
    if value is None or value == "":
        return default
    try:
        timeout = float(typ.cast(typ.Any, value))
    except (TypeError, ValueError) as exc:
        msg = f"Timeout must be a number of seconds, got {value!r}."
        raise SettingsError(msg) from exc
    if timeout <= 0:
        msg = f"Timeout must be positive, got {timeout}."
        raise SettingsError(msg)
    return timeout


def _parse_log_level(value: object, default: str) -> str:
    text = _optional_str(value)
    if text is None:
        return default
    level = text.upper()
    if level not in _LOG_LEVELS:
        known = ", ".join(sorted(_LOG_LEVELS))
        msg = f"Unknown log level '{text}'. Expected one of: {known}."
        raise SettingsError(msg)
    return level


def _resolve_relative(path_value: object, base_dir: Path | None) -> Path | None:
    """Return ``path_value`` as a Path, anchored at ``base_dir`` when relative."""
    text = _optional_str(path_value)
    if text is None:
        return None
    path = Path(text).expanduser()
    if path.is_absolute() or base_dir is None:
        return path
    return base_dir / path


def _env(env: cabc.Mapping[str, str], name: str) -> str | None:
    return _optional_str(env.get(f"{ENV_PREFIX}{name}"))


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
]
