"""Value coercion helpers shared by the payload codecs and config loader."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ

from .errors import PayloadError

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _coerce_str(value: object) -> str | None:
    """Return the string representation of ``value`` or None."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: object, default: bool = False) -> bool:
    match value:
        case None:
            return default
        case bool():
            return value
        case int():
            return value != 0
        case str() as text:
            return text.strip().lower() in _TRUTHY
        case _:
            return default


def _as_int(value: object, default: int = 0) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(typ.cast(typ.Any, value))
    except (TypeError, ValueError):
        return default


def _as_mapping(value: object) -> dict[str, typ.Any]:
    """Return a shallow dict copy of ``value`` or an empty dict."""
    if isinstance(value, cabc.Mapping):
        return dict(value)
    return {}


def _parse_timestamp(value: dt.datetime | str | None) -> dt.datetime | None:
    """Return a timezone-aware UTC datetime parsed from ``value``, or None."""
    match value:
        case dt.datetime():
            parsed = value
        case str() as text:
            sanitized = text.strip()
            if not sanitized:
                return None
            if sanitized.endswith("Z"):
                sanitized = sanitized[:-1] + "+00:00"
            try:
                parsed = dt.datetime.fromisoformat(sanitized)
            except ValueError:
                return None
        case _:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=dt.UTC)
    return parsed.astimezone(dt.UTC)


def _require(payload: cabc.Mapping[str, typ.Any], key: str, entity: str) -> str:
    """Return ``payload[key]`` as a non-empty string or raise PayloadError."""
    value = _optional_str(payload.get(key))
    if value is None:
        msg = f"{entity} payload is missing required key '{key}'"
        raise PayloadError(msg)
    return value


__all__ = [
    "_as_bool",
    "_as_int",
    "_as_mapping",
    "_coerce_str",
    "_optional_str",
    "_parse_timestamp",
    "_require",
]
