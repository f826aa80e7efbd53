"""Immutable, path-addressed access to nested component settings documents.

A component's settings are a JSON document shaped like::

    {"static_data": {...}, "toggles": {...}, "dynamic_data": ..., "styles": {...}}

Paths are sequences of keys from the document root. List elements are
addressed by their index, written either as an ``int`` or as a digit string
(``"0"``), which is how the field engine records array template rows.

:func:`set_path` never mutates its input: every container on the path is
shallow-copied and every sibling off the path is shared by identity, so an
editor can detect what changed with ``is`` comparisons.

Examples
--------
>>> from crm_pages.documents import get_path, set_path
>>> doc = {"static_data": {"titulo": "Hola"}, "toggles": {}}
>>> updated = set_path(doc, ("static_data", "titulo"), "Adios")
>>> get_path(updated, ("static_data", "titulo"))
'Adios'
>>> doc["static_data"]["titulo"]
'Hola'
>>> updated["toggles"] is doc["toggles"]
True
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from ._constants import DYNAMIC_BRANCH, STATIC_BRANCH, STYLES_BRANCH, TOGGLES_BRANCH

PathKey = str | int
KeyPath = cabc.Sequence[PathKey]


def _as_index(key: PathKey) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None


def _child(container: object, key: PathKey, default: typ.Any) -> typ.Any:
    match container:
        case cabc.Mapping():
            return container.get(key, default)  # type: ignore[call-overload]
        case list() | tuple():
            index = _as_index(key)
            if index is None or index >= len(container):
                return default
            return container[index]
        case _:
            return default


def get_path(doc: object, path: KeyPath, default: typ.Any = None) -> typ.Any:
    """Return the value at ``path`` or ``default`` when any step is missing.

    Never raises: walking into a scalar, an unknown key, or an out-of-range
    index all yield ``default``.
    """
    sentinel = object()
    current: typ.Any = doc
    for key in path:
        current = _child(current, key, sentinel)
        if current is sentinel:
            return default
    return current


def set_path(doc: object, path: KeyPath, value: typ.Any) -> typ.Any:
    """Return a copy of ``doc`` with ``value`` stored at ``path``.

    Parameters
    ----------
    doc : object
        Source document; left untouched.
    path : Sequence[str | int]
        Keys from the root. An empty path replaces the whole document.
    value : Any
        Leaf value to store.

    Returns
    -------
    Any
        The new document. Ancestors of ``path`` are fresh shallow copies;
        everything else is shared with ``doc``.

    Notes
    -----
    Missing or scalar intermediates are replaced with empty mappings. A list
    intermediate stays a list when the key is an index; an index equal to
    the list length appends and larger gaps are padded with empty mappings.
    """
    if not path:
        return value
    key, rest = path[0], path[1:]
    existing = _child(doc, key, None)
    new_child = set_path(existing, rest, value) if rest else value

    index = _as_index(key)
    if isinstance(doc, list | tuple) and index is not None:
        items = list(doc)
        while len(items) < index:
            items.append({})
        if index == len(items):
            items.append(new_child)
        else:
            items[index] = new_child
        return items

    copied: dict[typ.Any, typ.Any] = (
        dict(doc) if isinstance(doc, cabc.Mapping) else {}
    )
    copied[key] = new_child
    return copied


def _as_list(value: object) -> list[typ.Any]:
    if isinstance(value, list | tuple):
        return list(value)
    return []


def append_item(doc: object, path: KeyPath, template: typ.Any = None) -> typ.Any:
    """Append a new row to the array at ``path``.

    Mapping templates are shallow-copied so rows never share state; a
    ``None`` template appends an empty string, matching scalar arrays.
    """
    if isinstance(template, cabc.Mapping):
        row: typ.Any = dict(template)
    elif template is None:
        row = ""
    else:
        row = template
    items = _as_list(get_path(doc, path))
    items.append(row)
    return set_path(doc, path, items)


def remove_item(doc: object, path: KeyPath, index: int) -> typ.Any:
    """Drop row ``index`` from the array at ``path``; unknown indices are ignored."""
    items = _as_list(get_path(doc, path))
    kept = [item for position, item in enumerate(items) if position != index]
    return set_path(doc, path, kept)


def update_item(
    doc: object, path: KeyPath, index: int, key: str, value: typ.Any
) -> typ.Any:
    """Set ``key`` on row ``index`` of the array at ``path``.

    A row that does not exist is left alone and the document is returned
    unchanged.
    """
    items = _as_list(get_path(doc, path))
    if not 0 <= index < len(items):
        return doc
    row = items[index]
    merged = dict(row) if isinstance(row, cabc.Mapping) else {}
    merged[key] = value
    items[index] = merged
    return set_path(doc, path, items)


def normalize_document(raw: object) -> dict[str, typ.Any]:
    """Coerce legacy component data into the structured document shape.

    * Non-mapping data becomes ``{"static_data": {}}``.
    * A list contributes its first element.
    * A mapping without ``static_data`` is treated as the static data itself.
    """
    data = raw
    if isinstance(data, list | tuple):
        data = data[0] if data else None
    if not isinstance(data, cabc.Mapping):
        return {STATIC_BRANCH: {}}
    if STATIC_BRANCH not in data:
        return {STATIC_BRANCH: dict(data)}

    static = data.get(STATIC_BRANCH)
    document: dict[str, typ.Any] = {
        STATIC_BRANCH: dict(static) if isinstance(static, cabc.Mapping) else {},
    }
    for branch in (DYNAMIC_BRANCH, STYLES_BRANCH, TOGGLES_BRANCH):
        if data.get(branch):
            document[branch] = data[branch]
    return document


__all__ = [
    "append_item",
    "get_path",
    "normalize_document",
    "remove_item",
    "set_path",
    "update_item",
]
