"""Turn component settings documents into editable field trees.

Two strategies produce the same :class:`~crm_pages.models.FieldGroups`
structure:

Schema-first
    Used whenever the component catalog registers a field schema for the
    component type. Labels, kinds, and ordering come only from the schema;
    values are read from the document and fall back to schema defaults.

Inference-first
    Used for legacy or hand-authored data with no registered schema. The
    document is walked and each key's kind is guessed, first from
    :data:`KIND_RULES` (key-name heuristics), then from its JSON type.

Both strategies are pure and idempotent: the same document and schema always
yield the same field tree.

Examples
--------
>>> from crm_pages.fields import build_field_groups
>>> groups = build_field_groups({"static_data": {"titulo_principal": "Hola"}})
>>> field = groups.static_fields[0]
>>> field.label, field.kind.value, field.path
('Titulo Principal', 'text', ('static_data', 'titulo_principal'))
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import re
import typing as typ

from ._constants import (
    ARRAY_TEMPLATE_INDEX,
    STATIC_BRANCH,
    STYLES_BRANCH,
    TEXTAREA_MIN_LENGTH,
    TOGGLES_BRANCH,
)
from .documents import get_path, set_path
from .models import DynamicField, FieldDescriptor, FieldGroups, FieldKind

logger = logging.getLogger(__name__)

# Checked in order against the lower-cased key; the first match wins.
KIND_RULES: tuple[tuple[re.Pattern[str], FieldKind], ...] = (
    (re.compile(r"imagen|image|foto"), FieldKind.IMAGE),
    (re.compile(r"url|link|enlace"), FieldKind.URL),
    (re.compile(r"descripcion|description|contenido"), FieldKind.TEXTAREA),
)

_FLAG_BRANCHES = frozenset({STATIC_BRANCH, TOGGLES_BRANCH})


def key_to_label(key: str) -> str:
    """Return a human label for ``key`` (``titulo_principal`` -> ``Titulo Principal``)."""
    return " ".join(segment[:1].upper() + segment[1:] for segment in key.split("_"))


def infer_kind(
    key: str,
    value: object,
    rules: cabc.Sequence[tuple[re.Pattern[str], FieldKind]] = KIND_RULES,
) -> FieldKind:
    """Guess the editor kind for ``key``/``value``.

    Key-name rules take priority over the value's JSON type.
    """
    lowered = key.lower()
    for pattern, kind in rules:
        if pattern.search(lowered):
            return kind
    match value:
        case bool():
            return FieldKind.BOOLEAN
        case int() | float():
            return FieldKind.NUMBER
        case str() if len(value) > TEXTAREA_MIN_LENGTH:
            return FieldKind.TEXTAREA
        case list() | tuple():
            return FieldKind.ARRAY
        case cabc.Mapping():
            return FieldKind.OBJECT
        case _:
            return FieldKind.TEXT


@dc.dataclass(slots=True)
class _Frame:
    entries: cabc.Iterator[tuple[typ.Any, typ.Any]]
    path: tuple[str, ...]
    fields: list[DynamicField]
    pending: DynamicField | None


def _nested_mapping(
    kind: FieldKind, value: object, path: tuple[str, ...]
) -> tuple[cabc.Mapping[typ.Any, typ.Any], tuple[str, ...]] | None:
    if kind is FieldKind.OBJECT and isinstance(value, cabc.Mapping):
        return value, path
    if kind is FieldKind.ARRAY and isinstance(value, list | tuple) and value:
        first = value[0]
        if isinstance(first, cabc.Mapping):
            return first, (*path, ARRAY_TEMPLATE_INDEX)
    return None


def infer_fields(
    value: object, base_path: cabc.Sequence[str] = ()
) -> tuple[DynamicField, ...]:
    """Derive fields from a raw mapping rooted at ``base_path``.

    Objects are walked fully. Arrays contribute only their first element,
    which becomes the template row at ``(*path, "0")``; later elements are
    never inspected and empty arrays have no children. The walk uses an
    explicit stack, so document depth is unbounded.
    """
    if not isinstance(value, cabc.Mapping):
        return ()
    stack = [_Frame(iter(value.items()), tuple(base_path), [], None)]
    while True:
        frame = stack[-1]
        entry = next(frame.entries, None)
        if entry is None:
            stack.pop()
            if frame.pending is None:
                return tuple(frame.fields)
            completed = dc.replace(frame.pending, children=tuple(frame.fields))
            stack[-1].fields.append(completed)
            continue

        raw_key, item = entry
        key = str(raw_key)
        path = (*frame.path, key)
        kind = infer_kind(key, item)
        field = DynamicField(
            key=key, label=key_to_label(key), kind=kind, value=item, path=path
        )
        nested = _nested_mapping(kind, item, path)
        if nested is None:
            frame.fields.append(field)
        else:
            mapping, nested_path = nested
            stack.append(_Frame(iter(mapping.items()), nested_path, [], field))


def _read(document: object, path: tuple[str, ...], default: typ.Any) -> typ.Any:
    value = get_path(document, path)
    return default if value is None else value


def _schema_field(document: object, descriptor: FieldDescriptor) -> DynamicField:
    path = (STATIC_BRANCH, descriptor.name)
    children: tuple[DynamicField, ...] = ()
    if descriptor.kind is FieldKind.ARRAY and descriptor.array_item_schema:
        children = tuple(
            DynamicField(
                key=item.name,
                label=item.label or item.name,
                kind=item.kind,
                value=_read(
                    document, (*path, ARRAY_TEMPLATE_INDEX, item.name), item.default
                ),
                path=(*path, ARRAY_TEMPLATE_INDEX, item.name),
                options=item.options,
            )
            for item in descriptor.array_item_schema
        )
    value = _read(document, path, descriptor.default)
    if descriptor.kind is FieldKind.BOOLEAN:
        # Flag edits are always written under toggles.
        value = _read(document, (TOGGLES_BRANCH, descriptor.name), value)
    return DynamicField(
        key=descriptor.name,
        label=descriptor.label or descriptor.name,
        kind=descriptor.kind,
        value=value,
        path=path,
        children=children,
        options=descriptor.options,
    )


def _toggle_field(document: object, descriptor: FieldDescriptor) -> DynamicField:
    toggle_path = (TOGGLES_BRANCH, descriptor.name)
    value = get_path(document, toggle_path)
    if value is None:
        # Older documents kept flags beside the static settings.
        value = _read(document, (STATIC_BRANCH, descriptor.name), descriptor.default)
    return DynamicField(
        key=descriptor.name,
        label=descriptor.label or descriptor.name,
        kind=FieldKind.BOOLEAN,
        value=value,
        path=toggle_path,
    )


def fields_from_schema(
    document: object, schema: cabc.Sequence[FieldDescriptor]
) -> FieldGroups:
    """Build field groups from an authoritative catalog schema."""
    static_fields: list[DynamicField] = []
    toggle_fields: list[DynamicField] = []
    for descriptor in schema:
        if descriptor.is_toggle:
            toggle_fields.append(_toggle_field(document, descriptor))
        else:
            static_fields.append(_schema_field(document, descriptor))
    return FieldGroups(
        static_fields=tuple(static_fields),
        toggle_fields=tuple(toggle_fields),
        source="schema",
    )


def build_field_groups(
    document: object, schema: cabc.Sequence[FieldDescriptor] | None = None
) -> FieldGroups:
    """Return the editor field groups for ``document``.

    Parameters
    ----------
    document : object
        Component settings document.
    schema : Sequence[FieldDescriptor], optional
        Catalog field schema. When present and non-empty, inference is not
        run at all.

    Returns
    -------
    FieldGroups
        Static, toggle, and style fields plus the strategy that built them.
    """
    if schema:
        return fields_from_schema(document, schema)
    logger.debug("No field schema registered; inferring fields from document")
    static_fields, toggle_fields = _merge_flags(
        document,
        infer_fields(get_path(document, (STATIC_BRANCH,)), (STATIC_BRANCH,)),
        infer_fields(get_path(document, (TOGGLES_BRANCH,)), (TOGGLES_BRANCH,)),
    )
    return FieldGroups(
        static_fields=static_fields,
        toggle_fields=toggle_fields,
        style_fields=infer_fields(get_path(document, (STYLES_BRANCH,)), (STYLES_BRANCH,)),
        source="inference",
    )


def _merge_flags(
    document: object,
    static_fields: tuple[DynamicField, ...],
    toggle_fields: tuple[DynamicField, ...],
) -> tuple[tuple[DynamicField, ...], tuple[DynamicField, ...]]:
    """Show each top-level static flag once, with its ``toggles`` value.

    Edits to such flags are written under ``toggles`` (see
    :func:`canonical_path`), so that copy wins over the stale one left in
    ``static_data`` and the matching toggle field is dropped.
    """
    flags: set[str] = set()
    merged: list[DynamicField] = []
    for field in static_fields:
        if canonical_path(field) != field.path:
            flags.add(field.key)
            value = get_path(document, (TOGGLES_BRANCH, field.key))
            if value is not None:
                merged.append(dc.replace(field, value=value))
                continue
        merged.append(field)
    remaining = tuple(field for field in toggle_fields if field.key not in flags)
    return tuple(merged), remaining


def canonical_path(field: DynamicField) -> tuple[str, ...]:
    """Return where an edit to ``field`` must be written.

    Top-level boolean settings are flags, and flags live under ``toggles``
    whichever branch they were read from.
    """
    if (
        field.kind is FieldKind.BOOLEAN
        and len(field.path) == 2
        and field.path[0] in _FLAG_BRANCHES
    ):
        return (TOGGLES_BRANCH, field.key)
    return field.path


def apply_field_edit(document: object, field: DynamicField, value: typ.Any) -> typ.Any:
    """Return a new document with ``value`` written for ``field``."""
    return set_path(document, canonical_path(field), value)


def row_template(field: DynamicField) -> typ.Any:
    """Return the value appended when a row is added to array ``field``.

    Rows of object arrays start with every known key blank; scalar arrays
    get an empty string.
    """
    if field.children:
        return {child.key: "" for child in field.children}
    return ""


def walk_fields(
    fields: cabc.Iterable[DynamicField],
) -> cabc.Iterator[DynamicField]:
    """Yield ``fields`` and all their descendants depth-first."""
    stack = list(reversed(tuple(fields)))
    while stack:
        field = stack.pop()
        yield field
        stack.extend(reversed(field.children))


def find_field(groups: FieldGroups, path: cabc.Sequence[str]) -> DynamicField | None:
    """Return the field whose path equals ``path`` in any group, or None."""
    target = tuple(path)
    everything = (*groups.static_fields, *groups.toggle_fields, *groups.style_fields)
    return next((field for field in walk_fields(everything) if field.path == target), None)


__all__ = [
    "KIND_RULES",
    "apply_field_edit",
    "build_field_groups",
    "canonical_path",
    "fields_from_schema",
    "find_field",
    "infer_fields",
    "infer_kind",
    "key_to_label",
    "row_template",
    "walk_fields",
]
