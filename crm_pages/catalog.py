"""Look up component implementations and collapse the add-component dialog.

Adding a component is a three-stage choice: type, then implementation (two
different ``hero`` renderers may coexist), then variant. Every stage with a
single option is decided automatically, so a type with one implementation
and one variant never prompts the operator at all.

Examples
--------
>>> from crm_pages.catalog import select_component
>>> from crm_pages.models import CatalogSnapshot, ComponentCatalogEntry, VariantInfo
>>> snapshot = CatalogSnapshot(components=(
...     ComponentCatalogEntry(type="cta", variants=(VariantInfo("default", "Default"),)),
... ))
>>> selection = select_component(snapshot, "cta")
>>> selection.is_complete, selection.variant.code
(True, 'default')
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

from .errors import NotFoundError

if typ.TYPE_CHECKING:
    from .models import (
        CatalogSnapshot,
        ComponentCatalogEntry,
        FieldDescriptor,
        VariantInfo,
    )


class SelectionStage(enum.StrEnum):
    """Stage at which the operator has to choose."""

    IMPLEMENTATION = "implementation"
    VARIANT = "variant"


@dc.dataclass(slots=True, frozen=True)
class Prompt:
    """Choices the operator must pick from before creation can proceed."""

    stage: SelectionStage
    component_type: str
    options: tuple[ComponentCatalogEntry, ...] | tuple[VariantInfo, ...]


@dc.dataclass(slots=True, frozen=True)
class Selection:
    """Outcome of :func:`select_component`.

    Either ``entry`` and ``variant`` are both set, or ``prompt`` says what
    is still missing.
    """

    component_type: str
    entry: ComponentCatalogEntry | None = None
    variant: VariantInfo | None = None
    prompt: Prompt | None = None

    @property
    def is_complete(self) -> bool:
        return self.prompt is None and self.entry is not None and self.variant is not None


def by_type(catalog: CatalogSnapshot, component_type: str) -> list[ComponentCatalogEntry]:
    """Return every catalog entry of ``component_type``, retired ones included."""
    return [entry for entry in catalog.components if entry.type == component_type]


def implementations_of(
    catalog: CatalogSnapshot, component_type: str
) -> list[ComponentCatalogEntry]:
    """Return the selectable (non-retired) implementations of ``component_type``."""
    return [entry for entry in by_type(catalog, component_type) if not entry.retired]


def schema_for(
    catalog: CatalogSnapshot, component_type: str, implementation_id: str | None = None
) -> tuple[FieldDescriptor, ...] | None:
    """Return the field schema for a type, or None when none is registered.

    ``None`` tells the field engine to fall back to inference. When an
    implementation is named its schema is preferred; otherwise the first
    implementation carrying a schema is used.
    """
    candidates = by_type(catalog, component_type)
    if implementation_id is not None:
        preferred = [c for c in candidates if c.implementation_id == implementation_id]
        candidates = preferred + [c for c in candidates if c not in preferred]
    for entry in candidates:
        if entry.has_schema:
            return entry.field_schema
    return None


def _choose_implementation(
    component_type: str,
    implementations: list[ComponentCatalogEntry],
    implementation_id: str | None,
) -> ComponentCatalogEntry | Prompt:
    if implementation_id is not None:
        for entry in implementations:
            if entry.implementation_id == implementation_id:
                return entry
        msg = (
            f"Implementation '{implementation_id}' is not available for "
            f"component type '{component_type}'"
        )
        raise NotFoundError(msg)
    if len(implementations) == 1:
        return implementations[0]
    return Prompt(
        stage=SelectionStage.IMPLEMENTATION,
        component_type=component_type,
        options=tuple(implementations),
    )


def _choose_variant(
    entry: ComponentCatalogEntry, variant_code: str | None
) -> VariantInfo | Prompt:
    if variant_code is not None:
        variant = entry.variant(variant_code)
        if variant is None:
            known = ", ".join(item.code for item in entry.variants)
            msg = (
                f"Variant '{variant_code}' does not exist for component type "
                f"'{entry.type}'. Known variants: {known}"
            )
            raise NotFoundError(msg)
        return variant
    if len(entry.variants) == 1:
        return entry.variants[0]
    return Prompt(
        stage=SelectionStage.VARIANT,
        component_type=entry.type,
        options=entry.variants,
    )


def select_component(
    catalog: CatalogSnapshot,
    component_type: str,
    *,
    implementation_id: str | None = None,
    variant: str | None = None,
) -> Selection:
    """Resolve the implementation and variant to create for ``component_type``.

    Parameters
    ----------
    catalog : CatalogSnapshot
        Session snapshot of the component catalog.
    component_type : str
        Requested component type, e.g. ``"hero"``.
    implementation_id : str, optional
        Operator's answer to an implementation prompt.
    variant : str, optional
        Operator's answer to a variant prompt.

    Returns
    -------
    Selection
        Complete when every stage was unique or answered; otherwise carries
        the first unanswered :class:`Prompt`.

    Raises
    ------
    NotFoundError
        If the type has no implementations, or an answer names an unknown
        implementation or variant.
    """
    implementations = implementations_of(catalog, component_type)
    if not implementations:
        msg = f"No implementations available for component type '{component_type}'"
        raise NotFoundError(msg)

    chosen = _choose_implementation(component_type, implementations, implementation_id)
    if isinstance(chosen, Prompt):
        return Selection(component_type=component_type, prompt=chosen)

    picked = _choose_variant(chosen, variant)
    if isinstance(picked, Prompt):
        return Selection(component_type=component_type, entry=chosen, prompt=picked)
    return Selection(component_type=component_type, entry=chosen, variant=picked)


__all__ = [
    "Prompt",
    "Selection",
    "SelectionStage",
    "by_type",
    "implementations_of",
    "schema_for",
    "select_component",
]
