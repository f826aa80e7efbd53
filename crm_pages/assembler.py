"""Assemble the ordered component list a page renders.

A page shows the union of three sets: the tenant's site-wide chrome, the
components shared by its page type, and the components attached to the page
itself. All functions here are pure; persistence is the editor's job.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ

from ._constants import CHROME_TYPES
from .models import ComponentInstance, Scope

if typ.TYPE_CHECKING:
    from .models import Page


def belongs_to_page(instance: ComponentInstance, page: Page) -> bool:
    """Return whether ``instance`` is rendered on ``page``."""
    match instance.scope:
        case Scope.TENANT:
            # Only site-wide chrome is shared across every page of a tenant.
            return instance.type in CHROME_TYPES and instance.tenant_id in (
                None,
                page.tenant_id,
            )
        case Scope.PAGE_TYPE:
            return instance.page_type_code == page.type_code
        case Scope.PAGE:
            return bool(page.id) and instance.page_id == page.id
        case _:  # pragma: no cover - exhaustive over Scope
            return False


def list_for_page(
    page: Page,
    instances: cabc.Iterable[ComponentInstance],
    *,
    active_only: bool = False,
) -> list[ComponentInstance]:
    """Return the instances rendered on ``page`` ordered by ``order``.

    Parameters
    ----------
    page : Page
        Page being rendered or edited.
    instances : Iterable[ComponentInstance]
        Every instance known for the tenant.
    active_only : bool, optional
        Drop deactivated instances. Editors pass ``False`` so hidden
        components stay visible and can be switched back on.

    Returns
    -------
    list[ComponentInstance]
        Matching instances; ties on ``order`` keep their input order.
    """
    selected = [
        instance
        for instance in instances
        if belongs_to_page(instance, page) and (instance.active or not active_only)
    ]
    return sorted(selected, key=lambda instance: instance.order)


def reorder(
    instances: cabc.Sequence[ComponentInstance], from_index: int, to_index: int
) -> tuple[list[ComponentInstance], list[ComponentInstance]]:
    """Move the instance at ``from_index`` to ``to_index`` by swapping orders.

    Only the two instances involved exchange ``order`` values and positions;
    every other instance keeps its order, so only the returned ``changed``
    instances need to be persisted. When the list carries duplicate orders
    (older data defaults a missing order to ``0``) swapping would change
    nothing, so the whole list is renumbered ``1..n`` in its new sequence
    instead.

    Returns
    -------
    tuple[list[ComponentInstance], list[ComponentInstance]]
        The reordered list and the instances whose ``order`` changed. Out of
        range or identical indices return an unchanged copy and no changes.
    """
    items = list(instances)
    size = len(items)
    if from_index == to_index or not (0 <= from_index < size and 0 <= to_index < size):
        return items, []

    moving, target = items[from_index], items[to_index]
    if len({item.order for item in items}) < size:
        items[to_index], items[from_index] = moving, target
        return _renumber(items)

    moved = dc.replace(moving, order=target.order)
    displaced = dc.replace(target, order=moving.order)
    items[to_index] = moved
    items[from_index] = displaced
    return items, [moved, displaced]


def _renumber(
    items: list[ComponentInstance],
) -> tuple[list[ComponentInstance], list[ComponentInstance]]:
    changed: list[ComponentInstance] = []
    for position, instance in enumerate(items):
        if instance.order != position + 1:
            items[position] = dc.replace(instance, order=position + 1)
            changed.append(items[position])
    return items, changed


def set_active(
    instances: cabc.Sequence[ComponentInstance], instance_id: str, active: bool
) -> tuple[list[ComponentInstance], ComponentInstance | None]:
    """Return ``instances`` with the one matching ``instance_id`` toggled.

    The second element is the updated instance, or None when nothing matched
    or the flag already had the requested value.
    """
    items = list(instances)
    for position, instance in enumerate(items):
        if instance.id != instance_id:
            continue
        if instance.active == active:
            return items, None
        updated = dc.replace(instance, active=active)
        items[position] = updated
        return items, updated
    return items, None


def next_order(instances: cabc.Iterable[ComponentInstance]) -> int:
    """Return the ``order`` that places a new instance after all others."""
    return max((instance.order for instance in instances), default=-1) + 1


__all__ = [
    "belongs_to_page",
    "list_for_page",
    "next_order",
    "reorder",
    "set_active",
]
