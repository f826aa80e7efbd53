"""Decide where a new component instance is attached.

Three scopes exist:

``tenant``
    Site-wide chrome (``header``/``footer``). At most one per tenant and
    type.
``page``
    Components placed on a ``custom`` page belong to that page alone.
``page_type``
    Components placed on any system page (``blog``, ``single_property``, ...)
    are shared by every page of that type, since system pages of one type
    are structurally identical.

:func:`resolve_scope` depends only on the component type and the page's
type code (plus the page id for ``page`` scope), so calling it twice with
the same inputs always yields the same assignment.

Examples
--------
>>> from crm_pages.models import Page
>>> from crm_pages.scope import resolve_scope
>>> landing = Page(id="p-1", tenant_id="t-1", type_code="custom", title="Promo")
>>> assignment = resolve_scope("hero", landing)
>>> assignment.scope.value, assignment.page_id, assignment.page_type_code
('page', 'p-1', None)
"""

from __future__ import annotations

import collections.abc as cabc
import copy
import dataclasses as dc
import logging
import typing as typ

from ._constants import CHROME_TYPES, STATIC_BRANCH, TOGGLES_BRANCH
from .assembler import next_order
from .errors import ValidationError
from .models import ComponentInstance, Scope

if typ.TYPE_CHECKING:
    from .catalog import Selection
    from .models import FieldDescriptor, Page

logger = logging.getLogger(__name__)


@dc.dataclass(slots=True, frozen=True)
class ScopeAssignment:
    """Scope plus the discriminator that goes with it."""

    scope: Scope
    page_type_code: str | None = None
    page_id: str | None = None


def is_chrome(component_type: str) -> bool:
    """Whether ``component_type`` is site-wide chrome."""
    return component_type in CHROME_TYPES


def resolve_scope(component_type: str, page: Page | None) -> ScopeAssignment:
    """Return the scope a new ``component_type`` instance gets on ``page``.

    Raises
    ------
    ValidationError
        If a non-chrome component is placed without a page, or a custom
        page has not been saved yet (no id to attach to).
    """
    if is_chrome(component_type):
        return ScopeAssignment(scope=Scope.TENANT)
    if page is None:
        msg = f"Cannot place '{component_type}' without a page context"
        raise ValidationError(msg, component_type=component_type)
    if page.is_custom:
        if not page.id:
            msg = (
                f"Cannot place '{component_type}' on an unsaved custom page; "
                "save the page first"
            )
            raise ValidationError(
                msg, component_type=component_type, tenant_id=page.tenant_id
            )
        return ScopeAssignment(scope=Scope.PAGE, page_id=page.id)
    return ScopeAssignment(scope=Scope.PAGE_TYPE, page_type_code=page.type_code)


def ensure_unique_singleton(
    component_type: str,
    tenant_id: str,
    existing: cabc.Iterable[ComponentInstance],
) -> None:
    """Reject a second tenant-scoped instance of ``component_type``.

    Instances belonging to other tenants are ignored; instances with no
    recorded tenant are assumed to belong to ``tenant_id`` because the
    collaborator lists components per tenant.
    """
    for instance in existing:
        if instance.scope is not Scope.TENANT or instance.type != component_type:
            continue
        if instance.tenant_id not in (None, tenant_id):
            continue
        logger.warning(
            "Rejected duplicate tenant-scoped %s for tenant %s", component_type, tenant_id
        )
        msg = (
            f"Tenant '{tenant_id}' already has a site-wide '{component_type}' "
            f"(instance {instance.id or 'unsaved'}); edit it instead of adding another"
        )
        raise ValidationError(msg, component_type=component_type, tenant_id=tenant_id)


def check_discriminators(instance: ComponentInstance) -> None:
    """Raise ValidationError unless exactly the right discriminator is set."""
    match instance.scope:
        case Scope.TENANT:
            valid = instance.page_type_code is None and instance.page_id is None
        case Scope.PAGE_TYPE:
            valid = bool(instance.page_type_code) and instance.page_id is None
        case Scope.PAGE:
            valid = bool(instance.page_id) and instance.page_type_code is None
        case _:  # pragma: no cover - exhaustive over Scope
            valid = False
    if not valid:
        msg = (
            f"Component '{instance.type}' has scope '{instance.scope}' but "
            f"page_type_code={instance.page_type_code!r}, page_id={instance.page_id!r}"
        )
        raise ValidationError(
            msg, component_type=instance.type, tenant_id=instance.tenant_id
        )


def default_document(schema: cabc.Sequence[FieldDescriptor] = ()) -> dict[str, typ.Any]:
    """Return a fresh settings document seeded from schema defaults."""
    static: dict[str, typ.Any] = {}
    toggles: dict[str, typ.Any] = {}
    for descriptor in schema:
        if descriptor.default is None:
            continue
        target = toggles if descriptor.is_toggle else static
        target[descriptor.name] = copy.deepcopy(descriptor.default)
    return {STATIC_BRANCH: static, TOGGLES_BRANCH: toggles}


def plan_instance(
    selection: Selection,
    page: Page | None,
    *,
    tenant_id: str,
    existing: cabc.Sequence[ComponentInstance],
) -> ComponentInstance:
    """Build the unsaved instance for a completed selection.

    Parameters
    ----------
    selection : Selection
        A complete result from :func:`crm_pages.catalog.select_component`.
    page : Page or None
        Page being edited; may be None only for chrome components.
    tenant_id : str
        Owning tenant.
    existing : Sequence[ComponentInstance]
        Instances already known for the tenant (used for the singleton check)
        and for the current page (used to place the new one last).

    Raises
    ------
    ValidationError
        If the tenant context is missing, the selection is incomplete, or
        the singleton rule is violated.
    """
    if not tenant_id:
        msg = f"Cannot place '{selection.component_type}' without a tenant context"
        raise ValidationError(msg, component_type=selection.component_type)
    if not selection.is_complete or selection.entry is None or selection.variant is None:
        msg = f"Selection for '{selection.component_type}' still needs an answer"
        raise ValidationError(
            msg, component_type=selection.component_type, tenant_id=tenant_id
        )

    component_type = selection.component_type
    assignment = resolve_scope(component_type, page)
    if assignment.scope is Scope.TENANT:
        ensure_unique_singleton(component_type, tenant_id, existing)
    logger.debug(
        "Resolved scope %s for %s (page_type=%s, page=%s)",
        assignment.scope,
        component_type,
        assignment.page_type_code,
        assignment.page_id,
    )

    return ComponentInstance(
        id=None,
        type=component_type,
        variant=selection.variant.code,
        scope=assignment.scope,
        data=default_document(selection.entry.field_schema),
        order=next_order(existing),
        active=True,
        page_type_code=assignment.page_type_code,
        page_id=assignment.page_id,
        tenant_id=tenant_id,
    )


__all__ = [
    "ScopeAssignment",
    "check_discriminators",
    "default_document",
    "ensure_unique_singleton",
    "is_chrome",
    "plan_instance",
    "resolve_scope",
]
