"""Editing session tying the pure engine to the collaborator client.

A :class:`PageEditor` loads one page together with a catalog snapshot and
the page's component instances, then applies operator actions: add a
component, edit a field, add or remove array rows, reorder, hide, delete,
or save the page itself.
Every mutation sends the instance's full settings document back to the
collaborator (read-modify-write); nothing is cached across sessions.

Examples
--------
>>> from crm_pages.client import CollaboratorClient
>>> from crm_pages.editor import PageEditor
>>> editor = PageEditor(CollaboratorClient(), tenant_id="demo")  # doctest: +SKIP
>>> page = editor.load("blog")  # doctest: +SKIP
>>> result = editor.add_component("hero")  # doctest: +SKIP
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import typing as typ

from . import assembler
from ._constants import STATIC_BRANCH
from .catalog import Selection, schema_for, select_component
from .documents import append_item, normalize_document, remove_item, update_item
from .errors import NotFoundError, ValidationError
from .fields import apply_field_edit, build_field_groups, find_field, row_template
from .models import CatalogSnapshot, FieldKind
from .scope import check_discriminators, plan_instance

if typ.TYPE_CHECKING:
    from .client import CollaboratorClient
    from .models import (
        ComponentInstance,
        DynamicField,
        FieldDescriptor,
        FieldGroups,
        Page,
    )

logger = logging.getLogger(__name__)

_FIXED_PAGE_FIELDS = frozenset({"id", "tenant_id", "type_code"})


def settings_document(instance: ComponentInstance) -> dict[str, typ.Any]:
    """Return the structured settings document of ``instance``.

    Legacy flat data is wrapped into ``static_data``; structured documents
    are returned as-is so empty branches survive a save.
    """
    if STATIC_BRANCH in instance.data:
        return instance.data
    return normalize_document(instance.data)


class PageEditor:
    """Stateful editing session for a single page."""

    def __init__(
        self,
        client: CollaboratorClient,
        *,
        tenant_id: str,
        catalog: CatalogSnapshot | None = None,
    ) -> None:
        self._client = client
        self.tenant_id = tenant_id
        self._catalog = catalog
        self._page: Page | None = None
        self._instances: list[ComponentInstance] = []
        self._fetched_schemas: dict[str, tuple[FieldDescriptor, ...] | None] = {}

    @property
    def page(self) -> Page:
        if self._page is None:
            msg = "No page loaded; call load() first"
            raise NotFoundError(msg)
        return self._page

    @property
    def catalog(self) -> CatalogSnapshot:
        if self._catalog is None:
            self._catalog = CatalogSnapshot(
                page_types=tuple(self._client.get_page_types(self.tenant_id)),
                components=tuple(self._client.get_component_catalog(self.tenant_id)),
            )
        return self._catalog

    @property
    def instances(self) -> list[ComponentInstance]:
        """Instances rendered on the page, in display order."""
        return list(self._instances)

    def load(self, id_or_code: str) -> Page:
        """Fetch the page and its component instances.

        Raises
        ------
        NotFoundError
            If the collaborator has no page for ``id_or_code``.
        """
        page = self._client.get_page(self.tenant_id, id_or_code)
        if page is None:
            msg = f"Page '{id_or_code}' does not exist for tenant '{self.tenant_id}'"
            raise NotFoundError(msg)
        self._page = page
        fetched = self._client.list_components_for_page(
            self.tenant_id, page.id or page.type_code
        )
        self._instances = assembler.list_for_page(page, fetched)
        logger.debug(
            "Loaded page %s (%s) with %d components",
            page.id,
            page.type_code,
            len(self._instances),
        )
        return page

    def _instance(self, instance_id: str) -> ComponentInstance:
        for instance in self._instances:
            if instance.id == instance_id:
                return instance
        msg = f"Component '{instance_id}' is not on the loaded page"
        raise NotFoundError(msg)

    def _save(self, instance: ComponentInstance) -> ComponentInstance:
        check_discriminators(instance)
        saved = self._client.save_component(self.tenant_id, instance)
        for position, current in enumerate(self._instances):
            if instance.id and current.id == instance.id:
                self._instances[position] = saved
                break
        else:
            self._instances.append(saved)
        self._instances = assembler.list_for_page(self.page, self._instances)
        return saved

    def add_component(
        self,
        component_type: str,
        *,
        implementation_id: str | None = None,
        variant: str | None = None,
    ) -> Selection | ComponentInstance:
        """Create a ``component_type`` instance on the loaded page.

        Returns the pending :class:`~crm_pages.catalog.Selection` when the
        operator still has to choose an implementation or variant; call
        again with the answer. Otherwise returns the saved instance.
        """
        selection = select_component(
            self.catalog,
            component_type,
            implementation_id=implementation_id,
            variant=variant,
        )
        if not selection.is_complete:
            return selection
        planned = plan_instance(
            selection,
            self.page,
            tenant_id=self.tenant_id,
            existing=self._instances,
        )
        return self._save(planned)

    def save_page(self, **changes: typ.Any) -> Page:
        """Apply ``changes`` to the loaded page and persist it.

        Parameters
        ----------
        **changes : Any
            New values for :class:`~crm_pages.models.Page` fields such as
            ``title``, ``slug``, ``meta``, ``published`` or ``active``.

        Raises
        ------
        ValidationError
            If ``changes`` names an identity field (``id``, ``tenant_id``,
            ``type_code``) or a field pages do not have.
        """
        fixed = sorted(_FIXED_PAGE_FIELDS.intersection(changes))
        if fixed:
            msg = f"Page fields cannot be changed: {', '.join(fixed)}"
            raise ValidationError(msg)
        try:
            updated = dc.replace(self.page, **changes)
        except TypeError as exc:
            msg = f"Unknown page field among {', '.join(sorted(changes))}"
            raise ValidationError(msg) from exc
        saved = self._client.save_page(self.tenant_id, updated)
        self._page = saved
        logger.debug("Saved page %s (%s)", saved.id, saved.type_code)
        return saved

    def _schema(self, component_type: str) -> tuple[FieldDescriptor, ...] | None:
        schema = schema_for(self.catalog, component_type)
        if schema:
            return schema
        if component_type not in self._fetched_schemas:
            self._fetched_schemas[component_type] = self._client.get_component_schema(
                component_type
            )
        return self._fetched_schemas[component_type]

    def field_groups(self, instance: ComponentInstance) -> FieldGroups:
        """Return the editable fields of ``instance``, schema-first.

        A type the catalog snapshot has no schema for is looked up once per
        session on the collaborator before falling back to inference.
        """
        schema = self._schema(instance.type)
        if schema is None:
            logger.info(
                "No field schema for %s; inferring fields from its data", instance.type
            )
        return build_field_groups(settings_document(instance), schema)

    def _field(
        self, instance: ComponentInstance, path: cabc.Sequence[str]
    ) -> DynamicField:
        field = find_field(self.field_groups(instance), path)
        if field is None:
            joined = ".".join(path)
            msg = f"Component '{instance.type}' has no field at '{joined}'"
            raise NotFoundError(msg)
        return field

    def _replace_document(
        self, instance: ComponentInstance, document: dict[str, typ.Any]
    ) -> ComponentInstance:
        return self._save(dc.replace(instance, data=document))

    def edit_field(
        self, instance_id: str, path: cabc.Sequence[str], value: typ.Any
    ) -> ComponentInstance:
        """Write ``value`` to the field at ``path`` and save the whole document."""
        instance = self._instance(instance_id)
        field = self._field(instance, path)
        document = apply_field_edit(settings_document(instance), field, value)
        return self._replace_document(instance, document)

    def add_array_item(
        self, instance_id: str, path: cabc.Sequence[str]
    ) -> ComponentInstance:
        """Append a blank row to the array field at ``path``."""
        instance = self._instance(instance_id)
        field = self._field(instance, path)
        if field.kind is not FieldKind.ARRAY:
            msg = f"Field '{'.'.join(path)}' is not an array"
            raise NotFoundError(msg)
        document = append_item(settings_document(instance), field.path, row_template(field))
        return self._replace_document(instance, document)

    def remove_array_item(
        self, instance_id: str, path: cabc.Sequence[str], index: int
    ) -> ComponentInstance:
        """Drop row ``index`` from the array at ``path``."""
        instance = self._instance(instance_id)
        document = remove_item(settings_document(instance), tuple(path), index)
        return self._replace_document(instance, document)

    def edit_array_item(
        self,
        instance_id: str,
        path: cabc.Sequence[str],
        index: int,
        key: str,
        value: typ.Any,
    ) -> ComponentInstance:
        """Set ``key`` on row ``index`` of the array at ``path``."""
        instance = self._instance(instance_id)
        document = update_item(settings_document(instance), tuple(path), index, key, value)
        return self._replace_document(instance, document)

    def reorder(self, from_index: int, to_index: int) -> list[ComponentInstance]:
        """Move an instance and persist every instance whose order changed."""
        reordered, changed = assembler.reorder(self._instances, from_index, to_index)
        self._instances = reordered
        return [self._save(instance) for instance in changed]

    def set_active(self, instance_id: str, active: bool) -> ComponentInstance:
        """Show or hide an instance without deleting it."""
        self._instance(instance_id)
        updated_list, updated = assembler.set_active(self._instances, instance_id, active)
        self._instances = updated_list
        if updated is None:
            return self._instance(instance_id)
        return self._save(updated)

    def remove(self, instance_id: str) -> None:
        """Delete an instance from the collaborator and from the session."""
        self._instance(instance_id)
        self._client.delete_component(self.tenant_id, instance_id)
        self._instances = [item for item in self._instances if item.id != instance_id]


__all__ = ["PageEditor", "settings_document"]
