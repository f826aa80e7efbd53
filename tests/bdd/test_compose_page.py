"""Behaviour tests for composing pages with pytest-bdd.

These scenarios drive :class:`crm_pages.editor.PageEditor` against an
in-memory collaborator and check the scope rules and the field engine from
an operator's point of view.

Usage
-----
Run ``pytest tests/bdd/test_compose_page.py -v``.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from crm_pages.client import CollaboratorClient
from crm_pages.editor import PageEditor
from crm_pages.errors import ValidationError
from crm_pages.models import (
    ComponentCatalogEntry,
    ComponentInstance,
    FieldKind,
    Page,
    PageType,
    Scope,
    VariantInfo,
)

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "compose_page.feature"
)
scenarios(FEATURE_FILE)

ScenarioState = dict[str, typ.Any]


class MemoryClient(CollaboratorClient):
    """Collaborator double holding pages, catalog, and instances in memory."""

    def __init__(self) -> None:
        super().__init__()
        self.pages: dict[str, Page] = {}
        self.catalog: list[ComponentCatalogEntry] = []
        self.components: list[ComponentInstance] = []

    def get_page_types(self, tenant_id: str) -> list[PageType]:
        return [PageType(code="blog", name="Blog", route_pattern="/blog")]

    def get_page(self, tenant_id: str, id_or_code: str) -> Page | None:
        return self.pages.get(id_or_code)

    def get_component_catalog(self, tenant_id: str) -> list[ComponentCatalogEntry]:
        return list(self.catalog)

    def list_components_for_page(
        self, tenant_id: str, id_or_code: str
    ) -> list[ComponentInstance]:
        return list(self.components)

    def get_component_schema(self, component_type: str) -> None:
        return None

    def save_component(
        self, tenant_id: str, instance: ComponentInstance
    ) -> ComponentInstance:
        stored = dc.replace(instance, id=instance.id or f"c-{len(self.components) + 1}")
        self.components.append(stored)
        return stored


@pytest.fixture
def scenario_state() -> ScenarioState:
    """Share mutable scenario data across pytest-bdd steps."""
    return {"client": MemoryClient()}


def _client(state: ScenarioState) -> MemoryClient:
    return typ.cast("MemoryClient", state["client"])


@given(parsers.parse('a catalog with a single-variant "{component_type}" component'))
def given_catalog(scenario_state: ScenarioState, component_type: str) -> None:
    _client(scenario_state).catalog.append(
        ComponentCatalogEntry(
            type=component_type, variants=(VariantInfo("default", "Default"),)
        )
    )


@given(parsers.parse('a saved custom page "{page_id}"'))
def given_custom_page(scenario_state: ScenarioState, page_id: str) -> None:
    client = _client(scenario_state)
    client.pages[page_id] = Page(
        id=page_id, tenant_id="t-1", type_code="custom", title="Promo"
    )
    scenario_state["page_key"] = page_id


@given(parsers.parse('a blog page for tenant "{tenant_id}" that already shows a header'))
def given_blog_with_header(scenario_state: ScenarioState, tenant_id: str) -> None:
    client = _client(scenario_state)
    client.pages["blog"] = Page(
        id="p-blog", tenant_id=tenant_id, type_code="blog", title="Blog"
    )
    client.components.append(
        ComponentInstance(
            id="c-header",
            type="header",
            variant="default",
            scope=Scope.TENANT,
            tenant_id=tenant_id,
        )
    )
    scenario_state["page_key"] = "blog"
    scenario_state["tenant_id"] = tenant_id


@given(
    parsers.parse(
        'a blog page whose "{component_type}" component has no registered schema'
    )
)
def given_legacy_component(scenario_state: ScenarioState, component_type: str) -> None:
    client = _client(scenario_state)
    client.pages["blog"] = Page(id="p-blog", tenant_id="t-1", type_code="blog", title="Blog")
    client.components.append(
        ComponentInstance(
            id="c-legacy",
            type=component_type,
            variant="default",
            scope=Scope.PAGE_TYPE,
            page_type_code="blog",
            data={
                "titulo": "Opiniones",
                "imagen_fondo": "https://cdn.example.invalid/fondo.jpg",
                "mostrar_fotos": True,
            },
        )
    )
    scenario_state["page_key"] = "blog"


def _editor(state: ScenarioState) -> PageEditor:
    editor = PageEditor(_client(state), tenant_id=state.get("tenant_id", "t-1"))
    editor.load(state["page_key"])
    state["editor"] = editor
    return editor


@when(parsers.parse('I add a "{component_type}" component to the page'))
def when_add_component(scenario_state: ScenarioState, component_type: str) -> None:
    scenario_state["result"] = _editor(scenario_state).add_component(component_type)


@when(parsers.parse('I try to add a "{component_type}" component to the page'))
def when_try_add_component(scenario_state: ScenarioState, component_type: str) -> None:
    editor = _editor(scenario_state)
    with pytest.raises(ValidationError) as excinfo:
        editor.add_component(component_type)
    scenario_state["error"] = excinfo.value


@when("I open the component's fields")
def when_open_fields(scenario_state: ScenarioState) -> None:
    editor = _editor(scenario_state)
    scenario_state["groups"] = editor.field_groups(editor.instances[0])


@then(parsers.parse('the new component has scope "{scope}"'))
def then_scope(scenario_state: ScenarioState, scope: str) -> None:
    result = typ.cast("ComponentInstance", scenario_state["result"])
    assert result.scope == Scope(scope), f"expected scope {scope}, got {result.scope}"


@then(parsers.parse('the new component is attached to page "{page_id}" only'))
def then_attached_to_page(scenario_state: ScenarioState, page_id: str) -> None:
    result = typ.cast("ComponentInstance", scenario_state["result"])
    assert result.page_id == page_id
    assert result.page_type_code is None, "expected no page type discriminator"


@then(
    parsers.parse('the request is rejected naming "{component_type}" and tenant "{tenant_id}"')
)
def then_rejected(
    scenario_state: ScenarioState, component_type: str, tenant_id: str
) -> None:
    error = typ.cast("ValidationError", scenario_state["error"])
    assert component_type in str(error) and tenant_id in str(error), (
        f"expected the error to name {component_type!r} and {tenant_id!r}: {error}"
    )
    saved_headers = [
        item for item in _client(scenario_state).components if item.type == "header"
    ]
    assert len(saved_headers) == 1, "expected no second header to be saved"


@then(parsers.parse('the editor lists the fields "{labels}"'))
def then_lists_fields(scenario_state: ScenarioState, labels: str) -> None:
    groups = scenario_state["groups"]
    expected = [label.strip() for label in labels.split(",")]
    actual = [field.label for field in groups.static_fields]
    assert actual == expected, f"expected {expected!r}, got {actual!r}"


@then(parsers.parse('the field "{label}" is an image field'))
def then_image_field(scenario_state: ScenarioState, label: str) -> None:
    groups = scenario_state["groups"]
    field = next(item for item in groups.static_fields if item.label == label)
    assert field.kind is FieldKind.IMAGE
