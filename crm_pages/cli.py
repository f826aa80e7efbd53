"""Cyclopts CLI entrypoint for inspecting and refreshing page-composition data.

The ``pages`` console script is developer tooling around the composition
engine. It prints the page-type hierarchy and component field trees from a
local catalog snapshot, explains which scope a component would receive, and
refreshes that snapshot from the collaborator API.

Examples
--------
Print the page-type tree for a tenant with the ``blog`` feature:

>>> from crm_pages.cli import app
>>> app.run(["tree", "--features", "blog"])  # doctest: +SKIP

Show the editable fields of a stored hero document:

>>> app.run(["fields", "hero.json", "--component-type", "hero"])  # doctest: +SKIP
"""

from __future__ import annotations

import json
import os
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import CUSTOM_PAGE_TYPE
from .catalog import schema_for
from .client import CollaboratorClient
from .config import load_catalog_snapshot, load_settings
from .config.helpers import DEFAULT_CONFIG_PATH, _parse_features
from .documents import normalize_document
from .errors import SettingsError
from .fields import build_field_groups, walk_fields
from .logs import setup_logging
from .models import Page
from .page_types import is_available, iter_tree, resolve_hierarchy
from .scope import resolve_scope
from .snapshot import refresh_catalog_snapshot

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import DynamicField

app = App(name="pages", config=cyclopts.config.Env("CRM_PAGES_", command=False))  # type: ignore[unknown-argument]


def _catalog_path(config: Path, catalog: Path | None) -> Path:
    """Return the snapshot path from ``--catalog`` or the settings file."""
    if catalog is not None:
        return catalog
    settings = load_settings(config)
    if settings.catalog_path is None:
        msg = f"No catalog snapshot configured in '{config}'; pass --catalog."
        raise SettingsError(msg)
    return settings.catalog_path


def _format_field(depth: int, field: DynamicField) -> str:
    indent = "  " * depth
    line = f"{indent}{field.label} [{field.kind}] {'.'.join(field.path)}"
    if field.children:
        return line
    return f"{line} = {field.value!r}"


def _field_lines(
    fields: cabc.Sequence[DynamicField], depth: int = 0
) -> cabc.Iterator[str]:
    for field in fields:
        yield _format_field(depth, field)
        yield from _field_lines(field.children, depth + 1)


@app.command(help="Print the page-type hierarchy from the catalog snapshot.")
def tree(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to crm_pages settings")
    ] = DEFAULT_CONFIG_PATH,
    catalog: typ.Annotated[
        Path | None, Parameter(help="Catalog snapshot (overrides settings)")
    ] = None,
    features: typ.Annotated[
        str | None,
        Parameter(help="Comma-separated tenant features used to flag locked types"),
    ] = None,
) -> None:
    """Print each page type indented under its parent.

    Types gated behind a feature the tenant lacks are marked ``locked``.
    When ``features`` is omitted the tenant's configured features are used.
    """
    snapshot = load_catalog_snapshot(_catalog_path(config, catalog))
    if features is None and config.exists():
        tenant_features = load_settings(config).tenant.features
    else:
        tenant_features = _parse_features(features)

    for depth, node in iter_tree(resolve_hierarchy(snapshot.page_types)):
        page_type = node.page_type
        route = page_type.route_pattern or "-"
        markers = []
        if page_type.is_template:
            markers.append("template")
        if not is_available(page_type, tenant_features):
            markers.append(f"locked: {page_type.required_feature}")
        suffix = f" ({', '.join(markers)})" if markers else ""
        print(f"{'  ' * depth}{page_type.code}  {route}{suffix}")


@app.command(help="Print the editable field tree of a component settings document.")
def fields(
    document: typ.Annotated[Path, Parameter(help="JSON file with the settings")],
    *,
    component_type: typ.Annotated[
        str | None, Parameter(help="Component type used to look up a schema")
    ] = None,
    config: typ.Annotated[
        Path, Parameter(help="Path to crm_pages settings")
    ] = DEFAULT_CONFIG_PATH,
    catalog: typ.Annotated[
        Path | None, Parameter(help="Catalog snapshot (overrides settings)")
    ] = None,
) -> None:
    """Print the static, toggle, and style fields derived from ``document``.

    A registered schema for ``component_type`` takes precedence; without
    one the fields are inferred from the document itself.
    """
    with document.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    settings = normalize_document(raw)

    schema = None
    if component_type is not None:
        snapshot = load_catalog_snapshot(_catalog_path(config, catalog))
        schema = schema_for(snapshot, component_type)

    groups = build_field_groups(settings, schema)
    print(f"source: {groups.source}")
    for title, group in (
        ("static", groups.static_fields),
        ("toggles", groups.toggle_fields),
        ("styles", groups.style_fields),
    ):
        if not group:
            continue
        print(f"{title}:")
        for line in _field_lines(group, depth=1):
            print(line)
    total = sum(1 for _ in walk_fields(groups.static_fields))
    print(f"{total} static field(s)")


@app.command(help="Explain which scope a new component would receive.")
def scope(
    component_type: typ.Annotated[str, Parameter(help="Component type, e.g. hero")],
    page_type: typ.Annotated[
        str, Parameter(help="Page type code of the page being edited")
    ] = CUSTOM_PAGE_TYPE,
    *,
    page_id: typ.Annotated[
        str | None, Parameter(help="Page id (required for custom pages)")
    ] = None,
    tenant: typ.Annotated[str, Parameter(help="Tenant id")] = "tenant",
) -> None:
    """Print the scope and discriminator ``component_type`` would be saved with."""
    page = Page(id=page_id, tenant_id=tenant, type_code=page_type, title=page_type)
    assignment = resolve_scope(component_type, page)
    print(f"scope: {assignment.scope}")
    if assignment.page_type_code:
        print(f"page_type: {assignment.page_type_code}")
    if assignment.page_id:
        print(f"page_id: {assignment.page_id}")


@app.command(help="Refresh the catalog snapshot from the collaborator API.")
def snapshot(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to crm_pages settings")
    ] = DEFAULT_CONFIG_PATH,
    catalog: typ.Annotated[
        Path | None, Parameter(help="Catalog snapshot (overrides settings)")
    ] = None,
) -> None:
    """Fetch page types and components for the configured tenant and save them."""
    settings = load_settings(config)
    setup_logging(settings.log_level)
    target = catalog or settings.catalog_path
    if target is None:
        msg = f"No catalog snapshot configured in '{config}'; pass --catalog."
        raise SettingsError(msg)
    client = CollaboratorClient(
        api_base=settings.api.base_url,
        token=settings.api.token,
        timeout=settings.api.timeout,
    )
    counts = refresh_catalog_snapshot(
        snapshot_path=target, client=client, tenant_id=settings.require_tenant()
    )
    print(
        f"wrote {target}: {counts['page_types']} page types, "
        f"{counts['components']} components"
    )


def main() -> None:
    """Invoke the Cyclopts application behind the ``pages`` console command."""
    setup_logging(os.environ.get("CRM_PAGES_LOG_LEVEL", "WARNING"))
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
