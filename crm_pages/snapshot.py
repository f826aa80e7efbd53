"""Refresh the local catalog snapshot from the collaborator.

The snapshot YAML (``config/catalog.yaml`` by default) lets the developer
CLI resolve page-type trees, field schemas, and scopes offline. Refreshing
fetches the page-type and component catalogs for a tenant and rewrites the
``page_types`` and ``components`` keys in place, keeping comments and any
other top-level keys intact.

Example
-------
.. code-block:: python

    from pathlib import Path
    from crm_pages.client import CollaboratorClient
    from crm_pages.snapshot import refresh_catalog_snapshot

    client = CollaboratorClient(api_base="https://crm.example.com/api", token="secret")
    counts = refresh_catalog_snapshot(
        snapshot_path=Path("config/catalog.yaml"), client=client, tenant_id="demo"
    )
    print(counts["components"])

"""

from __future__ import annotations

import logging
import typing as typ

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from .errors import SettingsError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .client import CollaboratorClient

logger = logging.getLogger(__name__)


def refresh_catalog_snapshot(
    *, snapshot_path: Path, client: CollaboratorClient, tenant_id: str
) -> dict[str, int]:
    """Fetch both catalogs for ``tenant_id`` and write them to ``snapshot_path``.

    A missing file is created. Returns the number of page types and
    components written, keyed ``page_types`` and ``components``.
    """
    yaml = _build_roundtrip_yaml()
    if snapshot_path.exists():
        with snapshot_path.open("r", encoding="utf-8") as handle:
            document = yaml.load(handle) or CommentedMap()
    else:
        document = CommentedMap()
    if not isinstance(document, CommentedMap):
        msg = f"Top-level structure of '{snapshot_path}' must be a mapping"
        raise SettingsError(msg)

    page_types = client.get_page_types(tenant_id)
    components = client.get_component_catalog(tenant_id)

    document["tenant"] = tenant_id
    document["page_types"] = [page_type.to_payload() for page_type in page_types]
    document["components"] = [entry.to_payload() for entry in components]

    snapshot_path.parent.mkdir(parents=True, exist_ok=True)
    with snapshot_path.open("w", encoding="utf-8") as handle:
        yaml.dump(document, handle)

    logger.info(
        "Wrote %d page types and %d components to %s",
        len(page_types),
        len(components),
        snapshot_path,
    )
    return {"page_types": len(page_types), "components": len(components)}


def _build_roundtrip_yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 120
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


__all__ = ["refresh_catalog_snapshot"]
