"""Structural queries over the page-type catalog.

Page types form a forest: ``blog`` is a root, ``articulo_single`` (route
``/blog/:slug``) hangs under it, and feature-gated deep routes such as
``articulo_categoria`` hang one level lower. The catalog is seeded once per
deployment and is read-only here; every function in this module is pure.

Examples
--------
>>> from crm_pages.models import PageType
>>> from crm_pages.page_types import resolve_hierarchy
>>> roots = resolve_hierarchy([
...     PageType(code="videos", name="Videos"),
...     PageType(code="videos-categoria", name="Categoria", level=1),
... ])
>>> [node.page_type.code for node in roots]
['videos']
>>> [child.page_type.code for child in roots[0].children]
['videos-categoria']
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc

from .models import PageType


@dc.dataclass(slots=True)
class PageTypeNode:
    """A page type together with its child page types."""

    page_type: PageType
    children: list[PageTypeNode] = dc.field(default_factory=list)

    @property
    def code(self) -> str:
        return self.page_type.code


def _parent_code(entry: PageType, known: cabc.Container[str]) -> str | None:
    """Return the code ``entry`` nests under, or None for roots.

    An explicit parent wins when it exists in the catalog. Otherwise a code
    of the form ``X-Y`` nests under ``X`` when ``X`` exists.
    """
    if entry.parent_code and entry.parent_code in known and entry.parent_code != entry.code:
        return entry.parent_code
    if "-" in entry.code:
        prefix = entry.code.split("-", 1)[0]
        if prefix and prefix != entry.code and prefix in known:
            return prefix
    return None


def resolve_hierarchy(entries: cabc.Iterable[PageType]) -> list[PageTypeNode]:
    """Build parent/child trees from a flat list of page types.

    Sibling order follows input order. Entries whose parent cannot be found
    become roots; a parent chain that loops back on itself is broken at the
    first entry that would close the cycle, which is then kept as a root.
    """
    ordered = list(entries)
    nodes = {entry.code: PageTypeNode(entry) for entry in ordered}
    parents = {entry.code: _parent_code(entry, nodes) for entry in ordered}

    roots: list[PageTypeNode] = []
    for entry in ordered:
        node = nodes[entry.code]
        parent = parents[entry.code]
        if parent is None or _closes_cycle(entry.code, parents):
            roots.append(node)
            parents[entry.code] = None
            continue
        nodes[parent].children.append(node)
    return roots


def _closes_cycle(code: str, parents: cabc.Mapping[str, str | None]) -> bool:
    seen = {code}
    current = parents.get(code)
    while current is not None:
        if current in seen:
            return True
        seen.add(current)
        current = parents.get(current)
    return False


def is_available(entry: PageType, tenant_features: cabc.Collection[str]) -> bool:
    """Return False iff ``entry`` needs a feature the tenant does not have."""
    if not entry.required_feature:
        return True
    return entry.required_feature in tenant_features


def available_page_types(
    entries: cabc.Iterable[PageType], tenant_features: cabc.Collection[str]
) -> list[PageType]:
    """Return the entries selectable by a tenant with ``tenant_features``."""
    return [entry for entry in entries if is_available(entry, tenant_features)]


def iter_tree(
    roots: cabc.Sequence[PageTypeNode],
) -> cabc.Iterator[tuple[int, PageTypeNode]]:
    """Yield ``(depth, node)`` pairs depth-first, parents before children."""
    stack = [(0, node) for node in reversed(roots)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        stack.extend((depth + 1, child) for child in reversed(node.children))


def level_violations(entries: cabc.Iterable[PageType]) -> list[str]:
    """Describe entries whose ``level`` disagrees with their place in the tree.

    Roots must have level 0 and every child must sit exactly one level below
    its parent. The catalog is never modified; callers decide whether to
    warn or ignore.
    """
    problems: list[str] = []
    for depth, node in iter_tree(resolve_hierarchy(entries)):
        if node.page_type.level != depth:
            problems.append(
                f"Page type '{node.code}' declares level {node.page_type.level} "
                f"but sits at depth {depth}"
            )
    return problems


__all__ = [
    "PageTypeNode",
    "available_page_types",
    "is_available",
    "iter_tree",
    "level_violations",
    "resolve_hierarchy",
]
