"""Unit tests for page-type hierarchy queries."""

from __future__ import annotations

import pytest

from crm_pages.models import PageType
from crm_pages.page_types import (
    available_page_types,
    is_available,
    iter_tree,
    level_violations,
    resolve_hierarchy,
)


@pytest.fixture
def catalog() -> list[PageType]:
    return [
        PageType(code="homepage", name="Inicio", route_pattern="/"),
        PageType(code="blog", name="Blog", route_pattern="/blog"),
        PageType(
            code="articulo_single",
            name="Artículo",
            route_pattern="/blog/:slug",
            parent_code="blog",
            level=1,
            is_template=True,
        ),
        PageType(
            code="articulo_categoria",
            name="Categoría",
            route_pattern="/blog/categoria/:slug",
            parent_code="articulo_single",
            level=2,
            required_feature="blog_categorias",
        ),
        PageType(code="videos", name="Videos", route_pattern="/videos"),
        PageType(code="videos-categoria", name="Categoría de videos", level=1),
    ]


def _codes(nodes: list) -> list[str]:
    return [node.code for node in nodes]


def test_resolve_hierarchy_nests_children_in_input_order(
    catalog: list[PageType],
) -> None:
    roots = resolve_hierarchy(catalog)

    assert _codes(roots) == ["homepage", "blog", "videos"], (
        f"unexpected roots {_codes(roots)!r}"
    )
    blog = roots[1]
    assert _codes(blog.children) == ["articulo_single"]
    assert _codes(blog.children[0].children) == ["articulo_categoria"]


def test_hyphenated_codes_nest_under_their_prefix(catalog: list[PageType]) -> None:
    videos = resolve_hierarchy(catalog)[2]
    assert _codes(videos.children) == ["videos-categoria"], (
        "expected 'videos-categoria' to nest under 'videos' without rutaPadre"
    )


def test_unknown_parent_becomes_root() -> None:
    roots = resolve_hierarchy(
        [PageType(code="huerfano", name="Huérfano", parent_code="desconocido")]
    )
    assert _codes(roots) == ["huerfano"]


def test_parent_cycles_are_broken() -> None:
    roots = resolve_hierarchy(
        [
            PageType(code="a", name="A", parent_code="b"),
            PageType(code="b", name="B", parent_code="a"),
        ]
    )
    assert _codes(roots) == ["a"], "expected the cycle to be broken at the first entry"
    assert _codes(roots[0].children) == ["b"]


def test_iter_tree_yields_depth_first(catalog: list[PageType]) -> None:
    visited = [(depth, node.code) for depth, node in iter_tree(resolve_hierarchy(catalog))]
    assert visited == [
        (0, "homepage"),
        (0, "blog"),
        (1, "articulo_single"),
        (2, "articulo_categoria"),
        (0, "videos"),
        (1, "videos-categoria"),
    ]


def test_feature_gating(catalog: list[PageType]) -> None:
    gated = catalog[3]
    assert not is_available(gated, set()), "expected gated type to be unavailable"
    assert is_available(gated, {"blog_categorias"})
    assert is_available(catalog[0], set()), "expected ungated type to be available"

    available = [entry.code for entry in available_page_types(catalog, {"otro"})]
    assert "articulo_categoria" not in available
    assert len(available) == len(catalog) - 1


def test_level_violations_report_mismatches(catalog: list[PageType]) -> None:
    assert level_violations(catalog) == []

    broken = [*catalog, PageType(code="blog-archivo", name="Archivo", level=3)]
    problems = level_violations(broken)
    assert len(problems) == 1, f"expected one violation, got {problems!r}"
    assert "blog-archivo" in problems[0]
