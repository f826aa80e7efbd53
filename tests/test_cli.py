"""Tests for the ``pages`` developer commands."""

from __future__ import annotations

import json
import typing as typ
from textwrap import dedent

import pytest

from crm_pages import cli
from crm_pages.errors import SettingsError, ValidationError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


@pytest.fixture
def catalog_file(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.yaml"
    path.write_text(
        dedent(
            """
            page_types:
              - codigo: homepage
                nombre: Inicio
                rutaPatron: /
              - codigo: blog
                nombre: Blog
                rutaPatron: /blog
              - codigo: articulo_single
                nombre: Artículo
                rutaPatron: /blog/:slug
                rutaPadre: blog
                nivel: 1
              - codigo: blog-categoria
                nombre: Categoría
                rutaPatron: /blog/categoria/:slug
                nivel: 1
                featureRequerido: blog_categorias
            components:
              - tipo: hero
                variantes: [default]
                schema_config:
                  campos:
                    - nombre: titulo
                      label: Título
                      tipo: text
                  toggles:
                    - nombre: mostrar_buscador
                      label: Mostrar buscador
                      default: true
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def settings_file(tmp_path: Path, catalog_file: Path) -> Path:
    path = tmp_path / "crm_pages.yaml"
    path.write_text(
        dedent(
            f"""
            api:
              base_url: https://crm.example.invalid/api
              token: secret
            tenant:
              id: demo
              features: [blog_categorias]
            catalog:
              snapshot: {catalog_file.name}
            """
        ).strip()
        + "\n",
        encoding="utf-8",
    )
    return path


def test_tree_prints_indented_hierarchy(
    tmp_path: Path, catalog_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.tree(config=tmp_path / "absent.yaml", catalog=catalog_file, features="")

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "homepage  /",
        "blog  /blog",
        "  articulo_single  /blog/:slug (template)",
        "  blog-categoria  /blog/categoria/:slug (template, locked: blog_categorias)",
    ], f"unexpected tree output {lines!r}"


def test_tree_uses_configured_features(
    settings_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.tree(config=settings_file)

    output = capsys.readouterr().out
    assert "locked" not in output, "expected configured features to unlock types"


def test_fields_infers_without_component_type(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    document = tmp_path / "hero.json"
    document.write_text(
        json.dumps({"titulo_principal": "Hola", "items": [{"imagen": "a.jpg"}]}),
        encoding="utf-8",
    )

    cli.fields(document, config=tmp_path / "absent.yaml")

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "source: inference"
    assert "  Titulo Principal [text] static_data.titulo_principal = 'Hola'" in lines
    assert "  Items [array] static_data.items" in lines
    assert "    Imagen [image] static_data.items.0.imagen = 'a.jpg'" in lines


def test_fields_uses_schema_when_registered(
    tmp_path: Path, settings_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    document = tmp_path / "hero.json"
    document.write_text(
        json.dumps({"static_data": {"titulo": "Hola", "otro": 1}}), encoding="utf-8"
    )

    cli.fields(document, component_type="hero", config=settings_file)

    output = capsys.readouterr().out
    assert output.startswith("source: schema")
    assert "Título [text] static_data.titulo = 'Hola'" in output
    assert "Mostrar buscador [boolean] toggles.mostrar_buscador = True" in output
    assert "otro" not in output


def test_scope_command(capsys: pytest.CaptureFixture[str]) -> None:
    cli.scope("hero", "blog")
    assert capsys.readouterr().out.splitlines() == ["scope: page_type", "page_type: blog"]

    cli.scope("footer", "blog")
    assert capsys.readouterr().out.splitlines() == ["scope: tenant"]

    cli.scope("hero", "custom", page_id="p-1")
    assert capsys.readouterr().out.splitlines() == ["scope: page", "page_id: p-1"]


def test_scope_command_rejects_unsaved_custom_page() -> None:
    with pytest.raises(ValidationError):
        cli.scope("hero", "custom")


def test_snapshot_command_refreshes_configured_path(
    mocker: MockerFixture,
    settings_file: Path,
    catalog_file: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    mocker.patch.object(cli, "setup_logging")
    refresh = mocker.patch.object(
        cli, "refresh_catalog_snapshot", return_value={"page_types": 4, "components": 1}
    )

    cli.snapshot(config=settings_file)

    kwargs = refresh.call_args.kwargs
    assert kwargs["snapshot_path"] == catalog_file
    assert kwargs["tenant_id"] == "demo"
    assert kwargs["client"].api_base == "https://crm.example.invalid/api"
    assert "4 page types, 1 components" in capsys.readouterr().out


def test_snapshot_command_requires_a_target(
    mocker: MockerFixture, tmp_path: Path
) -> None:
    mocker.patch.object(cli, "setup_logging")
    config = tmp_path / "crm_pages.yaml"
    config.write_text("tenant:\n  id: demo\n", encoding="utf-8")

    with pytest.raises(SettingsError, match="--catalog"):
        cli.snapshot(config=config)
