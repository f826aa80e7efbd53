"""Unit tests for the dynamic field engine."""

from __future__ import annotations

import typing as typ

import pytest

from crm_pages import fields as field_engine
from crm_pages.fields import (
    apply_field_edit,
    build_field_groups,
    canonical_path,
    find_field,
    infer_fields,
    infer_kind,
    key_to_label,
    row_template,
)
from crm_pages.models import (
    DynamicField,
    FieldDescriptor,
    FieldKind,
    FieldOption,
)

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


def test_inference_of_plain_text_field() -> None:
    """A short string under static_data becomes one text field."""
    groups = build_field_groups({"static_data": {"titulo_principal": "Hola"}})

    assert groups.source == "inference"
    assert groups.static_fields == (
        DynamicField(
            key="titulo_principal",
            label="Titulo Principal",
            kind=FieldKind.TEXT,
            value="Hola",
            path=("static_data", "titulo_principal"),
        ),
    ), f"unexpected fields {groups.static_fields!r}"


def test_key_heuristic_beats_value_type() -> None:
    """An image-like key is an image field even though its value is a string."""
    groups = build_field_groups({"static_data": {"imagen_fondo": "http://x"}})
    (field,) = groups.static_fields
    assert field.kind is FieldKind.IMAGE, f"expected image kind, got {field.kind!r}"


def test_array_inference_inspects_only_first_element() -> None:
    document = {"static_data": {"items": [{"titulo": "A"}, {"titulo": "B", "extra": 1}]}}
    (items,) = build_field_groups(document).static_fields

    assert items.kind is FieldKind.ARRAY
    assert [child.key for child in items.children] == ["titulo"], (
        "expected only keys of the first element to produce children"
    )
    assert items.children[0].path == ("static_data", "items", "0", "titulo")
    assert items.children[0].value == "A"


@pytest.mark.parametrize(
    ("key", "value", "expected"),
    [
        ("foto_perfil", None, FieldKind.IMAGE),
        ("link_whatsapp", "", FieldKind.URL),
        ("enlace", 3, FieldKind.URL),
        ("descripcion_corta", "x", FieldKind.TEXTAREA),
        ("mostrar", True, FieldKind.BOOLEAN),
        ("cantidad", 4, FieldKind.NUMBER),
        ("precio", 1.5, FieldKind.NUMBER),
        ("resumen", "x" * 101, FieldKind.TEXTAREA),
        ("resumen", "x" * 100, FieldKind.TEXT),
        ("tags", ["a"], FieldKind.ARRAY),
        ("cta", {"texto": "Ver"}, FieldKind.OBJECT),
        ("vacio", None, FieldKind.TEXT),
    ],
)
def test_infer_kind_rules(key: str, value: object, expected: FieldKind) -> None:
    assert infer_kind(key, value) is expected, (
        f"expected {expected} for {key!r}={value!r}"
    )


def test_key_to_label_capitalises_each_segment() -> None:
    assert key_to_label("titulo_principal") == "Titulo Principal"
    assert key_to_label("cta") == "Cta"


def test_objects_are_walked_recursively() -> None:
    document = {"cta": {"texto": "Ver", "destino": {"url": "/x"}}}
    (cta,) = infer_fields(document, ("static_data",))

    assert cta.kind is FieldKind.OBJECT
    destino = cta.children[1]
    assert destino.path == ("static_data", "cta", "destino")
    assert destino.children[0].path == ("static_data", "cta", "destino", "url")
    assert destino.children[0].kind is FieldKind.URL


def test_inference_handles_very_deep_documents() -> None:
    """Depth is not bounded by the interpreter's recursion limit."""
    depth = 3000
    document: dict[str, object] = {"leaf": "fin"}
    for _ in range(depth):
        document = {"nivel": document}

    fields = infer_fields(document)
    node = fields[0]
    levels = 1
    while node.children:
        node = node.children[0]
        levels += 1
    assert levels == depth + 1, f"expected {depth + 1} nested fields, got {levels}"


def test_empty_arrays_and_scalar_arrays_have_no_children() -> None:
    groups = build_field_groups({"static_data": {"items": [], "tags": ["a", "b"]}})
    assert all(not field.children for field in groups.static_fields)


def test_inference_covers_toggles_and_styles() -> None:
    groups = build_field_groups(
        {
            "static_data": {"titulo": "Hola"},
            "toggles": {"mostrar_precio": False},
            "styles": {"color_fondo": "#000"},
        }
    )
    assert [field.path for field in groups.toggle_fields] == [
        ("toggles", "mostrar_precio")
    ]
    assert [field.path for field in groups.style_fields] == [("styles", "color_fondo")]


@pytest.fixture
def hero_schema() -> tuple[FieldDescriptor, ...]:
    return (
        FieldDescriptor(name="titulo", kind=FieldKind.TEXT, label="Título", default=""),
        FieldDescriptor(
            name="alineacion",
            kind=FieldKind.SELECT,
            label="Alineación",
            default="centro",
            options=(FieldOption("izquierda", "Izquierda"), FieldOption("centro", "Centro")),
        ),
        FieldDescriptor(
            name="slides",
            kind=FieldKind.ARRAY,
            label="Slides",
            array_item_schema=(
                FieldDescriptor(name="imagen", kind=FieldKind.IMAGE, label="Imagen"),
                FieldDescriptor(name="texto", kind=FieldKind.TEXT, default="Nuevo"),
            ),
        ),
        FieldDescriptor(
            name="mostrar_buscador", label="Mostrar buscador", default=True, is_toggle=True
        ),
    )


def test_schema_first_never_runs_inference(
    mocker: MockerFixture, hero_schema: tuple[FieldDescriptor, ...]
) -> None:
    """With a schema, labels and kinds come only from the schema."""
    spy = mocker.patch.object(field_engine, "infer_fields")
    document = {"static_data": {"titulo": "Hola", "imagen_fondo": "x.jpg"}}

    groups = build_field_groups(document, hero_schema)

    spy.assert_not_called()
    assert groups.source == "schema"
    assert [field.key for field in groups.static_fields] == [
        "titulo",
        "alineacion",
        "slides",
    ], "expected schema order and no extra inferred keys"
    assert groups.static_fields[0].label == "Título"
    assert groups.static_fields[0].value == "Hola"
    assert groups.style_fields == ()


def test_schema_values_fall_back_to_defaults(
    hero_schema: tuple[FieldDescriptor, ...],
) -> None:
    groups = build_field_groups({"static_data": {}}, hero_schema)
    alineacion = groups.static_fields[1]
    assert alineacion.value == "centro"
    assert [option.value for option in alineacion.options] == ["izquierda", "centro"]

    slides = groups.static_fields[2]
    assert [child.path for child in slides.children] == [
        ("static_data", "slides", "0", "imagen"),
        ("static_data", "slides", "0", "texto"),
    ]
    assert slides.children[1].value == "Nuevo"


def test_schema_toggles_read_toggles_then_static_data(
    hero_schema: tuple[FieldDescriptor, ...],
) -> None:
    legacy = build_field_groups(
        {"static_data": {"mostrar_buscador": False}}, hero_schema
    )
    (toggle,) = legacy.toggle_fields
    assert toggle.value is False, "expected legacy static flag to be honoured"
    assert toggle.path == ("toggles", "mostrar_buscador")

    current = build_field_groups(
        {"static_data": {"mostrar_buscador": False}, "toggles": {"mostrar_buscador": True}},
        hero_schema,
    )
    assert current.toggle_fields[0].value is True

    default = build_field_groups({}, hero_schema)
    assert default.toggle_fields[0].value is True


def test_top_level_flags_are_written_under_toggles() -> None:
    """A flag found under static_data is canonicalised into toggles on edit."""
    document = {"static_data": {"mostrar_mapa": True, "titulo": "Hola"}}
    groups = build_field_groups(document)
    flag = find_field(groups, ("static_data", "mostrar_mapa"))
    assert flag is not None

    assert canonical_path(flag) == ("toggles", "mostrar_mapa")
    updated = apply_field_edit(document, flag, False)
    assert updated["toggles"] == {"mostrar_mapa": False}
    assert document == {"static_data": {"mostrar_mapa": True, "titulo": "Hola"}}


def test_edited_static_flag_reads_back_from_toggles() -> None:
    document = {"static_data": {"mostrar_boton": True, "titulo": "Hola"}}
    flag = find_field(build_field_groups(document), ("static_data", "mostrar_boton"))
    assert flag is not None

    updated = apply_field_edit(document, flag, False)
    groups = build_field_groups(updated)

    again = find_field(groups, ("static_data", "mostrar_boton"))
    assert again is not None
    assert again.value is False, "expected the edited value to be shown"
    assert groups.toggle_fields == (), "expected the flag to be listed only once"


def test_inference_keeps_unrelated_toggles() -> None:
    groups = build_field_groups(
        {
            "static_data": {"mostrar_mapa": True},
            "toggles": {"mostrar_mapa": True, "mostrar_precio": False},
        }
    )
    assert [field.key for field in groups.toggle_fields] == ["mostrar_precio"]


def test_unset_image_keys_are_still_image_fields() -> None:
    (field,) = build_field_groups({"static_data": {"imagen_fondo": None}}).static_fields
    assert field.kind is FieldKind.IMAGE, "expected key rules to run before the value check"
    assert field.value is None


def test_nested_booleans_stay_in_place() -> None:
    document = {"static_data": {"cta": {"visible": True}}}
    field = find_field(build_field_groups(document), ("static_data", "cta", "visible"))
    assert field is not None
    assert canonical_path(field) == ("static_data", "cta", "visible")


def test_field_groups_are_idempotent(hero_schema: tuple[FieldDescriptor, ...]) -> None:
    document = {"static_data": {"titulo": "Hola", "items": [{"a": 1}]}}
    assert build_field_groups(document) == build_field_groups(document)
    assert build_field_groups(document, hero_schema) == build_field_groups(
        document, hero_schema
    )


def test_row_template_blanks_known_keys() -> None:
    (items,) = build_field_groups(
        {"static_data": {"items": [{"titulo": "A", "imagen": "a.jpg"}]}}
    ).static_fields
    assert row_template(items) == {"titulo": "", "imagen": ""}

    (tags,) = build_field_groups({"static_data": {"tags": ["x"]}}).static_fields
    assert row_template(tags) == ""
