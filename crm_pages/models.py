"""Typed dataclasses describing pages, page types, and component placements.

Every entity mirrors a JSON document exchanged with the CRM collaborator
API. The collaborator speaks camelCase Spanish keys (``codigo``,
``tipoPagina``, ``variante``, ...); each model therefore offers a
``from_payload`` constructor and a ``to_payload`` serializer so the rest of
the package only ever handles Python attribute names.

Examples
--------
>>> from crm_pages.models import PageType
>>> blog = PageType.from_payload({"codigo": "blog", "nombre": "Blog"})
>>> blog.level, blog.parent_code
(0, None)
>>> PageType.from_payload({"codigo": "articulo", "rutaPatron": "/blog/:slug"}).is_template
True
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt  # noqa: TC003 - used for runtime type metadata
import enum
import typing as typ

from ._coerce import (
    _as_bool,
    _as_int,
    _as_mapping,
    _coerce_str,
    _optional_str,
    _parse_timestamp,
    _require,
)
from ._constants import CUSTOM_PAGE_TYPE, STATIC_BRANCH, TOGGLES_BRANCH
from .errors import PayloadError


class Scope(enum.StrEnum):
    """Attachment level of a component instance."""

    TENANT = "tenant"
    PAGE_TYPE = "page_type"
    PAGE = "page"


class FieldKind(enum.StrEnum):
    """Editor widget kinds a dynamic field can take."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    BOOLEAN = "boolean"
    IMAGE = "image"
    URL = "url"
    SELECT = "select"
    ARRAY = "array"
    OBJECT = "object"

    @classmethod
    def parse(cls, value: object) -> FieldKind:
        """Return the kind named by ``value``, defaulting to ``TEXT``.

        Catalog schemas occasionally declare widget kinds the editor has no
        dedicated control for (``color``, ``richtext``); those fall back to
        plain text.
        """
        text = _optional_str(value)
        if text is None:
            return cls.TEXT
        try:
            return cls(text.lower())
        except ValueError:
            return cls.TEXT


@dc.dataclass(slots=True, frozen=True)
class PageType:
    """A class of page from the system catalog."""

    code: str
    name: str
    route_pattern: str | None = None
    parent_code: str | None = None
    level: int = 0
    is_template: bool = False
    is_protected: bool = False
    requires_slug: bool = False
    required_feature: str | None = None
    description: str | None = None
    data_source: str | None = None

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> PageType:
        """Build a PageType from a collaborator ``tipos-pagina`` entry."""
        code = _require(payload, "codigo", "PageType")
        route = _optional_str(payload.get("rutaPatron"))
        template_flag = payload.get("esPlantilla")
        if template_flag is None:
            is_template = bool(route and ":" in route)
        else:
            is_template = _as_bool(template_flag)
        return cls(
            code=code,
            name=_optional_str(payload.get("nombre")) or code,
            route_pattern=route,
            parent_code=_optional_str(payload.get("rutaPadre")),
            level=_as_int(payload.get("nivel"), 0),
            is_template=is_template,
            is_protected=_as_bool(payload.get("protegida")),
            requires_slug=_as_bool(payload.get("requiereSlug")),
            required_feature=_optional_str(payload.get("featureRequerido")),
            description=_optional_str(payload.get("descripcion")),
            data_source=_optional_str(payload.get("fuenteDatos")),
        )

    def to_payload(self) -> dict[str, typ.Any]:
        """Serialize back into the collaborator wire format."""
        return {
            "codigo": self.code,
            "nombre": self.name,
            "rutaPatron": self.route_pattern,
            "rutaPadre": self.parent_code,
            "nivel": self.level,
            "esPlantilla": self.is_template,
            "protegida": self.is_protected,
            "requiereSlug": self.requires_slug,
            "featureRequerido": self.required_feature,
            "descripcion": self.description,
            "fuenteDatos": self.data_source,
        }


@dc.dataclass(slots=True, frozen=True)
class Page:
    """A tenant-owned page instantiating a PageType (or ``custom``)."""

    id: str | None
    tenant_id: str
    type_code: str
    title: str
    slug: str = ""
    description: str | None = None
    meta: dict[str, typ.Any] = dc.field(default_factory=dict)
    published: bool = False
    active: bool = True
    order: int = 0
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None

    @property
    def is_custom(self) -> bool:
        """Whether this page is a one-off composition."""
        return self.type_code == CUSTOM_PAGE_TYPE

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> Page:
        """Build a Page from a collaborator ``paginas`` document."""
        return cls(
            id=_optional_str(payload.get("id")),
            tenant_id=_require(payload, "tenantId", "Page"),
            type_code=_optional_str(payload.get("tipoPagina")) or CUSTOM_PAGE_TYPE,
            title=_coerce_str(payload.get("titulo")) or "",
            slug=_coerce_str(payload.get("slug")) or "",
            description=_optional_str(payload.get("descripcion")),
            meta=_as_mapping(payload.get("meta")),
            published=_as_bool(payload.get("publica")),
            active=_as_bool(payload.get("activa"), default=True),
            order=_as_int(payload.get("orden"), 0),
            created_at=_parse_timestamp(payload.get("createdAt")),
            updated_at=_parse_timestamp(payload.get("updatedAt")),
        )

    def to_payload(self) -> dict[str, typ.Any]:
        """Serialize for ``savePagina``; server-owned timestamps are omitted."""
        payload: dict[str, typ.Any] = {
            "tenantId": self.tenant_id,
            "tipoPagina": self.type_code,
            "titulo": self.title,
            "slug": self.slug,
            "descripcion": self.description,
            "meta": dict(self.meta),
            "publica": self.published,
            "activa": self.active,
            "orden": self.order,
        }
        if self.id:
            payload["id"] = self.id
        return payload


@dc.dataclass(slots=True, frozen=True)
class VariantInfo:
    """One visual variant offered by a catalog entry."""

    code: str
    name: str
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: object) -> VariantInfo:
        """Accept either a bare variant code or an ``{id, nombre}`` mapping."""
        if isinstance(payload, cabc.Mapping):
            code = _optional_str(payload.get("id")) or _require(
                payload, "codigo", "Variant"
            )
            return cls(
                code=code,
                name=_optional_str(payload.get("nombre")) or code,
                description=_optional_str(payload.get("descripcion")),
            )
        code = _optional_str(payload)
        if code is None:
            msg = "Variant payload is empty"
            raise PayloadError(msg)
        return cls(code=code, name=code)

    def to_payload(self) -> dict[str, typ.Any]:
        return {"id": self.code, "nombre": self.name, "descripcion": self.description}


@dc.dataclass(slots=True, frozen=True)
class FieldOption:
    """A selectable value for ``select`` fields."""

    value: str
    label: str

    @classmethod
    def from_payload(cls, payload: object) -> FieldOption:
        if isinstance(payload, cabc.Mapping):
            value = _coerce_str(payload.get("value")) or ""
            return cls(value=value, label=_coerce_str(payload.get("label")) or value)
        value = _coerce_str(payload) or ""
        return cls(value=value, label=value)


@dc.dataclass(slots=True, frozen=True)
class FieldDescriptor:
    """Authoritative description of one editable setting."""

    name: str
    kind: FieldKind = FieldKind.TEXT
    label: str | None = None
    default: typ.Any = None
    options: tuple[FieldOption, ...] = ()
    is_toggle: bool = False
    array_item_schema: tuple[FieldDescriptor, ...] = ()
    required: bool = False

    @property
    def branch(self) -> str:
        """Document branch the field's value lives under."""
        return TOGGLES_BRANCH if self.is_toggle else STATIC_BRANCH

    @classmethod
    def from_payload(
        cls, payload: cabc.Mapping[str, typ.Any], *, is_toggle: bool = False
    ) -> FieldDescriptor:
        """Build a descriptor from a ``campos``/``toggles`` schema entry.

        Legacy ``camposConfig`` entries (``key``/``type``) are accepted too.
        """
        name = _optional_str(payload.get("nombre")) or _require(
            payload, "key", "FieldDescriptor"
        )
        kind_raw = payload.get("tipo", payload.get("type"))
        kind = FieldKind.BOOLEAN if is_toggle else FieldKind.parse(kind_raw)
        options_raw = payload.get("opciones", payload.get("options")) or []
        item_schema_raw = payload.get("schema")
        item_schema: tuple[FieldDescriptor, ...] = ()
        if isinstance(item_schema_raw, cabc.Mapping):
            item_schema = tuple(
                cls._from_item_schema(key, value)
                for key, value in item_schema_raw.items()
            )
        return cls(
            name=name,
            kind=kind,
            label=_optional_str(payload.get("label")),
            default=payload.get("default", payload.get("defaultValue")),
            options=tuple(FieldOption.from_payload(opt) for opt in options_raw),
            is_toggle=is_toggle,
            array_item_schema=item_schema,
            required=_as_bool(payload.get("requerido", payload.get("required"))),
        )

    @classmethod
    def _from_item_schema(cls, key: str, payload: object) -> FieldDescriptor:
        definition = _as_mapping(payload)
        return cls(
            name=str(key),
            kind=FieldKind.parse(definition.get("type", definition.get("tipo"))),
            label=_optional_str(definition.get("label")),
            default=definition.get("default"),
            options=tuple(
                FieldOption.from_payload(opt)
                for opt in definition.get("options") or []
            ),
        )

    def to_payload(self) -> dict[str, typ.Any]:
        payload: dict[str, typ.Any] = {
            "nombre": self.name,
            "label": self.label or self.name,
            "default": self.default,
        }
        if self.is_toggle:
            return payload
        payload["tipo"] = self.kind.value
        payload["requerido"] = self.required
        if self.options:
            payload["opciones"] = [
                {"value": opt.value, "label": opt.label} for opt in self.options
            ]
        if self.array_item_schema:
            payload["schema"] = {
                item.name: {
                    "label": item.label or item.name,
                    "type": item.kind.value,
                    "default": item.default,
                }
                for item in self.array_item_schema
            }
        return payload


@dc.dataclass(slots=True, frozen=True)
class ComponentCatalogEntry:
    """One implementation of a reusable building block type."""

    type: str
    variants: tuple[VariantInfo, ...]
    field_schema: tuple[FieldDescriptor, ...] = ()
    id: str | None = None
    name: str | None = None
    description: str | None = None
    category: str | None = None
    icon: str | None = None
    retired: bool = False

    @property
    def implementation_id(self) -> str:
        """Identifier distinguishing implementations that share a type."""
        return self.id or self.type

    @property
    def has_schema(self) -> bool:
        return bool(self.field_schema)

    def variant(self, code: str) -> VariantInfo | None:
        """Return the variant with ``code`` or None."""
        return next((item for item in self.variants if item.code == code), None)

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> ComponentCatalogEntry:
        """Build an entry from a ``secciones/catalogo`` item."""
        component_type = _require(payload, "tipo", "ComponentCatalogEntry")
        variants = tuple(
            VariantInfo.from_payload(item) for item in payload.get("variantes") or []
        )
        if not variants:
            variants = (VariantInfo(code="default", name="Default"),)
        return cls(
            type=component_type,
            variants=variants,
            field_schema=_parse_field_schema(payload),
            id=_optional_str(payload.get("id")),
            name=_optional_str(payload.get("nombre")),
            description=_optional_str(payload.get("descripcion")),
            category=_optional_str(payload.get("categoria")),
            icon=_optional_str(payload.get("icono")),
            retired=not _as_bool(payload.get("disponible"), default=True),
        )

    def to_payload(self) -> dict[str, typ.Any]:
        return {
            "id": self.id,
            "tipo": self.type,
            "nombre": self.name,
            "descripcion": self.description,
            "categoria": self.category,
            "icono": self.icon,
            "disponible": not self.retired,
            "variantes": [variant.to_payload() for variant in self.variants],
            "schema_config": {
                "campos": [
                    field.to_payload()
                    for field in self.field_schema
                    if not field.is_toggle
                ],
                "toggles": [
                    field.to_payload() for field in self.field_schema if field.is_toggle
                ],
            },
        }


def _parse_field_schema(
    payload: cabc.Mapping[str, typ.Any],
) -> tuple[FieldDescriptor, ...]:
    """Read ``schema_config`` (campos + toggles), else legacy ``camposConfig``."""
    schema = payload.get("schema_config")
    if isinstance(schema, cabc.Mapping):
        fields = [
            FieldDescriptor.from_payload(item)
            for item in schema.get("campos") or []
            if isinstance(item, cabc.Mapping)
        ]
        fields.extend(
            FieldDescriptor.from_payload(item, is_toggle=True)
            for item in schema.get("toggles") or []
            if isinstance(item, cabc.Mapping)
        )
        return tuple(fields)
    legacy = payload.get("camposConfig") or []
    return tuple(
        FieldDescriptor.from_payload(item)
        for item in legacy
        if isinstance(item, cabc.Mapping)
    )


@dc.dataclass(slots=True, frozen=True)
class ComponentInstance:
    """One placement of a catalog entry with its settings document."""

    id: str | None
    type: str
    variant: str
    scope: Scope
    data: dict[str, typ.Any] = dc.field(default_factory=dict)
    order: int = 0
    active: bool = True
    page_type_code: str | None = None
    page_id: str | None = None
    tenant_id: str | None = None
    name: str | None = None

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> ComponentInstance:
        """Build an instance from a collaborator ``componentes`` document.

        Older documents carry no ``scope``; it is derived from whichever
        discriminator is present.
        """
        page_id = _optional_str(payload.get("paginaId"))
        page_type_code = _optional_str(payload.get("tipoPagina"))
        scope_raw = _optional_str(payload.get("scope"))
        if scope_raw in {item.value for item in Scope}:
            scope = Scope(scope_raw)
        elif page_id:
            scope = Scope.PAGE
        elif page_type_code:
            scope = Scope.PAGE_TYPE
        else:
            scope = Scope.TENANT
        if scope is not Scope.PAGE_TYPE:
            page_type_code = None
        if scope is not Scope.PAGE:
            page_id = None
        return cls(
            id=_optional_str(payload.get("id")),
            type=_require(payload, "tipo", "ComponentInstance"),
            variant=_optional_str(payload.get("variante")) or "default",
            scope=scope,
            data=_as_mapping(payload.get("datos")),
            order=_as_int(payload.get("orden"), 0),
            active=_as_bool(payload.get("activo"), default=True),
            page_type_code=page_type_code,
            page_id=page_id,
            tenant_id=_optional_str(payload.get("tenantId")),
            name=_optional_str(payload.get("nombre")),
        )

    def to_payload(self) -> dict[str, typ.Any]:
        """Serialize the full document for ``saveComponente``."""
        payload: dict[str, typ.Any] = {
            "tipo": self.type,
            "variante": self.variant,
            "datos": self.data,
            "activo": self.active,
            "orden": self.order,
            "scope": self.scope.value,
            "tipoPagina": self.page_type_code,
            "paginaId": self.page_id,
        }
        if self.id:
            payload["id"] = self.id
        if self.tenant_id:
            payload["tenantId"] = self.tenant_id
        if self.name:
            payload["nombre"] = self.name
        return payload


@dc.dataclass(slots=True, frozen=True)
class DynamicField:
    """An editable node derived from a settings document; never persisted."""

    key: str
    label: str
    kind: FieldKind
    value: typ.Any
    path: tuple[str, ...]
    children: tuple[DynamicField, ...] = ()
    options: tuple[FieldOption, ...] = ()


@dc.dataclass(slots=True, frozen=True)
class FieldGroups:
    """The three top-level field groups rendered by the generic editor."""

    static_fields: tuple[DynamicField, ...] = ()
    toggle_fields: tuple[DynamicField, ...] = ()
    style_fields: tuple[DynamicField, ...] = ()
    source: str = "inference"


@dc.dataclass(slots=True, frozen=True)
class CatalogSnapshot:
    """Read-only view of the page-type and component catalogs.

    A snapshot is captured once per editing session and passed explicitly
    into every resolution call.
    """

    page_types: tuple[PageType, ...] = ()
    components: tuple[ComponentCatalogEntry, ...] = ()

    def page_type(self, code: str) -> PageType | None:
        """Return the page type registered under ``code`` or None."""
        return next((item for item in self.page_types if item.code == code), None)

    @classmethod
    def from_payload(cls, payload: cabc.Mapping[str, typ.Any]) -> CatalogSnapshot:
        return cls(
            page_types=tuple(
                PageType.from_payload(item)
                for item in payload.get("page_types") or []
                if isinstance(item, cabc.Mapping)
            ),
            components=tuple(
                ComponentCatalogEntry.from_payload(item)
                for item in payload.get("components") or []
                if isinstance(item, cabc.Mapping)
            ),
        )


__all__ = [
    "CatalogSnapshot",
    "ComponentCatalogEntry",
    "ComponentInstance",
    "DynamicField",
    "FieldDescriptor",
    "FieldGroups",
    "FieldKind",
    "FieldOption",
    "Page",
    "PageType",
    "Scope",
    "VariantInfo",
]
