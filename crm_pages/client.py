r"""HTTP client for the CRM collaborator API.

The collaborator owns persistence for pages, page types, the component
catalog, and component instances. This module wraps the handful of endpoints
the composer needs, centralising authentication, timeouts, and error
handling, and converts payloads into :mod:`crm_pages.models` dataclasses.

Example
-------
>>> from crm_pages.client import CollaboratorClient
>>> client = CollaboratorClient(
...     api_base="https://crm.example.com/api", token="secret"
... )  # doctest: +SKIP
>>> [pt.code for pt in client.get_page_types("t-1")][:2]  # doctest: +SKIP
['homepage', 'blog']
"""

from __future__ import annotations

import collections.abc as cabc
import json
import logging
import typing as typ
from http import HTTPStatus
from urllib.parse import quote

import requests

from .errors import PayloadError, TransportError
from .models import ComponentCatalogEntry, ComponentInstance, Page, PageType

if typ.TYPE_CHECKING:
    from .models import FieldDescriptor

DEFAULT_API_BASE = "http://localhost:3001/api"
_ACCEPT_HEADER = "application/json"

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    return quote(value.strip(), safe="")


def _items(payload: object, entity: str) -> list[cabc.Mapping[str, typ.Any]]:
    """Return the list of mappings in ``payload``.

    List endpoints answer with either a bare array or ``{"data": [...]}``.
    """
    if isinstance(payload, cabc.Mapping):
        payload = payload.get("data", payload.get("items"))
    if not isinstance(payload, list):
        msg = f"Expected a list of {entity} from the collaborator"
        raise PayloadError(msg)
    return [item for item in payload if isinstance(item, cabc.Mapping)]


def _document(payload: object, entity: str) -> cabc.Mapping[str, typ.Any]:
    if isinstance(payload, cabc.Mapping) and isinstance(
        payload.get("data"), cabc.Mapping
    ):
        payload = payload["data"]
    if not isinstance(payload, cabc.Mapping):
        msg = f"Expected a {entity} object from the collaborator"
        raise PayloadError(msg)
    return payload


class CollaboratorClient:
    """Thin wrapper around the collaborator's page and component endpoints.

    The client performs no retries and keeps no cache; every call is a
    single request. It is safe to reuse across threads when the provided
    session is thread-safe.
    """

    default_api_base = DEFAULT_API_BASE

    def __init__(
        self,
        *,
        api_base: str = DEFAULT_API_BASE,
        token: str | None = None,
        session: requests.Session | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialise the client with optional authentication and transport.

        Parameters
        ----------
        api_base : str, optional
            Root URL of the collaborator API. Defaults to
            ``DEFAULT_API_BASE``.
        token : str | None, optional
            Bearer token sent as the ``Authorization`` header.
        session : requests.Session, optional
            Preconfigured session to reuse connections.
        timeout : float, optional
            Per-request timeout in seconds. Defaults to ``10.0``.
        """
        self._api_base = api_base.rstrip("/") or DEFAULT_API_BASE
        self._session = session or requests.Session()
        self.timeout = timeout
        self._headers = {
            "Accept": _ACCEPT_HEADER,
            "User-Agent": "crm-pages/0.1",
        }
        if token:
            self._headers["Authorization"] = f"Bearer {token}"

    @property
    def api_base(self) -> str:
        return self._api_base

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: cabc.Mapping[str, str] | None = None,
        payload: cabc.Mapping[str, typ.Any] | None = None,
        allow_missing: bool = False,
    ) -> typ.Any:
        """Send one request and return the decoded JSON body.

        Returns ``None`` for 404 when ``allow_missing`` is set, and for
        empty bodies (``204 No Content``).
        """
        url = f"{self._api_base}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:  # pragma: no cover - requests guard
            msg = f"Failed to reach the collaborator at '{url}': {exc}"
            raise TransportError(msg) from exc

        if allow_missing and response.status_code == HTTPStatus.NOT_FOUND:
            return None
        if response.status_code >= HTTPStatus.BAD_REQUEST:
            msg = (
                f"{method} {path} failed with status {response.status_code}: "
                f"{_error_message(response)}"
            )
            raise TransportError(msg, status_code=response.status_code)
        if response.status_code == HTTPStatus.NO_CONTENT or not response.content:
            return None

        try:
            return response.json()
        except json.JSONDecodeError as exc:
            msg = f"Collaborator response for {method} {path} was not valid JSON"
            raise PayloadError(msg, status_code=response.status_code) from exc

    def get_page_types(self, tenant_id: str) -> list[PageType]:
        """Return the page-type catalog visible to ``tenant_id``."""
        body = self._request("GET", f"/tenants/{_segment(tenant_id)}/tipos-pagina")
        return [PageType.from_payload(item) for item in _items(body, "page types")]

    def get_page(self, tenant_id: str, id_or_code: str) -> Page | None:
        """Return the page with id (or type code) ``id_or_code``, or None."""
        body = self._request(
            "GET",
            f"/tenants/{_segment(tenant_id)}/paginas/{_segment(id_or_code)}",
            allow_missing=True,
        )
        if body is None:
            return None
        return Page.from_payload(_document(body, "page"))

    def save_page(self, tenant_id: str, page: Page) -> Page:
        """Create or update ``page`` for ``tenant_id`` and return the stored version."""
        base = f"/tenants/{_segment(tenant_id)}/paginas"
        if page.id:
            body = self._request(
                "PUT", f"{base}/{_segment(page.id)}", payload=page.to_payload()
            )
        else:
            body = self._request("POST", base, payload=page.to_payload())
        if body is None:
            return page
        return Page.from_payload(_document(body, "page"))

    def get_component_catalog(self, tenant_id: str) -> list[ComponentCatalogEntry]:
        """Return every catalog entry, including retired implementations."""
        body = self._request(
            "GET", "/secciones/catalogo", params={"tenantId": tenant_id}
        )
        return [
            ComponentCatalogEntry.from_payload(item)
            for item in _items(body, "catalog entries")
        ]

    def get_component_schema(
        self, component_type: str
    ) -> tuple[FieldDescriptor, ...] | None:
        """Return the registered field schema for ``component_type``.

        ``None`` means the type is unknown or has no schema, and callers
        should fall back to field inference.
        """
        body = self._request(
            "GET",
            f"/secciones/catalogo/{_segment(component_type)}",
            allow_missing=True,
        )
        if body is None:
            return None
        entry = ComponentCatalogEntry.from_payload(_document(body, "catalog entry"))
        return entry.field_schema or None

    def list_components_for_page(
        self, tenant_id: str, id_or_code: str
    ) -> list[ComponentInstance]:
        """Return the component instances the collaborator has for a page."""
        body = self._request(
            "GET",
            f"/tenants/{_segment(tenant_id)}/paginas/{_segment(id_or_code)}/componentes",
        )
        return [
            ComponentInstance.from_payload(item) for item in _items(body, "components")
        ]

    def save_component(
        self, tenant_id: str, instance: ComponentInstance
    ) -> ComponentInstance:
        """Persist the full document of ``instance`` and return the stored copy.

        Instances without an id are created (``POST``); others replaced
        (``PUT``). The payload always carries the whole settings document.
        """
        base = f"/tenants/{_segment(tenant_id)}/componentes"
        if instance.id:
            body = self._request(
                "PUT", f"{base}/{_segment(instance.id)}", payload=instance.to_payload()
            )
        else:
            body = self._request("POST", base, payload=instance.to_payload())
        if body is None:
            return instance
        return ComponentInstance.from_payload(_document(body, "component"))

    def delete_component(self, tenant_id: str, instance_id: str) -> None:
        """Delete the instance ``instance_id``."""
        self._request(
            "DELETE",
            f"/tenants/{_segment(tenant_id)}/componentes/{_segment(instance_id)}",
        )


def _error_message(response: requests.Response) -> str:
    """Return the collaborator's error text, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, cabc.Mapping):
        for key in ("message", "error"):
            value = body.get(key)
            if value:
                return str(value)
    return response.text[:200]


__all__ = ["DEFAULT_API_BASE", "CollaboratorClient"]
