"""Load crm_pages settings and catalog snapshots from YAML."""

from __future__ import annotations

import collections.abc as cabc
import os
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .._coerce import _optional_str
from ..client import DEFAULT_API_BASE
from ..errors import PayloadError, SettingsError
from ..models import CatalogSnapshot
from .helpers import (
    DEFAULT_CONFIG_PATH,
    _env,
    _parse_features,
    _parse_log_level,
    _parse_timeout,
    _resolve_relative,
    _section,
)
from .models import ApiSettings, ComposerSettings, TenantSettings


def _load_mapping(path: Path) -> dict[str, typ.Any]:
    """Parse ``path`` with a YAML 1.2 safe loader and return its mapping."""
    loader = YAML(typ="safe")
    loader.version = (1, 2)
    try:
        with path.open("r", encoding="utf-8") as handle:
            loaded = loader.load(handle) or {}
    except YAMLError as exc:
        msg = f"Could not parse '{path}': {exc}"
        raise SettingsError(msg) from exc
    if not isinstance(loaded, cabc.Mapping):
        msg = f"Top-level YAML structure in '{path}' must be a mapping."
        raise SettingsError(msg)
    return dict(loaded)


def load_settings(
    path: Path | None = None, env: cabc.Mapping[str, str] | None = None
) -> ComposerSettings:
    """Load composer settings from YAML, then apply environment overrides.

    Parameters
    ----------
    path : Path, optional
        Settings file. Defaults to ``config/crm_pages.yaml``.
    env : Mapping[str, str], optional
        Environment to read ``CRM_PAGES_*`` overrides from. Defaults to
        ``os.environ``.

    Returns
    -------
    ComposerSettings
        Parsed settings. A relative ``catalog.snapshot`` path is resolved
        against the settings file's directory.

    Raises
    ------
    SettingsError
        If the file is missing and the environment does not provide
        ``CRM_PAGES_API_URL``, or if any value is invalid.

    Examples
    --------
    >>> from pathlib import Path
    >>> from crm_pages.config import load_settings
    >>> settings = load_settings(Path("config/crm_pages.yaml"))  # doctest: +SKIP
    >>> settings.tenant.tenant_id  # doctest: +SKIP
    'demo'
    """
    environ = os.environ if env is None else env
    config_path = path or DEFAULT_CONFIG_PATH
    if config_path.exists():
        raw = _load_mapping(config_path)
        base_dir: Path | None = config_path.parent
    elif _env(environ, "API_URL"):
        raw = {}
        base_dir = None
    else:
        msg = (
            f"Configuration file '{config_path}' not found and "
            "CRM_PAGES_API_URL is not set."
        )
        raise SettingsError(msg)

    api_raw = _section(raw, "api")
    tenant_raw = _section(raw, "tenant")
    catalog_raw = _section(raw, "catalog")

    api = ApiSettings(
        base_url=_env(environ, "API_URL")
        or _optional_str(api_raw.get("base_url"))
        or DEFAULT_API_BASE,
        token=_env(environ, "TOKEN") or _optional_str(api_raw.get("token")),
        timeout=_parse_timeout(
            _env(environ, "TIMEOUT") or api_raw.get("timeout"), 10.0
        ),
    )
    features_override = _env(environ, "FEATURES")
    tenant = TenantSettings(
        tenant_id=_env(environ, "TENANT") or _optional_str(tenant_raw.get("id")),
        features=_parse_features(
            features_override
            if features_override is not None
            else tenant_raw.get("features")
        ),
    )
    return ComposerSettings(
        api=api,
        tenant=tenant,
        catalog_path=_resolve_relative(catalog_raw.get("snapshot"), base_dir),
        log_level=_parse_log_level(
            _env(environ, "LOG_LEVEL") or raw.get("log_level"), "WARNING"
        ),
    )


def load_catalog_snapshot(path: Path) -> CatalogSnapshot:
    """Read a catalog snapshot YAML written by ``pages snapshot``.

    The file holds ``page_types`` and ``components`` lists in the
    collaborator's wire format.

    Raises
    ------
    SettingsError
        If the file is missing, unparsable, or an entry is malformed.
    """
    if not path.exists():
        msg = f"Catalog snapshot '{path}' not found."
        raise SettingsError(msg)
    raw = _load_mapping(path)
    try:
        return CatalogSnapshot.from_payload(raw)
    except PayloadError as exc:
        msg = f"Catalog snapshot '{path}' is invalid: {exc}"
        raise SettingsError(msg) from exc
