"""Typed dataclasses describing crm_pages runtime settings."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path  # noqa: TC003 - used for runtime type metadata

from ..client import DEFAULT_API_BASE
from ..errors import SettingsError


@dc.dataclass(slots=True)
class ApiSettings:
    """Connection details for the collaborator API."""

    base_url: str = DEFAULT_API_BASE
    token: str | None = None
    timeout: float = 10.0


@dc.dataclass(slots=True)
class TenantSettings:
    """Tenant whose pages are being composed."""

    tenant_id: str | None = None
    features: frozenset[str] = frozenset()


@dc.dataclass(slots=True)
class ComposerSettings:
    """Top-level settings loaded from ``crm_pages.yaml`` and the environment."""

    api: ApiSettings = dc.field(default_factory=ApiSettings)
    tenant: TenantSettings = dc.field(default_factory=TenantSettings)
    catalog_path: Path | None = None
    log_level: str = "WARNING"

    def require_tenant(self) -> str:
        """Return the configured tenant id or raise SettingsError."""
        if not self.tenant.tenant_id:
            msg = "No tenant configured; set tenant.id or CRM_PAGES_TENANT."
            raise SettingsError(msg)
        return self.tenant.tenant_id


__all__ = ["ApiSettings", "ComposerSettings", "TenantSettings"]
