"""Load crm_pages settings and the local catalog snapshot.

Settings come from ``config/crm_pages.yaml`` (sections ``api``, ``tenant``,
``catalog``) with ``CRM_PAGES_*`` environment variables taking precedence.
The catalog snapshot is a YAML copy of the collaborator's page-type and
component catalogs, used by the developer CLI without network access.

Examples
--------
>>> from crm_pages.config import load_settings
>>> settings = load_settings(env={"CRM_PAGES_API_URL": "http://crm"})  # doctest: +SKIP
>>> settings.api.base_url  # doctest: +SKIP
'http://crm'
"""

from .loader import load_catalog_snapshot, load_settings
from .models import ApiSettings, ComposerSettings, TenantSettings

__all__ = [
    "ApiSettings",
    "ComposerSettings",
    "TenantSettings",
    "load_catalog_snapshot",
    "load_settings",
]
