"""Exception hierarchy shared by the composition engine and its boundary.

The pure engine modules never raise on missing data; these exceptions are
reserved for the thin layer that talks to operators and to the collaborator
API.

* :class:`ValidationError` - a scope invariant was violated (duplicate
  tenant-scoped singleton, missing page or tenant context). Surfaced to the
  operator; never retried.
* :class:`NotFoundError` - a component type, implementation, or variant is
  absent from the catalog.
* :class:`TransportError` - the collaborator API failed. Saves are
  at-most-once; the operator must re-submit.
"""

from __future__ import annotations


class CompositionError(Exception):
    """Base class for every error raised by ``crm_pages``."""


class ValidationError(CompositionError, ValueError):
    """Raised when a component placement breaks a scope invariant."""

    def __init__(
        self,
        message: str,
        *,
        component_type: str | None = None,
        tenant_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.component_type = component_type
        self.tenant_id = tenant_id


class NotFoundError(CompositionError, LookupError):
    """Raised when a requested type, implementation, or variant is unknown."""


class TransportError(CompositionError, RuntimeError):
    """Raised when the collaborator API cannot be reached or rejects a call."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PayloadError(TransportError):
    """Raised when the collaborator returns JSON that cannot be decoded."""


class SettingsError(CompositionError, ValueError):
    """Raised when the local configuration is invalid or incomplete."""


__all__ = [
    "CompositionError",
    "NotFoundError",
    "PayloadError",
    "SettingsError",
    "TransportError",
    "ValidationError",
]
