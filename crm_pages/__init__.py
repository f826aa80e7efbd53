"""Page-composition engine for a multi-tenant CRM website builder.

Pages are composed from reusable components (hero, property grid, footer,
...). This package decides where each component instance is attached,
derives editor fields from component settings documents, resolves the
component catalog, and assembles the ordered component list of a page. A
thin :class:`~crm_pages.client.CollaboratorClient` talks to the CRM API that
stores everything.

Exports
-------
- ``app``: Cyclopts application behind the ``pages`` command.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from crm_pages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
