"""Common literal values used across crm_pages.

These constants keep document branch names, special page-type codes, and
chrome component types centralized so the engine modules, the client, and
tests import the same values without drifting.

Examples
--------
>>> from crm_pages import _constants
>>> _constants.CUSTOM_PAGE_TYPE
'custom'
>>> "header" in _constants.CHROME_TYPES
True
"""

STATIC_BRANCH = "static_data"
TOGGLES_BRANCH = "toggles"
DYNAMIC_BRANCH = "dynamic_data"
STYLES_BRANCH = "styles"

# Row used as the editing template for "add item" on array fields.
ARRAY_TEMPLATE_INDEX = "0"

CUSTOM_PAGE_TYPE = "custom"
CHROME_TYPES = frozenset({"header", "footer"})

TEXTAREA_MIN_LENGTH = 100
