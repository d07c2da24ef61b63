# Overview: Permission gate package.
# Re-exports the capability table and lookup helpers.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    GENERAL_PERMISSIONS,
    SYSTEM_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    SALES_PERMISSIONS,
    DOCUMENT_PERMISSIONS,
    READ_ONLY,
    SETTINGS_CRUD,
    HOLD_PLOT,
    BOOK_PLOT,
    RE_RELEASE_PLOT,
    EDIT_RATES,
    VERIFY_DOCS,
    DELETE_ENTITY,
)
from .roles import ALL_CAPABILITIES, DEFAULT_ROLE_PERMISSIONS
from .helpers import (
    authorize,
    get_all_permission_codes,
    get_permission_definition,
    get_role_permissions,
    validate_permission_code,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "GENERAL_PERMISSIONS",
    "SYSTEM_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "SALES_PERMISSIONS",
    "DOCUMENT_PERMISSIONS",
    "READ_ONLY",
    "SETTINGS_CRUD",
    "HOLD_PLOT",
    "BOOK_PLOT",
    "RE_RELEASE_PLOT",
    "EDIT_RATES",
    "VERIFY_DOCS",
    "DELETE_ENTITY",
    "ALL_CAPABILITIES",
    "DEFAULT_ROLE_PERMISSIONS",
    "authorize",
    "get_all_permission_codes",
    "get_permission_definition",
    "get_role_permissions",
    "validate_permission_code",
]
