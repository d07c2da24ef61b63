# Overview: Static role -> capability table consulted by the permission gate.

from types import MappingProxyType

from ..constants import UserRole
from .definitions import (
    READ_ONLY,
    SETTINGS_CRUD,
    HOLD_PLOT,
    BOOK_PLOT,
    RE_RELEASE_PLOT,
    EDIT_RATES,
    VERIFY_DOCS,
    DELETE_ENTITY,
)


ALL_CAPABILITIES = frozenset({
    READ_ONLY,
    SETTINGS_CRUD,
    HOLD_PLOT,
    BOOK_PLOT,
    RE_RELEASE_PLOT,
    EDIT_RATES,
    VERIFY_DOCS,
    DELETE_ENTITY,
})

_MANAGEMENT = frozenset({READ_ONLY, RE_RELEASE_PLOT, BOOK_PLOT, HOLD_PLOT, VERIFY_DOCS})
_FRONTLINE = frozenset({READ_ONLY, HOLD_PLOT, BOOK_PLOT})


DEFAULT_ROLE_PERMISSIONS = MappingProxyType({
    UserRole.OWNER: ALL_CAPABILITIES,
    UserRole.ADMIN: ALL_CAPABILITIES,
    UserRole.DIRECTOR: _MANAGEMENT,
    UserRole.PM: _MANAGEMENT,
    UserRole.SALES: _FRONTLINE,
    UserRole.CRM: _FRONTLINE,
    UserRole.FINANCE: frozenset({READ_ONLY}),
    UserRole.LEGAL: frozenset({READ_ONLY, VERIFY_DOCS}),
    UserRole.AUDITOR: frozenset({READ_ONLY}),
})
