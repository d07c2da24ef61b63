# Overview: Utility functions for capability lookups and validation.

from .definitions import PERMISSION_DEFINITIONS
from .roles import DEFAULT_ROLE_PERMISSIONS


def get_all_permission_codes():
    """Get list of all capability codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permission_definition(code):
    """Get full definition for a capability code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a capability code is valid."""
    return code in get_all_permission_codes()


def get_role_permissions(role) -> frozenset:
    """Capabilities granted to a role; unknown roles get nothing."""
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def authorize(role, capability) -> bool:
    """Pure role -> capability lookup. Fails closed for unknown roles/codes."""
    return capability in get_role_permissions(role)
