# Overview: Service-layer permission gate; checks a user's role against the capability table.

"""
Permission checks for every mutating operation.

- Fail closed: unknown roles, unknown capabilities and inactive users are denied
- Denials are logged at warning level; grants are not logged
- A check never touches the database beyond the already-loaded user
"""

from flask import current_app

from ..errors import PermissionDeniedError
from ..permissions import authorize, get_role_permissions


def user_has_capability(user, capability: str) -> bool:
    if user is None or not user.active:
        return False
    return authorize(user.role, capability)


def require_capability(user, capability: str) -> None:
    """
    Raise PermissionDeniedError unless the user's role grants the capability.

    Callers invoke this before reading or locking anything they intend to
    mutate, so a denial never leaves partial state behind.
    """
    if user_has_capability(user, capability):
        return

    user_id = getattr(user, "id", None)
    role = getattr(user, "role", None)
    current_app.logger.warning(
        "Permission denied: user_id=%s role=%s capability=%s",
        user_id, role, capability,
    )
    raise PermissionDeniedError(
        f"Role '{role}' lacks capability {capability}",
        details={"user_id": user_id, "role": role, "required_permission": capability},
    )


def get_user_capabilities(user) -> set[str]:
    if user is None or not user.active:
        return set()
    return set(get_role_permissions(user.role))
