# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User
from .errors import PermissionDeniedError
from .services import permission_service


USER_HEADER = "X-User-Id"


def require_user(f):
    """
    Resolve the acting user from the X-User-Id header.

    Sets g.current_user. Authentication proper happens upstream; this layer
    only looks up the user and their role.

    Returns 401 if the header is missing or malformed, or the user is
    unknown or inactive.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = request.headers.get(USER_HEADER, "").strip()
        if not raw.isdigit():
            return jsonify({"error": f"{USER_HEADER} header required"}), 401

        user = db.session.get(User, int(raw))
        if user is None or not user.active:
            return jsonify({"error": "Unknown or inactive user"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a capability from the acting user's role. Use after @require_user."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(g, "current_user"):
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_capability(g.current_user, permission_code)
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
