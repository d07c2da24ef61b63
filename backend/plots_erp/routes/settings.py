# Overview: Flask API routes for the settings singleton.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError
from ..validation import ValidationError
from ..services import settings_service
from ..decorators import require_user, require_permission
from ..permissions import READ_ONLY, SETTINGS_CRUD


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@require_user
@require_permission(READ_ONLY)
def get_settings_route():
    """Secrets (API keys, SMTP) are masked."""
    settings = settings_service.get_settings()
    return jsonify({"settings": settings.to_dict()}), 200


@settings_bp.patch("")
@require_user
@require_permission(SETTINGS_CRUD)
def update_settings_route():
    try:
        data = request.get_json(silent=True) or {}
        settings = settings_service.update_settings(g.current_user, data)
        return jsonify({"settings": settings.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update settings")
        return jsonify({"error": "Internal server error"}), 500
