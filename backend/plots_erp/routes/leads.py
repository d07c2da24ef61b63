# Overview: Flask API routes for leads and activities; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError
from ..validation import ValidationError
from ..services import lead_service
from ..decorators import require_user, require_permission
from ..permissions import READ_ONLY, BOOK_PLOT
from plots_erp.time_utils import parse_iso_datetime


leads_bp = Blueprint("leads", __name__, url_prefix="/api/leads")


@leads_bp.get("")
@require_user
@require_permission(READ_ONLY)
def list_leads_route():
    leads = lead_service.list_leads(
        status=request.args.get("status") or None,
        assigned_to_user_id=request.args.get("assigned_to_user_id", type=int),
    )
    return jsonify({"leads": [lead.to_dict() for lead in leads]}), 200


@leads_bp.post("")
@require_user
@require_permission(BOOK_PLOT)
def create_lead_route():
    try:
        data = request.get_json(silent=True) or {}
        lead = lead_service.create_lead(g.current_user, **data)
        return jsonify({"lead": lead.to_dict()}), 201
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create lead")
        return jsonify({"error": "Internal server error"}), 500


@leads_bp.get("/<int:lead_id>")
@require_user
@require_permission(READ_ONLY)
def get_lead_route(lead_id: int):
    try:
        lead = lead_service.get_lead(lead_id)
        return jsonify({"lead": lead.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@leads_bp.post("/<int:lead_id>/status")
@require_user
@require_permission(BOOK_PLOT)
def update_lead_status_route(lead_id: int):
    """Body: {"status": str, "reason_lost": str?}"""
    try:
        data = request.get_json(silent=True) or {}
        lead = lead_service.update_lead_status(
            g.current_user,
            lead_id,
            data.get("status"),
            reason_lost=data.get("reason_lost"),
        )
        return jsonify({"lead": lead.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update lead status")
        return jsonify({"error": "Internal server error"}), 500


@leads_bp.get("/<int:lead_id>/activities")
@require_user
@require_permission(READ_ONLY)
def list_activities_route(lead_id: int):
    try:
        activities = lead_service.list_activities_for_lead(lead_id)
        return jsonify({"activities": [a.to_dict() for a in activities]}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@leads_bp.post("/<int:lead_id>/activities")
@require_user
@require_permission(BOOK_PLOT)
def log_activity_route(lead_id: int):
    """Body: {"type": str, "summary": str, "outcome": str, "next_action_at": ISO?}"""
    try:
        data = request.get_json(silent=True) or {}
        try:
            next_action_at = parse_iso_datetime(data.get("next_action_at"))
        except (TypeError, ValueError, AttributeError):
            return jsonify({"error": "next_action_at must be an ISO-8601 datetime"}), 400

        activity = lead_service.log_activity(
            g.current_user,
            lead_id,
            data.get("type"),
            data.get("summary", ""),
            data.get("outcome"),
            next_action_at=next_action_at,
        )
        return jsonify({"activity": activity.to_dict()}), 201
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to log activity")
        return jsonify({"error": "Internal server error"}), 500
