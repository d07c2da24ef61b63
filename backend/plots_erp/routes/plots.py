# Overview: Flask API routes for projects and plots; parses input and returns JSON responses.

"""Inventory API routes: projects, plots and plot holds"""

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError
from ..validation import ValidationError
from ..services import inventory_service, plot_service
from ..decorators import require_user, require_permission
from ..permissions import READ_ONLY, HOLD_PLOT, SETTINGS_CRUD, EDIT_RATES


plots_bp = Blueprint("plots", __name__, url_prefix="/api")


def _int_arg(name: str):
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    if not raw.isdigit():
        raise ValidationError(f"{name} must be an integer")
    return int(raw)


@plots_bp.get("/projects")
@require_user
@require_permission(READ_ONLY)
def list_projects_route():
    projects = inventory_service.list_projects(status=request.args.get("status") or None)
    return jsonify({"projects": [p.to_dict() for p in projects]}), 200


@plots_bp.post("/projects")
@require_user
@require_permission(SETTINGS_CRUD)
def create_project_route():
    try:
        data = request.get_json(silent=True) or {}
        project = inventory_service.create_project(g.current_user, **data)
        return jsonify({"project": project.to_dict()}), 201
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create project")
        return jsonify({"error": "Internal server error"}), 500


@plots_bp.post("/projects/<int:project_id>/plots")
@require_user
@require_permission(EDIT_RATES)
def add_plot_route(project_id: int):
    try:
        data = request.get_json(silent=True) or {}
        plot = inventory_service.add_plot(g.current_user, project_id, **data)
        return jsonify({"plot": plot.to_dict()}), 201
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add plot")
        return jsonify({"error": "Internal server error"}), 500


@plots_bp.get("/plots")
@require_user
@require_permission(READ_ONLY)
def list_plots_route():
    """
    List plots.

    Query params: project_id, status, facing
    """
    try:
        plots = inventory_service.list_plots(
            project_id=_int_arg("project_id"),
            status=request.args.get("status") or None,
            facing=request.args.get("facing") or None,
        )
        return jsonify({"plots": [p.to_dict() for p in plots]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@plots_bp.get("/plots/<int:plot_id>")
@require_user
@require_permission(READ_ONLY)
def get_plot_route(plot_id: int):
    try:
        plot = inventory_service.get_plot(plot_id)
        data = plot.to_dict()
        data["status_history"] = [h.to_dict() for h in plot_service.get_status_history(plot_id)]
        return jsonify({"plot": data}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status


@plots_bp.post("/plots/<int:plot_id>/hold")
@require_user
@require_permission(HOLD_PLOT)
def place_hold_route(plot_id: int):
    """
    Put a plot on hold for a lead.

    Body: {"lead_id": int}
    Requires: HOLD_PLOT
    """
    try:
        data = request.get_json(silent=True) or {}
        lead_id = data.get("lead_id")
        if not isinstance(lead_id, int) or isinstance(lead_id, bool):
            return jsonify({"error": "lead_id (integer) required"}), 400

        booking = plot_service.place_hold(g.current_user, plot_id, lead_id)
        return jsonify({
            "plot": booking.plot.to_dict(),
            "booking": booking.to_dict(),
        }), 201
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to place hold")
        return jsonify({"error": "Internal server error"}), 500
