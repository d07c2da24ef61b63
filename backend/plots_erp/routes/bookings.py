# Overview: Flask API routes for bookings and the hold-expiry sweep.

from flask import Blueprint, request, jsonify, g, current_app

from ..errors import DomainError
from ..validation import ValidationError
from ..services import booking_service, hold_expiry_service
from ..decorators import require_user, require_permission
from ..permissions import READ_ONLY, BOOK_PLOT, RE_RELEASE_PLOT


bookings_bp = Blueprint("bookings", __name__, url_prefix="/api")


@bookings_bp.get("/bookings")
@require_user
@require_permission(READ_ONLY)
def list_bookings_route():
    """Query params: status, plot_id, lead_id"""
    try:
        plot_id = request.args.get("plot_id", type=int)
        lead_id = request.args.get("lead_id", type=int)
        bookings = booking_service.list_bookings(
            status=request.args.get("status") or None,
            plot_id=plot_id,
            lead_id=lead_id,
        )
        return jsonify({"bookings": [b.to_dict() for b in bookings]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@bookings_bp.post("/bookings/<int:booking_id>/confirm")
@require_user
@require_permission(BOOK_PLOT)
def confirm_booking_route(booking_id: int):
    """
    Record the token payment for a held plot.

    Body: {"amount_cents": int, "method": "cash|upi|card|neft", "txn_ref": str?}
    """
    try:
        data = request.get_json(silent=True) or {}
        booking = booking_service.confirm_booking(
            g.current_user,
            booking_id,
            amount_cents=data.get("amount_cents"),
            method=data.get("method"),
            txn_ref=data.get("txn_ref"),
        )
        return jsonify({"booking": booking.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to confirm booking")
        return jsonify({"error": "Internal server error"}), 500


@bookings_bp.post("/bookings/<int:booking_id>/cancel")
@require_user
@require_permission(RE_RELEASE_PLOT)
def cancel_booking_route(booking_id: int):
    """Body: {"reason": str, "fee_cents": int?}"""
    try:
        data = request.get_json(silent=True) or {}
        booking = booking_service.cancel_booking(
            g.current_user,
            booking_id,
            reason=data.get("reason"),
            fee_cents=data.get("fee_cents", 0),
        )
        return jsonify({"booking": booking.to_dict()}), 200
    except DomainError as e:
        return jsonify({"error": str(e), "details": e.details}), e.http_status
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to cancel booking")
        return jsonify({"error": "Internal server error"}), 500


@bookings_bp.post("/holds/expire")
@require_user
@require_permission(RE_RELEASE_PLOT)
def expire_holds_route():
    """
    Run one hold-expiry sweep now.

    Body: {"force": bool?}  force ignores settings.auto_expire_hold
    """
    try:
        data = request.get_json(silent=True) or {}
        plots = hold_expiry_service.expire_overdue_holds(force=bool(data.get("force", False)))
        return jsonify({
            "released": len(plots),
            "plots": [p.to_dict() for p in plots],
        }), 200
    except Exception:
        current_app.logger.exception("Failed to run hold expiry")
        return jsonify({"error": "Internal server error"}), 500
