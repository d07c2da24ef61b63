# backend/plots_erp/routes/system.py
"""
System health endpoint.

Reports database connectivity and the hold-expiry policy currently in force.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Plot, Booking
from ..constants import BookingStatus
from ..services.settings_service import get_settings
from plots_erp.time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        plot_count = db.session.query(Plot).count()
        open_holds = (
            db.session.query(Booking)
            .filter(Booking.status == BookingStatus.HOLD)
            .count()
        )
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"plots": plot_count, "open_holds": open_holds},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    body = {
        "status": database["status"],
        "time": to_utc_z(utcnow()),
        "checks": {"database": database},
    }
    if database["status"] == "healthy":
        settings = get_settings()
        body["hold_policy"] = {
            "default_hold_hours": settings.default_hold_hours,
            "auto_expire_hold": settings.auto_expire_hold,
        }
        return jsonify(body), 200
    return jsonify(body), 503
