# Overview: Service-layer operations for the plot lifecycle; places and releases holds.

"""
Plot holds

place_hold is the only way a plot leaves 'available' for a buyer. All checks
(permission, plot exists, plot available, lead exists) run before any field
is written, and the plot change, its history row and the 'hold' booking are
committed together. If two users race for the same plot, the loser either
fails the version check (the retry re-reads the plot and sees it on hold) or
trips the one-open-booking index; both end in InvalidStateTransitionError.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Plot, Lead, Booking
from ..constants import PlotStatus, UserRole
from ..errors import InvalidStateTransitionError, NotFoundError
from ..permissions import HOLD_PLOT
from . import permission_service, lifecycle_service, booking_service
from .concurrency import lock_for_update, run_with_retry
from .notification_service import send_notification
from .settings_service import get_settings
from plots_erp.time_utils import utcnow, hours_from, to_utc_z


def _sales_owner_for(user, lead: Lead) -> int | None:
    if user.role in UserRole.FRONTLINE:
        return user.id
    return lead.assigned_to_user_id


def place_hold(
    user,
    plot_id: int,
    lead_id: int,
    *,
    now: datetime | None = None,
    notifier=None,
) -> Booking:
    """
    Put an available plot on hold for a lead and open its 'hold' booking.

    Returns:
        The new Booking (status 'hold')

    Raises:
        PermissionDeniedError: role lacks HOLD_PLOT
        NotFoundError: plot or lead does not exist
        InvalidStateTransitionError: plot is not available
    """
    permission_service.require_capability(user, HOLD_PLOT)
    now = now or utcnow()
    settings = get_settings()

    def _op():
        plot = lock_for_update(db.session.query(Plot).filter(Plot.id == plot_id)).first()
        if plot is None:
            raise NotFoundError(f"Plot {plot_id} not found", details={"plot_id": plot_id})
        if plot.status != PlotStatus.AVAILABLE:
            raise InvalidStateTransitionError(
                f"Plot {plot.plot_no} is {plot.status}, not available",
                details={"plot_id": plot.id, "status": plot.status},
            )

        lead = db.session.get(Lead, lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", details={"lead_id": lead_id})

        history = lifecycle_service.transition_plot(
            plot,
            PlotStatus.HOLD,
            now=now,
            changed_by_user_id=user.id,
            reason=f"Hold for lead {lead.id}",
        )
        plot.hold_expiry_at = hours_from(now, settings.default_hold_hours)
        plot.buyer_id = lead.id
        plot.sales_owner_id = _sales_owner_for(user, lead)

        plot_no = plot.plot_no
        try:
            booking = booking_service.open_hold_booking(
                plot, lead, plot.sales_owner_id, now=now, settings=settings,
            )
            history.booking_id = booking.id
            db.session.commit()
        except IntegrityError:
            # Open-booking index fired: a concurrent hold on this plot committed first
            db.session.rollback()
            raise InvalidStateTransitionError(
                f"Plot {plot_no} was put on hold by a concurrent request",
                details={"plot_id": plot_id},
            )
        return booking

    booking = run_with_retry(_op)
    plot = booking.plot
    lead = booking.lead
    current_app.logger.info(
        "Plot %s held for lead %s by user_id=%s until %s (booking %s)",
        plot.id, lead.id, user.id, to_utc_z(plot.hold_expiry_at), booking.id,
    )
    send_notification(
        notifier,
        lead.phone,
        f"Plot {plot.plot_no} is held for you until {to_utc_z(plot.hold_expiry_at)}. "
        f"Please pay the token amount of {booking.token_amount_cents} to confirm.",
    )
    return booking


def release_hold(
    plot: Plot,
    booking: Booking | None,
    *,
    now: datetime,
    reason: str,
    changed_by_user_id: int | None = None,
) -> None:
    """hold -> available, clearing the hold window and buyer. Does not commit."""
    lifecycle_service.transition_plot(
        plot,
        PlotStatus.AVAILABLE,
        now=now,
        changed_by_user_id=changed_by_user_id,
        booking_id=booking.id if booking is not None else None,
        reason=reason,
    )
    plot.hold_expiry_at = None
    plot.buyer_id = None


def get_status_history(plot_id: int) -> list:
    plot = db.session.get(Plot, plot_id)
    if plot is None:
        raise NotFoundError(f"Plot {plot_id} not found", details={"plot_id": plot_id})
    return sorted(plot.status_history, key=lambda h: (h.changed_at, h.id))
