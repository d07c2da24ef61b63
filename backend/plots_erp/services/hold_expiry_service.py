# Overview: Hold-expiry sweep; releases plots whose token was not paid before the hold lapsed.

"""
Hold-expiry sweep

A hold is overdue when its booking is still in 'hold', token_due_at is in
the past and no token was received. Each overdue booking is handled in its
own transaction, so one bad row never blocks the rest of the sweep:

    1. lock booking + plot
    2. re-check the predicate (a concurrent confirm or an earlier tick wins)
    3. plot hold -> available, booking hold -> expired
    4. commit, then notify the booking's sales user

Running the sweep twice with the same clock releases nothing the second time.
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import Booking, Plot, User
from ..constants import BookingStatus, PlotStatus
from ..errors import DomainError, InvalidStateTransitionError, NotFoundError
from . import booking_service, plot_service
from .concurrency import lock_for_update, run_with_retry
from .notification_service import send_notification
from .settings_service import get_settings
from plots_erp.time_utils import utcnow


EXPIRY_REASON = "Hold expired"


def _is_overdue(booking: Booking, now: datetime) -> bool:
    return (
        booking.status == BookingStatus.HOLD
        and booking.token_received_at is None
        and booking.token_due_at < now
    )


def find_overdue_booking_ids(now: datetime) -> list[int]:
    rows = (
        db.session.query(Booking.id)
        .filter(
            Booking.status == BookingStatus.HOLD,
            Booking.token_due_at < now,
            Booking.token_received_at.is_(None),
        )
        .order_by(Booking.token_due_at.asc(), Booking.id.asc())
        .all()
    )
    return [r[0] for r in rows]


def _expire_one(booking_id: int, now: datetime) -> Plot | None:
    """
    Release a single overdue hold. Returns the released plot, or None when
    the booking no longer qualifies.
    """
    def _op():
        booking = lock_for_update(
            db.session.query(Booking).filter(Booking.id == booking_id)
        ).first()
        if booking is None or not _is_overdue(booking, now):
            db.session.rollback()
            return None

        plot = lock_for_update(db.session.query(Plot).filter(Plot.id == booking.plot_id)).first()
        if plot is None:
            raise NotFoundError(
                f"Plot {booking.plot_id} for booking {booking.id} not found",
                details={"booking_id": booking.id, "plot_id": booking.plot_id},
            )
        if plot.status != PlotStatus.HOLD:
            raise InvalidStateTransitionError(
                f"Plot {plot.id} is {plot.status}, expected hold",
                details={"booking_id": booking.id, "plot_id": plot.id, "status": plot.status},
            )

        plot_service.release_hold(plot, booking, now=now, reason=EXPIRY_REASON)
        booking_service.expire_booking(booking, now=now)
        db.session.commit()
        return plot

    return run_with_retry(_op)


def _notify_sales_user(notifier, booking_id: int, plot: Plot) -> None:
    """Tell the booking's sales rep, and the manager they report to."""
    booking = db.session.get(Booking, booking_id)
    user = db.session.get(User, booking.sales_user_id) if booking.sales_user_id else None
    message = f"Hold on plot {plot.plot_no} expired (booking {booking_id}); the plot is available again."

    recipients = [user]
    if user is not None and user.reports_to_user_id:
        recipients.append(db.session.get(User, user.reports_to_user_id))
    for recipient in recipients:
        contact = (recipient.phone or recipient.email) if recipient is not None else None
        send_notification(notifier, contact, message)


def expire_overdue_holds(
    *,
    now: datetime | None = None,
    notifier=None,
    force: bool = False,
) -> list[Plot]:
    """
    Release every overdue hold as of `now`.

    Honors settings.auto_expire_hold unless force=True. Per-booking failures
    are rolled back and logged; the sweep moves on to the next booking.

    Returns:
        The plots that were released in this run
    """
    now = now or utcnow()
    settings = get_settings()
    if not settings.auto_expire_hold and not force:
        current_app.logger.info("Hold expiry skipped: auto_expire_hold is disabled")
        return []

    booking_ids = find_overdue_booking_ids(now)
    released: list[Plot] = []

    for booking_id in booking_ids:
        try:
            plot = _expire_one(booking_id, now)
        except DomainError as exc:
            current_app.logger.warning(
                "Hold expiry skipped booking %s: %s", booking_id, exc,
            )
            continue
        except Exception:
            current_app.logger.exception("Hold expiry failed for booking %s", booking_id)
            continue

        if plot is None:
            continue

        released.append(plot)
        current_app.logger.info(
            "Hold expired: plot %s released (booking %s)", plot.id, booking_id,
        )
        _notify_sales_user(notifier, booking_id, plot)

    if booking_ids:
        current_app.logger.info(
            "Hold expiry sweep at %s: %d overdue, %d released",
            now.isoformat(), len(booking_ids), len(released),
        )
    return released
