# Overview: Service-layer operations for bookings; builds holds, confirms, cancels and expires them.

"""
Booking Lifecycle

A booking is opened in status 'hold' in the same transaction that puts its
plot on hold. From there:
- confirm_booking: token received, plot becomes booked
- cancel_booking:  plot goes back to inventory
- expire_booking:  only the hold-expiry sweep calls this

agreement_value_cents is computed once, at hold time, from the plot's
current rate and size. Later rate edits do not touch open bookings.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

from ..extensions import db
from ..models import Booking, Payment, Plot, Lead, Settings
from ..constants import BookingStatus, PlotStatus, PaymentPlan, PaymentStatus, PaymentMethod
from ..errors import InvalidStateTransitionError, NotFoundError
from ..permissions import BOOK_PLOT, RE_RELEASE_PLOT
from ..validation import ValidationError, require_amount_cents
from . import permission_service, lifecycle_service
from .concurrency import lock_for_update, run_with_retry
from .notification_service import send_notification
from plots_erp.time_utils import utcnow


def agreement_value_cents(plot: Plot) -> int:
    """size x current rate, rounded half-up to whole minor units."""
    value = Decimal(str(plot.size)) * Decimal(plot.current_rate_cents)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def token_due_at(hold_expiry_at: datetime) -> datetime:
    """The token is due when the hold lapses."""
    return hold_expiry_at


def get_open_booking_for_plot(plot_id: int) -> Booking | None:
    return (
        db.session.query(Booking)
        .filter(Booking.plot_id == plot_id, Booking.status.in_(sorted(BookingStatus.OPEN)))
        .first()
    )


def open_hold_booking(
    plot: Plot,
    lead: Lead,
    sales_user_id: int | None,
    *,
    now: datetime,
    settings: Settings,
) -> Booking:
    """
    Build the 'hold' booking for a plot that was just put on hold.

    Adds to the session and flushes so the booking id is available; the
    caller owns the commit.

    Raises:
        InvalidStateTransitionError: if the plot already has an open booking
    """
    existing = get_open_booking_for_plot(plot.id)
    if existing is not None:
        raise InvalidStateTransitionError(
            f"Plot {plot.id} already has open booking {existing.id}",
            details={"plot_id": plot.id, "booking_id": existing.id},
        )

    booking = Booking(
        plot_id=plot.id,
        lead_id=lead.id,
        sales_user_id=sales_user_id,
        status=BookingStatus.HOLD,
        token_amount_cents=settings.default_token_amount_cents,
        token_due_at=token_due_at(plot.hold_expiry_at),
        agreement_value_cents=agreement_value_cents(plot),
        discount_pct=0.0,
        payment_plan=PaymentPlan.LINKED,
        payment_status=PaymentStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    db.session.add(booking)
    db.session.flush()
    return booking


def expire_booking(booking: Booking, *, now: datetime) -> bool:
    """
    hold -> expired. Returns False without changes when the booking has
    already left 'hold' (confirmed, cancelled or expired by an earlier tick).
    """
    if booking.status != BookingStatus.HOLD:
        return False
    lifecycle_service.transition_booking(booking, BookingStatus.EXPIRED, now=now)
    return True


def get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found", details={"booking_id": booking_id})
    return booking


def _lock_booking_and_plot(booking_id: int) -> tuple[Booking, Plot]:
    booking = lock_for_update(db.session.query(Booking).filter(Booking.id == booking_id)).first()
    if booking is None:
        raise NotFoundError(f"Booking {booking_id} not found", details={"booking_id": booking_id})
    plot = lock_for_update(db.session.query(Plot).filter(Plot.id == booking.plot_id)).first()
    if plot is None:
        raise NotFoundError(
            f"Plot {booking.plot_id} for booking {booking_id} not found",
            details={"booking_id": booking_id, "plot_id": booking.plot_id},
        )
    return booking, plot


def confirm_booking(
    user,
    booking_id: int,
    *,
    amount_cents: int,
    method: str,
    txn_ref: str | None = None,
    now: datetime | None = None,
    notifier=None,
) -> Booking:
    """
    Record the token payment: booking hold -> booking_confirmed, plot hold -> booked.

    payment_status becomes 'complete' when the amount covers the agreement
    value, otherwise 'partial'.
    """
    permission_service.require_capability(user, BOOK_PLOT)
    amount_cents = require_amount_cents(amount_cents, "amount_cents", allow_zero=False)
    if method not in PaymentMethod.ALL:
        raise ValidationError(f"method must be one of: {', '.join(sorted(PaymentMethod.ALL))}")
    now = now or utcnow()

    def _op():
        booking, plot = _lock_booking_and_plot(booking_id)
        lifecycle_service.transition_booking(booking, BookingStatus.BOOKING_CONFIRMED, now=now)
        lifecycle_service.transition_plot(
            plot,
            PlotStatus.BOOKED,
            now=now,
            changed_by_user_id=user.id,
            booking_id=booking.id,
            reason="Token received",
        )
        plot.booked_at = now
        plot.hold_expiry_at = None

        booking.token_received_at = now
        booking.payment_status = (
            PaymentStatus.COMPLETE
            if amount_cents >= booking.agreement_value_cents
            else PaymentStatus.PARTIAL
        )
        db.session.add(Payment(
            booking_id=booking.id,
            amount_cents=amount_cents,
            method=method,
            txn_ref=txn_ref,
            received_at=now,
            posted_by=user.id,
        ))
        db.session.commit()
        return booking

    booking = run_with_retry(_op)
    current_app.logger.info(
        "Booking %s confirmed by user_id=%s amount_cents=%s",
        booking.id, user.id, amount_cents,
    )
    lead = db.session.get(Lead, booking.lead_id)
    send_notification(
        notifier,
        lead.phone if lead else None,
        f"Booking {booking.id} confirmed. Payment of {amount_cents} received.",
    )
    return booking


def cancel_booking(
    user,
    booking_id: int,
    *,
    reason: str,
    fee_cents: int = 0,
    now: datetime | None = None,
) -> Booking:
    """Cancel an open booking and return its plot to inventory."""
    permission_service.require_capability(user, RE_RELEASE_PLOT)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("reason is required")
    fee_cents = require_amount_cents(fee_cents, "fee_cents")
    now = now or utcnow()

    def _op():
        booking, plot = _lock_booking_and_plot(booking_id)
        lifecycle_service.transition_booking(booking, BookingStatus.CANCELLED, now=now)
        lifecycle_service.transition_plot(
            plot,
            PlotStatus.AVAILABLE,
            now=now,
            changed_by_user_id=user.id,
            booking_id=booking.id,
            reason=reason,
        )
        plot.hold_expiry_at = None
        plot.buyer_id = None
        plot.booked_at = None

        booking.cancellation_reason = reason
        booking.cancellation_fee_cents = fee_cents
        booking.cancelled_by = user.id
        booking.re_release_eligible_at = now
        db.session.commit()
        return booking

    booking = run_with_retry(_op)
    current_app.logger.info(
        "Booking %s cancelled by user_id=%s: %s", booking.id, user.id, reason,
    )
    return booking


def list_bookings(
    status: str | None = None,
    plot_id: int | None = None,
    lead_id: int | None = None,
) -> list[Booking]:
    if status is not None and status not in BookingStatus.ALL:
        raise ValidationError(f"status must be one of: {', '.join(sorted(BookingStatus.ALL))}")

    q = db.session.query(Booking)
    if status:
        q = q.filter(Booking.status == status)
    if plot_id is not None:
        q = q.filter(Booking.plot_id == plot_id)
    if lead_id is not None:
        q = q.filter(Booking.lead_id == lead_id)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
