# Overview: Service-layer state machines for plots and bookings; validates and applies status changes.

"""
Plot and Booking lifecycle rules.

PLOT STATE MACHINE:
    available -> hold | blocked
    hold      -> available | booked
    booked    -> sold | available
    blocked   -> available
    sold      (terminal)

BOOKING STATE MACHINE:
    hold              -> booking_confirmed | cancelled | expired
    booking_confirmed -> cancelled
    cancelled, expired (terminal)

RULES:
1. Every status write goes through transition_plot / transition_booking
2. Same-state "transitions" are rejected; callers decide what a no-op means
3. Every plot change appends a PlotStatusHistory row in the same session
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Plot, Booking, PlotStatusHistory
from ..constants import PlotStatus, BookingStatus
from ..errors import InvalidStateTransitionError


PLOT_TRANSITIONS = {
    PlotStatus.AVAILABLE: frozenset({PlotStatus.HOLD, PlotStatus.BLOCKED}),
    PlotStatus.HOLD: frozenset({PlotStatus.AVAILABLE, PlotStatus.BOOKED}),
    PlotStatus.BOOKED: frozenset({PlotStatus.SOLD, PlotStatus.AVAILABLE}),
    PlotStatus.BLOCKED: frozenset({PlotStatus.AVAILABLE}),
    PlotStatus.SOLD: frozenset(),
}

BOOKING_TRANSITIONS = {
    BookingStatus.HOLD: frozenset({
        BookingStatus.BOOKING_CONFIRMED,
        BookingStatus.CANCELLED,
        BookingStatus.EXPIRED,
    }),
    BookingStatus.BOOKING_CONFIRMED: frozenset({BookingStatus.CANCELLED}),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.EXPIRED: frozenset(),
}


def can_transition_plot(from_status: str, to_status: str) -> bool:
    return to_status in PLOT_TRANSITIONS.get(from_status, frozenset())


def can_transition_booking(from_status: str, to_status: str) -> bool:
    return to_status in BOOKING_TRANSITIONS.get(from_status, frozenset())


def transition_plot(
    plot: Plot,
    to_status: str,
    *,
    now: datetime,
    changed_by_user_id: int | None = None,
    booking_id: int | None = None,
    reason: str | None = None,
) -> PlotStatusHistory:
    """
    Move a plot to to_status and record the change. Does not commit.

    Raises:
        InvalidStateTransitionError: if the graph forbids the move
    """
    from_status = plot.status
    if not can_transition_plot(from_status, to_status):
        raise InvalidStateTransitionError(
            f"Cannot move plot {plot.id} from '{from_status}' to '{to_status}'",
            details={"plot_id": plot.id, "from": from_status, "to": to_status},
        )

    plot.status = to_status
    plot.last_status_change_at = now

    history = PlotStatusHistory(
        plot_id=plot.id,
        booking_id=booking_id,
        old_status=from_status,
        new_status=to_status,
        reason=reason,
        changed_by_user_id=changed_by_user_id,
        changed_at=now,
    )
    db.session.add(history)
    return history


def transition_booking(booking: Booking, to_status: str, *, now: datetime) -> None:
    """Move a booking to to_status. Does not commit."""
    from_status = booking.status
    if not can_transition_booking(from_status, to_status):
        raise InvalidStateTransitionError(
            f"Cannot move booking {booking.id} from '{from_status}' to '{to_status}'",
            details={"booking_id": booking.id, "from": from_status, "to": to_status},
        )
    booking.status = to_status
    booking.updated_at = now
