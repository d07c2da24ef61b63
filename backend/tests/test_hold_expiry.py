"""
Tests for the hold-expiry sweep.

A hold placed at T0-49h is due at T0-1h (48h window) and must be released by
a sweep at T0. A hold placed at T0-47h is due at T0+1h and must be left alone.
"""

from datetime import timedelta

from plots_erp.extensions import db
from plots_erp.models import Booking, Plot, PlotStatusHistory
from plots_erp.constants import PlotStatus, BookingStatus, UserRole
from plots_erp.services import plot_service, booking_service, hold_expiry_service, settings_service
from conftest import T0, make_plot, make_user


def _reload(model, pk):
    db.session.expire_all()
    return db.session.get(model, pk)


def test_overdue_hold_is_released(sales_user, plot, lead):
    booking = plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))

    released = hold_expiry_service.expire_overdue_holds(now=T0)

    assert [p.id for p in released] == [plot.id]
    expired = _reload(Booking, booking.id)
    assert expired.status == BookingStatus.EXPIRED
    assert expired.updated_at == T0

    freed = db.session.get(Plot, plot.id)
    assert freed.status == PlotStatus.AVAILABLE
    assert freed.hold_expiry_at is None
    assert freed.buyer_id is None
    assert freed.last_status_change_at == T0


def test_release_is_recorded_without_a_user(sales_user, plot, lead):
    plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))
    hold_expiry_service.expire_overdue_holds(now=T0)

    history = plot_service.get_status_history(plot.id)
    assert [(h.old_status, h.new_status) for h in history] == [
        (PlotStatus.AVAILABLE, PlotStatus.HOLD),
        (PlotStatus.HOLD, PlotStatus.AVAILABLE),
    ]
    assert history[-1].changed_by_user_id is None
    assert history[-1].reason == hold_expiry_service.EXPIRY_REASON


def test_future_hold_is_untouched(sales_user, plot, lead):
    booking = plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=47))

    assert hold_expiry_service.expire_overdue_holds(now=T0) == []

    assert _reload(Booking, booking.id).status == BookingStatus.HOLD
    held = db.session.get(Plot, plot.id)
    assert held.status == PlotStatus.HOLD
    assert held.hold_expiry_at == T0 + timedelta(hours=1)
    assert held.buyer_id == lead.id


def test_hold_due_exactly_now_is_not_yet_overdue(sales_user, plot, lead):
    plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=48))
    assert hold_expiry_service.expire_overdue_holds(now=T0) == []


def test_second_sweep_releases_nothing(sales_user, plot, lead):
    plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))

    first = hold_expiry_service.expire_overdue_holds(now=T0)
    second = hold_expiry_service.expire_overdue_holds(now=T0)

    assert len(first) == 1
    assert second == []
    assert len(plot_service.get_status_history(plot.id)) == 2


def test_paid_hold_is_never_expired(sales_user, plot, lead):
    booking = plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))
    booking_service.confirm_booking(
        sales_user, booking.id, amount_cents=5_000_000, method="upi",
        now=T0 - timedelta(hours=2),
    )

    assert hold_expiry_service.expire_overdue_holds(now=T0) == []
    assert _reload(Plot, plot.id).status == PlotStatus.BOOKED


def test_disabled_auto_expire_skips_unless_forced(admin, sales_user, plot, lead):
    settings_service.update_settings(admin, {"auto_expire_hold": False})
    plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))

    assert hold_expiry_service.expire_overdue_holds(now=T0) == []
    assert _reload(Plot, plot.id).status == PlotStatus.HOLD

    released = hold_expiry_service.expire_overdue_holds(now=T0, force=True)
    assert [p.id for p in released] == [plot.id]


def test_one_bad_row_does_not_stop_the_sweep(sales_user, project, lead):
    broken = make_plot(project, "C-1")
    healthy = make_plot(project, "C-2")
    bad_booking = plot_service.place_hold(sales_user, broken.id, lead.id, now=T0 - timedelta(hours=50))
    good_booking = plot_service.place_hold(sales_user, healthy.id, lead.id, now=T0 - timedelta(hours=49))

    # Out-of-band edit leaves the booking in hold but the plot no longer held
    broken.status = PlotStatus.BLOCKED
    db.session.commit()

    released = hold_expiry_service.expire_overdue_holds(now=T0)

    assert [p.id for p in released] == [healthy.id]
    assert _reload(Booking, bad_booking.id).status == BookingStatus.HOLD
    assert db.session.get(Booking, good_booking.id).status == BookingStatus.EXPIRED
    assert db.session.get(Plot, broken.id).status == PlotStatus.BLOCKED


def test_deleted_plot_is_skipped_and_sweep_continues(sales_user, project, lead):
    gone = make_plot(project, "D-1")
    healthy = make_plot(project, "D-2")
    orphan = plot_service.place_hold(sales_user, gone.id, lead.id, now=T0 - timedelta(hours=50))
    plot_service.place_hold(sales_user, healthy.id, lead.id, now=T0 - timedelta(hours=49))
    gone_id = gone.id

    db.session.execute(PlotStatusHistory.__table__.delete().where(PlotStatusHistory.plot_id == gone_id))
    db.session.execute(Plot.__table__.delete().where(Plot.id == gone_id))
    db.session.commit()

    released = hold_expiry_service.expire_overdue_holds(now=T0)

    assert [p.id for p in released] == [healthy.id]
    assert _reload(Booking, orphan.id).status == BookingStatus.HOLD
    assert db.session.get(Plot, gone_id) is None


def test_sweep_notifies_sales_user_and_manager(plot, lead, notifier):
    manager = make_user(UserRole.PM, name="Site Manager", phone="+919900000001")
    rep = make_user(UserRole.SALES, name="Field Rep", phone="+919900000002", reports_to=manager)
    plot_service.place_hold(rep, plot.id, lead.id, now=T0 - timedelta(hours=49))
    notifier.sent.clear()

    hold_expiry_service.expire_overdue_holds(now=T0)

    assert [contact for contact, _ in notifier.sent] == [rep.phone, manager.phone]
    assert all(plot.plot_no in message for _, message in notifier.sent)


def test_manager_hold_expiry_notifies_lead_owner(pm_user, sales_user, plot, lead, notifier):
    sales_user.phone = "+919900000003"
    db.session.commit()
    plot_service.place_hold(pm_user, plot.id, lead.id, now=T0 - timedelta(hours=49))
    notifier.sent.clear()

    hold_expiry_service.expire_overdue_holds(now=T0)

    assert [contact for contact, _ in notifier.sent] == ["+919900000003"]


def test_notifier_failure_does_not_undo_release(app, sales_user, plot, lead):
    class BrokenNotifier:
        def notify(self, contact, message):
            raise ConnectionError("gateway down")

    plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))
    released = hold_expiry_service.expire_overdue_holds(now=T0, notifier=BrokenNotifier())

    assert len(released) == 1
    assert _reload(Plot, plot.id).status == PlotStatus.AVAILABLE


def test_released_plot_can_be_held_again(sales_user, plot, lead):
    old = plot_service.place_hold(sales_user, plot.id, lead.id, now=T0 - timedelta(hours=49))
    hold_expiry_service.expire_overdue_holds(now=T0)

    new = plot_service.place_hold(sales_user, plot.id, lead.id, now=T0)

    assert new.id != old.id
    bookings = booking_service.list_bookings(plot_id=plot.id)
    assert sorted(b.status for b in bookings) == [BookingStatus.EXPIRED, BookingStatus.HOLD]
