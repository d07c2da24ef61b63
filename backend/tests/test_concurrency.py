"""
Concurrency tests for the plot/booking lifecycle.

The retry helper is tested directly; the races run real threads against a
file-backed SQLite database, each thread with its own app context and session.
"""

import os
import tempfile
import threading
import unittest
from datetime import timedelta

import pytest
from sqlalchemy.orm.exc import StaleDataError

from plots_erp import create_app
from plots_erp.extensions import db
from plots_erp.models import Booking, Lead, Plot, Project, User
from plots_erp.constants import BookingStatus, PaymentMethod, PlotStatus, UserRole
from plots_erp.errors import InvalidStateTransitionError
from plots_erp.services import booking_service, hold_expiry_service, plot_service
from plots_erp.services.concurrency import run_with_retry
from plots_erp.services.notification_service import RecordingNotifier
from plots_erp.services.settings_service import get_settings
from conftest import T0


def test_retries_stale_data_then_succeeds(app, db_session):
    calls = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise StaleDataError("version mismatch")
        return "ok"

    assert run_with_retry(flaky, attempts=3, backoff_base=0) == "ok"
    assert len(calls) == 3


def test_gives_up_after_attempts(app, db_session):
    calls = []

    def always_stale():
        calls.append(1)
        raise StaleDataError("version mismatch")

    with pytest.raises(StaleDataError):
        run_with_retry(always_stale, attempts=2, backoff_base=0)
    assert len(calls) == 2


def test_domain_errors_are_not_retried(app, db_session):
    calls = []

    def refuse():
        calls.append(1)
        raise InvalidStateTransitionError("plot is on hold")

    with pytest.raises(InvalidStateTransitionError):
        run_with_retry(refuse, attempts=3, backoff_base=0)
    assert calls == [1]


class PlotRaceTests(unittest.TestCase):
    """Holds, confirmations and the sweep racing on one plot."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        db_path = os.path.join(self.tmpdir.name, "races.db")
        self.app = create_app({
            'TESTING': True,
            'SQLALCHEMY_DATABASE_URI': f"sqlite:///{db_path}",
            'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
            'DEFAULT_HOLD_HOURS': 48,
            'NOTIFIER': RecordingNotifier(),
        })

        with self.app.app_context():
            db.create_all()
            get_settings()

            rep = User(name="Race Rep", email="rep@plots.test", phone="+911111111111", role=UserRole.SALES)
            project = Project(name="Race Park", code="RP01")
            db.session.add_all([rep, project])
            db.session.commit()
            self.rep_id = rep.id

            plot = Plot(
                project_id=project.id,
                plot_no="R-1",
                size=1000.0,
                status=PlotStatus.AVAILABLE,
                base_rate_cents=100_000,
                current_rate_cents=100_000,
                min_rate_cents=90_000,
                max_rate_cents=110_000,
            )
            leads = [
                Lead(first_name=f"Buyer {i}", phone=f"+91222222222{i}", assigned_to_user_id=rep.id)
                for i in range(6)
            ]
            db.session.add(plot)
            db.session.add_all(leads)
            db.session.commit()
            self.plot_id = plot.id
            self.lead_ids = [lead.id for lead in leads]

    def tearDown(self):
        with self.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        self.tmpdir.cleanup()

    def _run(self, *jobs):
        """Start every job together; each returns a result or its exception."""
        results = [None] * len(jobs)
        barrier = threading.Barrier(len(jobs))

        def worker(index, job):
            with self.app.app_context():
                try:
                    barrier.wait()
                    results[index] = job()
                except Exception as exc:
                    results[index] = exc
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=worker, args=(i, job)) for i, job in enumerate(jobs)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return results

    def _rep(self):
        return db.session.get(User, self.rep_id)

    def _hold(self, lead_id, now):
        def job():
            return plot_service.place_hold(self._rep(), self.plot_id, lead_id, now=now).lead_id
        return job

    def _open_bookings(self):
        return (
            db.session.query(Booking)
            .filter(Booking.plot_id == self.plot_id, Booking.status.in_(sorted(BookingStatus.OPEN)))
            .all()
        )

    def test_concurrent_holds_have_one_winner(self):
        results = self._run(*[self._hold(lead_id, T0) for lead_id in self.lead_ids])

        winners = [r for r in results if isinstance(r, int)]
        losers = [r for r in results if not isinstance(r, int)]
        self.assertEqual(len(winners), 1)
        for exc in losers:
            self.assertIsInstance(exc, InvalidStateTransitionError)

        with self.app.app_context():
            plot = db.session.get(Plot, self.plot_id)
            self.assertEqual(plot.status, PlotStatus.HOLD)
            self.assertEqual(plot.buyer_id, winners[0])
            open_bookings = self._open_bookings()
            self.assertEqual([b.lead_id for b in open_bookings], winners)

    def test_confirm_racing_sweep_has_one_outcome(self):
        with self.app.app_context():
            booking = plot_service.place_hold(
                self._rep(), self.plot_id, self.lead_ids[0], now=T0 - timedelta(hours=49),
            )
            booking_id = booking.id
            db.session.remove()

        def confirm():
            booking_service.confirm_booking(
                self._rep(), booking_id, amount_cents=5_000_000, method=PaymentMethod.UPI, now=T0,
            )
            return "confirmed"

        def sweep():
            return len(hold_expiry_service.expire_overdue_holds(now=T0))

        confirm_result, released = self._run(confirm, sweep)

        with self.app.app_context():
            plot = db.session.get(Plot, self.plot_id)
            booking = db.session.get(Booking, booking_id)
            if confirm_result == "confirmed":
                self.assertEqual(released, 0)
                self.assertEqual(booking.status, BookingStatus.BOOKING_CONFIRMED)
                self.assertEqual(plot.status, PlotStatus.BOOKED)
            else:
                self.assertIsInstance(confirm_result, InvalidStateTransitionError)
                self.assertEqual(released, 1)
                self.assertEqual(booking.status, BookingStatus.EXPIRED)
                self.assertEqual(plot.status, PlotStatus.AVAILABLE)
                self.assertIsNone(plot.buyer_id)

    def test_hold_racing_sweep_never_leaves_two_open_bookings(self):
        with self.app.app_context():
            plot_service.place_hold(
                self._rep(), self.plot_id, self.lead_ids[0], now=T0 - timedelta(hours=49),
            )
            db.session.remove()

        def sweep():
            return len(hold_expiry_service.expire_overdue_holds(now=T0))

        new_lead_id = self.lead_ids[1]
        hold_result, released = self._run(self._hold(new_lead_id, T0), sweep)

        self.assertEqual(released, 1)
        with self.app.app_context():
            plot = db.session.get(Plot, self.plot_id)
            open_bookings = self._open_bookings()
            if hold_result == new_lead_id:
                self.assertEqual(plot.status, PlotStatus.HOLD)
                self.assertEqual(plot.buyer_id, new_lead_id)
                self.assertEqual([b.lead_id for b in open_bookings], [new_lead_id])
            else:
                self.assertIsInstance(hold_result, InvalidStateTransitionError)
                self.assertEqual(plot.status, PlotStatus.AVAILABLE)
                self.assertEqual(open_bookings, [])
