"""
HTTP API tests.

The acting user is identified by the X-User-Id header; the role lookup and
the domain error -> status code mapping are what these tests pin down.
"""

from datetime import timedelta

from plots_erp.extensions import db
from plots_erp.models import Plot, Booking
from plots_erp.constants import PlotStatus, BookingStatus
from plots_erp.services import plot_service, booking_service
from plots_erp.time_utils import utcnow


def _as(user):
    return {"X-User-Id": str(user.id)}


def test_health(client, db_session):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["hold_policy"]["default_hold_hours"] == 48


def test_missing_or_unknown_user_is_401(client, plot):
    assert client.get("/api/plots").status_code == 401
    assert client.get("/api/plots", headers={"X-User-Id": "abc"}).status_code == 401
    assert client.get("/api/plots", headers={"X-User-Id": "9999"}).status_code == 401


def test_list_and_get_plots(client, finance_user, plot):
    resp = client.get(f"/api/plots?project_id={plot.project_id}&status=available", headers=_as(finance_user))
    assert resp.status_code == 200
    assert [p["id"] for p in resp.get_json()["plots"]] == [plot.id]

    resp = client.get(f"/api/plots/{plot.id}", headers=_as(finance_user))
    assert resp.status_code == 200
    assert resp.get_json()["plot"]["status_history"] == []

    assert client.get("/api/plots/4040", headers=_as(finance_user)).status_code == 404
    assert client.get("/api/plots?status=reserved", headers=_as(finance_user)).status_code == 400


def test_hold_via_api(client, sales_user, plot, lead):
    resp = client.post(f"/api/plots/{plot.id}/hold", json={"lead_id": lead.id}, headers=_as(sales_user))

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["plot"]["status"] == PlotStatus.HOLD
    assert body["booking"]["status"] == BookingStatus.HOLD
    assert body["booking"]["agreement_value_cents"] == 264_000_000

    again = client.post(f"/api/plots/{plot.id}/hold", json={"lead_id": lead.id}, headers=_as(sales_user))
    assert again.status_code == 409
    assert again.get_json()["details"]["status"] == PlotStatus.HOLD


def test_hold_error_codes(client, sales_user, finance_user, plot):
    resp = client.post(f"/api/plots/{plot.id}/hold", json={"lead_id": 1}, headers=_as(finance_user))
    assert resp.status_code == 403
    assert resp.get_json()["required_permission"] == "HOLD_PLOT"

    assert client.post(f"/api/plots/{plot.id}/hold", json={}, headers=_as(sales_user)).status_code == 400
    assert client.post(f"/api/plots/{plot.id}/hold", json={"lead_id": 8888}, headers=_as(sales_user)).status_code == 404

    db.session.expire_all()
    assert db.session.get(Plot, plot.id).status == PlotStatus.AVAILABLE


def test_confirm_and_cancel_via_api(client, sales_user, pm_user, plot, lead):
    booking = plot_service.place_hold(sales_user, plot.id, lead.id)
    booking_id = booking.id

    resp = client.post(
        f"/api/bookings/{booking_id}/confirm",
        json={"amount_cents": 5_000_000, "method": "upi", "txn_ref": "UPI-1"},
        headers=_as(sales_user),
    )
    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == BookingStatus.BOOKING_CONFIRMED

    resp = client.post(f"/api/bookings/{booking_id}/cancel", json={"reason": "Loan rejected"}, headers=_as(sales_user))
    assert resp.status_code == 403

    resp = client.post(f"/api/bookings/{booking_id}/cancel", json={}, headers=_as(pm_user))
    assert resp.status_code == 400

    resp = client.post(f"/api/bookings/{booking_id}/cancel", json={"reason": "Loan rejected"}, headers=_as(pm_user))
    assert resp.status_code == 200
    assert resp.get_json()["booking"]["status"] == BookingStatus.CANCELLED

    resp = client.get(f"/api/bookings?plot_id={plot.id}", headers=_as(sales_user))
    assert [b["id"] for b in resp.get_json()["bookings"]] == [booking_id]


def test_manual_expiry_via_api(client, sales_user, pm_user, plot, lead):
    plot_service.place_hold(sales_user, plot.id, lead.id, now=utcnow() - timedelta(hours=72))

    assert client.post("/api/holds/expire", headers=_as(sales_user)).status_code == 403

    resp = client.post("/api/holds/expire", json={}, headers=_as(pm_user))
    assert resp.status_code == 200
    assert resp.get_json()["released"] == 1

    db.session.expire_all()
    assert db.session.query(Booking).filter_by(status=BookingStatus.EXPIRED).count() == 1


def test_leads_and_activities_via_api(client, sales_user, finance_user):
    resp = client.post("/api/leads", json={"first_name": "Anil", "phone": "+91900"}, headers=_as(sales_user))
    assert resp.status_code == 201
    lead_id = resp.get_json()["lead"]["id"]

    assert client.post("/api/leads", json={"first_name": "X"}, headers=_as(sales_user)).status_code == 400
    assert client.post("/api/leads", json={"first_name": "X", "phone": "1"}, headers=_as(finance_user)).status_code == 403

    resp = client.get("/api/leads", headers=_as(finance_user))
    assert [l["id"] for l in resp.get_json()["leads"]] == [lead_id]
    assert client.get(f"/api/leads/{lead_id}", headers=_as(finance_user)).status_code == 200
    assert client.get("/api/leads/5555", headers=_as(finance_user)).status_code == 404

    resp = client.post(
        f"/api/leads/{lead_id}/activities",
        json={"type": "call", "summary": "Intro call", "outcome": "connected"},
        headers=_as(sales_user),
    )
    assert resp.status_code == 201

    resp = client.post(
        f"/api/leads/{lead_id}/activities",
        json={"type": "call", "outcome": "connected", "next_action_at": "not-a-date"},
        headers=_as(sales_user),
    )
    assert resp.status_code == 400

    resp = client.get(f"/api/leads/{lead_id}/activities", headers=_as(sales_user))
    assert [a["summary"] for a in resp.get_json()["activities"]] == ["Intro call"]

    resp = client.post(f"/api/leads/{lead_id}/status", json={"status": "won"}, headers=_as(sales_user))
    assert resp.status_code == 200
    resp = client.post(f"/api/leads/{lead_id}/status", json={"status": "hot"}, headers=_as(sales_user))
    assert resp.status_code == 409


def test_settings_via_api(client, admin, sales_user):
    resp = client.patch("/api/settings", json={"default_hold_hours": 24, "maps_api_key": "k"}, headers=_as(admin))
    assert resp.status_code == 200
    body = resp.get_json()["settings"]
    assert body["default_hold_hours"] == 24
    assert body["maps_api_key"] == "***"

    assert client.patch("/api/settings", json={"default_hold_hours": 24}, headers=_as(sales_user)).status_code == 403
    assert client.patch("/api/settings", json={"default_hold_hours": -1}, headers=_as(admin)).status_code == 400

    resp = client.get("/api/settings", headers=_as(sales_user))
    assert resp.status_code == 200
    assert resp.get_json()["settings"]["default_hold_hours"] == 24


def test_project_and_plot_setup_via_api(client, admin):
    resp = client.post("/api/projects", json={"name": "Hill Top", "code": "HT1"}, headers=_as(admin))
    assert resp.status_code == 201
    project_id = resp.get_json()["project"]["id"]

    resp = client.post(
        f"/api/projects/{project_id}/plots",
        json={
            "plot_no": "1", "size": 1500, "base_rate_cents": 100,
            "current_rate_cents": 100, "min_rate_cents": 90, "max_rate_cents": 110,
        },
        headers=_as(admin),
    )
    assert resp.status_code == 201
    assert resp.get_json()["plot"]["status"] == PlotStatus.AVAILABLE

    resp = client.get("/api/projects", headers=_as(admin))
    assert [p["code"] for p in resp.get_json()["projects"]] == ["HT1"]


def test_hold_lost_to_concurrent_booking_is_409(client, sales_user, plot, lead, monkeypatch):
    now = utcnow()
    db.session.add(Booking(
        plot_id=plot.id,
        lead_id=lead.id,
        status=BookingStatus.HOLD,
        token_due_at=now + timedelta(hours=48),
        agreement_value_cents=1,
        created_at=now,
        updated_at=now,
    ))
    db.session.commit()
    monkeypatch.setattr(booking_service, "get_open_booking_for_plot", lambda plot_id: None)

    resp = client.post(f"/api/plots/{plot.id}/hold", json={"lead_id": lead.id}, headers=_as(sales_user))

    assert resp.status_code == 409
    assert resp.get_json()["details"] == {"plot_id": plot.id}
