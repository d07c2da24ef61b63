from __future__ import annotations

from ..extensions import db
from ..constants import (
    LeadSource,
    LeadStatus,
    Facing,
    BookingStatus,
    PaymentPlan,
    PaymentStatus,
)
from plots_erp.time_utils import to_utc_z


class Lead(db.Model):
    """Sales contact with budget/preference attributes and a status funnel."""
    __tablename__ = "leads"
    __table_args__ = (
        db.Index("ix_leads_assigned_status", "assigned_to_user_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.String(16), nullable=False, default=LeadSource.WALK_IN)

    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False, default="")
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)

    project_interest_ids = db.Column(db.JSON, nullable=False, default=list)
    budget_min_cents = db.Column(db.Integer, nullable=True)
    budget_max_cents = db.Column(db.Integer, nullable=True)
    plot_size_pref = db.Column(db.Float, nullable=True)
    facing_pref = db.Column(db.String(4), nullable=False, default=Facing.ANY)

    status = db.Column(db.String(16), nullable=False, default=LeadStatus.NEW, index=True)
    reason_lost = db.Column(db.String(255), nullable=False, default="")
    lead_score = db.Column(db.Integer, nullable=False, default=50)

    assigned_to_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    duplicate_of = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=True)

    last_contact_at = db.Column(db.DateTime(timezone=True), nullable=True)
    next_followup_at = db.Column(db.DateTime(timezone=True), nullable=True)
    tags = db.Column(db.JSON, nullable=False, default=list)
    consent_whatsapp = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    assigned_to = db.relationship("User", foreign_keys=[assigned_to_user_id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "phone": self.phone,
            "email": self.email,
            "city": self.city,
            "project_interest_ids": list(self.project_interest_ids or []),
            "budget_min_cents": self.budget_min_cents,
            "budget_max_cents": self.budget_max_cents,
            "plot_size_pref": self.plot_size_pref,
            "facing_pref": self.facing_pref,
            "status": self.status,
            "reason_lost": self.reason_lost,
            "lead_score": self.lead_score,
            "assigned_to_user_id": self.assigned_to_user_id,
            "duplicate_of": self.duplicate_of,
            "last_contact_at": to_utc_z(self.last_contact_at),
            "next_followup_at": to_utc_z(self.next_followup_at),
            "tags": list(self.tags or []),
            "consent_whatsapp": self.consent_whatsapp,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Activity(db.Model):
    """Touchpoint logged against a lead (call, site visit, message...)."""
    __tablename__ = "activities"
    __table_args__ = (
        db.Index("ix_activities_lead_created", "lead_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    lead_id = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    type = db.Column(db.String(16), nullable=False)
    summary = db.Column(db.Text, nullable=False, default="")
    outcome = db.Column(db.String(16), nullable=False)
    next_action_at = db.Column(db.DateTime(timezone=True), nullable=True)
    attachments = db.Column(db.JSON, nullable=False, default=list)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    lead = db.relationship("Lead", backref=db.backref("activities", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "lead_id": self.lead_id,
            "user_id": self.user_id,
            "type": self.type,
            "summary": self.summary,
            "outcome": self.outcome,
            "next_action_at": to_utc_z(self.next_action_at),
            "attachments": list(self.attachments or []),
            "created_at": to_utc_z(self.created_at),
        }


class Booking(db.Model):
    """
    Booking document linked to exactly one plot/lead pair.

    LIFECYCLE:
        hold -> booking_confirmed -> cancelled
        hold -> cancelled
        hold -> expired   (hold-expiry sweep only)

    agreement_value_cents is frozen at hold time. A plot may accumulate many
    expired/cancelled bookings, but at most one open (hold/booking_confirmed)
    booking; the partial unique index backs that at the database level.
    """
    __tablename__ = "bookings"
    __table_args__ = (
        db.Index("ix_bookings_status_token_due", "status", "token_due_at"),
        db.Index(
            "uq_bookings_open_plot",
            "plot_id",
            unique=True,
            sqlite_where=db.text("status IN ('hold', 'booking_confirmed')"),
            postgresql_where=db.text("status IN ('hold', 'booking_confirmed')"),
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    plot_id = db.Column(db.Integer, db.ForeignKey("plots.id"), nullable=False, index=True)
    lead_id = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=False, index=True)
    sales_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    status = db.Column(db.String(24), nullable=False, default=BookingStatus.HOLD, index=True)

    token_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    token_due_at = db.Column(db.DateTime(timezone=True), nullable=False)
    token_received_at = db.Column(db.DateTime(timezone=True), nullable=True)

    agreement_value_cents = db.Column(db.Integer, nullable=False)
    discount_pct = db.Column(db.Float, nullable=False, default=0.0)
    approved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    approval_note = db.Column(db.String(255), nullable=False, default="")

    payment_plan = db.Column(db.String(16), nullable=False, default=PaymentPlan.LINKED)
    payment_status = db.Column(db.String(16), nullable=False, default=PaymentStatus.PENDING)

    re_release_eligible_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancellation_reason = db.Column(db.String(255), nullable=False, default="")
    cancellation_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    cancelled_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    plot = db.relationship("Plot", backref=db.backref("bookings", lazy=True))
    lead = db.relationship("Lead", backref=db.backref("bookings", lazy=True))
    sales_user = db.relationship("User", foreign_keys=[sales_user_id])

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plot_id": self.plot_id,
            "lead_id": self.lead_id,
            "sales_user_id": self.sales_user_id,
            "status": self.status,
            "token_amount_cents": self.token_amount_cents,
            "token_due_at": to_utc_z(self.token_due_at),
            "token_received_at": to_utc_z(self.token_received_at),
            "agreement_value_cents": self.agreement_value_cents,
            "discount_pct": self.discount_pct,
            "approved_by": self.approved_by,
            "approval_note": self.approval_note,
            "payment_plan": self.payment_plan,
            "payment_status": self.payment_status,
            "re_release_eligible_at": to_utc_z(self.re_release_eligible_at),
            "cancellation_reason": self.cancellation_reason,
            "cancellation_fee_cents": self.cancellation_fee_cents,
            "cancelled_by": self.cancelled_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }

    def __repr__(self) -> str:
        return f"<Booking id={self.id} plot_id={self.plot_id} status={self.status}>"


class Payment(db.Model):
    """
    Money received against a booking (token or instalment).

    Payments are separate from bookings to support split and linked plans.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(8), nullable=False)
    txn_ref = db.Column(db.String(64), nullable=True)
    received_at = db.Column(db.DateTime(timezone=True), nullable=False)
    receipt_url = db.Column(db.String(512), nullable=True)
    posted_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    booking = db.relationship("Booking", backref=db.backref("payments", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "amount_cents": self.amount_cents,
            "method": self.method,
            "txn_ref": self.txn_ref,
            "received_at": to_utc_z(self.received_at),
            "receipt_url": self.receipt_url,
            "posted_by": self.posted_by,
        }
