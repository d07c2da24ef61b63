from __future__ import annotations

from ..extensions import db
from ..constants import ProjectStatus, PlotSizeUnit, Facing, PlotStatus
from plots_erp.time_utils import to_utc_z


class Project(db.Model):
    """A layout/venture whose plots are sold individually."""
    __tablename__ = "projects"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)

    location_city = db.Column(db.String(120), nullable=True)
    location_area = db.Column(db.String(160), nullable=True)
    geo_lat = db.Column(db.Float, nullable=True)
    geo_lng = db.Column(db.Float, nullable=True)
    developer_name = db.Column(db.String(160), nullable=True)
    launch_date = db.Column(db.DateTime(timezone=True), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ProjectStatus.ACTIVE, index=True)
    default_plot_size_unit = db.Column(db.String(8), nullable=False, default=PlotSizeUnit.SQFT)
    base_rate_cents = db.Column(db.Integer, nullable=True)
    amenities = db.Column(db.JSON, nullable=False, default=list)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    plots = db.relationship("Plot", back_populates="project", lazy="dynamic")

    @property
    def inventory_count(self) -> int:
        return self.plots.count()

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "location_city": self.location_city,
            "location_area": self.location_area,
            "geo_lat": self.geo_lat,
            "geo_lng": self.geo_lng,
            "developer_name": self.developer_name,
            "launch_date": to_utc_z(self.launch_date),
            "status": self.status,
            "default_plot_size_unit": self.default_plot_size_unit,
            "base_rate_cents": self.base_rate_cents,
            "amenities": list(self.amenities or []),
            "inventory_count": self.inventory_count,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Plot(db.Model):
    """
    A single saleable plot.

    STATUS INVARIANTS:
    - hold_expiry_at is set iff status == hold
    - buyer_id is set iff status in {hold, booked, sold}
    - min_rate_cents <= current_rate_cents <= max_rate_cents

    Only the plot lifecycle service and the hold-expiry sweep change status.
    Plots are never deleted; retirement is a status (blocked).
    """
    __tablename__ = "plots"
    __table_args__ = (
        db.UniqueConstraint("project_id", "plot_no", name="uq_plots_project_plot_no"),
        db.Index("ix_plots_project_status", "project_id", "status"),
        db.CheckConstraint(
            "min_rate_cents <= current_rate_cents AND current_rate_cents <= max_rate_cents",
            name="ck_plots_current_rate_in_bounds",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("projects.id"), nullable=False, index=True)

    block = db.Column(db.String(16), nullable=True)
    phase = db.Column(db.String(16), nullable=True)
    plot_no = db.Column(db.String(32), nullable=False)

    size = db.Column(db.Float, nullable=False)
    size_unit = db.Column(db.String(8), nullable=False, default=PlotSizeUnit.SQFT)
    facing = db.Column(db.String(4), nullable=False, default=Facing.ANY)
    corner = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(16), nullable=False, default=PlotStatus.AVAILABLE, index=True)

    # Rates are per size unit, in minor currency units
    base_rate_cents = db.Column(db.Integer, nullable=False)
    current_rate_cents = db.Column(db.Integer, nullable=False)
    min_rate_cents = db.Column(db.Integer, nullable=False)
    max_rate_cents = db.Column(db.Integer, nullable=False)

    hold_expiry_at = db.Column(db.DateTime(timezone=True), nullable=True)
    booked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_status_change_at = db.Column(db.DateTime(timezone=True), nullable=True)

    buyer_id = db.Column(db.Integer, db.ForeignKey("leads.id"), nullable=True, index=True)
    sales_owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    coordinates = db.Column(db.JSON, nullable=True)
    utilities = db.Column(db.JSON, nullable=False, default=list)
    tags = db.Column(db.JSON, nullable=False, default=list)
    notes = db.Column(db.Text, nullable=False, default="")

    version_id = db.Column(db.Integer, nullable=False, default=1)

    project = db.relationship("Project", back_populates="plots")
    buyer = db.relationship("Lead", foreign_keys=[buyer_id])
    sales_owner = db.relationship("User", foreign_keys=[sales_owner_id])

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "block": self.block,
            "phase": self.phase,
            "plot_no": self.plot_no,
            "size": self.size,
            "size_unit": self.size_unit,
            "facing": self.facing,
            "corner": self.corner,
            "status": self.status,
            "base_rate_cents": self.base_rate_cents,
            "current_rate_cents": self.current_rate_cents,
            "min_rate_cents": self.min_rate_cents,
            "max_rate_cents": self.max_rate_cents,
            "hold_expiry_at": to_utc_z(self.hold_expiry_at),
            "booked_at": to_utc_z(self.booked_at),
            "last_status_change_at": to_utc_z(self.last_status_change_at),
            "buyer_id": self.buyer_id,
            "sales_owner_id": self.sales_owner_id,
            "coordinates": self.coordinates,
            "utilities": list(self.utilities or []),
            "tags": list(self.tags or []),
            "notes": self.notes,
            "version_id": self.version_id,
        }

    def __repr__(self) -> str:
        return f"<Plot id={self.id} plot_no={self.plot_no} status={self.status}>"


class PlotStatusHistory(db.Model):
    """
    Append-only trail of plot status changes.

    changed_by_user_id is NULL when the hold-expiry sweep made the change.
    """
    __tablename__ = "plot_status_history"
    __table_args__ = (
        db.Index("ix_plot_status_history_plot_changed", "plot_id", "changed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    plot_id = db.Column(db.Integer, db.ForeignKey("plots.id"), nullable=False, index=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)

    old_status = db.Column(db.String(16), nullable=False)
    new_status = db.Column(db.String(16), nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    changed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    changed_at = db.Column(db.DateTime(timezone=True), nullable=False)

    plot = db.relationship("Plot", backref=db.backref("status_history", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "plot_id": self.plot_id,
            "booking_id": self.booking_id,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "reason": self.reason,
            "changed_by_user_id": self.changed_by_user_id,
            "changed_at": to_utc_z(self.changed_at),
        }
