from __future__ import annotations

from ..extensions import db
from ..constants import UserRole
from plots_erp.time_utils import to_utc_z


class User(db.Model):
    """
    Staff accounts. The role is the only thing the permission gate reads.

    Authentication itself lives outside this service; requests identify the
    acting user and the role is looked up here.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role_active", "role", "active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    phone = db.Column(db.String(32), nullable=True)

    role = db.Column(db.String(16), nullable=False, default=UserRole.SALES, index=True)
    reports_to_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    reports_to = db.relationship("User", remote_side=[id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "role": self.role,
            "reports_to_user_id": self.reports_to_user_id,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User id={self.id} role={self.role}>"
