from __future__ import annotations

from ..extensions import db
from plots_erp.time_utils import to_utc_z


SENSITIVE_KEYS = ("whatsapp_api_key", "maps_api_key", "email_smtp")


class Settings(db.Model):
    """
    Process-wide configuration. Exactly one row (id=1), seeded from app.config
    on first read and edited at runtime by users holding SETTINGS_CRUD.
    """
    __tablename__ = "settings"

    id = db.Column(db.Integer, primary_key=True)

    default_hold_hours = db.Column(db.Integer, nullable=False, default=48)
    auto_expire_hold = db.Column(db.Boolean, nullable=False, default=True)
    auto_reassign_dead_leads_days = db.Column(db.Integer, nullable=False, default=14)
    default_token_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    whatsapp_api_key = db.Column(db.String(255), nullable=True)
    email_smtp = db.Column(db.JSON, nullable=False, default=dict)
    maps_api_key = db.Column(db.String(255), nullable=True)

    # Stored for the discount approval workflow; not enforced by this service
    discount_approval_thresholds = db.Column(db.JSON, nullable=False, default=dict)

    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self, *, include_sensitive: bool = False) -> dict:
        data = {
            "id": self.id,
            "default_hold_hours": self.default_hold_hours,
            "auto_expire_hold": self.auto_expire_hold,
            "auto_reassign_dead_leads_days": self.auto_reassign_dead_leads_days,
            "default_token_amount_cents": self.default_token_amount_cents,
            "whatsapp_api_key": self.whatsapp_api_key,
            "email_smtp": dict(self.email_smtp or {}),
            "maps_api_key": self.maps_api_key,
            "discount_approval_thresholds": dict(self.discount_approval_thresholds or {}),
            "updated_by_user_id": self.updated_by_user_id,
            "updated_at": to_utc_z(self.updated_at),
        }
        if not include_sensitive:
            for key in SENSITIVE_KEYS:
                if data[key]:
                    data[key] = "***"
        return data
