# Overview: Service-layer operations for the settings singleton; seeds, reads and validates updates.

from __future__ import annotations

from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Settings
from ..permissions import SETTINGS_CRUD
from ..constants import UserRole
from ..validation import ValidationError, require_amount_cents
from . import permission_service
from .concurrency import commit_with_retry
from plots_erp.time_utils import utcnow


SETTINGS_ID = 1

UPDATABLE_KEYS = {
    "default_hold_hours",
    "auto_expire_hold",
    "auto_reassign_dead_leads_days",
    "default_token_amount_cents",
    "whatsapp_api_key",
    "email_smtp",
    "maps_api_key",
    "discount_approval_thresholds",
}


def get_settings() -> Settings:
    """
    Return the settings row, creating it from app.config on first access.

    Read per operation: a change saved by one worker is seen by the next
    hold or sweep tick in every other worker.
    """
    settings = db.session.get(Settings, SETTINGS_ID)
    if settings is not None:
        return settings

    cfg = current_app.config
    settings = Settings(
        id=SETTINGS_ID,
        default_hold_hours=cfg["DEFAULT_HOLD_HOURS"],
        auto_expire_hold=True,
        auto_reassign_dead_leads_days=cfg["DEFAULT_AUTO_REASSIGN_DEAD_LEADS_DAYS"],
        default_token_amount_cents=cfg["DEFAULT_TOKEN_AMOUNT_CENTS"],
        email_smtp={},
        discount_approval_thresholds=dict(cfg["DEFAULT_DISCOUNT_APPROVAL_THRESHOLDS"]),
        updated_at=utcnow(),
    )
    db.session.add(settings)
    db.session.commit()
    current_app.logger.info("Seeded settings singleton from config")
    return settings


def _positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field} must be a positive integer")
    return value


def _thresholds(value: Any) -> dict:
    if not isinstance(value, dict):
        raise ValidationError("discount_approval_thresholds must be an object of role -> percent")
    cleaned = {}
    for role, pct in value.items():
        if role not in UserRole.ALL:
            raise ValidationError(f"discount_approval_thresholds has unknown role: {role}")
        if isinstance(pct, bool) or not isinstance(pct, (int, float)) or not 0 <= pct <= 100:
            raise ValidationError(f"discount_approval_thresholds[{role}] must be between 0 and 100")
        cleaned[role] = pct
    return cleaned


def _clean_changes(changes: dict) -> dict:
    if not isinstance(changes, dict) or not changes:
        raise ValidationError("No settings to update")

    unknown = sorted(k for k in changes if k not in UPDATABLE_KEYS)
    if unknown:
        raise ValidationError(f"Unknown settings: {', '.join(unknown)}")

    cleaned: dict = {}
    for key, value in changes.items():
        if key in ("default_hold_hours", "auto_reassign_dead_leads_days"):
            cleaned[key] = _positive_int(value, key)
        elif key == "auto_expire_hold":
            if not isinstance(value, bool):
                raise ValidationError("auto_expire_hold must be true or false")
            cleaned[key] = value
        elif key == "default_token_amount_cents":
            cleaned[key] = require_amount_cents(value, key)
        elif key == "discount_approval_thresholds":
            cleaned[key] = _thresholds(value)
        elif key == "email_smtp":
            if not isinstance(value, dict):
                raise ValidationError("email_smtp must be an object")
            cleaned[key] = value
        else:
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"{key} must be a string")
            cleaned[key] = value.strip() if isinstance(value, str) else None
    return cleaned


def update_settings(user, changes: dict) -> Settings:
    """Apply a validated partial update. Requires SETTINGS_CRUD."""
    permission_service.require_capability(user, SETTINGS_CRUD)
    cleaned = _clean_changes(changes)

    settings = get_settings()
    for key, value in cleaned.items():
        setattr(settings, key, value)
    settings.updated_by_user_id = user.id
    settings.updated_at = utcnow()

    commit_with_retry()
    current_app.logger.info(
        "Settings updated by user_id=%s: %s", user.id, ", ".join(sorted(cleaned)),
    )
    return settings
