# backend/plots_erp/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/plots_erp.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///plots_erp.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seed values for the settings singleton (only used when the row is first created)
    DEFAULT_HOLD_HOURS = int(os.environ.get("DEFAULT_HOLD_HOURS", "48"))
    DEFAULT_TOKEN_AMOUNT_CENTS = int(os.environ.get("DEFAULT_TOKEN_AMOUNT_CENTS", "5000000"))
    DEFAULT_AUTO_REASSIGN_DEAD_LEADS_DAYS = 14
    DEFAULT_DISCOUNT_APPROVAL_THRESHOLDS = {"sales": 5, "pm": 10}

    # Sweep cadence for `flask holds watch`
    HOLD_EXPIRY_INTERVAL_SECONDS = int(os.environ.get("HOLD_EXPIRY_INTERVAL_SECONDS", "15"))
