# backend/plots_erp/__init__.py
from __future__ import annotations

import logging

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config: dict | None = None) -> Flask:
    """
    Application factory.

    `config` overrides Config before extensions are initialised, so tests can
    point SQLALCHEMY_DATABASE_URI at an in-memory database or inject a
    NOTIFIER.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.notification_service import NOTIFIER_EXTENSION_KEY, LoggingNotifier
    app.extensions[NOTIFIER_EXTENSION_KEY] = app.config.get("NOTIFIER") or LoggingNotifier()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.plots import plots_bp
    from .routes.bookings import bookings_bp
    from .routes.leads import leads_bp
    from .routes.settings import settings_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(plots_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(settings_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
