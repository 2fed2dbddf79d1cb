# billing_sync/extensions.py
"""
Flask extensions initialization module.
"""

import logging

from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
migrate = Migrate()

logger = logging.getLogger(__name__)


def init_extensions(app):
    """Initialize Flask extensions."""

    db.init_app(app)
    logger.info("SQLAlchemy initialized")

    migrate.init_app(app, db)
    logger.info("Flask-Migrate initialized")

    if app.config.get("ENVIRONMENT") == "development" or app.config.get("CREATE_TABLES_ON_START", False):
        create_tables(app)

    return app


def create_tables(app):
    """Create database tables for local development."""
    # Models must be registered on the metadata before create_all
    from billing_sync import models  # noqa: F401

    with app.app_context():
        db.create_all()
        logger.info("Database tables created/verified")


__all__ = ["db", "migrate", "init_extensions", "create_tables"]
