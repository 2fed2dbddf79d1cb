"""
Flask application factory for the billing sync service.
"""

import logging
import sys
from typing import Optional

import sentry_sdk
from flask import Flask, jsonify
from sentry_sdk.integrations.flask import FlaskIntegration

from billing_sync.config import ConfigurationError, get_config
from billing_sync.error_handlers import register_error_handlers
from billing_sync.extensions import init_extensions
from billing_sync.logging_config import setup_logging
from billing_sync.middleware import init_request_id_middleware
from billing_sync.routes import webhooks_bp

logger = logging.getLogger(__name__)


def setup_sentry(app: Flask) -> None:
    """Initialize Sentry error tracking"""
    sentry_dsn = app.config.get("SENTRY_DSN")

    if not sentry_dsn:
        logger.info("Sentry DSN not set, error tracking disabled")
        return

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=0.1,
        environment=app.config.get("ENVIRONMENT"),
        release=app.config.get("APP_VERSION", "1.0.0"),
        send_default_pii=False,
    )
    logger.info("Sentry error tracking initialized")


def register_routes(app: Flask) -> None:
    app.register_blueprint(webhooks_bp)

    @app.route("/health")
    def health_check():
        return jsonify({
            "status": "healthy",
            "service": app.config.get("APP_NAME"),
            "version": app.config.get("APP_VERSION"),
            "environment": app.config.get("ENVIRONMENT"),
        })


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Application factory.

    Args:
        config_name: Configuration name (development, production, testing)

    Raises:
        ConfigurationError: If the configuration is unknown or invalid
    """
    app = Flask(__name__)

    try:
        config = get_config(config_name)
        config.validate()
        app.config.from_object(config)
    except ConfigurationError as e:
        print(f"CRITICAL: Configuration error: {str(e)}", file=sys.stderr)
        raise

    setup_logging(app)
    logger.info(f"Starting application in {app.config.get('ENVIRONMENT')} mode")

    setup_sentry(app)
    init_extensions(app)
    init_request_id_middleware(app)
    register_error_handlers(app)
    register_routes(app)

    if not app.config.get("STRIPE_WEBHOOK_SECRET"):
        logger.warning("STRIPE_WEBHOOK_SECRET is not set, webhooks will be rejected")

    return app


__all__ = ["create_app"]
