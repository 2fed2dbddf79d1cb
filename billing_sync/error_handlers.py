# billing_sync/error_handlers.py
import logging

from flask import g, jsonify
from werkzeug.exceptions import HTTPException

from billing_sync.config import ConfigurationError
from billing_sync.errors import SignatureInvalid, WebhookSecretMissing

logger = logging.getLogger(__name__)


def _error(error, message, status_code):
    return jsonify({
        "error": error,
        "message": message,
        "status_code": status_code,
    }), status_code


def register_error_handlers(app):
    """Register JSON error handlers"""

    @app.errorhandler(SignatureInvalid)
    def signature_invalid(error):
        logger.warning(f"Rejected webhook: {error}")
        return _error("invalid_signature", f"Webhook signature verification failed: {error}", 400)

    @app.errorhandler(WebhookSecretMissing)
    def webhook_secret_missing(error):
        logger.critical("Webhook received but STRIPE_WEBHOOK_SECRET is not configured")
        return _error("webhook_secret_not_configured", str(error), 500)

    @app.errorhandler(ConfigurationError)
    def configuration_error(error):
        logger.critical(f"Configuration error: {error}")
        return _error("configuration_error", str(error), 500)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return _error(error.name, error.description, error.code)

    @app.errorhandler(Exception)
    def unexpected_error(error):
        logger.exception(f"Unhandled exception: {error}")
        return jsonify({
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Our team has been notified.",
            "status_code": 500,
            "request_id": g.get("request_id"),
        }), 500
