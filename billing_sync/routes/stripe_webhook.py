# billing_sync/routes/stripe_webhook.py
from flask import Blueprint, current_app, jsonify, request

from billing_sync.config import WebhookSettings
from billing_sync.errors import WebhookSecretMissing
from billing_sync.repositories import BillingRepository
from billing_sync.webhooks import SIGNATURE_HEADER, EventDispatcher

bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


@bp.route("/stripe", methods=["POST"])
def stripe_webhook():
    """
    Billing provider webhook endpoint.

    The body is passed on as raw bytes; the signature covers the exact
    payload the provider sent.
    """
    settings = WebhookSettings.from_config(current_app.config)
    if not settings.webhook_secret:
        raise WebhookSecretMissing()

    dispatcher = EventDispatcher(settings, BillingRepository())
    response = dispatcher.handle(
        request.get_data(cache=False),
        request.headers.get(SIGNATURE_HEADER),
    )
    return jsonify(response.body), response.status_code
