import json
import logging

import stripe

from billing_sync.config import WebhookSettings
from billing_sync.errors import SignatureInvalid, WebhookSecretMissing

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "Stripe-Signature"


def verify_signature(payload: bytes, sig_header: str, settings: WebhookSettings) -> dict:
    """
    Authenticate a raw webhook body and return the parsed event.

    The signature covers the exact bytes received, so the body must not be
    decoded and re-encoded before this call. Timestamps older than
    settings.signature_tolerance seconds are rejected as replays.
    """
    if not settings.webhook_secret:
        raise WebhookSecretMissing()

    if not sig_header:
        raise SignatureInvalid(f"Missing {SIGNATURE_HEADER} header")

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SignatureInvalid("Payload is not valid UTF-8") from exc

    try:
        stripe.WebhookSignature.verify_header(
            text,
            sig_header,
            settings.webhook_secret,
            tolerance=settings.signature_tolerance,
        )
    except stripe.SignatureVerificationError as exc:
        logger.warning(f"Webhook signature verification failed: {exc}")
        raise SignatureInvalid(str(exc)) from exc

    try:
        event = json.loads(text)
    except ValueError as exc:
        raise SignatureInvalid("Invalid payload") from exc

    if not isinstance(event, dict):
        raise SignatureInvalid("Invalid payload")

    return event
