# billing_sync/webhooks/dispatcher.py
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import sentry_sdk
from sqlalchemy.exc import IntegrityError

from billing_sync.audit import AuditLogWriter
from billing_sync.config import WebhookSettings
from billing_sync.errors import RetryableError
from billing_sync.notifications import NotificationEmitter
from billing_sync.services.reconciler import SubscriptionReconciler

from . import payload
from .classifier import classify
from .handlers import CUSTOMER_EVENTS, HANDLERS, INVOICE_EVENTS, SUBSCRIPTION_EVENTS, Handler
from .idempotency import IdempotencyGuard
from .results import HandlerContext, NonRetryable, Ok, Retryable, SubscriptionState
from .security import verify_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WebhookResponse:
    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)


RECEIVED = WebhookResponse(200, {"received": True})
DUPLICATE = WebhookResponse(200, {"received": True, "duplicate": True})
NOT_PROCESSED = WebhookResponse(200, {"received": True, "processed": False})
RETRY_LATER = WebhookResponse(500, {"received": False, "error": "Webhook processing failed, will retry"})


class EventDispatcher:
    """
    Runs one verified provider event through the idempotency check, its
    handler, the reconciler and the audit log, and decides the response.

    Response codes: 200 for success, duplicates, unrecognized types and
    permanent failures; 500 for transient failures so the provider redelivers.
    """

    def __init__(
        self,
        settings: WebhookSettings,
        repo,
        reconciler: Optional[SubscriptionReconciler] = None,
        notifier: Optional[NotificationEmitter] = None,
        audit: Optional[AuditLogWriter] = None,
        handlers: Optional[Mapping[str, Handler]] = None,
    ):
        self.settings = settings
        self.repo = repo
        self.reconciler = reconciler or SubscriptionReconciler(repo)
        self.notifier = notifier or NotificationEmitter(repo)
        self.audit = audit or AuditLogWriter(repo)
        self.guard = IdempotencyGuard(repo)
        self.handlers = HANDLERS if handlers is None else handlers

    def handle(self, raw_body: bytes, sig_header: Optional[str]) -> WebhookResponse:
        """Verify a raw delivery and dispatch it. Raises SignatureInvalid or WebhookSecretMissing."""
        event = verify_signature(raw_body, sig_header, self.settings)
        return self.dispatch(event)

    def dispatch(self, event: Dict[str, Any]) -> WebhookResponse:
        event_id = event.get("id")
        if not event_id:
            logger.warning("Verified webhook has no event id, acknowledging without processing")
            return NOT_PROCESSED

        logger.info(f"Received {event.get('type')} event {event_id}")

        try:
            return self._process(event)
        except RetryableError as exc:
            # Storage failed outside the handler (lookup, audit write, commit)
            self.repo.rollback()
            return self._retry_later(event, Retryable(str(exc), exc))

    # ==================== PIPELINE ====================

    def _process(self, event):
        event_type = event.get("type")

        if self.guard.already_processed(event["id"]):
            return DUPLICATE

        handler = self.handlers.get(event_type)
        if handler is None:
            logger.info(f"Unhandled event type: {event_type}")
            response, _ = self._record(event, None)
            return response

        obj = (event.get("data") or {}).get("object")
        subscription_id = None

        if not isinstance(obj, dict):
            result = NonRetryable(f"Event {event['id']} has no data object")
        else:
            try:
                context = self._load_context(event_type, obj)
                if context.subscription is not None:
                    subscription_id = context.subscription.id
                result = handler(obj, context)
                if isinstance(result, Ok):
                    subscription_id = self._apply(result) or subscription_id
            except Exception as exc:
                self.repo.rollback()
                result = classify(exc)

        if isinstance(result, Retryable):
            self.repo.rollback()
            return self._retry_later(event, result)

        if isinstance(result, NonRetryable):
            self.repo.rollback()
            logger.warning(f"Event {event['id']} ({event_type}) failed permanently: {result.reason}")
            response, recorded = self._record(event, subscription_id, error=result.reason)
            return NOT_PROCESSED if recorded else response

        response, recorded = self._record(event, subscription_id)
        if recorded:
            self.notifier.emit(result.notifications)
            logger.info(f"Processed {event_type} event {event['id']}")
        return response

    def _load_context(self, event_type, obj) -> HandlerContext:
        if event_type in CUSTOMER_EVENTS:
            user = self.repo.get_user(payload.metadata_user_id(obj))
            return HandlerContext(
                user_id=user.id if user else None,
                user_customer_id=user.stripe_customer_id if user else None,
            )

        if event_type in INVOICE_EVENTS:
            external_id = payload.invoice_subscription_id(obj)
        else:
            external_id = obj.get("id")

        subscription = SubscriptionState.from_model(self.repo.get_subscription_by_external_id(external_id))
        user_id = self._resolve_user_id(obj) if event_type in SUBSCRIPTION_EVENTS else None
        return HandlerContext(subscription=subscription, user_id=user_id)

    def _resolve_user_id(self, obj):
        # Explicit metadata first, then the customer link on the user table
        user = self.repo.get_user(payload.metadata_user_id(obj))
        if user is None:
            user = self.repo.get_user_by_external_customer_id(payload.customer_id(obj))
        return user.id if user else None

    def _apply(self, result: Ok):
        subscription_id = None
        if result.state is not None:
            subscription_id = self.reconciler.apply(result.state).id
        if result.customer_link is not None:
            link = result.customer_link
            self.repo.link_customer(link.user_id, link.customer_id)
            logger.info(f"Linked customer {link.customer_id} to user {link.user_id}")
        return subscription_id

    # ==================== OUTCOMES ====================

    def _record(self, event, subscription_id, error=None):
        """Write the audit row and commit. Returns (response, recorded)."""
        try:
            self.audit.record(event, subscription_id=subscription_id, error=error)
            self.repo.commit()
        except IntegrityError:
            # A concurrent delivery of the same event committed first
            self.repo.rollback()
            logger.info(f"Event {event['id']} was recorded concurrently, treating as duplicate")
            return DUPLICATE, False
        return RECEIVED, True

    def _retry_later(self, event, result: Retryable):
        logger.error(f"Event {event['id']} ({event.get('type')}) failed, provider will retry: {result.reason}")
        if result.error is not None:
            sentry_sdk.capture_exception(result.error)
        else:
            sentry_sdk.capture_message(f"Retryable webhook failure: {result.reason}")
        return RETRY_LATER
