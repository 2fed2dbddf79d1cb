# billing_sync/webhooks/handlers.py
"""
Per-event-type handlers.

Each handler is a pure function of the event's data object and the
HandlerContext the dispatcher loaded. It returns Ok, Retryable or
NonRetryable and leaves every write to the dispatcher.
"""
import functools
from typing import Callable, Dict

from billing_sync.errors import MalformedEvent, SubscriptionNotFound, UserNotLinked
from billing_sync.models import SubscriptionStatus
from billing_sync.notifications.templates import NotificationTemplates

from . import payload
from .results import (
    CustomerLink,
    HandlerContext,
    HandlerResult,
    NonRetryable,
    NotificationDraft,
    Ok,
    SubscriptionState,
)

# Event types grouped by the kind of object they carry
SUBSCRIPTION_EVENTS = (
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.deleted",
    "customer.subscription.paused",
    "customer.subscription.resumed",
    "customer.subscription.trial_will_end",
)
INVOICE_EVENTS = ("invoice.paid", "invoice.payment_failed")
CUSTOMER_EVENTS = ("customer.created",)

Handler = Callable[[dict, HandlerContext], HandlerResult]

HANDLERS: Dict[str, Handler] = {}


def handles(*event_types):
    """Register a handler; malformed payloads become NonRetryable results."""

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(obj, context):
            try:
                return fn(obj, context)
            except MalformedEvent as exc:
                return NonRetryable(str(exc), exc)

        for event_type in event_types:
            HANDLERS[event_type] = wrapper
        return wrapper

    return decorator


def _owner(context):
    return context.user_id or (context.subscription.user_id if context.subscription else None)


def _unlinked(obj) -> NonRetryable:
    exc = UserNotLinked(f"No user found for subscription {obj.get('id')}")
    return NonRetryable(str(exc), exc)


def state_from_subscription(obj, user_id, status=None, current=None) -> SubscriptionState:
    """
    Build the provider view of a subscription object.

    Fields the object does not carry keep the values of ``current``, the
    stored row, so a partial object never blanks the price or the periods.
    """
    subscription_id = obj.get("id")
    if not subscription_id:
        raise MalformedEvent("Subscription object has no id")

    base = current or SubscriptionState(stripe_subscription_id=subscription_id, status="")

    if status is None:
        if "status" in obj or current is None:
            status = payload.normalize_status(obj.get("status"))
        else:
            status = current.status

    price_id, product_id = payload.price_ids(obj)
    if not price_id:
        price_id, product_id = base.stripe_price_id, base.stripe_product_id

    period_start, period_end = payload.billing_period(obj)

    def kept(key, convert=payload.to_datetime):
        # An explicit null clears the column, an absent key leaves it alone
        if key in obj:
            return convert(obj[key])
        return getattr(base, key)

    return SubscriptionState(
        stripe_subscription_id=subscription_id,
        user_id=user_id,
        status=status,
        stripe_price_id=price_id or "",
        stripe_product_id=product_id,
        current_period_start=period_start or base.current_period_start,
        current_period_end=period_end or base.current_period_end,
        cancel_at_period_end=kept("cancel_at_period_end", convert=bool),
        canceled_at=kept("canceled_at"),
        trial_start=kept("trial_start"),
        trial_end=kept("trial_end"),
    )


def _sync_subscription(obj, context, status=None) -> HandlerResult:
    user_id = _owner(context)
    if not user_id:
        return _unlinked(obj)
    return Ok(state=state_from_subscription(obj, user_id, status=status, current=context.subscription))


# ==================== SUBSCRIPTION LIFECYCLE ====================

@handles(
    "customer.subscription.created",
    "customer.subscription.updated",
    "customer.subscription.paused",
    "customer.subscription.resumed",
)
def handle_subscription_changed(obj, context):
    # Status is copied verbatim from the provider; a missing local row is
    # synthesized by the reconciler.
    return _sync_subscription(obj, context)


@handles("customer.subscription.deleted")
def handle_subscription_deleted(obj, context):
    return _sync_subscription(obj, context, status=SubscriptionStatus.CANCELED.value)


@handles("customer.subscription.trial_will_end")
def handle_trial_will_end(obj, context):
    user_id = _owner(context)
    if not user_id:
        return _unlinked(obj)

    trial_end = payload.to_datetime(obj.get("trial_end"))
    title, message = NotificationTemplates.trial_ending(trial_end)
    draft = NotificationDraft(
        user_id=user_id,
        type=NotificationTemplates.TRIAL_ENDING,
        title=title,
        message=message,
        changes={
            "subscriptionId": obj.get("id"),
            "trialEnd": trial_end.isoformat() if trial_end else None,
        },
    )
    return Ok(notifications=(draft,))


# ==================== INVOICES ====================

@handles("invoice.paid")
def handle_invoice_paid(obj, context):
    # Invoices outside a subscription, or for one we never saw, change nothing
    if context.subscription is None:
        return Ok()
    return Ok(state=context.subscription.with_status(SubscriptionStatus.ACTIVE.value))


@handles("invoice.payment_failed")
def handle_invoice_payment_failed(obj, context):
    subscription_id = payload.invoice_subscription_id(obj)
    if not subscription_id:
        return Ok()
    if context.subscription is None:
        exc = SubscriptionNotFound(f"No subscription {subscription_id} found for invoice {obj.get('id')}")
        return NonRetryable(str(exc), exc)

    title, message = NotificationTemplates.payment_failed()
    draft = NotificationDraft(
        user_id=context.subscription.user_id,
        type=NotificationTemplates.PAYMENT_FAILED,
        title=title,
        message=message,
        changes={
            "subscriptionId": subscription_id,
            "invoiceId": obj.get("id"),
            "amount": obj.get("amount_due"),
        },
    )
    return Ok(notifications=(draft,))


# ==================== CUSTOMERS ====================

@handles("customer.created")
def handle_customer_created(obj, context):
    customer_id = obj.get("id")
    if not customer_id or not context.user_id:
        return Ok()
    # Never overwrite an existing link
    if context.user_customer_id:
        return Ok()
    return Ok(customer_link=CustomerLink(user_id=context.user_id, customer_id=customer_id))
