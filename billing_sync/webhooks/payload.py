# billing_sync/webhooks/payload.py
"""
Field extraction from provider event objects.

Everything that depends on the provider's payload layout lives here, so a
change in the provider API version touches one module.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from billing_sync.errors import MalformedEvent
from billing_sync.models import SubscriptionStatus

LOCAL_STATUSES = {status.value for status in SubscriptionStatus}

# Provider statuses with no local equivalent
STATUS_ALIASES = {
    "incomplete_expired": SubscriptionStatus.CANCELED.value,
    "unpaid": SubscriptionStatus.PAST_DUE.value,
}


def to_datetime(value) -> Optional[datetime]:
    """Epoch seconds to an aware UTC datetime."""
    if value is None or value == "":
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as exc:
        raise MalformedEvent(f"Invalid timestamp: {value!r}") from exc


def normalize_status(status: Optional[str]) -> str:
    if status in LOCAL_STATUSES:
        return status
    if status in STATUS_ALIASES:
        return STATUS_ALIASES[status]
    raise MalformedEvent(f"Unknown subscription status: {status!r}")


def _as_id(value) -> Optional[str]:
    # Expanded objects carry the id inside
    if isinstance(value, dict):
        return value.get("id")
    return value


def subscription_items(subscription: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = subscription.get("items") or []
    if isinstance(items, dict):
        items = items.get("data") or []
    return list(items)


def first_item(subscription: Dict[str, Any]) -> Dict[str, Any]:
    items = subscription_items(subscription)
    return items[0] if items else {}


def price_ids(subscription: Dict[str, Any]):
    """(price id, product id) of the first item, (None, None) when absent."""
    price = first_item(subscription).get("price")
    if not price:
        return None, None
    if not isinstance(price, dict):
        return price, None
    return price.get("id"), _as_id(price.get("product"))


def _period_value(item, subscription, key):
    value = item.get(key)
    return value if value is not None else subscription.get(key)


def billing_period(subscription: Dict[str, Any]):
    """
    Current period bounds. Newer API versions only report them per item;
    older ones put them on the subscription itself.
    """
    item = first_item(subscription)
    start = _period_value(item, subscription, "current_period_start")
    end = _period_value(item, subscription, "current_period_end")
    return to_datetime(start), to_datetime(end)


def customer_id(obj: Dict[str, Any]) -> Optional[str]:
    return _as_id(obj.get("customer"))


def metadata_user_id(obj: Dict[str, Any]) -> Optional[str]:
    metadata = obj.get("metadata") or {}
    return metadata.get("userId") or metadata.get("user_id")


def invoice_subscription_id(invoice: Dict[str, Any]) -> Optional[str]:
    """
    Subscription an invoice belongs to.

    Checked in order: the legacy flat field, the invoice parent details,
    then the parent of the first line item.
    """
    flat = _as_id(invoice.get("subscription"))
    if flat:
        return flat

    parent = invoice.get("parent") or {}
    details = parent.get("subscription_details") or {}
    nested = _as_id(details.get("subscription"))
    if nested:
        return nested

    lines = invoice.get("lines") or {}
    if isinstance(lines, dict):
        lines = lines.get("data") or []
    if lines:
        line_parent = lines[0].get("parent") or {}
        item_details = line_parent.get("subscription_item_details") or {}
        return _as_id(item_details.get("subscription"))

    return None
