from datetime import datetime, timezone

import pytest

from billing_sync.errors import MalformedEvent, SubscriptionNotFound, UserNotLinked
from billing_sync.webhooks import HANDLERS, HandlerContext, NonRetryable, Ok, SubscriptionState
from billing_sync.webhooks.payload import (
    billing_period,
    invoice_subscription_id,
    normalize_status,
    price_ids,
)


def utc(ts):
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def existing(status="active", **fields):
    return SubscriptionState(
        stripe_subscription_id=fields.pop("stripe_subscription_id", "sub_1"),
        status=status,
        user_id=fields.pop("user_id", "user-1"),
        stripe_price_id=fields.pop("stripe_price_id", "price_1"),
        id=fields.pop("id", 7),
        **fields,
    )


def run(event_type, obj, context=None):
    return HANDLERS[event_type](obj, context or HandlerContext())


# ==================== SUBSCRIPTION EVENTS ====================

def test_created_copies_provider_view(subscription_obj):
    obj = subscription_obj(status="trialing", trial_end=5000, cancel_at_period_end=True)

    result = run("customer.subscription.created", obj, HandlerContext(user_id="user-1"))

    assert isinstance(result, Ok)
    state = result.state
    assert state.stripe_subscription_id == "sub_1"
    assert state.user_id == "user-1"
    assert state.status == "trialing"
    assert state.stripe_price_id == "price_1"
    assert state.stripe_product_id == "prod_1"
    assert state.current_period_start == utc(1000)
    assert state.current_period_end == utc(2000)
    assert state.trial_end == utc(5000)
    assert state.cancel_at_period_end is True
    assert result.notifications == ()


def test_created_without_user_is_non_retryable(subscription_obj):
    result = run("customer.subscription.created", subscription_obj())

    assert isinstance(result, NonRetryable)
    assert "No user found for subscription sub_1" in result.reason
    assert isinstance(result.error, UserNotLinked)


def test_update_without_items_keeps_stored_price_and_period():
    current = existing(
        stripe_price_id="price_pro",
        stripe_product_id="prod_pro",
        current_period_start=utc(1000),
        current_period_end=utc(2000),
        trial_end=utc(1500),
        cancel_at_period_end=True,
    )
    obj = {"id": "sub_1", "customer": "cus_1", "status": "past_due"}

    result = run("customer.subscription.updated", obj, HandlerContext(subscription=current))

    assert isinstance(result, Ok)
    state = result.state
    assert state.status == "past_due"
    assert state.stripe_price_id == "price_pro"
    assert state.stripe_product_id == "prod_pro"
    assert state.current_period_start == utc(1000)
    assert state.current_period_end == utc(2000)
    assert state.trial_end == utc(1500)
    assert state.cancel_at_period_end is True


def test_update_clears_fields_sent_as_null(subscription_obj):
    current = existing(trial_end=utc(1500), canceled_at=utc(1800))

    result = run(
        "customer.subscription.updated",
        subscription_obj(trial_end=None, canceled_at=None),
        HandlerContext(subscription=current),
    )

    assert result.state.trial_end is None
    assert result.state.canceled_at is None


def test_update_without_status_keeps_stored_status():
    current = existing(status="trialing", stripe_price_id="price_pro")

    result = run(
        "customer.subscription.updated",
        {"id": "sub_1", "cancel_at_period_end": True},
        HandlerContext(subscription=current),
    )

    assert result.state.status == "trialing"
    assert result.state.cancel_at_period_end is True
    assert result.state.stripe_price_id == "price_pro"


def test_created_without_status_is_malformed(subscription_obj):
    obj = subscription_obj()
    del obj["status"]

    result = run("customer.subscription.created", obj, HandlerContext(user_id="user-1"))

    assert isinstance(result, NonRetryable)
    assert isinstance(result.error, MalformedEvent)


def test_update_keeps_existing_owner_when_user_unresolved(subscription_obj):
    context = HandlerContext(subscription=existing(user_id="owner-9"))

    result = run("customer.subscription.updated", subscription_obj(status="past_due"), context)

    assert isinstance(result, Ok)
    assert result.state.user_id == "owner-9"
    assert result.state.status == "past_due"


def test_deleted_forces_canceled(subscription_obj):
    obj = subscription_obj(status="active", canceled_at=3000)

    result = run("customer.subscription.deleted", obj, HandlerContext(user_id="user-1"))

    assert result.state.status == "canceled"
    assert result.state.canceled_at == utc(3000)


@pytest.mark.parametrize("event_type, status", [
    ("customer.subscription.paused", "paused"),
    ("customer.subscription.resumed", "active"),
])
def test_pause_and_resume_copy_provider_status(subscription_obj, event_type, status):
    context = HandlerContext(subscription=existing(), user_id="user-1")

    result = run(event_type, subscription_obj(status=status), context)

    assert result.state.status == status


def test_unknown_provider_status_is_malformed(subscription_obj):
    result = run(
        "customer.subscription.updated",
        subscription_obj(status="mystery"),
        HandlerContext(user_id="user-1"),
    )

    assert isinstance(result, NonRetryable)
    assert "mystery" in result.reason


def test_subscription_without_id_is_malformed(subscription_obj):
    obj = subscription_obj()
    del obj["id"]

    result = run("customer.subscription.created", obj, HandlerContext(user_id="user-1"))

    assert isinstance(result, NonRetryable)


def test_trial_will_end_emits_notification_without_state_change(subscription_obj):
    context = HandlerContext(subscription=existing(status="trialing"), user_id="user-1")
    obj = subscription_obj(status="trialing", trial_end=1700000000)

    result = run("customer.subscription.trial_will_end", obj, context)

    assert isinstance(result, Ok)
    assert result.state is None
    assert len(result.notifications) == 1
    draft = result.notifications[0]
    assert draft.type == "trial_ending"
    assert draft.user_id == "user-1"
    assert draft.title == "Your trial is ending soon"
    assert "November 14, 2023" in draft.message
    assert draft.changes == {"subscriptionId": "sub_1", "trialEnd": utc(1700000000).isoformat()}


def test_trial_will_end_without_user_is_non_retryable(subscription_obj):
    result = run("customer.subscription.trial_will_end", subscription_obj(trial_end=5000))

    assert isinstance(result, NonRetryable)
    assert isinstance(result.error, UserNotLinked)


# ==================== INVOICE EVENTS ====================

def test_invoice_paid_activates_known_subscription(invoice_obj):
    current = existing(status="past_due")

    result = run("invoice.paid", invoice_obj(), HandlerContext(subscription=current))

    assert result.state.status == "active"
    assert result.state.id == current.id
    assert result.state.current_period_end == current.current_period_end


def test_invoice_paid_for_unknown_subscription_is_a_no_op(invoice_obj):
    result = run("invoice.paid", invoice_obj())

    assert result == Ok()


def test_payment_failed_notifies_without_status_change(invoice_obj):
    context = HandlerContext(subscription=existing(status="active"))

    result = run("invoice.payment_failed", invoice_obj(invoice_id="in_9", amount_due=4900), context)

    assert result.state is None
    draft = result.notifications[0]
    assert draft.type == "payment_failed"
    assert draft.user_id == "user-1"
    assert draft.title == "Payment failed"
    assert draft.changes == {"subscriptionId": "sub_1", "invoiceId": "in_9", "amount": 4900}


def test_payment_failed_for_unknown_subscription_is_non_retryable(invoice_obj):
    result = run("invoice.payment_failed", invoice_obj())

    assert isinstance(result, NonRetryable)
    assert isinstance(result.error, SubscriptionNotFound)
    assert "No subscription sub_1 found for invoice in_1" in result.reason


def test_payment_failed_outside_subscription_is_a_no_op():
    result = run("invoice.payment_failed", {"id": "in_once", "amount_due": 100})

    assert result == Ok()


# ==================== CUSTOMER EVENTS ====================

def test_customer_created_links_unlinked_user():
    context = HandlerContext(user_id="user-1", user_customer_id=None)

    result = run("customer.created", {"id": "cus_new", "metadata": {"userId": "user-1"}}, context)

    assert result.customer_link.user_id == "user-1"
    assert result.customer_link.customer_id == "cus_new"


def test_customer_created_never_overwrites_existing_link():
    context = HandlerContext(user_id="user-1", user_customer_id="cus_old")

    result = run("customer.created", {"id": "cus_new"}, context)

    assert result == Ok()


def test_customer_created_without_user_is_acknowledged():
    assert run("customer.created", {"id": "cus_new"}) == Ok()


# ==================== PAYLOAD HELPERS ====================

def test_invoice_linkage_prefers_flat_field():
    invoice = {
        "subscription": "sub_flat",
        "parent": {"subscription_details": {"subscription": "sub_parent"}},
    }

    assert invoice_subscription_id(invoice) == "sub_flat"


def test_invoice_linkage_reads_parent_details(invoice_obj):
    assert invoice_subscription_id(invoice_obj(subscription_id="sub_parent")) == "sub_parent"


def test_invoice_linkage_falls_back_to_first_line():
    invoice = {
        "lines": {"data": [
            {"parent": {"subscription_item_details": {"subscription": "sub_line"}}},
        ]},
    }

    assert invoice_subscription_id(invoice) == "sub_line"


def test_invoice_linkage_accepts_expanded_objects():
    assert invoice_subscription_id({"subscription": {"id": "sub_obj"}}) == "sub_obj"


def test_invoice_without_subscription():
    assert invoice_subscription_id({"id": "in_1"}) is None


def test_period_falls_back_to_subscription_level():
    obj = {"items": [], "current_period_start": 10, "current_period_end": 20}

    assert billing_period(obj) == (utc(10), utc(20))


def test_period_null_on_item_falls_back_to_subscription_level():
    obj = {
        "items": {"data": [{"current_period_start": None, "current_period_end": None}]},
        "current_period_start": 1000,
        "current_period_end": 2000,
    }

    assert billing_period(obj) == (utc(1000), utc(2000))


def test_price_ids_absent_is_none():
    assert price_ids({"id": "sub_1"}) == (None, None)


def test_period_absent_is_none():
    assert billing_period({"items": {"data": [{"price": {"id": "price_1"}}]}}) == (None, None)


def test_price_ids_from_item_list():
    obj = {"items": [{"price": {"id": "price_9", "product": {"id": "prod_9"}}}]}

    assert price_ids(obj) == ("price_9", "prod_9")


@pytest.mark.parametrize("provider, local", [
    ("active", "active"),
    ("trialing", "trialing"),
    ("incomplete_expired", "canceled"),
    ("unpaid", "past_due"),
])
def test_status_normalization(provider, local):
    assert normalize_status(provider) == local


def test_unknown_status_raises_malformed():
    with pytest.raises(MalformedEvent):
        normalize_status("frozen")
