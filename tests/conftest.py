import hashlib
import hmac
import json
import time

import pytest
from faker import Faker

from billing_sync import create_app
from billing_sync.extensions import db
from billing_sync.models import Subscription, User
from billing_sync.repositories import BillingRepository

# Initialize Faker for generating test data
fake = Faker()

WEBHOOK_SECRET = "whsec_test_secret"
WEBHOOK_URL = "/api/webhooks/stripe"


# Custom pytest marks for organizing tests
def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "webhook: mark test as exercising the webhook pipeline end to end"
    )
    config.addinivalue_line(
        "markers",
        "db: mark test as database-intensive"
    )


@pytest.fixture
def app():
    """Fresh application and in-memory database per test"""
    app = create_app("testing")

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def repo(app):
    return BillingRepository()


@pytest.fixture
def make_user(app):
    """Factory for persisted users, optionally linked to a provider customer"""

    def _make_user(customer_id=None, **overrides):
        user = User(
            email=overrides.pop("email", fake.unique.email()),
            first_name=overrides.pop("first_name", fake.first_name()),
            last_name=overrides.pop("last_name", fake.last_name()),
            stripe_customer_id=customer_id,
            **overrides,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make_user


@pytest.fixture
def make_subscription(app):
    """Factory for persisted subscriptions"""

    def _make_subscription(user, stripe_subscription_id=None, status="active", **overrides):
        subscription = Subscription(
            user_id=user.id,
            stripe_subscription_id=stripe_subscription_id or f"sub_{fake.uuid4()[:12]}",
            stripe_price_id=overrides.pop("stripe_price_id", "price_basic"),
            status=status,
            **overrides,
        )
        db.session.add(subscription)
        db.session.commit()
        return subscription

    return _make_subscription


def subscription_object(subscription_id="sub_1", customer="cus_1", status="active", **fields):
    obj = {
        "id": subscription_id,
        "object": "subscription",
        "customer": customer,
        "status": status,
        "cancel_at_period_end": False,
        "canceled_at": None,
        "trial_start": None,
        "trial_end": None,
        "metadata": {},
        "items": {
            "object": "list",
            "data": [
                {
                    "id": "si_1",
                    "price": {"id": "price_1", "product": "prod_1"},
                    "current_period_start": 1000,
                    "current_period_end": 2000,
                }
            ],
        },
    }
    obj.update(fields)
    return obj


def invoice_object(invoice_id="in_1", subscription_id="sub_1", amount_due=2000, **fields):
    obj = {
        "id": invoice_id,
        "object": "invoice",
        "customer": "cus_1",
        "amount_due": amount_due,
        "parent": {
            "type": "subscription_details",
            "subscription_details": {"subscription": subscription_id},
        },
    }
    obj.update(fields)
    return obj


@pytest.fixture
def event_factory():
    """Build provider-shaped events: {id, type, data: {object}}"""

    def _event(event_type, obj, event_id=None):
        return {
            "id": event_id or f"evt_{fake.uuid4()[:16]}",
            "object": "event",
            "type": event_type,
            "created": int(time.time()),
            "data": {"object": obj},
        }

    return _event


def sign(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Provider signature header for a raw payload"""
    timestamp = int(time.time()) if timestamp is None else timestamp
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8")
    signed = f"{timestamp}.{payload}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def signed_post(client):
    """POST an event to the webhook endpoint with a valid signature"""

    def _post(event, secret=WEBHOOK_SECRET, timestamp=None, headers=None):
        body = event if isinstance(event, bytes) else json.dumps(event).encode("utf-8")
        request_headers = {"Stripe-Signature": sign(body, secret=secret, timestamp=timestamp)}
        request_headers.update(headers or {})
        return client.post(
            WEBHOOK_URL,
            data=body,
            headers=request_headers,
            content_type="application/json",
        )

    return _post


@pytest.fixture
def subscription_obj():
    return subscription_object


@pytest.fixture
def invoice_obj():
    return invoice_object


@pytest.fixture
def sign_header():
    return sign
