# billing_sync/repositories/billing_repo.py
import functools
import logging
from typing import Optional

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from billing_sync.errors import StorageUnavailable
from billing_sync.extensions import db
from billing_sync.models import (
    CURRENT_STATUSES,
    Notification,
    Subscription,
    SubscriptionEvent,
    User,
)

logger = logging.getLogger(__name__)

_TRANSIENT_DB_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)


def storage_guard(fn):
    """Re-raise transient database failures as StorageUnavailable."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except _TRANSIENT_DB_ERRORS as exc:
            logger.error(f"Storage failure in {fn.__name__}: {exc}")
            raise StorageUnavailable(str(exc)) from exc

    return wrapper


class BillingRepository:
    """
    Narrow persistence interface consumed by the webhook core.

    Writes are flushed, never committed; the caller owns the transaction
    boundary through commit() and rollback().
    """

    def __init__(self, session=None):
        self.session = session or db.session

    # ==================== USERS ====================

    @storage_guard
    def get_user(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        return self.session.get(User, user_id)

    @storage_guard
    def get_user_by_external_customer_id(self, customer_id: str) -> Optional[User]:
        if not customer_id:
            return None
        return self.session.query(User).filter_by(stripe_customer_id=customer_id).one_or_none()

    @storage_guard
    def link_customer(self, user_id: str, customer_id: str) -> User:
        user = self.session.get(User, user_id)
        user.stripe_customer_id = customer_id
        self.session.flush()
        return user

    # ==================== SUBSCRIPTIONS ====================

    @storage_guard
    def get_subscription_by_external_id(self, subscription_id: str) -> Optional[Subscription]:
        if not subscription_id:
            return None
        return (
            self.session.query(Subscription)
            .filter_by(stripe_subscription_id=subscription_id)
            .one_or_none()
        )

    @storage_guard
    def create_subscription(self, **fields) -> Subscription:
        subscription = Subscription(**fields)
        self.session.add(subscription)
        self.session.flush()
        return subscription

    @storage_guard
    def update_subscription(self, subscription_id: int, fields: dict) -> Subscription:
        subscription = self.session.get(Subscription, subscription_id)
        for key, value in fields.items():
            setattr(subscription, key, value)
        self.session.flush()
        return subscription

    @storage_guard
    def get_user_active_subscription(self, user_id: str) -> Optional[Subscription]:
        """Newest subscription for the user whose status grants access."""
        return (
            self.session.query(Subscription)
            .filter(Subscription.user_id == user_id)
            .filter(Subscription.status.in_(CURRENT_STATUSES))
            .order_by(Subscription.created_at.desc(), Subscription.id.desc())
            .first()
        )

    # ==================== NOTIFICATIONS ====================

    @storage_guard
    def create_notification(self, user_id: str, type: str, title: str, message: str, changes=None) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            changes=changes,
        )
        self.session.add(notification)
        self.session.flush()
        return notification

    # ==================== AUDIT ====================

    @storage_guard
    def create_subscription_event(
        self,
        stripe_event_id: str,
        event_type: str,
        event_data=None,
        subscription_id: Optional[int] = None,
        error_message: Optional[str] = None,
        processing_failed: bool = False,
    ) -> SubscriptionEvent:
        record = SubscriptionEvent(
            stripe_event_id=stripe_event_id,
            event_type=event_type,
            event_data=event_data,
            subscription_id=subscription_id,
            error_message=error_message,
            processing_failed=processing_failed,
        )
        self.session.add(record)
        self.session.flush()
        return record

    @storage_guard
    def get_subscription_event_by_external_id(self, event_id: str) -> Optional[SubscriptionEvent]:
        return self.session.query(SubscriptionEvent).filter_by(stripe_event_id=event_id).one_or_none()

    # ==================== TRANSACTION ====================

    @storage_guard
    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
