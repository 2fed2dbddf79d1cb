# subscription.py
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import CheckConstraint, Index

from billing_sync.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    PAUSED = "paused"


# Statuses that grant access
CURRENT_STATUSES = (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)


class Subscription(db.Model):
    """
    Local projection of one provider subscription.

    Rows are created on the first lifecycle event for an external id and
    updated in place afterwards. They are never deleted; cancellation is a
    status.
    """
    __tablename__ = "subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    # Provider IDs
    stripe_subscription_id = db.Column(db.String(255), unique=True, nullable=False)
    stripe_price_id = db.Column(db.String(255), nullable=False, default="")
    stripe_product_id = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(32), nullable=False, index=True)

    # Period dates, absent when the provider sends no item-level period
    current_period_start = db.Column(db.DateTime(timezone=True), nullable=True)
    current_period_end = db.Column(db.DateTime(timezone=True), nullable=True)

    # Cancellation details
    cancel_at_period_end = db.Column(db.Boolean, default=False, nullable=False)
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Trial information
    trial_start = db.Column(db.DateTime(timezone=True), nullable=True)
    trial_end = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    user = db.relationship("User", back_populates="subscriptions")
    events = db.relationship("SubscriptionEvent", back_populates="subscription", lazy="dynamic")

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'trialing', 'past_due', 'canceled', 'incomplete', 'paused')",
            name="valid_subscription_status",
        ),
        Index("idx_subscription_user_status", "user_id", "status"),
    )

    @property
    def is_current(self) -> bool:
        return self.status in CURRENT_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "stripe_subscription_id": self.stripe_subscription_id,
            "stripe_price_id": self.stripe_price_id,
            "stripe_product_id": self.stripe_product_id,
            "status": self.status,
            "current_period_start": self.current_period_start.isoformat() if self.current_period_start else None,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
            "cancel_at_period_end": self.cancel_at_period_end,
            "canceled_at": self.canceled_at.isoformat() if self.canceled_at else None,
            "trial_start": self.trial_start.isoformat() if self.trial_start else None,
            "trial_end": self.trial_end.isoformat() if self.trial_end else None,
            "is_current": self.is_current,
        }

    def __repr__(self) -> str:
        return f"<Subscription {self.stripe_subscription_id} status={self.status}>"
