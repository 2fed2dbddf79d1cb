from datetime import datetime, timezone

from billing_sync.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class SubscriptionEvent(db.Model):
    """
    Append-only audit row, one per provider event processed.

    The unique stripe_event_id is where idempotency is enforced: a second
    insert for the same event id fails at the database.
    """
    __tablename__ = "subscription_events"

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.Integer, db.ForeignKey("subscriptions.id"), nullable=True, index=True)
    stripe_event_id = db.Column(db.String(255), unique=True, nullable=False)
    event_type = db.Column(db.String(255), nullable=False, index=True)
    event_data = db.Column(db.JSON, nullable=True)

    # Failure annotation
    processing_failed = db.Column(db.Boolean, default=False, nullable=False)
    error_message = db.Column(db.Text, nullable=True)

    processed_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)

    subscription = db.relationship("Subscription", back_populates="events")

    def __repr__(self) -> str:
        return f"<SubscriptionEvent {self.stripe_event_id} ({self.event_type})>"
