import uuid
from datetime import datetime, timezone

from billing_sync.extensions import db


def _utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    """
    Local user row. Only the columns the billing core reads or writes are
    mapped here; the rest of the account lives with the presentation layer.
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)

    # Provider customer linkage
    stripe_customer_id = db.Column(db.String(255), unique=True, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    subscriptions = db.relationship("Subscription", back_populates="user", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<User id={self.id} customer={self.stripe_customer_id}>"
