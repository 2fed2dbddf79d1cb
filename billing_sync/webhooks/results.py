"""
Value types exchanged between the dispatcher and the event handlers.

Handlers receive a HandlerContext and return one of Ok, Retryable or
NonRetryable. They never touch the session.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class SubscriptionState:
    """Snapshot of the persisted columns the handlers reason about."""
    stripe_subscription_id: str
    status: str
    user_id: Optional[str] = None
    stripe_price_id: str = ""
    stripe_product_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    canceled_at: Optional[datetime] = None
    trial_start: Optional[datetime] = None
    trial_end: Optional[datetime] = None
    id: Optional[int] = None

    @classmethod
    def from_model(cls, subscription) -> Optional["SubscriptionState"]:
        if subscription is None:
            return None
        return cls(**{f.name: getattr(subscription, f.name) for f in fields(cls)})

    def as_fields(self) -> Dict[str, Any]:
        """Column values to write, without the internal id."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "id"}

    def with_status(self, status: str) -> "SubscriptionState":
        return replace(self, status=status)


@dataclass(frozen=True)
class NotificationDraft:
    user_id: str
    type: str
    title: str
    message: str
    changes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CustomerLink:
    user_id: str
    customer_id: str


@dataclass(frozen=True)
class HandlerContext:
    """What the dispatcher loaded before calling a handler."""
    subscription: Optional[SubscriptionState] = None
    user_id: Optional[str] = None
    user_customer_id: Optional[str] = None


@dataclass(frozen=True)
class Ok:
    state: Optional[SubscriptionState] = None
    notifications: Tuple[NotificationDraft, ...] = ()
    customer_link: Optional[CustomerLink] = None


@dataclass(frozen=True)
class Retryable:
    reason: str
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class NonRetryable:
    reason: str
    error: Optional[BaseException] = field(default=None, compare=False, repr=False)


HandlerResult = Union[Ok, Retryable, NonRetryable]
