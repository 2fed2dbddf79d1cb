from .notification import Notification
from .subscription import CURRENT_STATUSES, Subscription, SubscriptionStatus
from .subscription_event import SubscriptionEvent
from .user import User

__all__ = [
    "CURRENT_STATUSES",
    "Notification",
    "Subscription",
    "SubscriptionEvent",
    "SubscriptionStatus",
    "User",
]
