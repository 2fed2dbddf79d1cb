from .reconciler import SubscriptionReconciler
from .subscription_service import get_current_subscription, has_active_subscription

__all__ = ["SubscriptionReconciler", "get_current_subscription", "has_active_subscription"]
