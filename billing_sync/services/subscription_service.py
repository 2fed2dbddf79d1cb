# billing_sync/services/subscription_service.py
"""Access-control view over the reconciled subscriptions."""
from billing_sync.repositories import BillingRepository


def get_current_subscription(user_id, repo=None):
    """Newest active or trialing subscription for the user, or None."""
    repo = repo or BillingRepository()
    return repo.get_user_active_subscription(user_id)


def has_active_subscription(user_id, repo=None) -> bool:
    return get_current_subscription(user_id, repo=repo) is not None
