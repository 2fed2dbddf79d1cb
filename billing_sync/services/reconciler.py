# billing_sync/services/reconciler.py
import logging

from sqlalchemy.exc import IntegrityError

from billing_sync.errors import ConcurrentWriteConflict

logger = logging.getLogger(__name__)


class SubscriptionReconciler:
    """
    Writes a handler's proposed SubscriptionState as an upsert keyed by the
    provider subscription id.

    The incoming state always overwrites what is stored. Applying the same
    state twice leaves one row with the same values.
    """

    def __init__(self, repo):
        self.repo = repo

    def apply(self, state):
        existing = self.repo.get_subscription_by_external_id(state.stripe_subscription_id)
        fields = state.as_fields()

        if existing is not None:
            # Ownership is fixed once the row exists
            fields.pop("user_id", None)
            subscription = self.repo.update_subscription(existing.id, fields)
            logger.info(f"Updated subscription {state.stripe_subscription_id} - status: {state.status}")
            return subscription

        try:
            subscription = self.repo.create_subscription(**fields)
        except IntegrityError as exc:
            # Another delivery inserted the same subscription first
            self.repo.rollback()
            raise ConcurrentWriteConflict(
                f"Subscription {state.stripe_subscription_id} was created concurrently"
            ) from exc

        logger.info(
            f"Created subscription {state.stripe_subscription_id} for user {state.user_id} - status: {state.status}"
        )
        return subscription
