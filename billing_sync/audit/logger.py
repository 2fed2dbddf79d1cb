# billing_sync/audit/logger.py
import logging

logger = logging.getLogger("audit")


class AuditLogWriter:
    """Append one SubscriptionEvent row per provider event handled."""

    def __init__(self, repo):
        self.repo = repo

    def record(self, event, subscription_id=None, error=None):
        """
        Flush the audit row without committing. A duplicate event id raises
        IntegrityError at the flush; the caller decides what that means.
        """
        record = self.repo.create_subscription_event(
            stripe_event_id=event["id"],
            event_type=event.get("type") or "unknown",
            event_data=event,
            subscription_id=subscription_id,
            error_message=error,
            processing_failed=error is not None,
        )

        if error is None:
            logger.info(f"[AUDIT] {event.get('type')} event={event['id']} subscription={subscription_id}")
        else:
            logger.warning(f"[AUDIT] {event.get('type')} event={event['id']} failed: {error}")
        return record
