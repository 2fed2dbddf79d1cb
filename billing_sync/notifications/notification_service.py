# billing_sync/notifications/notification_service.py
import logging

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """Persist in-app notifications produced by event handlers."""

    def __init__(self, repo):
        self.repo = repo

    def emit(self, drafts):
        """
        Write the drafts in their own transaction and return how many were
        stored. A failure here is logged and rolled back; it never fails the
        event that produced the drafts.
        """
        if not drafts:
            return 0

        try:
            for draft in drafts:
                self.repo.create_notification(
                    user_id=draft.user_id,
                    type=draft.type,
                    title=draft.title,
                    message=draft.message,
                    changes=draft.changes,
                )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            logger.exception(f"Failed to create {len(drafts)} notification(s)")
            return 0

        for draft in drafts:
            logger.info(f"Notification {draft.type} sent to user {draft.user_id}")
        return len(drafts)
