import logging

logger = logging.getLogger(__name__)


class IdempotencyGuard:
    """
    Answers whether a provider event id has already been recorded.

    Nothing is written here. The audit row is inserted only after the
    handler finishes, and its unique event id is what finally stops a
    concurrent duplicate.
    """

    def __init__(self, repo):
        self.repo = repo

    def already_processed(self, event_id: str) -> bool:
        existing = self.repo.get_subscription_event_by_external_id(event_id)
        if existing is not None:
            logger.info(f"Event {event_id} already processed, skipping")
            return True
        return False
