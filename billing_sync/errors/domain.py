class BillingSyncError(Exception):
    """Base class for every error raised by the billing sync core."""
    code = "BILLING_SYNC_ERROR"


# ==================== AUTHENTICITY ====================

class SignatureInvalid(BillingSyncError):
    """Raised when a webhook payload fails signature or timestamp verification."""
    code = "SIGNATURE_INVALID"


class WebhookSecretMissing(BillingSyncError):
    """Raised when the webhook signing secret is not configured."""
    code = "WEBHOOK_SECRET_MISSING"

    def __init__(self, message: str = None):
        super().__init__(message or "Webhook secret not configured")


# ==================== PROCESSING ====================

class RetryableError(BillingSyncError):
    """
    Transient failure. The provider should redeliver the event later.
    """
    code = "RETRYABLE"


class StorageUnavailable(RetryableError):
    """Raised by the repository when the database cannot be reached."""
    code = "STORAGE_UNAVAILABLE"


class ConcurrentWriteConflict(RetryableError):
    """Raised when a subscription insert loses a unique-key race to a concurrent delivery."""
    code = "CONCURRENT_WRITE_CONFLICT"


class NonRetryableError(BillingSyncError):
    """
    Permanent failure. Retrying the same event can never succeed.
    """
    code = "NON_RETRYABLE"


class UserNotLinked(NonRetryableError):
    code = "USER_NOT_LINKED"


class MalformedEvent(NonRetryableError):
    code = "MALFORMED_EVENT"


class SubscriptionNotFound(NonRetryableError):
    code = "SUBSCRIPTION_NOT_FOUND"
