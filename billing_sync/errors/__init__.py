from .domain import (
    BillingSyncError,
    ConcurrentWriteConflict,
    MalformedEvent,
    NonRetryableError,
    RetryableError,
    SignatureInvalid,
    StorageUnavailable,
    SubscriptionNotFound,
    UserNotLinked,
    WebhookSecretMissing,
)

__all__ = [
    "BillingSyncError",
    "ConcurrentWriteConflict",
    "MalformedEvent",
    "NonRetryableError",
    "RetryableError",
    "SignatureInvalid",
    "StorageUnavailable",
    "SubscriptionNotFound",
    "UserNotLinked",
    "WebhookSecretMissing",
]
