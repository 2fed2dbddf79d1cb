# billing_sync/webhooks/classifier.py
import re

from billing_sync.errors import NonRetryableError, RetryableError

from .results import NonRetryable, Retryable

# Transient infrastructure failures, matched against the exception message
TRANSIENT_PATTERNS = re.compile(
    r"connection|timeout|timed out|socket|network|deadlock|"
    r"pool exhausted|too many connections|econnrefused|econnreset",
    re.IGNORECASE,
)


def classify(exc: BaseException):
    """
    Turn an exception raised while handling an event into a tagged result.

    Explicit tags win over the message: a NonRetryableError is never retried
    even when its text looks transient. Anything unrecognized is
    NonRetryable so an unexpected bug cannot cause endless redelivery.
    """
    reason = str(exc) or exc.__class__.__name__

    if isinstance(exc, NonRetryableError):
        return NonRetryable(reason, exc)
    if isinstance(exc, RetryableError):
        return Retryable(reason, exc)
    if TRANSIENT_PATTERNS.search(reason):
        return Retryable(reason, exc)
    return NonRetryable(reason, exc)
