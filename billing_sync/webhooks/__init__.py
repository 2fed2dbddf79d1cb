from .classifier import classify
from .dispatcher import EventDispatcher, WebhookResponse
from .handlers import HANDLERS
from .results import HandlerContext, NonRetryable, NotificationDraft, Ok, Retryable, SubscriptionState
from .security import SIGNATURE_HEADER, verify_signature

__all__ = [
    "EventDispatcher",
    "HANDLERS",
    "HandlerContext",
    "NonRetryable",
    "NotificationDraft",
    "Ok",
    "Retryable",
    "SIGNATURE_HEADER",
    "SubscriptionState",
    "WebhookResponse",
    "classify",
    "verify_signature",
]
