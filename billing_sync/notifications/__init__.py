from .notification_service import NotificationEmitter
from .templates import NotificationTemplates

__all__ = ["NotificationEmitter", "NotificationTemplates"]
