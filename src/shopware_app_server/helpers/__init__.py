"""Response builders and Admin API shortcuts for app handlers."""

from .app_actions import (
    create_modal_response,
    create_new_tab_response,
    create_notification_response,
)
from .notification import NotificationRequest, send_notification

__all__ = [
    "NotificationRequest",
    "create_modal_response",
    "create_new_tab_response",
    "create_notification_response",
    "send_notification",
]
