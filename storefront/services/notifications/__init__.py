"""Role-based notifications: build payloads, then batch-deliver them."""

from .payloads import DeliveryChannel, NotificationPayload, NotificationRecord, NotificationType, Priority
from .builders import (
    Audience,
    CashierNotifications,
    NotificationBuilder,
    OwnerNotifications,
    Severity,
    SuperadminNotifications,
    UserNotifications,
    builder_for,
)
from .dispatcher import DeliveryReport, NotificationDispatcher
from .triggers import NotificationTriggers

__all__ = [
    "Audience",
    "CashierNotifications",
    "DeliveryChannel",
    "DeliveryReport",
    "NotificationBuilder",
    "NotificationDispatcher",
    "NotificationPayload",
    "NotificationRecord",
    "NotificationTriggers",
    "NotificationType",
    "OwnerNotifications",
    "Priority",
    "Severity",
    "SuperadminNotifications",
    "UserNotifications",
    "builder_for",
]
