"""Notification value types."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class DeliveryChannel(str, Enum):
    DATABASE = "database"
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"


class NotificationType(str, Enum):
    """Category tags stored with each notification."""
    ORDER_PLACED = "ORDER_PLACED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    NEW_ORDER_ALERT = "NEW_ORDER_ALERT"
    HIGH_VALUE_ORDER = "HIGH_VALUE_ORDER"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    PAYMENT_PROCESSED = "PAYMENT_PROCESSED"
    PAYMENT_FAILED = "PAYMENT_FAILED"
    PAYMENT_ISSUE = "PAYMENT_ISSUE"
    LOW_STOCK_ALERT = "LOW_STOCK_ALERT"
    DAILY_SALES_SUMMARY = "DAILY_SALES_SUMMARY"
    SYSTEM_ALERT = "SYSTEM_ALERT"
    SYSTEM_EVENT = "SYSTEM_EVENT"
    SECURITY_ALERT = "SECURITY_ALERT"
    DATABASE_ALERT = "DATABASE_ALERT"
    OPERATION_FAILED = "OPERATION_FAILED"
    CLEANUP_JOB_COMPLETED = "CLEANUP_JOB_COMPLETED"


@dataclass(frozen=True)
class NotificationPayload:
    """
    What a notification says, before it has a recipient.

    Frozen; ``metadata`` is exposed read-only and left out of the hash.
    """
    title: str
    message: str
    notification_type: NotificationType
    priority: Priority = Priority.MEDIUM
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False)
    delivery_channel: DeliveryChannel = DeliveryChannel.DATABASE

    def __post_init__(self):
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_row(self, user_id: str) -> Dict[str, Any]:
        """Row for the notifications table addressed to ``user_id``."""
        return {
            "user_id": user_id,
            "title": self.title,
            "message": self.message,
            "notification_type": self.notification_type.value,
            "priority": self.priority.value,
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "metadata": dict(self.metadata),
            "delivery_channel": self.delivery_channel.value,
            "is_read": False,
            "status": "pending",
        }


@dataclass(frozen=True)
class NotificationRecord:
    """A persisted notification for one recipient."""
    id: str
    user_id: str
    payload: NotificationPayload
    is_read: bool
    created_at: Optional[datetime]

    @classmethod
    def from_row(cls, row: Mapping[str, Any], payload: NotificationPayload) -> "NotificationRecord":
        return cls(
            id=str(row.get("id")),
            user_id=str(row["user_id"]),
            payload=payload,
            is_read=bool(row.get("is_read", False)),
            created_at=row.get("created_at"),
        )
