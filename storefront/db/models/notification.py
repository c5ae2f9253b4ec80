"""Per-recipient notification rows."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Boolean, Text

from storefront.db.base import Base


class Notification(Base):
    """
    One notification delivered to one user.

    Written once per (payload, recipient) by the dispatcher; marked read or
    deleted later by the inbox and cleanup jobs.
    """
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)

    # Content
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(String(50), nullable=True, index=True)
    priority = Column(String(20), nullable=False, default="medium")  # low, medium, high, critical
    delivery_channel = Column(String(20), nullable=False, default="database")  # database, email, sms, push
    metadata_ = Column("metadata", JSON, nullable=True)

    # Related entity
    related_entity_type = Column(String(50), nullable=True)
    related_entity_id = Column(String(64), nullable=True)

    # Status
    is_read = Column(Boolean, nullable=False, default=False)
    status = Column(String(20), nullable=False, default="pending")

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Notification {self.notification_type} to {self.user_id}>"
