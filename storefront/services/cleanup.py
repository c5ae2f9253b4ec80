"""Retention jobs for audit logs and notifications.

Run periodically (cron or a scheduled function) to keep both tables small.
Superadmins are told how much was removed.
"""

import logging
import time
from datetime import datetime, timedelta
from typing import Any, Dict, NamedTuple, Optional

from storefront.core.config import get_settings
from storefront.core.exceptions import StoreError
from storefront.db.store import DataStore, Filter
from storefront.services.notifications.triggers import NotificationTriggers

logger = logging.getLogger(__name__)

NOTIFICATIONS_TABLE = "notifications"
AUDIT_LOGS_TABLE = "audit_logs"


class CleanupResult(NamedTuple):
    deleted: int
    error: Optional[str] = None


def _cutoff(days_old: int) -> datetime:
    return datetime.utcnow() - timedelta(days=days_old)


class CleanupJobs:
    """Deletes old audit logs and notifications and reports the totals."""

    def __init__(self, store: DataStore, triggers: Optional[NotificationTriggers] = None):
        settings = get_settings()
        self.store = store
        self.triggers = triggers
        self.retention_days = settings.notification_retention_days
        self.read_retention_days = settings.read_notification_retention_days
        self.audit_retention_days = settings.audit_log_retention_days

    async def delete_old_audit_logs(self, days_old: Optional[int] = None) -> CleanupResult:
        """Delete every audit log entry older than ``days_old`` days."""
        days_old = self.audit_retention_days if days_old is None else days_old
        try:
            deleted = await self.store.delete(
                AUDIT_LOGS_TABLE, [Filter.lt("created_at", _cutoff(days_old))],
            )
        except StoreError as e:
            logger.error("Error deleting old audit logs: %s", e)
            return CleanupResult(0, str(e))

        logger.info("Deleted %d old audit logs (older than %d days)", deleted, days_old)
        return CleanupResult(deleted)

    async def delete_old_notifications(self, days_old: Optional[int] = None) -> CleanupResult:
        """Delete every notification older than ``days_old`` days."""
        days_old = self.retention_days if days_old is None else days_old
        try:
            deleted = await self.store.delete(
                NOTIFICATIONS_TABLE, [Filter.lt("created_at", _cutoff(days_old))],
            )
        except StoreError as e:
            logger.error("Error deleting old notifications: %s", e)
            return CleanupResult(0, str(e))

        logger.info("Deleted %d old notifications (older than %d days)", deleted, days_old)
        return CleanupResult(deleted)

    async def delete_old_read_notifications(self, user_id: str, days_old: Optional[int] = None) -> CleanupResult:
        """Delete a user's read notifications older than ``days_old``. Unread ones are kept."""
        days_old = self.read_retention_days if days_old is None else days_old
        try:
            deleted = await self.store.delete(
                NOTIFICATIONS_TABLE,
                [
                    Filter.eq("user_id", user_id),
                    Filter.eq("is_read", True),
                    Filter.lt("created_at", _cutoff(days_old)),
                ],
            )
        except StoreError as e:
            logger.error("Error deleting old read notifications: %s", e)
            return CleanupResult(0, str(e))
        return CleanupResult(deleted)

    async def get_cleanup_stats(self) -> Optional[Dict[str, Any]]:
        """How much the jobs would delete right now."""
        try:
            old_audit = await self.store.select(
                AUDIT_LOGS_TABLE,
                columns=["id"],
                filters=[Filter.lt("created_at", _cutoff(self.audit_retention_days))],
            )
            old = await self.store.select(
                NOTIFICATIONS_TABLE,
                columns=["id"],
                filters=[Filter.lt("created_at", _cutoff(self.retention_days))],
            )
            old_read = await self.store.select(
                NOTIFICATIONS_TABLE,
                columns=["id"],
                filters=[
                    Filter.eq("is_read", True),
                    Filter.lt("created_at", _cutoff(self.read_retention_days)),
                ],
            )
        except StoreError as e:
            logger.error("Error getting cleanup stats: %s", e)
            return None

        return {
            "old_audit_logs": len(old_audit),
            "old_notifications": len(old),
            "old_read_notifications": len(old_read),
            "can_cleanup": {
                "audit_logs": len(old_audit) > 0,
                "notifications": len(old) > 0,
                "read_notifications": len(old_read) > 0,
            },
        }

    async def run_all(self) -> Dict[str, Any]:
        """Run every retention job and notify superadmins of the result."""
        logger.info("Starting database cleanup jobs")
        start = time.monotonic()

        audit = await self.delete_old_audit_logs()
        notifications = await self.delete_old_notifications()

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Cleanup completed in %dms, deleted %d audit logs and %d notifications",
            duration_ms, audit.deleted, notifications.deleted,
        )

        errors = [r.error for r in (audit, notifications) if r.error]
        if self.triggers is not None and not errors:
            await self.triggers.cleanup_completed("Database cleanup", audit.deleted + notifications.deleted)

        return {
            "audit_logs_deleted": audit.deleted,
            "notifications_deleted": notifications.deleted,
            "error": "; ".join(errors) or None,
            "duration_ms": duration_ms,
        }
