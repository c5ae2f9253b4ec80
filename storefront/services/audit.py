"""Audit trail writer.

Records who did what to which row. Writing is best-effort: a failed audit
insert is logged and never interrupts the action being audited.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from storefront.core.exceptions import StoreError
from storefront.db.models.audit import AuditAction
from storefront.db.store import DataStore, Filter

logger = logging.getLogger(__name__)

AUDIT_LOGS_TABLE = "audit_logs"

# Sensitive fields to redact from metadata
SENSITIVE_FIELDS = {
    "password",
    "password_hash",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "secret",
    "card_number",
}


def redact_sensitive(data: Any) -> Any:
    """Redact sensitive fields from metadata."""
    if isinstance(data, Mapping):
        return {
            k: "[REDACTED]" if str(k).lower() in SENSITIVE_FIELDS else redact_sensitive(v)
            for k, v in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact_sensitive(item) for item in data]
    return data


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLogger:
    """Writes and reads audit_logs rows."""

    def __init__(self, store: DataStore):
        self.store = store

    async def log_action(
        self,
        user_id: Optional[str],
        action: Union[AuditAction, str],
        table_name: str,
        record_id: Optional[str] = None,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Record one action.

        Args:
            user_id: Acting user; entries without one are skipped
            action: What was done (CREATE, UPDATE, ASSIGN_ROLE, ...)
            table_name: Table the action touched
            record_id: Row that was touched
            metadata: Extra context; sensitive keys are redacted

        Returns:
            The stored row, or None when nothing was written
        """
        if not user_id:
            logger.warning("Cannot log %s on %s without a user id", action, table_name)
            return None

        row = {
            "user_id": user_id,
            "action": action.value if isinstance(action, AuditAction) else action,
            "table_name": table_name,
            "record_id": record_id,
            "metadata": redact_sensitive(metadata or {}),
        }
        try:
            return await self.store.insert(AUDIT_LOGS_TABLE, row)
        except Exception:
            logger.exception("Failed to log %s on %s", row["action"], table_name)
            return None

    async def role_assigned(self, actor_id: str, target_user_id: str, role: str):
        return await self.log_action(
            actor_id, AuditAction.ASSIGN_ROLE, "user_roles", target_user_id,
            {"role": role, "timestamp": _now()},
        )

    async def role_removed(self, actor_id: str, target_user_id: str, role: str):
        return await self.log_action(
            actor_id, AuditAction.REMOVE_ROLE, "user_roles", target_user_id,
            {"role": role, "timestamp": _now()},
        )

    async def product_created(self, user_id: str, product_id: str, product_name: str):
        return await self.log_action(user_id, AuditAction.CREATE, "products", product_id, {"product_name": product_name})

    async def product_updated(self, user_id: str, product_id: str, changes: Mapping[str, Any]):
        return await self.log_action(user_id, AuditAction.UPDATE, "products", product_id, {"changes": dict(changes)})

    async def product_deleted(self, user_id: str, product_id: str, product_name: str):
        return await self.log_action(user_id, AuditAction.DELETE, "products", product_id, {"product_name": product_name})

    async def order_created(self, user_id: str, order_id: str, total: float):
        return await self.log_action(
            user_id, AuditAction.CREATE, "orders", order_id, {"total": total, "timestamp": _now()},
        )

    async def order_updated(self, user_id: str, order_id: str, status: str):
        return await self.log_action(
            user_id, AuditAction.UPDATE, "orders", order_id, {"status": status, "timestamp": _now()},
        )

    async def payment_created(self, user_id: str, payment_id: str, method: str, amount: float):
        return await self.log_action(
            user_id, AuditAction.CREATE, "payments", payment_id, {"method": method, "amount": amount},
        )

    async def payment_updated(self, user_id: str, payment_id: str, status: str):
        return await self.log_action(
            user_id, AuditAction.UPDATE, "payments", payment_id, {"status": status, "timestamp": _now()},
        )

    async def user_login(self, user_id: str):
        return await self.log_action(user_id, AuditAction.LOGIN, "users", user_id, {"timestamp": _now()})

    async def user_logout(self, user_id: str):
        return await self.log_action(user_id, AuditAction.LOGOUT, "users", user_id, {"timestamp": _now()})

    async def recent(self, limit: int = 100, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Newest entries first, optionally for one actor.

        Raises:
            StoreError: the audit table could not be read
        """
        filters = [Filter.eq("user_id", user_id)] if user_id else []
        try:
            return await self.store.select(
                AUDIT_LOGS_TABLE, filters=filters, order_by="created_at", descending=True, limit=limit,
            )
        except StoreError as e:
            logger.error("Error fetching audit logs: %s", e)
            raise
