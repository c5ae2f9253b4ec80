"""Notification triggers for order, payment, catalog and maintenance events.

Each trigger builds every payload first, then delivers: the customer
directly, staff audiences through the dispatcher (batched where one event
reaches several roles). Triggers never raise; a notification problem is
logged and the business operation carries on.
"""

import logging
from typing import Optional

from storefront.core.config import get_settings
from storefront.core.exceptions import StoreError
from storefront.core.rbac.permissions import RoleName
from storefront.db.store import DataStore, Filter

from .builders import (
    CashierNotifications,
    OwnerNotifications,
    Severity,
    SuperadminNotifications,
    UserNotifications,
)
from .dispatcher import DeliveryReport, NotificationDispatcher

logger = logging.getLogger(__name__)

PRODUCT_ACTION_LABELS = {
    "created": "Product added to catalog",
    "updated": "Product information updated",
    "deleted": "Product removed from catalog",
    "archived": "Product archived",
    "restored": "Product restored",
}

# Statuses cashiers need to act on
CASHIER_STATUSES = frozenset(["processing", "completed"])


class NotificationTriggers:
    """Entry points called by the order, payment and catalog services."""

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        store: Optional[DataStore] = None,
        *,
        high_value_threshold: Optional[float] = None,
        low_stock_threshold: Optional[int] = None,
    ):
        settings = get_settings()
        self.dispatcher = dispatcher
        self.store = store if store is not None else dispatcher.store
        self.high_value_threshold = (
            settings.high_value_order_threshold if high_value_threshold is None else high_value_threshold
        )
        self.low_stock_threshold = (
            settings.low_stock_threshold if low_stock_threshold is None else low_stock_threshold
        )
        self.user = UserNotifications()
        self.cashier = CashierNotifications()
        self.owner = OwnerNotifications()
        self.admin = SuperadminNotifications()

    async def _customer_email(self, user_id: str) -> Optional[str]:
        try:
            rows = await self.store.select(
                "profiles", columns=["email"], filters=[Filter.eq("id", user_id)], limit=1,
            )
        except StoreError as e:
            logger.warning("Could not load email for user %s: %s", user_id, e)
            return None
        return rows[0]["email"] if rows else None

    async def order_created(
        self,
        user_id: str,
        order_id: str,
        total: float,
        customer_email: Optional[str] = None,
    ) -> DeliveryReport:
        """Customer confirmation, cashier alert, owner high-value alert, admin event."""
        report = DeliveryReport()
        try:
            user_notif = self.user.build_order_placed(order_id, total)
            role_notifs = {
                RoleName.CASHIER.value: self.cashier.build_order_placed(order_id, total),
                RoleName.SUPERADMIN.value: self.admin.build_order_placed(order_id, total),
            }

            if total > self.high_value_threshold:
                if customer_email is None:
                    customer_email = await self._customer_email(user_id)
                if customer_email:
                    role_notifs[RoleName.OWNER.value] = self.owner.build_high_value_order(
                        order_id, total, customer_email,
                    )

            report = _merge(report, await self.dispatcher.deliver_to_user(user_id, user_notif))
            report = _merge(report, await self.dispatcher.deliver_to_roles(role_notifs))
        except Exception:
            logger.exception("Failed to send order created notification")
        return report

    async def order_status_changed(self, user_id: str, order_id: str, new_status: str) -> DeliveryReport:
        report = DeliveryReport()
        try:
            user_notif = self.user.build_order_status_changed(order_id, new_status)
            report = _merge(report, await self.dispatcher.deliver_to_user(user_id, user_notif))

            if new_status in CASHIER_STATUSES:
                cashier_notif = self.cashier.build_order_status_changed(order_id, new_status)
                report = _merge(
                    report,
                    await self.dispatcher.deliver_to_role(RoleName.CASHIER.value, cashier_notif),
                )
        except Exception:
            logger.exception("Failed to send order status notification")
        return report

    async def payment_completed(self, user_id: str, order_id: str, amount: float, method: str) -> DeliveryReport:
        report = DeliveryReport()
        try:
            user_notif = self.user.build_payment_received(order_id, amount, method)
            role_notifs = {
                RoleName.CASHIER.value: self.cashier.build_payment_received(order_id, amount, method),
                RoleName.SUPERADMIN.value: self.admin.build_payment_received(order_id, amount, method),
            }
            report = _merge(report, await self.dispatcher.deliver_to_user(user_id, user_notif))
            report = _merge(report, await self.dispatcher.deliver_to_roles(role_notifs))
        except Exception:
            logger.exception("Failed to send payment notification")
        return report

    async def payment_failed(self, user_id: str, order_id: str, amount: float, method: str) -> DeliveryReport:
        report = DeliveryReport()
        try:
            user_notif = self.user.build_payment_failed(order_id, amount, method)
            role_notifs = {
                RoleName.OWNER.value: self.owner.build_payment_failed(order_id, amount, method),
                RoleName.SUPERADMIN.value: self.admin.build_payment_failed(order_id, amount, method),
            }
            report = _merge(report, await self.dispatcher.deliver_to_user(user_id, user_notif))
            report = _merge(report, await self.dispatcher.deliver_to_roles(role_notifs))
        except Exception:
            logger.exception("Failed to send payment failed notification")
        return report

    async def product_changed(self, action: str, product_name: str) -> DeliveryReport:
        try:
            label = PRODUCT_ACTION_LABELS.get(action, action)
            notif = self.admin.build_system_event(f"{action.upper()}: {product_name} - {label}")
            return await self.dispatcher.deliver_to_role(RoleName.SUPERADMIN.value, notif)
        except Exception:
            logger.exception("Failed to send product notification")
            return DeliveryReport()

    async def low_stock(
        self,
        product_name: str,
        current_stock: int,
        threshold: Optional[int] = None,
    ) -> DeliveryReport:
        try:
            threshold = self.low_stock_threshold if threshold is None else threshold
            notif = self.owner.build_low_stock(product_name, current_stock, threshold)
            return await self.dispatcher.deliver_to_role(RoleName.OWNER.value, notif)
        except Exception:
            logger.exception("Failed to send low stock notification")
            return DeliveryReport()

    async def security_event(self, event: str, user_id: str, details: Optional[str] = None) -> DeliveryReport:
        try:
            notif = self.admin.build_security_event(event, user_id, details)
            return await self.dispatcher.deliver_to_role(RoleName.SUPERADMIN.value, notif)
        except Exception:
            logger.exception("Failed to send security notification")
            return DeliveryReport()

    async def system_event(self, event: str, severity: Severity = Severity.INFO) -> DeliveryReport:
        try:
            notif = self.admin.build_system_event(event, severity)
            return await self.dispatcher.deliver_to_role(RoleName.SUPERADMIN.value, notif)
        except Exception:
            logger.exception("Failed to send system notification")
            return DeliveryReport()

    async def cleanup_completed(self, job_name: str, items_deleted: int) -> DeliveryReport:
        try:
            notif = self.admin.build_cleanup_completed(job_name, items_deleted)
            return await self.dispatcher.deliver_to_role(RoleName.SUPERADMIN.value, notif)
        except Exception:
            logger.exception("Failed to send cleanup notification")
            return DeliveryReport()


def _merge(left: DeliveryReport, right: DeliveryReport) -> DeliveryReport:
    by_role = dict(left.by_role)
    for role, (ok, bad) in right.by_role.items():
        prev_ok, prev_bad = by_role.get(role, (0, 0))
        by_role[role] = (prev_ok + ok, prev_bad + bad)
    return DeliveryReport(
        attempted=left.attempted + right.attempted,
        delivered=left.delivered + right.delivered,
        failed=left.failed + right.failed,
        records=left.records + right.records,
        by_role=by_role,
    )
