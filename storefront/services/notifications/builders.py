"""Notification builders, one per audience.

Builders turn event facts into ``NotificationPayload`` values. They never
look up recipients and never touch the store, so one event can be rendered
for several audiences and handed to the dispatcher in a single batch.

Every audience implements the same event kinds declared on
``NotificationBuilder``; a builder that misses one cannot be instantiated.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional, Union

from storefront.core.rbac.permissions import RoleName

from .payloads import NotificationPayload, NotificationType, Priority


class Audience(str, Enum):
    """Audience archetypes. Values are the role names they are delivered to."""
    USER = RoleName.USER.value
    CASHIER = RoleName.CASHIER.value
    OWNER = RoleName.OWNER.value
    SUPERADMIN = RoleName.SUPERADMIN.value


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


ORDER = "order"
PAYMENT = "payment"
PRODUCT = "product"


def short_ref(entity_id: str) -> str:
    """First 8 characters of an id, as shown to people."""
    return str(entity_id)[:8]


def money(amount: float) -> str:
    return f"${amount:.2f}"


class NotificationBuilder(ABC):
    """Event kinds every audience can be notified about."""

    audience: Audience

    # Severity -> priority for system events
    severity_priority: Dict[Severity, Priority] = {
        Severity.INFO: Priority.LOW,
        Severity.WARNING: Priority.HIGH,
        Severity.CRITICAL: Priority.CRITICAL,
    }

    def _priority_for(self, severity: Union[str, Severity]) -> Priority:
        return self.severity_priority[Severity(severity)]

    @abstractmethod
    def build_order_placed(self, order_id: str, total: float) -> NotificationPayload: ...

    @abstractmethod
    def build_order_status_changed(self, order_id: str, status: str) -> NotificationPayload: ...

    @abstractmethod
    def build_payment_received(self, order_id: str, amount: float, method: str) -> NotificationPayload: ...

    @abstractmethod
    def build_payment_failed(self, order_id: str, amount: float, method: str) -> NotificationPayload: ...

    @abstractmethod
    def build_low_stock(self, product_name: str, current_stock: int, threshold: int) -> NotificationPayload: ...

    @abstractmethod
    def build_system_event(self, event: str, severity: Union[str, Severity] = Severity.INFO) -> NotificationPayload: ...

    @abstractmethod
    def build_security_event(self, event: str, user_id: str, details: Optional[str] = None) -> NotificationPayload: ...

    @abstractmethod
    def build_operation_failed(self, operation: str, reason: str) -> NotificationPayload: ...

    @abstractmethod
    def build_cleanup_completed(self, job_name: str, items_deleted: int) -> NotificationPayload: ...


class UserNotifications(NotificationBuilder):
    """Customers hear about their own orders, payments and account."""

    audience = Audience.USER

    STATUS_MESSAGES = {
        "pending": "Your order is waiting to be processed",
        "processing": "Your order is now being prepared",
        "completed": "Your order is complete! Ready for pickup or delivery.",
        "cancelled": "Your order has been cancelled",
    }

    def build_order_placed(self, order_id: str, total: float) -> NotificationPayload:
        return NotificationPayload(
            title="Order Placed",
            message=(
                f"Your order #{short_ref(order_id)} for {money(total)} has been placed. "
                "You'll receive updates as we process it."
            ),
            notification_type=NotificationType.ORDER_PLACED,
            priority=Priority.MEDIUM,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "total": total},
        )

    def build_order_status_changed(self, order_id: str, status: str) -> NotificationPayload:
        return NotificationPayload(
            title=f"Order {status.capitalize()}",
            message=self.STATUS_MESSAGES.get(status, f"Your order status changed to {status}"),
            notification_type=NotificationType.ORDER_STATUS_CHANGED,
            priority=Priority.MEDIUM,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "status": status},
        )

    def build_payment_received(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Confirmed",
            message=(
                f"Payment of {money(amount)} via {method} has been received and confirmed "
                f"for order #{short_ref(order_id)}."
            ),
            notification_type=NotificationType.PAYMENT_RECEIVED,
            priority=Priority.HIGH,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "amount": amount, "method": method},
        )

    def build_payment_failed(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Failed",
            message=(
                f"Payment of {money(amount)} for order #{short_ref(order_id)} failed. "
                "Please try again or contact support."
            ),
            notification_type=NotificationType.PAYMENT_FAILED,
            priority=Priority.HIGH,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "amount": amount, "method": method},
        )

    def build_low_stock(self, product_name: str, current_stock: int, threshold: int) -> NotificationPayload:
        return NotificationPayload(
            title="Almost Gone",
            message=f"Only {current_stock} left of {product_name}.",
            notification_type=NotificationType.LOW_STOCK_ALERT,
            priority=Priority.LOW,
            metadata={"product_name": product_name, "current_stock": current_stock},
        )

    def build_system_event(self, event: str, severity: Union[str, Severity] = Severity.INFO) -> NotificationPayload:
        severity = Severity(severity)
        return NotificationPayload(
            title="Store Update",
            message=event,
            notification_type=NotificationType.SYSTEM_EVENT,
            priority=self._priority_for(severity),
            metadata={"severity": severity.value},
        )

    def build_security_event(self, event: str, user_id: str, details: Optional[str] = None) -> NotificationPayload:
        message = f"We noticed activity on your account: {event}."
        if details:
            message += f" {details}"
        return NotificationPayload(
            title="Security Notice",
            message=message + " If this wasn't you, change your password.",
            notification_type=NotificationType.SECURITY_ALERT,
            priority=Priority.HIGH,
            metadata={"event": event, "user_id": user_id, "details": details},
        )

    def build_operation_failed(self, operation: str, reason: str) -> NotificationPayload:
        return NotificationPayload(
            title="Something Went Wrong",
            message=f"We couldn't complete {operation}. {reason}",
            notification_type=NotificationType.OPERATION_FAILED,
            priority=Priority.HIGH,
            metadata={"operation": operation, "reason": reason},
        )

    def build_cleanup_completed(self, job_name: str, items_deleted: int) -> NotificationPayload:
        return NotificationPayload(
            title="Notifications Tidied",
            message=f"{items_deleted} old notifications were cleared from your inbox.",
            notification_type=NotificationType.CLEANUP_JOB_COMPLETED,
            priority=Priority.LOW,
            metadata={"job_name": job_name, "items_deleted": items_deleted},
        )


class CashierNotifications(NotificationBuilder):
    """Cashiers get operational alerts about orders they need to process."""

    audience = Audience.CASHIER

    severity_priority = {
        Severity.INFO: Priority.LOW,
        Severity.WARNING: Priority.MEDIUM,
        Severity.CRITICAL: Priority.CRITICAL,
    }

    def build_new_order_alert(self, order_count: int, total_amount: float) -> NotificationPayload:
        return NotificationPayload(
            title="New Order Alert",
            message=f"You have {order_count} new order(s) to process totaling {money(total_amount)}.",
            notification_type=NotificationType.NEW_ORDER_ALERT,
            priority=Priority.HIGH,
            metadata={"order_count": order_count, "total_amount": total_amount},
        )

    def build_order_placed(self, order_id: str, total: float) -> NotificationPayload:
        return self.build_new_order_alert(1, total)

    def build_order_status_changed(self, order_id: str, status: str) -> NotificationPayload:
        return NotificationPayload(
            title="Order Updated",
            message=f"Order #{short_ref(order_id)} is now {status}.",
            notification_type=NotificationType.ORDER_STATUS_CHANGED,
            priority=Priority.MEDIUM,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "status": status},
        )

    def build_payment_received(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Processed",
            message=(
                f"Payment of {money(amount)} via {method} for order "
                f"#{short_ref(order_id)} has been processed."
            ),
            notification_type=NotificationType.PAYMENT_PROCESSED,
            priority=Priority.MEDIUM,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "amount": amount, "method": method},
        )

    def build_payment_failed(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Failed",
            message=(
                f"Payment of {money(amount)} via {method} for order #{short_ref(order_id)} "
                "failed. Ask the customer for another payment method."
            ),
            notification_type=NotificationType.PAYMENT_FAILED,
            priority=Priority.HIGH,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "amount": amount, "method": method},
        )

    def build_low_stock(self, product_name: str, current_stock: int, threshold: int) -> NotificationPayload:
        return NotificationPayload(
            title="Low Stock",
            message=f"{product_name} is running low ({current_stock}/{threshold}).",
            notification_type=NotificationType.LOW_STOCK_ALERT,
            priority=Priority.MEDIUM,
            metadata={"product_name": product_name, "current_stock": current_stock, "threshold": threshold},
        )

    def build_system_event(self, event: str, severity: Union[str, Severity] = Severity.INFO) -> NotificationPayload:
        severity = Severity(severity)
        return NotificationPayload(
            title="System Alert",
            message=event,
            notification_type=NotificationType.SYSTEM_ALERT,
            priority=self._priority_for(severity),
            metadata={"severity": severity.value},
        )

    def build_security_event(self, event: str, user_id: str, details: Optional[str] = None) -> NotificationPayload:
        return NotificationPayload(
            title="Security Alert",
            message=f"{event} on the point of sale" + (f": {details}" if details else ""),
            notification_type=NotificationType.SECURITY_ALERT,
            priority=Priority.HIGH,
            metadata={"event": event, "user_id": user_id, "details": details},
        )

    def build_operation_failed(self, operation: str, reason: str) -> NotificationPayload:
        return NotificationPayload(
            title="Operation Failed",
            message=f"{operation}: {reason}",
            notification_type=NotificationType.OPERATION_FAILED,
            priority=Priority.HIGH,
            metadata={"operation": operation, "reason": reason},
        )

    def build_cleanup_completed(self, job_name: str, items_deleted: int) -> NotificationPayload:
        return NotificationPayload(
            title="Cleanup Complete",
            message=f"{job_name}: {items_deleted} items deleted",
            notification_type=NotificationType.CLEANUP_JOB_COMPLETED,
            priority=Priority.LOW,
            metadata={"job_name": job_name, "items_deleted": items_deleted},
        )


class OwnerNotifications(NotificationBuilder):
    """Owners get business-critical alerts and summary reports."""

    audience = Audience.OWNER

    def build_high_value_order(self, order_id: str, total: float, customer_email: str) -> NotificationPayload:
        return NotificationPayload(
            title="High-Value Order",
            message=f"Order #{short_ref(order_id)} for {money(total)} from {customer_email}",
            notification_type=NotificationType.HIGH_VALUE_ORDER,
            priority=Priority.HIGH,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "total": total, "customer_email": customer_email},
        )

    def build_daily_sales_summary(self, total_sales: float, order_count: int, date: str) -> NotificationPayload:
        return NotificationPayload(
            title="Daily Sales Summary",
            message=f"On {date}: {order_count} orders totaling {money(total_sales)}",
            notification_type=NotificationType.DAILY_SALES_SUMMARY,
            priority=Priority.LOW,
            metadata={"total_sales": total_sales, "order_count": order_count, "date": date},
        )

    def build_payment_issue(self, order_id: str, issue: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Issue",
            message=f"Order #{short_ref(order_id)}: {issue}",
            notification_type=NotificationType.PAYMENT_ISSUE,
            priority=Priority.HIGH,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "issue": issue},
        )

    def build_order_placed(self, order_id: str, total: float) -> NotificationPayload:
        return NotificationPayload(
            title="New Order",
            message=f"Order #{short_ref(order_id)} was placed for {money(total)}.",
            notification_type=NotificationType.ORDER_PLACED,
            priority=Priority.MEDIUM,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "total": total},
        )

    def build_order_status_changed(self, order_id: str, status: str) -> NotificationPayload:
        return NotificationPayload(
            title="Order Updated",
            message=f"Order #{short_ref(order_id)} moved to {status}.",
            notification_type=NotificationType.ORDER_STATUS_CHANGED,
            priority=Priority.MEDIUM,
            related_entity_type=ORDER,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "status": status},
        )

    def build_payment_received(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return NotificationPayload(
            title="Payment Received",
            message=f"{money(amount)} received via {method} for order #{short_ref(order_id)}.",
            notification_type=NotificationType.PAYMENT_RECEIVED,
            priority=Priority.MEDIUM,
            related_entity_type=PAYMENT,
            related_entity_id=order_id,
            metadata={"order_id": order_id, "amount": amount, "method": method},
        )

    def build_payment_failed(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return self.build_payment_issue(order_id, f"Payment via {method} failed")

    def build_low_stock(self, product_name: str, current_stock: int, threshold: int) -> NotificationPayload:
        return NotificationPayload(
            title="Low Stock Alert",
            message=f"{product_name} is running low ({current_stock}/{threshold}). Consider reordering.",
            notification_type=NotificationType.LOW_STOCK_ALERT,
            priority=Priority.HIGH,
            metadata={"product_name": product_name, "current_stock": current_stock, "threshold": threshold},
        )

    def build_system_event(self, event: str, severity: Union[str, Severity] = Severity.INFO) -> NotificationPayload:
        severity = Severity(severity)
        return NotificationPayload(
            title="Store Event",
            message=event,
            notification_type=NotificationType.SYSTEM_EVENT,
            priority=self._priority_for(severity),
            metadata={"severity": severity.value},
        )

    def build_security_event(self, event: str, user_id: str, details: Optional[str] = None) -> NotificationPayload:
        return NotificationPayload(
            title="Security Alert",
            message=f"{event} by user {short_ref(user_id)}" + (f": {details}" if details else ""),
            notification_type=NotificationType.SECURITY_ALERT,
            priority=Priority.CRITICAL,
            metadata={"event": event, "user_id": user_id, "details": details},
        )

    def build_operation_failed(self, operation: str, reason: str) -> NotificationPayload:
        return NotificationPayload(
            title="Operation Failed",
            message=f"{operation}: {reason}",
            notification_type=NotificationType.OPERATION_FAILED,
            priority=Priority.HIGH,
            metadata={"operation": operation, "reason": reason},
        )

    def build_cleanup_completed(self, job_name: str, items_deleted: int) -> NotificationPayload:
        return NotificationPayload(
            title="Cleanup Complete",
            message=f"{job_name}: {items_deleted} items deleted",
            notification_type=NotificationType.CLEANUP_JOB_COMPLETED,
            priority=Priority.LOW,
            metadata={"job_name": job_name, "items_deleted": items_deleted},
        )


class SuperadminNotifications(NotificationBuilder):
    """Superadmins get system-level alerts and audit information."""

    audience = Audience.SUPERADMIN

    def build_database_alert(self, issue: str) -> NotificationPayload:
        return NotificationPayload(
            title="Database Alert",
            message=issue,
            notification_type=NotificationType.DATABASE_ALERT,
            priority=Priority.CRITICAL,
            metadata={"issue": issue},
        )

    def build_order_placed(self, order_id: str, total: float) -> NotificationPayload:
        return self.build_system_event(f"New order created: {short_ref(order_id)} - {money(total)}")

    def build_order_status_changed(self, order_id: str, status: str) -> NotificationPayload:
        return self.build_system_event(f"Order {short_ref(order_id)} status changed to {status}")

    def build_payment_received(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return self.build_system_event(
            f"Payment completed: {short_ref(order_id)} - {money(amount)} via {method}"
        )

    def build_payment_failed(self, order_id: str, amount: float, method: str) -> NotificationPayload:
        return self.build_operation_failed(
            "Payment Processing",
            f"Payment {short_ref(order_id)} via {method} failed",
        )

    def build_low_stock(self, product_name: str, current_stock: int, threshold: int) -> NotificationPayload:
        return self.build_system_event(
            f"Low stock: {product_name} ({current_stock}/{threshold})",
            Severity.WARNING,
        )

    def build_system_event(self, event: str, severity: Union[str, Severity] = Severity.INFO) -> NotificationPayload:
        severity = Severity(severity)
        return NotificationPayload(
            title="System Event",
            message=event,
            notification_type=NotificationType.SYSTEM_EVENT,
            priority=self._priority_for(severity),
            metadata={"severity": severity.value},
        )

    def build_security_event(self, event: str, user_id: str, details: Optional[str] = None) -> NotificationPayload:
        return NotificationPayload(
            title="Security Alert",
            message=f"{event} by user {short_ref(user_id)}" + (f": {details}" if details else ""),
            notification_type=NotificationType.SECURITY_ALERT,
            priority=Priority.CRITICAL,
            metadata={"event": event, "user_id": user_id, "details": details},
        )

    def build_operation_failed(self, operation: str, reason: str) -> NotificationPayload:
        return NotificationPayload(
            title="Operation Failed",
            message=f"{operation}: {reason}",
            notification_type=NotificationType.OPERATION_FAILED,
            priority=Priority.CRITICAL,
            metadata={"operation": operation, "reason": reason},
        )

    def build_cleanup_completed(self, job_name: str, items_deleted: int) -> NotificationPayload:
        return NotificationPayload(
            title="Cleanup Complete",
            message=f"{job_name}: {items_deleted} items deleted",
            notification_type=NotificationType.CLEANUP_JOB_COMPLETED,
            priority=Priority.LOW,
            metadata={"job_name": job_name, "items_deleted": items_deleted},
        )


BUILDERS: Dict[Audience, NotificationBuilder] = {
    Audience.USER: UserNotifications(),
    Audience.CASHIER: CashierNotifications(),
    Audience.OWNER: OwnerNotifications(),
    Audience.SUPERADMIN: SuperadminNotifications(),
}


def builder_for(audience: Union[str, Audience]) -> NotificationBuilder:
    """Builder for an audience or role name. Unknown audiences raise ValueError."""
    return BUILDERS[Audience(audience)]
