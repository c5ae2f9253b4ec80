"""Tests for notification triggers."""

import logging

import pytest

from storefront.services.notifications import NotificationTriggers

ORDER_ID = "a1b2c3d4-0000-4000-8000-000000000000"


@pytest.fixture
def triggers(dispatcher):
    return NotificationTriggers(dispatcher, high_value_threshold=100.0, low_stock_threshold=10)


def delivered(store):
    return sorted((r["user_id"], r["notification_type"]) for r in store.rows("notifications"))


class TestOrderTriggers:
    """Order events."""

    async def test_order_created(self, triggers, store):
        """Customer, cashiers and superadmins hear about a regular order."""
        report = await triggers.order_created("customer-1", ORDER_ID, 25.0)

        assert report.failed == 0
        assert delivered(store) == [
            ("admin-1", "SYSTEM_EVENT"),
            ("cashier-1", "NEW_ORDER_ALERT"),
            ("cashier-2", "NEW_ORDER_ALERT"),
            ("cashier-3", "NEW_ORDER_ALERT"),
            ("customer-1", "ORDER_PLACED"),
        ]
        assert store.select_counts["user_roles"] == 1

    async def test_high_value_order_alerts_owners(self, triggers, store):
        store.rows("profiles").append({"id": "customer-1", "email": "ada@example.com"})

        await triggers.order_created("customer-1", ORDER_ID, 250.0)

        owner_rows = [r for r in store.rows("notifications") if r["user_id"].startswith("owner")]
        assert len(owner_rows) == 2
        assert owner_rows[0]["notification_type"] == "HIGH_VALUE_ORDER"
        assert "ada@example.com" in owner_rows[0]["message"]
        assert store.select_counts["user_roles"] == 1

    async def test_high_value_order_without_email(self, triggers, store):
        """No known email means no owner alert."""
        await triggers.order_created("customer-1", ORDER_ID, 250.0)
        assert not [r for r in store.rows("notifications") if r["user_id"].startswith("owner")]

    async def test_threshold_is_exclusive(self, triggers, store):
        await triggers.order_created("customer-1", ORDER_ID, 100.0, customer_email="ada@example.com")
        assert not [r for r in store.rows("notifications") if r["user_id"].startswith("owner")]

    async def test_status_change_for_cashiers(self, triggers, store):
        await triggers.order_status_changed("customer-1", ORDER_ID, "processing")
        assert len(store.rows("notifications")) == 4

    async def test_status_change_customer_only(self, triggers, store):
        await triggers.order_status_changed("customer-1", ORDER_ID, "cancelled")
        assert delivered(store) == [("customer-1", "ORDER_STATUS_CHANGED")]


class TestPaymentTriggers:
    """Payment events."""

    async def test_payment_completed(self, triggers, store):
        report = await triggers.payment_completed("customer-1", ORDER_ID, 40.0, "cash")
        assert report.delivered == 5
        assert ("customer-1", "PAYMENT_RECEIVED") in delivered(store)
        assert ("cashier-1", "PAYMENT_PROCESSED") in delivered(store)

    async def test_payment_failed_single_membership_query(self, triggers, store):
        """Owner and superadmin are resolved with one query."""
        report = await triggers.payment_failed("customer-1", ORDER_ID, 40.0, "card")

        assert store.select_counts["user_roles"] == 1
        assert report.delivered == 4
        assert delivered(store) == [
            ("admin-1", "OPERATION_FAILED"),
            ("customer-1", "PAYMENT_FAILED"),
            ("owner-1", "PAYMENT_ISSUE"),
            ("owner-2", "PAYMENT_ISSUE"),
        ]


class TestOtherTriggers:
    """Catalog, security and maintenance events."""

    async def test_product_changed(self, triggers, store):
        await triggers.product_changed("archived", "Espresso Beans")
        rows = store.rows("notifications")
        assert [r["user_id"] for r in rows] == ["admin-1"]
        assert rows[0]["message"] == "ARCHIVED: Espresso Beans - Product archived"

    async def test_low_stock_uses_default_threshold(self, triggers, store):
        await triggers.low_stock("Espresso Beans", 3)
        rows = store.rows("notifications")
        assert {r["user_id"] for r in rows} == {"owner-1", "owner-2"}
        assert rows[0]["metadata"]["threshold"] == 10

    async def test_security_event(self, triggers, store):
        await triggers.security_event("Role changed", "user-12345678")
        assert delivered(store) == [("admin-1", "SECURITY_ALERT")]

    async def test_cleanup_completed(self, triggers, store):
        await triggers.cleanup_completed("Notification cleanup", 12)
        assert store.rows("notifications")[0]["priority"] == "low"


class TestBestEffort:
    """Triggers never raise."""

    async def test_store_down_does_not_raise(self, triggers, store, caplog):
        store.fail_tables.update({"notifications", "user_roles", "profiles"})
        with caplog.at_level(logging.ERROR):
            report = await triggers.order_created("customer-1", ORDER_ID, 500.0)
        assert report.delivered == 0
        assert report.failed == 1

    async def test_unexpected_error_is_logged(self, triggers, caplog, monkeypatch):
        async def boom(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(triggers.dispatcher, "deliver_to_user", boom)
        with caplog.at_level(logging.ERROR):
            report = await triggers.payment_failed("customer-1", ORDER_ID, 1.0, "card")
        assert report.attempted == 0
        assert "Failed to send payment failed notification" in caplog.text
