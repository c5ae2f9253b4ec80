"""Tests for the storefront RBAC permission system."""

import logging
from itertools import combinations

import pytest

from storefront.core.exceptions import AuthorizationError
from storefront.core.rbac.permissions import (
    Permission, RoleName, ROLE_PERMISSIONS,
    get_all_permissions, get_role_permissions, is_valid_permission, parse_role,
)
from storefront.core.rbac.checker import (
    NO_ROLE_ASSIGNED, PermissionChecker, RouteRequirement, UNRECOGNIZED_PERMISSION,
    can_access, get_aggregate_permissions, has_all_permissions,
    has_any_permission, has_permission, log_authorization_check, require_permission,
)
from storefront.core.rbac.roles import (
    DEFAULT_ROLES, DEFAULT_SIGNUP_ROLE,
    get_accessible_features, get_default_role_permissions,
    get_role_display_name, get_role_rank, is_role_above_or_equal,
)

ALL_ROLES = [r.value for r in RoleName]


class TestPermissionModel:
    """Test permission definitions."""

    def test_is_valid_permission(self):
        """Known tags are valid, anything else is not."""
        assert is_valid_permission("view_dashboard")
        assert is_valid_permission("access_admin_panel")
        assert not is_valid_permission("frobnicate_widgets")
        assert not is_valid_permission("")

    def test_all_permissions_listed(self):
        """Every Permission member is reported once."""
        all_perms = get_all_permissions()
        assert len(all_perms) == len(set(all_perms)) == len(Permission)
        assert "checkout" in all_perms

    def test_unknown_role_has_no_permissions(self):
        """An unknown role grants nothing."""
        assert get_role_permissions("janitor") == frozenset()
        assert parse_role("janitor") is None

    def test_custom_table(self):
        """A custom table replaces the defaults."""
        table = {"user": frozenset([Permission.VIEW_DASHBOARD])}
        assert get_role_permissions("user", table) == {Permission.VIEW_DASHBOARD}
        assert get_role_permissions("owner", table) == frozenset()


class TestCanAccess:
    """Test the central decision function."""

    def test_owner_can_view_dashboard(self):
        """Owner holds view_dashboard."""
        decision = can_access(["owner"], "view_dashboard")
        assert decision.allowed
        assert decision

    def test_customer_cannot_view_dashboard(self):
        """Denial reason uses the label, not the tag."""
        decision = can_access(["user"], Permission.VIEW_DASHBOARD)
        assert not decision.allowed
        assert decision.reason == "You do not have permission to view the dashboard"
        assert "view_dashboard" not in decision.reason

    def test_unrecognized_permission_denied(self):
        """Unknown tags are denied for every role set, even superadmin."""
        for roles in ([], ["user"], ["superadmin"], ALL_ROLES):
            decision = can_access(roles, "frobnicate_widgets")
            assert not decision.allowed
            assert decision.reason == UNRECOGNIZED_PERMISSION
            assert "unrecognized" in decision.reason or "not recognized" in decision.reason

    def test_empty_roles_denied_when_auth_required(self):
        """No roles means unauthenticated for a protected action."""
        for permission in Permission:
            assert not can_access([], permission).allowed

    def test_guest_route_allows_anonymous(self):
        """Public routes need neither roles nor authentication."""
        public = RouteRequirement(requires_auth=False, allow_guest=True)
        assert can_access([], public).allowed

    def test_guest_blocked_on_member_only_route(self):
        """A route that does not allow guests needs a signed-in user."""
        requirement = RouteRequirement(requires_auth=False, allow_guest=False)
        decision = can_access([], requirement)
        assert not decision.allowed
        assert "Guests" in decision.reason

    def test_role_allow_list(self):
        """Allow-listed roles are checked before permissions."""
        requirement = RouteRequirement(
            permissions=("view_dashboard",),
            allowed_roles=frozenset(["owner", "superadmin"]),
        )
        assert can_access(["owner"], requirement).allowed

        decision = can_access(["cashier"], requirement)
        assert not decision.allowed
        assert decision.reason == "This page is only available to Store Owner or Super Admin accounts"

    def test_any_of_permissions(self):
        """One listed permission is enough."""
        requirement = RouteRequirement(permissions=("view_all_orders", "view_own_orders"))
        assert can_access(["user"], requirement).allowed
        assert can_access(["cashier"], requirement).allowed

    def test_monotonic_in_roles(self):
        """Adding roles never turns an allow into a deny."""
        for permission in Permission:
            for size in range(1, len(ALL_ROLES) + 1):
                for roles in combinations(ALL_ROLES, size):
                    if can_access(list(roles), permission).allowed:
                        for extra in ALL_ROLES:
                            assert can_access(list(roles) + [extra], permission).allowed

    def test_or_across_roles(self):
        """A user holding cashier and user gets the union."""
        assert can_access(["cashier", "user"], "add_to_cart").allowed
        assert can_access(["cashier", "user"], "view_dashboard").allowed
        assert not can_access(["cashier", "user"], "manage_users").allowed

    def test_deterministic(self):
        """Same inputs, same decision."""
        first = can_access(["cashier"], "edit_product")
        for _ in range(5):
            assert can_access(["cashier"], "edit_product") == first

    def test_explicit_authenticated_flag(self):
        """A signed-in user with no roles is denied for lacking a role, not for authentication."""
        decision = can_access([], "view_cart", authenticated=True)
        assert not decision.allowed
        assert decision.reason == NO_ROLE_ASSIGNED

    def test_roleless_user_denied_without_permission_list(self):
        """A signed-in user with no roles cannot pass a route that only requires sign-in."""
        decision = can_access([], RouteRequirement(), authenticated=True)
        assert not decision.allowed
        assert decision.reason == NO_ROLE_ASSIGNED
        assert can_access(["user"], RouteRequirement(), authenticated=True).allowed

    def test_roleless_guest_route_still_open(self):
        """Routes that do not require sign-in stay open to users without roles."""
        assert can_access([], RouteRequirement(requires_auth=False), authenticated=True).allowed


class TestRoleHelpers:
    """Test single-role helpers and the checker wrapper."""

    def test_has_permission(self):
        assert has_permission("cashier", "create_order")
        assert not has_permission("cashier", "edit_product")
        assert not has_permission("cashier", "frobnicate_widgets")

    def test_has_any_and_all(self):
        """Any-of and all-of across a role list."""
        assert has_any_permission(["user", "cashier"], "view_dashboard")
        assert not has_all_permissions(["user", "cashier"], "view_dashboard")
        assert has_all_permissions(["user", "cashier"], "checkout")
        assert not has_all_permissions([], "checkout")

    def test_aggregate_permissions(self):
        perms = get_aggregate_permissions(["user", "cashier"])
        assert perms == ROLE_PERMISSIONS[RoleName.USER] | ROLE_PERMISSIONS[RoleName.CASHIER]

    def test_permission_checker(self):
        """PermissionChecker binds a role set."""
        checker = PermissionChecker(["cashier"])
        assert checker.can("create_order")
        assert not checker.can(Permission.MANAGE_USERS)
        assert checker.has_any_permission(["manage_users", "checkout"])
        assert not checker.has_all_permissions(["manage_users", "checkout"])
        assert Permission.VIEW_DASHBOARD in checker.permissions()

    def test_require_permission_raises(self):
        """require_permission unwinds with AuthorizationError."""
        require_permission(["owner"], "delete_product")
        with pytest.raises(AuthorizationError) as exc:
            require_permission(["user"], Permission.DELETE_PRODUCT)
        assert exc.value.permission == "delete_product"
        assert exc.value.role == "user"
        assert "remove products" in str(exc.value)

    def test_log_authorization_check(self, caplog):
        """Grants log at INFO, denials at WARNING."""
        with caplog.at_level(logging.INFO, logger="storefront.core.rbac.checker"):
            log_authorization_check("u-1", ["user"], "checkout", True)
            log_authorization_check("u-1", ["user"], "manage_users", False)
        assert "[AUTH GRANTED]" in caplog.records[0].getMessage()
        assert caplog.records[1].levelno == logging.WARNING
        assert "[AUTH DENIED]" in caplog.records[1].getMessage()


class TestDefaultRoles:
    """Test role metadata."""

    def test_four_roles(self):
        assert set(DEFAULT_ROLES) == set(RoleName)
        assert DEFAULT_SIGNUP_ROLE == RoleName.USER

    def test_display_names(self):
        assert get_role_display_name("superadmin") == "Super Admin"
        assert get_role_display_name(RoleName.USER) == "Customer"
        assert get_role_display_name("janitor") == "Unknown"

    def test_hierarchy(self):
        """superadmin > owner > cashier > user."""
        assert get_role_rank("superadmin") > get_role_rank("owner") > get_role_rank("cashier") > get_role_rank("user")
        assert is_role_above_or_equal("owner", "cashier")
        assert is_role_above_or_equal("cashier", "cashier")
        assert not is_role_above_or_equal("user", "cashier")
        assert not is_role_above_or_equal("janitor", "janitor")

    def test_features(self):
        assert get_accessible_features(["user"]) == {"products", "cart", "orders"}
        assert "admin" in get_accessible_features(["cashier", "owner"])
        assert get_accessible_features([]) == set()

    def test_default_role_permissions(self):
        perms = get_default_role_permissions("cashier")
        assert perms == sorted(perms)
        assert "create_order" in perms
        with pytest.raises(ValueError):
            get_default_role_permissions("janitor")
