"""Tests for the access guard state machine."""

import pytest

from storefront.core.guard import (
    AccessGuard, GuardOutcome, GuardState, RoleConfinement, SessionSnapshot, default_confinements,
)
from storefront.core.guard.machine import UNKNOWN_DESTINATION
from storefront.core.guard.states import (
    TERMINAL_OUTCOMES, find_route, is_protected_route, normalize_path, ROUTE_GUARDS,
)
from storefront.core.rbac.checker import NO_ROLE_ASSIGNED
from storefront.core.rbac.permissions import Permission


def session(*roles, user_id="u-1"):
    return SessionSnapshot(user_id=user_id, roles=frozenset(roles))


ANONYMOUS = SessionSnapshot()


@pytest.fixture
def guard():
    return AccessGuard()


class TestLoading:
    """Nothing resolves while the session is loading."""

    @pytest.mark.parametrize("destination", ["/", "/dashboard", "/admin", "/nowhere"])
    def test_loading_is_pending(self, guard, destination):
        """LOADING yields PENDING for every destination."""
        for snapshot in (None, SessionSnapshot(loading=True), SessionSnapshot("u-1", frozenset(["owner"]), True)):
            decision = guard.evaluate(destination, snapshot)
            assert decision.outcome is GuardOutcome.PENDING
            assert decision.outcome not in TERMINAL_OUTCOMES

    def test_state_of(self):
        assert AccessGuard.state_of(None) is GuardState.LOADING
        assert AccessGuard.state_of(SessionSnapshot(loading=True)) is GuardState.LOADING
        assert AccessGuard.state_of(ANONYMOUS) is GuardState.RESOLVED

    def test_resolved_is_terminal(self, guard):
        """Once loaded, every outcome is terminal."""
        for destination in ROUTE_GUARDS:
            path = destination.replace(":id", "42")
            for snapshot in (ANONYMOUS, session("user"), session("cashier"), session("owner")):
                assert guard.evaluate(path, snapshot).outcome in TERMINAL_OUTCOMES


class TestRouteDecisions:
    """Permission-based routing."""

    def test_public_route_for_anonymous(self, guard):
        assert guard.evaluate("/products", ANONYMOUS).outcome is GuardOutcome.PROCEED
        assert guard.evaluate("/products/abc123", ANONYMOUS).outcome is GuardOutcome.PROCEED

    def test_anonymous_redirected_to_login(self, guard):
        """Unauthenticated users on protected routes go to the login page."""
        decision = guard.evaluate("/checkout", ANONYMOUS)
        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.target == "/auth/login"

    def test_custom_login_path(self):
        guard = AccessGuard(login_path="/signin")
        assert guard.evaluate("/cart", ANONYMOUS).target == "/signin"

    def test_customer_denied_admin(self, guard):
        """Denied users see a reason with role display names."""
        decision = guard.evaluate("/admin", session("user"))
        assert decision.outcome is GuardOutcome.SHOW_DENIED
        assert "Super Admin" in decision.reason
        assert "superadmin" not in decision.reason

    def test_owner_reaches_admin(self, guard):
        assert guard.evaluate("/admin", session("owner")).outcome is GuardOutcome.PROCEED
        assert guard.evaluate("/admin/audit-logs/", session("owner")).outcome is GuardOutcome.PROCEED

    def test_unknown_destination_denied(self, guard):
        """Routes without configuration are denied."""
        decision = guard.evaluate("/secret-reports", session("superadmin"))
        assert decision.outcome is GuardOutcome.SHOW_DENIED
        assert decision.reason == UNKNOWN_DESTINATION

    def test_roleless_user_denied_notifications(self, guard):
        """A signed-in user with no role is denied rather than let through or sent to login."""
        decision = guard.evaluate("/notifications", SessionSnapshot("u-1", frozenset()))
        assert decision.outcome is GuardOutcome.SHOW_DENIED
        assert decision.reason == NO_ROLE_ASSIGNED
        assert guard.evaluate("/notifications", session("user")).outcome is GuardOutcome.PROCEED

    def test_role_change_takes_effect_next_check(self, guard):
        """The guard caches nothing between evaluations."""
        assert guard.evaluate("/dashboard", session("user")).outcome is GuardOutcome.SHOW_DENIED
        assert guard.evaluate("/dashboard", session("user", "owner")).outcome is GuardOutcome.PROCEED

    def test_query_string_ignored(self):
        assert find_route("/cart?coupon=x", ROUTE_GUARDS) is ROUTE_GUARDS["/cart"]
        assert is_protected_route("/orders")
        assert not is_protected_route("/products/7")
        assert not is_protected_route("/unknown")


class TestConfinement:
    """Cashiers are held at the point of sale."""

    def test_cashier_redirected_to_pos(self, guard):
        """Confinement wins even where the cashier has the permission."""
        decision = guard.evaluate("/dashboard", session("cashier"))
        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.target == "/cashier/pos"

    def test_cashier_on_pos_proceeds(self, guard):
        assert guard.evaluate("/cashier/pos", session("cashier")).outcome is GuardOutcome.PROCEED

    @pytest.mark.parametrize("destination", [
        "/cashier/pos?tab=receipts", "/cashier/pos/", "/cashier/pos/?tab=receipts",
    ])
    def test_cashier_pos_variants_proceed(self, guard, destination):
        """Query strings and trailing slashes on the POS path do not trigger the confinement."""
        decision = guard.evaluate(destination, session("cashier"))
        assert decision.outcome is GuardOutcome.PROCEED

    def test_normalize_path(self):
        assert normalize_path("/cashier/pos?tab=receipts") == "/cashier/pos"
        assert normalize_path("/cashier/pos/") == "/cashier/pos"
        assert normalize_path("/?ref=home") == "/"
        assert normalize_path("/") == "/"

    def test_custom_pos_path(self):
        """A confinement to /pos redirects before the route is even looked up."""
        guard = AccessGuard(confinements=default_confinements("/pos"))
        decision = guard.evaluate("/dashboard", session("cashier"))
        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.target == "/pos"

    def test_cashier_without_dashboard_permission_redirected(self):
        """A cashier whose table lacks view_dashboard is sent to the POS, not shown a denial."""
        table = {
            "cashier": frozenset([Permission.CREATE_ORDER]),
            "owner": frozenset(Permission),
        }
        guard = AccessGuard(confinements=default_confinements("/pos"), table=table)
        decision = guard.evaluate("/dashboard", session("cashier"))
        assert decision.outcome is GuardOutcome.REDIRECT
        assert decision.target == "/pos"

    def test_unconfined_cashier_without_permission_denied(self):
        """Without a confinement the same cashier gets the permission denial."""
        table = {"cashier": frozenset([Permission.CREATE_ORDER])}
        guard = AccessGuard(confinements=(), table=table)
        decision = guard.evaluate("/dashboard", session("cashier"))
        assert decision.outcome is GuardOutcome.SHOW_DENIED
        assert "view the dashboard" in decision.reason

    def test_staff_exempt(self, guard):
        """A cashier who is also an owner is not confined."""
        assert guard.evaluate("/dashboard", session("cashier", "owner")).outcome is GuardOutcome.PROCEED

    def test_confinement_permits_subpaths(self):
        confinement = RoleConfinement("cashier", "/pos")
        assert confinement.permits("/pos")
        assert confinement.permits("/pos/receipt")
        assert not confinement.permits("/posters")

    def test_no_confinements(self):
        guard = AccessGuard(confinements=())
        assert guard.evaluate("/dashboard", session("cashier")).outcome is GuardOutcome.PROCEED


class TestHistory:
    """Decisions are recorded."""

    def test_history_recorded(self, guard):
        guard.evaluate("/cart", ANONYMOUS)
        guard.evaluate("/cart", session("user"))
        history = guard.get_history()
        assert [h["outcome"] for h in history] == ["redirect", "proceed"]
        assert history[1]["user_id"] == "u-1"
        assert history[1]["roles"] == ["user"]

    def test_history_bounded(self):
        guard = AccessGuard(history_size=3)
        for _ in range(5):
            guard.evaluate("/", ANONYMOUS)
        assert len(guard.get_history()) == 3
