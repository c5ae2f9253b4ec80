"""Access guard states, outcomes and route configuration.

State Machine Diagram:

    ┌──────────┐
    │ LOADING  │ ← session or roles not resolved yet → PENDING
    └────┬─────┘
         │ session resolved
    ┌────▼─────┐
    │ RESOLVED │
    └────┬─────┘
         │
         ├── confined role outside its target ──────► REDIRECT(target)
         ├── unauthenticated, route requires auth ──► REDIRECT(login)
         ├── confined role denied ──────────────────► REDIRECT(target)
         ├── authenticated, denied ─────────────────► SHOW_DENIED(reason)
         └── allowed ───────────────────────────────► PROCEED

PROCEED, REDIRECT and SHOW_DENIED are terminal for one evaluation. Every
navigation or action attempt is evaluated from scratch.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, NamedTuple, Optional, Tuple

from storefront.core.rbac.checker import RouteRequirement
from storefront.core.rbac.permissions import Permission, RoleName


class GuardState(str, Enum):
    """Whether the session behind a check is known yet."""

    LOADING = "loading"
    RESOLVED = "resolved"


class GuardOutcome(str, Enum):
    """What the router or UI should do."""

    PENDING = "pending"           # Show a loading indicator
    PROCEED = "proceed"           # Render the destination
    REDIRECT = "redirect"         # Navigate silently to ``target``
    SHOW_DENIED = "show_denied"   # Render an access denied view with ``reason``


TERMINAL_OUTCOMES = frozenset([
    GuardOutcome.PROCEED,
    GuardOutcome.REDIRECT,
    GuardOutcome.SHOW_DENIED,
])


class GuardDecision(NamedTuple):
    outcome: GuardOutcome
    target: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def pending(cls) -> "GuardDecision":
        return cls(GuardOutcome.PENDING)

    @classmethod
    def proceed(cls) -> "GuardDecision":
        return cls(GuardOutcome.PROCEED)

    @classmethod
    def redirect(cls, target: str) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, target=target)

    @classmethod
    def denied(cls, reason: str) -> "GuardDecision":
        return cls(GuardOutcome.SHOW_DENIED, reason=reason)


class SessionSnapshot(NamedTuple):
    """What the identity provider currently knows about the caller."""
    user_id: Optional[str] = None
    roles: FrozenSet[str] = frozenset()
    loading: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class RoleConfinement(NamedTuple):
    """A role bound to a single destination.

    Applies to users holding ``role`` and none of ``exempt_roles``.
    """
    role: str
    target: str
    exempt_roles: FrozenSet[str] = frozenset()

    def applies_to(self, roles: Iterable[str]) -> bool:
        held = set(roles)
        return self.role in held and not held & set(self.exempt_roles)

    def permits(self, destination: str) -> bool:
        return destination == self.target or destination.startswith(self.target.rstrip("/") + "/")


_STAFF = frozenset([RoleName.SUPERADMIN.value, RoleName.OWNER.value])


def _auth(*permissions: Permission, roles: Optional[Iterable[RoleName]] = None) -> RouteRequirement:
    return RouteRequirement(
        permissions=tuple(p.value for p in permissions),
        requires_auth=True,
        allowed_roles=frozenset(r.value for r in roles) if roles else None,
    )


PUBLIC = RouteRequirement(requires_auth=False, allow_guest=True)


# Route guard configurations
ROUTE_GUARDS: Dict[str, RouteRequirement] = {
    "/": PUBLIC,
    "/products": PUBLIC,
    "/products/:id": PUBLIC,
    "/auth/login": PUBLIC,
    "/auth/register": PUBLIC,
    "/cart": _auth(Permission.VIEW_CART),
    "/checkout": _auth(Permission.CHECKOUT),
    "/orders": _auth(Permission.VIEW_OWN_ORDERS, Permission.VIEW_ALL_ORDERS),
    "/notifications": _auth(),
    "/dashboard": _auth(
        Permission.VIEW_DASHBOARD,
        roles=[RoleName.SUPERADMIN, RoleName.OWNER, RoleName.CASHIER],
    ),
    "/admin": _auth(Permission.ACCESS_ADMIN_PANEL, roles=[RoleName.SUPERADMIN, RoleName.OWNER]),
    "/admin/audit-logs": _auth(Permission.VIEW_AUDIT_LOGS, roles=[RoleName.SUPERADMIN, RoleName.OWNER]),
    "/products/manage": _auth(Permission.CREATE_PRODUCT, roles=[RoleName.SUPERADMIN, RoleName.OWNER]),
    "/categories/manage": _auth(Permission.MANAGE_CATEGORIES, roles=[RoleName.SUPERADMIN, RoleName.OWNER]),
    "/cashier/pos": _auth(
        Permission.CREATE_ORDER,
        roles=[RoleName.SUPERADMIN, RoleName.OWNER, RoleName.CASHIER],
    ),
}


def default_confinements(pos_path: str = "/cashier/pos") -> Tuple[RoleConfinement, ...]:
    """Cashiers without a staff role may only use the point of sale."""
    return (RoleConfinement(RoleName.CASHIER.value, pos_path, _STAFF),)


def _matches(pattern: str, path: str) -> bool:
    want = [s for s in pattern.split("/") if s]
    got = [s for s in path.split("/") if s]
    if len(want) != len(got):
        return False
    return all(w.startswith(":") or w == g for w, g in zip(want, got))


def normalize_path(path: str) -> str:
    """Drop the query string and any trailing slash."""
    path = path.split("?", 1)[0]
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    return path


def find_route(path: str, routes: Dict[str, RouteRequirement]) -> Optional[RouteRequirement]:
    """Route configuration for a path; literal routes win over ``:param`` ones."""
    path = normalize_path(path)
    if path in routes:
        return routes[path]
    for pattern, requirement in routes.items():
        if ":" in pattern and _matches(pattern, path):
            return requirement
    return None


def is_protected_route(path: str, routes: Dict[str, RouteRequirement] = ROUTE_GUARDS) -> bool:
    route = find_route(path, routes)
    return route is not None and route.requires_auth
