"""Permission decisions for the storefront.

``can_access`` is the single decision function consulted on every protected
action or route. It is pure: the same roles and requirement always produce
the same ``AccessDecision``. Denial is a value, not an exception; service code
that wants to unwind uses ``require_permission`` instead.
"""

import logging
from datetime import datetime, timezone
from typing import FrozenSet, Iterable, List, NamedTuple, Optional, Set, Tuple, Union

from storefront.core.exceptions import AuthorizationError

from .permissions import (
    Permission,
    PermissionTable,
    RoleName,
    describe_permission,
    get_role_permissions,
    parse_permission,
)
from .roles import get_role_display_name

logger = logging.getLogger(__name__)


class AccessDecision(NamedTuple):
    """Outcome of a permission check."""
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


class RouteRequirement(NamedTuple):
    """What a protected destination or action demands of the caller.

    ``permissions`` is an any-of list; ``allowed_roles`` is an optional
    explicit allow-list checked before the permissions.
    """
    permissions: Tuple[str, ...] = ()
    requires_auth: bool = True
    allowed_roles: Optional[FrozenSet[str]] = None
    allow_guest: bool = False


Requirement = Union[str, Permission, RouteRequirement]

ALLOWED = "Access granted"
UNRECOGNIZED_PERMISSION = "This action is not recognized, so access is denied"
AUTHENTICATION_REQUIRED = "Authentication required"
GUESTS_NOT_ALLOWED = "Guests are not allowed on this page"
NO_ROLE_ASSIGNED = "Your account has no role yet, so this page is not available"


def _as_requirement(requirement: Requirement) -> RouteRequirement:
    if isinstance(requirement, RouteRequirement):
        return requirement
    tag = requirement.value if isinstance(requirement, Permission) else requirement
    return RouteRequirement(permissions=(tag,), requires_auth=True)


def _role_names(held_roles: Iterable[Union[str, RoleName]]) -> Set[str]:
    return {r.value if isinstance(r, RoleName) else r for r in held_roles}


def can_access(
    held_roles: Iterable[Union[str, RoleName]],
    requirement: Requirement,
    authenticated: Optional[bool] = None,
    table: Optional[PermissionTable] = None,
) -> AccessDecision:
    """Decide whether a set of held roles satisfies a requirement.

    A signed-in caller with no roles fails every requirement that needs
    sign-in, even one that lists no permission.

    Args:
        held_roles: Role names from the authenticated session
        requirement: A permission tag or a RouteRequirement
        authenticated: Whether the caller is signed in. Defaults to
            ``bool(held_roles)``.
        table: Optional permission table replacing the default one

    Returns:
        AccessDecision with a user-facing reason
    """
    roles = _role_names(held_roles)
    req = _as_requirement(requirement)
    if authenticated is None:
        authenticated = bool(roles)

    permissions: List[Permission] = []
    for tag in req.permissions:
        parsed = parse_permission(tag)
        if parsed is None:
            logger.warning("Unrecognized permission tag requested: %r", tag)
            return AccessDecision(False, UNRECOGNIZED_PERMISSION)
        permissions.append(parsed)

    if req.requires_auth and not authenticated:
        return AccessDecision(False, AUTHENTICATION_REQUIRED)

    if not authenticated and not req.allow_guest:
        return AccessDecision(False, GUESTS_NOT_ALLOWED)

    if req.requires_auth and not roles:
        return AccessDecision(False, NO_ROLE_ASSIGNED)

    if req.allowed_roles:
        if not roles & set(req.allowed_roles):
            names = " or ".join(sorted(get_role_display_name(r) for r in req.allowed_roles))
            return AccessDecision(False, f"This page is only available to {names} accounts")

    if permissions:
        granted: Set[Permission] = set()
        for role in roles:
            granted |= get_role_permissions(role, table)
        if not any(p in granted for p in permissions):
            wanted = " or ".join(describe_permission(p) for p in permissions)
            return AccessDecision(False, f"You do not have permission to {wanted}")

    return AccessDecision(True, ALLOWED)


def has_permission(
    role: Union[str, RoleName],
    permission: Union[str, Permission],
    table: Optional[PermissionTable] = None,
) -> bool:
    """Check if a single role holds a permission."""
    parsed = parse_permission(permission)
    if parsed is None:
        return False
    return parsed in get_role_permissions(role, table)


def has_any_permission(
    roles: Iterable[Union[str, RoleName]],
    permission: Union[str, Permission],
    table: Optional[PermissionTable] = None,
) -> bool:
    """Check if any of the roles holds the permission."""
    return any(has_permission(r, permission, table) for r in roles)


def has_all_permissions(
    roles: Iterable[Union[str, RoleName]],
    permission: Union[str, Permission],
    table: Optional[PermissionTable] = None,
) -> bool:
    """Check if every one of the roles holds the permission. Empty is False."""
    roles = list(roles)
    return bool(roles) and all(has_permission(r, permission, table) for r in roles)


def get_aggregate_permissions(
    roles: Iterable[Union[str, RoleName]],
    table: Optional[PermissionTable] = None,
) -> Set[Permission]:
    """All unique permissions across the given roles."""
    permissions: Set[Permission] = set()
    for role in roles:
        permissions |= get_role_permissions(role, table)
    return permissions


class PermissionChecker:
    """Checks permissions for one session's role set."""

    def __init__(
        self,
        roles: Iterable[Union[str, RoleName]],
        table: Optional[PermissionTable] = None,
    ):
        self.roles = frozenset(_role_names(roles))
        self.table = table

    def can(self, permission: Union[str, Permission]) -> bool:
        return can_access(self.roles, permission, table=self.table).allowed

    def check(self, requirement: Requirement, authenticated: Optional[bool] = None) -> AccessDecision:
        return can_access(self.roles, requirement, authenticated, self.table)

    def has_any_permission(self, permissions: Iterable[Union[str, Permission]]) -> bool:
        return any(self.can(p) for p in permissions)

    def has_all_permissions(self, permissions: Iterable[Union[str, Permission]]) -> bool:
        return all(self.can(p) for p in permissions)

    def permissions(self) -> Set[Permission]:
        return get_aggregate_permissions(self.roles, self.table)


def require_permission(
    roles: Iterable[Union[str, RoleName]],
    permission: Union[str, Permission],
    table: Optional[PermissionTable] = None,
) -> None:
    """
    Raise AuthorizationError unless one of the roles grants the permission.

    For service code whose only sensible response to a denial is to abort.
    UI and routing code should branch on ``can_access`` instead.
    """
    roles = sorted(_role_names(roles))
    decision = can_access(roles, permission, table=table)
    if not decision.allowed:
        tag = permission.value if isinstance(permission, Permission) else permission
        raise AuthorizationError(
            decision.reason,
            permission=tag,
            role=roles[0] if roles else None,
        )


def log_authorization_check(
    user_id: str,
    roles: Iterable[Union[str, RoleName]],
    action: str,
    allowed: bool,
) -> None:
    """Record an authorization decision in the application log."""
    timestamp = datetime.now(timezone.utc).isoformat()
    roles_str = ", ".join(sorted(_role_names(roles)))
    if allowed:
        logger.info(
            "[AUTH GRANTED] %s | User: %s | Roles: %s | Action: %s",
            timestamp, user_id, roles_str, action,
        )
    else:
        logger.warning(
            "[AUTH DENIED] %s | User: %s | Roles: %s | Action: %s",
            timestamp, user_id, roles_str, action,
        )
