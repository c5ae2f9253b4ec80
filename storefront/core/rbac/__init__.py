"""RBAC (Role-Based Access Control) for the storefront.

Defines the permission model, role metadata, the permission decision
function and the role directory used for notification fan-out.
"""

from .permissions import Permission, RoleName, ROLE_PERMISSIONS, is_valid_permission
from .checker import (
    AccessDecision,
    PermissionChecker,
    RouteRequirement,
    can_access,
    has_permission,
    require_permission,
)
from .directory import RoleDirectory

__all__ = [
    "Permission",
    "RoleName",
    "ROLE_PERMISSIONS",
    "is_valid_permission",
    "AccessDecision",
    "PermissionChecker",
    "RouteRequirement",
    "can_access",
    "has_permission",
    "require_permission",
    "RoleDirectory",
]
