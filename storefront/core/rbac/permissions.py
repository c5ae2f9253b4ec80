"""Permission model for storefront RBAC.

Permissions are opaque tags, each granted to one or more roles by the
permission table. The table below is the default configuration; callers may
pass their own mapping wherever a ``table`` argument is accepted.

Permission string format: "verb_noun"
Examples:
  - view_dashboard
  - edit_product
  - access_admin_panel
"""

from enum import Enum
from typing import Dict, FrozenSet, Mapping, Optional, Union


class RoleName(str, Enum):
    """Closed set of storefront roles."""

    SUPERADMIN = "superadmin"     # System administrator
    OWNER = "owner"               # Store owner
    CASHIER = "cashier"           # Point-of-sale operator
    USER = "user"                 # Regular customer


class Permission(str, Enum):
    """Capability tags that gate one action or view."""

    # Catalog
    VIEW_PRODUCTS = "view_products"
    CREATE_PRODUCT = "create_product"
    EDIT_PRODUCT = "edit_product"
    DELETE_PRODUCT = "delete_product"
    MANAGE_CATEGORIES = "manage_categories"

    # Shopping
    VIEW_CART = "view_cart"
    ADD_TO_CART = "add_to_cart"
    CHECKOUT = "checkout"

    # Orders
    VIEW_OWN_ORDERS = "view_own_orders"
    VIEW_ALL_ORDERS = "view_all_orders"
    CREATE_ORDER = "create_order"
    UPDATE_ORDER_STATUS = "update_order_status"

    # Administration
    VIEW_DASHBOARD = "view_dashboard"
    MANAGE_USERS = "manage_users"
    ACCESS_ADMIN_PANEL = "access_admin_panel"
    VIEW_AUDIT_LOGS = "view_audit_logs"


# Human readable phrases used in denial reasons
PERMISSION_LABELS: Dict[Permission, str] = {
    Permission.VIEW_PRODUCTS: "browse products",
    Permission.CREATE_PRODUCT: "add products",
    Permission.EDIT_PRODUCT: "edit products",
    Permission.DELETE_PRODUCT: "remove products",
    Permission.MANAGE_CATEGORIES: "manage categories",
    Permission.VIEW_CART: "view the cart",
    Permission.ADD_TO_CART: "add items to the cart",
    Permission.CHECKOUT: "check out",
    Permission.VIEW_OWN_ORDERS: "view your orders",
    Permission.VIEW_ALL_ORDERS: "view all orders",
    Permission.CREATE_ORDER: "place orders",
    Permission.UPDATE_ORDER_STATUS: "update order status",
    Permission.VIEW_DASHBOARD: "view the dashboard",
    Permission.MANAGE_USERS: "manage users",
    Permission.ACCESS_ADMIN_PANEL: "open the admin panel",
    Permission.VIEW_AUDIT_LOGS: "view audit logs",
}


_STAFF_PERMISSIONS = frozenset(Permission)

# Default permission table: role -> granted permissions
ROLE_PERMISSIONS: Dict[RoleName, FrozenSet[Permission]] = {
    RoleName.SUPERADMIN: _STAFF_PERMISSIONS,
    RoleName.OWNER: _STAFF_PERMISSIONS,
    RoleName.CASHIER: frozenset([
        Permission.VIEW_PRODUCTS,
        Permission.CHECKOUT,
        Permission.VIEW_OWN_ORDERS,   # Cashiers only see their own sales
        Permission.CREATE_ORDER,
        Permission.VIEW_DASHBOARD,    # Sales-only dashboard
    ]),
    RoleName.USER: frozenset([
        Permission.VIEW_PRODUCTS,
        Permission.VIEW_CART,
        Permission.ADD_TO_CART,
        Permission.CHECKOUT,
        Permission.VIEW_OWN_ORDERS,
        Permission.CREATE_ORDER,
    ]),
}


PermissionTable = Mapping[str, FrozenSet[Permission]]


def parse_permission(tag: Union[str, Permission]) -> Optional[Permission]:
    """Return the Permission for a tag, or None when the tag is unrecognized."""
    if isinstance(tag, Permission):
        return tag
    try:
        return Permission(tag)
    except ValueError:
        return None


def parse_role(name: Union[str, RoleName]) -> Optional[RoleName]:
    """Return the RoleName for a name, or None when the role is unknown."""
    if isinstance(name, RoleName):
        return name
    try:
        return RoleName(name)
    except ValueError:
        return None


def is_valid_permission(tag: str) -> bool:
    """Check if a permission tag is recognized."""
    return parse_permission(tag) is not None


def get_role_permissions(
    role: Union[str, RoleName],
    table: Optional[PermissionTable] = None,
) -> FrozenSet[Permission]:
    """Get the permissions granted to a role. Unknown roles get none."""
    key = role.value if isinstance(role, RoleName) else role
    if table is None:
        parsed = parse_role(key)
        return ROLE_PERMISSIONS.get(parsed, frozenset()) if parsed else frozenset()
    return frozenset(table.get(key, frozenset()))


def get_all_permissions() -> list[str]:
    """Get all valid permission tags."""
    return [p.value for p in Permission]


def describe_permission(permission: Permission) -> str:
    """Return the label used for a permission in user-facing text."""
    return PERMISSION_LABELS.get(permission, "perform this action")
