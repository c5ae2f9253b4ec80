"""Default role definitions for the storefront.

Defines the 4 standard roles:
1. Super Admin - Full system access
2. Store Owner - Business operations and order management
3. Cashier - Point-of-sale operations only
4. Customer - Shopping only
"""

from typing import Dict, Iterable, List, Set, Union

from .permissions import ROLE_PERMISSIONS, RoleName, parse_role


DEFAULT_ROLES: Dict[RoleName, dict] = {
    RoleName.SUPERADMIN: {
        "name": "Super Admin",
        "description": "Full system access - can manage everything",
        "rank": 4,
        "features": ["products", "categories", "orders", "dashboard", "admin"],
    },
    RoleName.OWNER: {
        "name": "Store Owner",
        "description": "Can manage products, categories, and view orders",
        "rank": 3,
        "features": ["products", "categories", "orders", "dashboard", "admin"],
    },
    RoleName.CASHIER: {
        "name": "Cashier",
        "description": "Can process orders and manage sales",
        "rank": 2,
        "features": ["products", "orders", "dashboard"],
    },
    RoleName.USER: {
        "name": "Customer",
        "description": "Regular customer with shopping capabilities",
        "rank": 1,
        "features": ["products", "cart", "orders"],
    },
}

# Role granted at signup
DEFAULT_SIGNUP_ROLE = RoleName.USER


def get_role_display_name(role: Union[str, RoleName]) -> str:
    parsed = parse_role(role)
    if parsed is None:
        return "Unknown"
    return DEFAULT_ROLES[parsed]["name"]


def get_role_description(role: Union[str, RoleName]) -> str:
    parsed = parse_role(role)
    if parsed is None:
        return ""
    return DEFAULT_ROLES[parsed]["description"]


def get_role_rank(role: Union[str, RoleName]) -> int:
    """Position in the role hierarchy; unknown roles rank 0."""
    parsed = parse_role(role)
    if parsed is None:
        return 0
    return DEFAULT_ROLES[parsed]["rank"]


def is_role_above_or_equal(role: Union[str, RoleName], target: Union[str, RoleName]) -> bool:
    """Check if one role is at or above another in the hierarchy."""
    return get_role_rank(role) >= get_role_rank(target) > 0


def get_accessible_features(roles: Iterable[Union[str, RoleName]]) -> Set[str]:
    """Union of the feature areas reachable by any of the given roles."""
    features: Set[str] = set()
    for role in roles:
        parsed = parse_role(role)
        if parsed is not None:
            features.update(DEFAULT_ROLES[parsed]["features"])
    return features


def get_default_role_permissions(role_key: Union[str, RoleName]) -> List[str]:
    """Get the permission tags of a default role."""
    parsed = parse_role(role_key)
    if parsed is None:
        raise ValueError(f"Unknown default role: {role_key}")
    return sorted(p.value for p in ROLE_PERMISSIONS[parsed])
