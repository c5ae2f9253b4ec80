"""Database models for the storefront access layer."""

from storefront.db.models.role import Role, UserRole
from storefront.db.models.notification import Notification
from storefront.db.models.product import Product
from storefront.db.models.profile import Profile
from storefront.db.models.audit import AuditAction, AuditLog

__all__ = [
    "Role",
    "UserRole",
    "Notification",
    "Product",
    "Profile",
    "AuditAction",
    "AuditLog",
]
