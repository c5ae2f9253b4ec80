"""Storefront exceptions."""

from typing import Optional


class StorefrontError(Exception):
    """Base exception for the storefront access layer."""

    pass


class StoreError(StorefrontError):
    """The data store rejected or failed a request."""

    def __init__(self, message: str, table: Optional[str] = None):
        super().__init__(message)
        self.table = table


class AuthorizationError(StorefrontError):
    """Raised by service code that requires a permission the caller lacks."""

    def __init__(self, message: str, permission: Optional[str] = None, role: Optional[str] = None):
        super().__init__(message)
        self.permission = permission
        self.role = role


class PricingError(StorefrontError):
    """Order items could not be priced from the catalog."""

    pass


class RoleAssignmentError(StorefrontError):
    """A role could not be granted or revoked."""

    def __init__(self, message: str, role: Optional[str] = None):
        super().__init__(message)
        self.role = role
