"""Route and action guard built on the permission engine."""

from .states import (
    GuardDecision,
    GuardOutcome,
    GuardState,
    RoleConfinement,
    ROUTE_GUARDS,
    SessionSnapshot,
    default_confinements,
)
from .machine import AccessGuard

__all__ = [
    "AccessGuard",
    "GuardDecision",
    "GuardOutcome",
    "GuardState",
    "RoleConfinement",
    "ROUTE_GUARDS",
    "SessionSnapshot",
    "default_confinements",
]
