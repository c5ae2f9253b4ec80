"""FastAPI dependencies exposing the access guard and permission checks."""

from typing import Optional, Union

from fastapi import HTTPException, Request, status

from storefront.core.guard import AccessGuard, GuardDecision, GuardOutcome, SessionSnapshot
from storefront.core.rbac import Permission, RoleDirectory, can_access
from storefront.core.rbac.checker import log_authorization_check
from storefront.db.store import DataStore
from storefront.services.audit import AuditLogger
from storefront.services.notifications import NotificationTriggers
from storefront.services.role_assignments import RoleAssignments


def get_identity(request: Request) -> SessionSnapshot:
    """Session placed on ``request.state.identity`` by the auth middleware."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        return SessionSnapshot()
    return identity


def get_guard(request: Request) -> AccessGuard:
    return request.app.state.guard


def get_directory(request: Request) -> RoleDirectory:
    return request.app.state.directory


def get_store(request: Request) -> DataStore:
    return request.app.state.store


def get_triggers(request: Request) -> NotificationTriggers:
    return request.app.state.triggers


def get_audit(request: Request) -> AuditLogger:
    return request.app.state.audit


def get_assignments(request: Request) -> RoleAssignments:
    return request.app.state.assignments


class RouteGuardDependency:
    """
    FastAPI dependency enforcing the route guard table.

    Usage:
        @router.get("/dashboard", dependencies=[Depends(RouteGuardDependency())])
        async def dashboard():
            ...

    Redirects become 307 responses, denials 403, a loading session 503.
    """

    def __init__(self, destination: Optional[str] = None):
        self.destination = destination

    async def __call__(self, request: Request) -> GuardDecision:
        guard = get_guard(request)
        destination = self.destination or request.url.path
        decision = guard.evaluate(destination, get_identity(request))

        if decision.outcome is GuardOutcome.PROCEED:
            return decision
        if decision.outcome is GuardOutcome.REDIRECT:
            raise HTTPException(
                status_code=status.HTTP_307_TEMPORARY_REDIRECT,
                detail="Redirect",
                headers={"Location": decision.target},
            )
        if decision.outcome is GuardOutcome.SHOW_DENIED:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session is still loading",
            headers={"Retry-After": "1"},
        )


class PermissionDependency:
    """
    FastAPI dependency for permission checking.

    Usage:
        @router.get("/orders", dependencies=[Depends(PermissionDependency("view_all_orders"))])
        async def list_orders():
            ...
    """

    def __init__(self, permission: Union[str, Permission]):
        self.permission = permission

    async def __call__(self, request: Request) -> SessionSnapshot:
        identity = get_identity(request)
        decision = can_access(identity.roles, self.permission, identity.is_authenticated)
        action = self.permission.value if isinstance(self.permission, Permission) else self.permission
        log_authorization_check(identity.user_id or "anonymous", identity.roles, action, decision.allowed)

        if not decision.allowed:
            if not identity.is_authenticated:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail="Authentication required",
                )
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=decision.reason)
        return identity
