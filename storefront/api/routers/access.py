"""Access decisions for the storefront UI and router."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from storefront.api.deps import PermissionDependency, get_directory, get_guard, get_identity
from storefront.core.guard import AccessGuard, SessionSnapshot
from storefront.core.rbac import Permission, RoleDirectory
from storefront.core.rbac.checker import get_aggregate_permissions
from storefront.core.rbac.roles import get_accessible_features, get_role_description, get_role_display_name

router = APIRouter(prefix="/access", tags=["access"])


class GuardDecisionResponse(BaseModel):
    destination: str
    outcome: str
    target: Optional[str] = None
    reason: Optional[str] = None


class MyAccessResponse(BaseModel):
    authenticated: bool
    roles: List[str]
    permissions: List[str]
    features: List[str]


class RoleResponse(BaseModel):
    name: str
    display_name: str
    description: str


@router.get("/check", response_model=GuardDecisionResponse)
async def check_destination(
    destination: str = Query(..., min_length=1),
    guard: AccessGuard = Depends(get_guard),
    identity: SessionSnapshot = Depends(get_identity),
):
    """Report what the guard would do for a destination without enforcing it."""
    decision = guard.evaluate(destination, identity)
    return GuardDecisionResponse(
        destination=destination,
        outcome=decision.outcome.value,
        target=decision.target,
        reason=decision.reason,
    )


@router.get("/me", response_model=MyAccessResponse)
async def my_access(identity: SessionSnapshot = Depends(get_identity)):
    return MyAccessResponse(
        authenticated=identity.is_authenticated,
        roles=sorted(identity.roles),
        permissions=sorted(p.value for p in get_aggregate_permissions(identity.roles)),
        features=sorted(get_accessible_features(identity.roles)),
    )


@router.get(
    "/roles",
    response_model=List[RoleResponse],
    dependencies=[Depends(PermissionDependency(Permission.MANAGE_USERS))],
)
async def list_roles(directory: RoleDirectory = Depends(get_directory)):
    """Roles currently known to the role directory."""
    return [
        RoleResponse(
            name=name,
            display_name=get_role_display_name(name),
            description=get_role_description(name),
        )
        for name in sorted(directory.all_roles())
    ]
