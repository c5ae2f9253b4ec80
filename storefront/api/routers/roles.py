"""Role assignment endpoints."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from storefront.api.deps import PermissionDependency, get_assignments, get_identity
from storefront.core.exceptions import RoleAssignmentError
from storefront.core.guard import SessionSnapshot
from storefront.core.rbac import Permission
from storefront.core.rbac.roles import DEFAULT_SIGNUP_ROLE
from storefront.services.role_assignments import RoleAssignments

router = APIRouter(prefix="/users", tags=["roles"])

require_manage_users = PermissionDependency(Permission.MANAGE_USERS)


# Schemas
class UserRolesResponse(BaseModel):
    user_id: str
    roles: List[str]


class RoleChangeResponse(BaseModel):
    user_id: str
    role: str
    changed: bool


def _unknown_role(e: RoleAssignmentError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get(
    "/{user_id}/roles",
    response_model=UserRolesResponse,
    dependencies=[Depends(require_manage_users)],
)
async def get_user_roles(user_id: str, assignments: RoleAssignments = Depends(get_assignments)):
    roles = await assignments.roles_of(user_id)
    return UserRolesResponse(user_id=user_id, roles=sorted(roles))


@router.put("/{user_id}/roles/{role_name}", response_model=RoleChangeResponse)
async def grant_role(
    user_id: str,
    role_name: str,
    actor: SessionSnapshot = Depends(require_manage_users),
    assignments: RoleAssignments = Depends(get_assignments),
):
    """Grant a role. Granting a role the user already holds changes nothing."""
    try:
        changed = await assignments.grant(actor.user_id, user_id, role_name)
    except RoleAssignmentError as e:
        raise _unknown_role(e)
    return RoleChangeResponse(user_id=user_id, role=role_name, changed=changed)


@router.delete("/{user_id}/roles/{role_name}", response_model=RoleChangeResponse)
async def revoke_role(
    user_id: str,
    role_name: str,
    actor: SessionSnapshot = Depends(require_manage_users),
    assignments: RoleAssignments = Depends(get_assignments),
):
    try:
        changed = await assignments.revoke(actor.user_id, user_id, role_name)
    except RoleAssignmentError as e:
        raise _unknown_role(e)
    return RoleChangeResponse(user_id=user_id, role=role_name, changed=changed)


@router.post("/me/signup-role", response_model=RoleChangeResponse)
async def claim_signup_role(
    identity: SessionSnapshot = Depends(get_identity),
    assignments: RoleAssignments = Depends(get_assignments),
):
    """Give the caller's new account the default customer role."""
    if not identity.is_authenticated:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    changed = await assignments.assign_signup_role(identity.user_id)
    return RoleChangeResponse(user_id=identity.user_id, role=DEFAULT_SIGNUP_ROLE.value, changed=changed)
