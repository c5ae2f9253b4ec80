"""Granting and revoking roles.

Staff changes are written to the audit trail. New accounts receive the
default signup role.
"""

import logging
from typing import Optional, Set

from storefront.core.exceptions import RoleAssignmentError
from storefront.core.rbac.directory import ASSIGNMENTS_TABLE, RoleDirectory
from storefront.core.rbac.roles import DEFAULT_SIGNUP_ROLE
from storefront.db.store import DataStore, Filter
from storefront.services.audit import AuditLogger

logger = logging.getLogger(__name__)


class RoleAssignments:
    """
    Role grants backed by the user_roles table.

    Store failures propagate as ``StoreError``; only the audit write is
    best-effort.
    """

    def __init__(self, store: DataStore, directory: RoleDirectory, audit: Optional[AuditLogger] = None):
        self.store = store
        self.directory = directory
        self.audit = audit

    def _role_id(self, role_name: str) -> str:
        role_id = self.directory.resolve_id(role_name)
        if role_id is None:
            raise RoleAssignmentError(f"Unknown role: {role_name}", role=role_name)
        return role_id

    async def _holds(self, user_id: str, role_id: str) -> bool:
        rows = await self.store.select(
            ASSIGNMENTS_TABLE,
            columns=["user_id"],
            filters=[Filter.eq("user_id", user_id), Filter.eq("role_id", role_id)],
        )
        return bool(rows)

    async def _add(self, user_id: str, role_id: str) -> bool:
        if await self._holds(user_id, role_id):
            return False
        await self.store.insert(ASSIGNMENTS_TABLE, {"user_id": user_id, "role_id": role_id})
        return True

    async def roles_of(self, user_id: str) -> Set[str]:
        """Names of the roles ``user_id`` currently holds."""
        names_by_id = {role_id: name for name, role_id in self.directory.all_roles().items()}
        rows = await self.store.select(
            ASSIGNMENTS_TABLE, columns=["role_id"], filters=[Filter.eq("user_id", user_id)],
        )
        return {names_by_id[str(r["role_id"])] for r in rows if str(r["role_id"]) in names_by_id}

    async def grant(self, actor_id: str, user_id: str, role_name: str) -> bool:
        """
        Give ``user_id`` the role ``role_name``.

        Returns:
            True if the role was added, False if the user already held it

        Raises:
            RoleAssignmentError: unknown role
            StoreError: the assignment could not be written
        """
        added = await self._add(user_id, self._role_id(role_name))
        if added:
            logger.info("User %s granted role %s to %s", actor_id, role_name, user_id)
            if self.audit is not None:
                await self.audit.role_assigned(actor_id, user_id, role_name)
        return added

    async def revoke(self, actor_id: str, user_id: str, role_name: str) -> bool:
        """
        Take ``role_name`` away from ``user_id``.

        Returns:
            True if a role was removed, False if the user did not hold it
        """
        removed = await self.store.delete(
            ASSIGNMENTS_TABLE,
            [Filter.eq("user_id", user_id), Filter.eq("role_id", self._role_id(role_name))],
        )
        if removed:
            logger.info("User %s revoked role %s from %s", actor_id, role_name, user_id)
            if self.audit is not None:
                await self.audit.role_removed(actor_id, user_id, role_name)
        return bool(removed)

    async def assign_signup_role(self, user_id: str) -> bool:
        """Give a newly registered account the default role. Safe to repeat."""
        added = await self._add(user_id, self._role_id(DEFAULT_SIGNUP_ROLE.value))
        if added:
            logger.info("Assigned signup role %s to %s", DEFAULT_SIGNUP_ROLE.value, user_id)
        return added
