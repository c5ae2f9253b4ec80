"""Role directory: role names to ids, and ids to current members.

Looking up role membership once per recipient per event is an N+1 pattern.
The directory keeps the rarely changing name -> id map in memory and answers
"who holds these roles" with a single batched query per call. Membership is
never cached; a grant or revocation is visible on the next lookup.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Set

from storefront.core.exceptions import StoreError
from storefront.db.store import DataStore, Filter

logger = logging.getLogger(__name__)

ROLES_TABLE = "roles"
ASSIGNMENTS_TABLE = "user_roles"


class RoleDirectory:
    """
    Cache of role ids backed by the data store.

    Construct one per process (or per test) and pass it to whoever needs it.
    ``initialize`` and ``refresh`` swap in a new immutable snapshot under a
    lock; lookups read the current snapshot without locking.
    """

    def __init__(self, store: DataStore):
        self.store = store
        self._ids: Mapping[str, str] = MappingProxyType({})
        self._initialized = False
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Load all roles into the name -> id map.

        A second call before ``refresh`` is a no-op. If the store is
        unreachable the failure is logged and the cache stays empty.
        """
        async with self._lock:
            if self._initialized:
                return
            await self._load()

    async def refresh(self) -> None:
        """
        Reload the role ids.

        Readers keep seeing the previous map until the new one is swapped in.
        If the reload fails the cache is emptied.
        """
        async with self._lock:
            if not await self._load():
                self._ids = MappingProxyType({})
                self._initialized = False

    async def _load(self) -> bool:
        try:
            rows = await self.store.select(ROLES_TABLE, columns=["id", "name"])
        except StoreError as e:
            logger.error("Failed to initialize role cache: %s", e)
            return False

        self._ids = MappingProxyType({row["name"]: str(row["id"]) for row in rows})
        self._initialized = True
        logger.info("Role cache initialized: %d roles", len(self._ids))
        return True

    def resolve_id(self, role_name: str) -> Optional[str]:
        """Get a role id from the cache, or None for an unknown role."""
        if not self._initialized:
            logger.warning("Role cache not initialized; call initialize() first")
        return self._ids.get(role_name)

    def all_roles(self) -> Dict[str, str]:
        """Copy of the cached name -> id map."""
        return dict(self._ids)

    async def members_of(self, role_name: str) -> Set[str]:
        """
        Users currently holding a role.

        Unknown roles and store failures yield an empty set.
        """
        role_id = self.resolve_id(role_name)
        if role_id is None:
            logger.warning("Role %r not found in cache", role_name)
            return set()

        try:
            rows = await self.store.select(
                ASSIGNMENTS_TABLE,
                columns=["user_id"],
                filters=[Filter.eq("role_id", role_id)],
            )
        except StoreError as e:
            logger.error("Failed to fetch users for role %r: %s", role_name, e)
            return set()

        return {str(row["user_id"]) for row in rows}

    async def members_of_many(self, role_names: Iterable[str]) -> Dict[str, Set[str]]:
        """
        Users holding each of several roles, fetched with one query.

        Every requested name is present in the result; unknown roles map to
        an empty set.
        """
        names = list(dict.fromkeys(role_names))
        result: Dict[str, Set[str]] = {name: set() for name in names}

        ids_by_name = {}
        for name in names:
            role_id = self.resolve_id(name)
            if role_id is None:
                logger.warning("Role %r not found in cache", name)
            else:
                ids_by_name[name] = role_id

        if not ids_by_name:
            logger.warning("No valid roles found for: %s", ", ".join(names))
            return result

        try:
            rows = await self.store.select(
                ASSIGNMENTS_TABLE,
                columns=["user_id", "role_id"],
                filters=[Filter.in_("role_id", set(ids_by_name.values()))],
            )
        except StoreError as e:
            logger.error("Failed to fetch users for roles %s: %s", ", ".join(ids_by_name), e)
            return result

        members_by_id: Dict[str, Set[str]] = {}
        for row in rows:
            members_by_id.setdefault(str(row["role_id"]), set()).add(str(row["user_id"]))

        for name, role_id in ids_by_name.items():
            result[name] = set(members_by_id.get(role_id, ()))
        return result
