"""Tests for the role directory."""

import asyncio
import logging

from storefront.core.rbac import RoleDirectory

from fakes import ROLE_IDS, seeded_store


class TestInitialize:
    """Loading the role id cache."""

    async def test_initialize_loads_roles(self, store):
        directory = RoleDirectory(store)
        assert not directory.is_initialized

        await directory.initialize()

        assert directory.is_initialized
        assert directory.all_roles() == ROLE_IDS
        assert directory.resolve_id("owner") == "role-owner"
        assert directory.resolve_id("janitor") is None

    async def test_initialize_is_idempotent(self, store):
        """A second initialize does not hit the store."""
        directory = RoleDirectory(store)
        await directory.initialize()
        await directory.initialize()
        assert store.select_counts["roles"] == 1

    async def test_concurrent_initialize_loads_once(self, store):
        directory = RoleDirectory(store)
        await asyncio.gather(*[directory.initialize() for _ in range(5)])
        assert store.select_counts["roles"] == 1

    async def test_store_down_leaves_cache_empty(self, store, caplog):
        """An unreachable store is logged and no roles are known."""
        store.fail_tables.add("roles")
        directory = RoleDirectory(store)

        with caplog.at_level(logging.ERROR):
            await directory.initialize()

        assert not directory.is_initialized
        assert directory.all_roles() == {}
        assert "Failed to initialize role cache" in caplog.text
        assert await directory.members_of("owner") == set()

    async def test_resolve_before_initialize_warns(self, store, caplog):
        directory = RoleDirectory(store)
        with caplog.at_level(logging.WARNING):
            assert directory.resolve_id("owner") is None
        assert "not initialized" in caplog.text

    async def test_refresh_picks_up_new_roles(self, store):
        directory = RoleDirectory(store)
        await directory.initialize()
        store.rows("roles").append({"id": "role-auditor", "name": "auditor"})

        await directory.initialize()
        assert directory.resolve_id("auditor") is None

        await directory.refresh()
        assert directory.resolve_id("auditor") == "role-auditor"

    async def test_readers_see_old_map_during_refresh(self, store):
        """A slow reload never exposes an empty or partial map."""
        directory = RoleDirectory(store)
        await directory.initialize()
        store.rows("roles").append({"id": "role-auditor", "name": "auditor"})
        store.delay = 0.01

        refresh = asyncio.ensure_future(directory.refresh())
        await asyncio.sleep(0)
        assert directory.all_roles() == ROLE_IDS
        await refresh
        assert directory.all_roles() == dict(ROLE_IDS, auditor="role-auditor")

    async def test_failed_refresh_empties_cache(self, store):
        directory = RoleDirectory(store)
        await directory.initialize()
        store.fail_tables.add("roles")

        await directory.refresh()

        assert not directory.is_initialized
        assert directory.all_roles() == {}


class TestMembership:
    """Resolving role members."""

    async def test_members_of(self, directory):
        assert await directory.members_of("cashier") == {"cashier-1", "cashier-2", "cashier-3"}

    async def test_members_of_unknown_role(self, directory, store, caplog):
        """Unknown roles yield nothing and issue no query."""
        with caplog.at_level(logging.WARNING):
            assert await directory.members_of("janitor") == set()
        assert store.select_counts["user_roles"] == 0
        assert "not found" in caplog.text

    async def test_members_not_cached(self, directory, store):
        """A new assignment is visible on the next lookup."""
        assert "owner-3" not in await directory.members_of("owner")
        store.rows("user_roles").append({"user_id": "owner-3", "role_id": "role-owner"})
        assert "owner-3" in await directory.members_of("owner")

    async def test_members_of_store_failure(self, directory, store):
        store.fail_tables.add("user_roles")
        assert await directory.members_of("owner") == set()

    async def test_members_of_many_single_query(self, directory, store):
        """Several roles are resolved with exactly one query."""
        result = await directory.members_of_many(["owner", "superadmin", "cashier"])

        assert store.select_counts["user_roles"] == 1
        assert result == {
            "owner": {"owner-1", "owner-2"},
            "superadmin": {"admin-1"},
            "cashier": {"cashier-1", "cashier-2", "cashier-3"},
        }

    async def test_members_of_many_matches_members_of(self, directory):
        """The batched partition equals one-by-one resolution."""
        names = ["owner", "superadmin", "user", "cashier"]
        batched = await directory.members_of_many(names)
        for name in names:
            assert batched[name] == await directory.members_of(name)

    async def test_members_of_many_unknown_names(self, directory):
        """Every requested name is in the result."""
        result = await directory.members_of_many(["owner", "janitor"])
        assert result["janitor"] == set()
        assert result["owner"] == {"owner-1", "owner-2"}

    async def test_members_of_many_no_known_roles(self, directory, store):
        result = await directory.members_of_many(["janitor", "ghost"])
        assert result == {"janitor": set(), "ghost": set()}
        assert store.select_counts["user_roles"] == 0

    async def test_user_with_two_roles(self):
        store = seeded_store({"owner": ["u-1"], "superadmin": ["u-1", "u-2"]})
        directory = RoleDirectory(store)
        await directory.initialize()

        result = await directory.members_of_many(["owner", "superadmin"])

        assert result == {"owner": {"u-1"}, "superadmin": {"u-1", "u-2"}}

    async def test_members_of_many_store_failure(self, directory, store):
        store.fail_tables.add("user_roles")
        assert await directory.members_of_many(["owner"]) == {"owner": set()}
