"""Pytest configuration and shared fixtures."""

import pytest

from storefront.core.rbac import RoleDirectory
from storefront.services.notifications import NotificationDispatcher

from fakes import seeded_store


@pytest.fixture
def assignments():
    """Role memberships used by the default store fixture."""
    return {
        "superadmin": ["admin-1"],
        "owner": ["owner-1", "owner-2"],
        "cashier": ["cashier-1", "cashier-2", "cashier-3"],
        "user": ["customer-1"],
    }


@pytest.fixture
def store(assignments):
    return seeded_store(assignments)


@pytest.fixture
async def directory(store):
    directory = RoleDirectory(store)
    await directory.initialize()
    store.select_counts.clear()
    store.calls.clear()
    return directory


@pytest.fixture
def dispatcher(store, directory):
    return NotificationDispatcher(store, directory)
