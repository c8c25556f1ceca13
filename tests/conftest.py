"""Shared fixtures for the CRM test suite.

Every test gets a fresh StorageManager, so ids always start at 1 and no
state leaks between tests.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from database import StorageManager
from interface.web.api import create_app


@pytest.fixture
def db():
    """Yield a fresh StorageManager with unique-key checks enabled."""
    manager = StorageManager(enforce_unique_keys=True)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def db_permissive():
    """Yield a StorageManager that allows duplicate emails and usernames."""
    manager = StorageManager(enforce_unique_keys=False)
    try:
        yield manager
    finally:
        manager.close()


@pytest.fixture
def api(db):
    """Yield a TestClient bound to an app wrapping the ``db`` fixture."""
    with TestClient(create_app(db)) as client:
        yield client


@pytest.fixture
def fixed_now():
    """Stable 'now' for deterministic analytics and upcoming-meeting tests."""
    return datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

