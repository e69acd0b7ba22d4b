"""Shared fixtures: isolated database, in-memory remote stores, services."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from recordsync.server.database import Database
from recordsync.server.storage import LocalFSStorage
from recordsync.sync.reconcile import Reconcilers
from recordsync.sync.remote import RemoteStores


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    """Create a test database."""
    database = Database(tmp_path / "test.db")
    yield database
    database.close()


@pytest.fixture
def storage(tmp_path: Path) -> LocalFSStorage:
    """Create a test storage."""
    return LocalFSStorage(tmp_path / "storage")


@pytest.fixture
def remotes() -> RemoteStores:
    """Create in-memory remote stores."""
    return RemoteStores.in_memory()


@pytest.fixture
def reconcilers(db: Database, remotes: RemoteStores) -> Reconcilers:
    """Create reconciliation services over the test database."""
    return Reconcilers(db, remotes)
